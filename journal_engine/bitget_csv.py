"""
BitGet CSV Import
=================

Normalizes BitGet futures position-history exports into journal records.

Per-row pipeline:
    raw line -> BitGetRow -> futures field -> numeric coercion
             -> ImportedTrade -> TradeRecord

Every stage may fail for one row; the batch parser records the failure
with its line number and continues.

BitGet never exports the original stop loss. The importer estimates one
from the trader's CURRENT risk settings (1R / quantity away from entry)
and estimates leverage from position notional. Both are approximations,
flagged on the record with ``estimated=True``; RR fields stay None.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from journal_engine.config import DEFAULT_CONFIG, EngineConfig
from journal_engine.exceptions import (
    ImportRowError,
    InvalidImportValue,
    MalformedRow,
    UnrecognizedFuturesField,
)
from journal_engine.fingerprint import generate_trade_fingerprint
from journal_engine.models import (
    ExitRecord,
    ImportBatchResult,
    ImportedTrade,
    ImportPreview,
    PlannedTakeProfit,
    PositionType,
    RowError,
    TradeRecord,
    TradeStatus,
)
from journal_engine.ratios import calculate_one_r


logger = logging.getLogger(__name__)


BITGET_COLUMNS = (
    "futures",
    "opening_time",
    "avg_entry_price",
    "avg_closing_price",
    "closed_amount",
    "closed_value",
    "position_pnl",
    "realized_pnl",
    "fees",
    "opening_fee",
    "closing_fee",
    "closed_time",
)

EXCHANGE_NAME = "BitGet"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

FUTURES_RE = re.compile(r"^([A-Z0-9]+USDT)\s+(Long|Short)", re.IGNORECASE)
NUMERIC_PREFIX_RE = re.compile(r"^(-?\d+\.?\d*)")


@dataclass(frozen=True)
class BitGetRow:
    """One data row split into the 12 BitGet columns (raw strings)."""

    futures: str
    opening_time: str
    avg_entry_price: str
    avg_closing_price: str
    closed_amount: str
    closed_value: str
    position_pnl: str
    realized_pnl: str
    fees: str
    opening_fee: str
    closing_fee: str
    closed_time: str


@dataclass(frozen=True)
class ParsedNumber:
    """Result of permissive numeric coercion.

    ``coerced_to_zero`` is True when the cell had no leading number and
    0.0 was substituted.
    """

    value: float
    coerced_to_zero: bool = False


# ============================================================
# ROW PARSING
# ============================================================


def parse_bitget_row(line: str) -> BitGetRow:
    """Split a CSV line into BitGet columns.

    Raises:
        MalformedRow: Fewer than 12 fields
    """
    clean = line.lstrip("\ufeff")
    fields = [f.strip() for f in clean.split(",")]

    if len(fields) < len(BITGET_COLUMNS):
        raise MalformedRow(
            f"Failed to parse CSV row: expected {len(BITGET_COLUMNS)} fields, got {len(fields)}"
        )
    return BitGetRow(*fields[: len(BITGET_COLUMNS)])


def parse_futures_field(futures: str) -> Tuple[str, PositionType]:
    """Extract pair and side: "INJUSDT Short·Isolated" -> ("INJ/USDT", SHORT).

    Raises:
        UnrecognizedFuturesField: No ``SYMBOLUSDT Long|Short`` prefix
    """
    match = FUTURES_RE.match(futures)
    if not match:
        raise UnrecognizedFuturesField(futures)

    raw_pair = match.group(1).upper()
    pair = raw_pair[: -len("USDT")] + "/USDT"
    return pair, PositionType(match.group(2).upper())


def parse_numeric_value(value: str) -> ParsedNumber:
    """Leading signed decimal of a suffixed amount.

    "1645.2INJ" -> 1645.2, "-90.35USDT" -> -90.35, "" -> 0.0 (coerced)
    """
    match = NUMERIC_PREFIX_RE.match(value.strip())
    if not match:
        return ParsedNumber(0.0, coerced_to_zero=True)
    return ParsedNumber(float(match.group(1)))


def parse_price(value: str, column: str) -> float:
    """Strict float parse for the average price columns."""
    try:
        return float(value)
    except ValueError:
        raise MalformedRow(f"Invalid {column}: {value!r}") from None


def parse_timestamp(value: str, column: str) -> datetime:
    """Parse "2026-01-25 17:21:15" as UTC."""
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        raise MalformedRow(f"Invalid {column}: {value!r}") from None


def convert_row_to_imported_trade(row: BitGetRow) -> ImportedTrade:
    """Turn raw BitGet columns into an ImportedTrade.

    Cells that coerce to zero are listed in ``coerced_fields`` and logged.

    Raises:
        UnrecognizedFuturesField: Bad Futures column
        MalformedRow: Bad price or timestamp
    """
    pair, position_type = parse_futures_field(row.futures)

    coerced: List[str] = []

    def number(column: str) -> float:
        parsed = parse_numeric_value(getattr(row, column))
        if parsed.coerced_to_zero:
            coerced.append(column)
        return parsed.value

    quantity = number("closed_amount")
    realized_pnl = number("realized_pnl")
    total_fees = abs(number("opening_fee")) + abs(number("closing_fee"))

    if coerced:
        logger.warning(f"{pair}: no numeric value in {', '.join(coerced)}, using 0")

    return ImportedTrade(
        pair=pair,
        position_type=position_type,
        entry_price=parse_price(row.avg_entry_price, "avg_entry_price"),
        exit_price=parse_price(row.avg_closing_price, "avg_closing_price"),
        quantity=quantity,
        realized_pnl=realized_pnl,
        opening_time=parse_timestamp(row.opening_time, "opening_time"),
        closing_time=parse_timestamp(row.closed_time, "closed_time"),
        total_fees=total_fees,
        coerced_fields=coerced,
    )


# ============================================================
# ESTIMATION
# ============================================================


def estimate_stop_loss(
    position_type: PositionType,
    entry_price: float,
    quantity: float,
    portfolio: float,
    risk_fraction: float,
) -> float:
    """Stop price that would have risked exactly 1R on this quantity.

    Uses the trader's current settings, which may differ from those in
    force when the trade happened. Display only.
    """
    sl_distance = calculate_one_r(portfolio, risk_fraction) / quantity
    if position_type == PositionType.LONG:
        return entry_price - sl_distance
    return entry_price + sl_distance


def estimate_leverage(
    entry_price: float,
    quantity: float,
    config: Optional[EngineConfig] = None,
) -> int:
    """Typical leverage for the position's notional (bracket table)."""
    config = config or DEFAULT_CONFIG
    notional = quantity * entry_price
    for upper_bound, leverage in config.leverage_brackets:
        if notional < upper_bound:
            return leverage
    return config.default_import_leverage


def determine_import_status(
    realized_pnl: float,
    config: Optional[EngineConfig] = None,
) -> TradeStatus:
    config = config or DEFAULT_CONFIG
    if realized_pnl > config.import_break_even_band:
        return TradeStatus.WIN
    if realized_pnl < -config.import_break_even_band:
        return TradeStatus.LOSS
    return TradeStatus.BE


# ============================================================
# RECORD CONVERSION
# ============================================================


def convert_imported_trade_to_record(
    imported: ImportedTrade,
    portfolio: float,
    risk_fraction: float,
    config: Optional[EngineConfig] = None,
) -> TradeRecord:
    """Build a journal record from an imported trade.

    Stop loss and leverage are estimated; planned RR, effective RR and
    P&L in R are None because they cannot be derived without the real
    stop.

    Raises:
        InvalidImportValue: Non-positive quantity or entry price
    """
    if imported.quantity <= 0:
        raise InvalidImportValue(f"Closed amount must be positive, got {imported.quantity}")
    if imported.entry_price <= 0:
        raise InvalidImportValue(f"Entry price must be positive, got {imported.entry_price}")

    position_size = imported.quantity * imported.entry_price
    one_r = calculate_one_r(portfolio, risk_fraction)
    estimated_sl = estimate_stop_loss(
        imported.position_type,
        imported.entry_price,
        imported.quantity,
        portfolio,
        risk_fraction,
    )
    leverage = estimate_leverage(imported.entry_price, imported.quantity, config)

    notes = (
        f"Imported from {EXCHANGE_NAME} | Fees: ${imported.total_fees:.2f} | "
        f"Note: RR metrics unavailable (no SL data from {EXCHANGE_NAME})"
    )

    return TradeRecord(
        pair=imported.pair,
        exchange=EXCHANGE_NAME,
        position_type=imported.position_type,
        analysis_date=imported.opening_time,
        trade_date=imported.opening_time,
        close_date=imported.closing_time,
        status=determine_import_status(imported.realized_pnl, config),
        portfolio_value=portfolio,
        risk_fraction=risk_fraction,
        min_rr=None,
        planned_pe=imported.entry_price,
        planned_sl=estimated_sl,
        leverage=leverage,
        planned_take_profits=[PlannedTakeProfit(price=imported.exit_price, fraction=1.0)],
        one_r=one_r,
        margin=position_size / leverage,
        position_size=position_size,
        quantity=imported.quantity,
        planned_weighted_rr=None,
        effective_pe=imported.entry_price,
        exits=[
            ExitRecord(
                label="TP1",
                price=imported.exit_price,
                fraction=1.0,
                pnl=imported.realized_pnl,
            )
        ],
        effective_weighted_rr=None,
        total_pnl=imported.realized_pnl,
        pnl_in_r=None,
        notes=notes,
        total_fees=imported.total_fees,
        estimated=True,
        coerced_fields=imported.coerced_fields,
        import_fingerprint=generate_trade_fingerprint(imported),
        import_source="CSV_IMPORT",
    )


# ============================================================
# BATCH
# ============================================================


def _data_lines(content: str) -> List[Tuple[int, str]]:
    """Non-blank lines after the header, with 1-based line numbers.

    Numbering counts non-blank lines only.
    """
    lines = [line for line in content.split("\n") if line.strip()]
    return [(index + 1, line) for index, line in enumerate(lines) if index > 0]


def parse_bitget_csv(
    content: str,
    portfolio: float,
    risk_fraction: float,
    config: Optional[EngineConfig] = None,
) -> ImportBatchResult:
    """Parse a whole BitGet export into journal records.

    Rows are processed in order; a failing row becomes a RowError and
    never aborts the batch. Duplicate detection is left to the caller,
    which checks ``import_fingerprint`` against stored trades.

    Args:
        content: CSV text, header line first
        portfolio: Current portfolio value used for stop estimation
        risk_fraction: Current risk fraction used for stop estimation
        config: Engine configuration

    Returns:
        ImportBatchResult with records and line-numbered errors
    """
    result = ImportBatchResult()

    for line_number, line in _data_lines(content):
        try:
            row = parse_bitget_row(line)
            imported = convert_row_to_imported_trade(row)
            record = convert_imported_trade_to_record(imported, portfolio, risk_fraction, config)
        except (ImportRowError, ValueError) as e:
            logger.warning(f"Line {line_number}: {e}")
            result.errors.append(RowError(line=line_number, error=str(e)))
            continue
        result.trades.append(record)

    logger.info(
        f"BitGet import parsed: {len(result.trades)} trade(s), {len(result.errors)} error(s)"
    )
    return result


def preview_bitget_import(content: str) -> List[ImportPreview]:
    """Parsed rows with fingerprints, for showing before import.

    Rows that fail to parse are logged and left out.
    """
    previews: List[ImportPreview] = []
    for line_number, line in _data_lines(content):
        try:
            imported = convert_row_to_imported_trade(parse_bitget_row(line))
        except (ImportRowError, ValueError) as e:
            logger.warning(f"Skipping line {line_number} in preview: {e}")
            continue
        previews.append(
            ImportPreview(trade=imported, fingerprint=generate_trade_fingerprint(imported))
        )
    return previews
