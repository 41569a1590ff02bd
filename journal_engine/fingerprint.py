"""Deterministic dedup keys for imported trades."""

from datetime import datetime, timezone

from journal_engine.models import ImportedTrade

FINGERPRINT_SOURCE = "bitget"
FINGERPRINT_SEPARATOR = "|"


def format_fingerprint_time(ts: datetime) -> str:
    """
    Format a timestamp as UTC ISO-8601 with milliseconds.

    Naive datetimes are taken as UTC.

    Returns:
        e.g. "2026-01-25T17:21:15.000Z"
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    else:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def generate_trade_fingerprint(
    trade: ImportedTrade,
    source: str = FINGERPRINT_SOURCE,
) -> str:
    """
    Generate the dedup key of an imported trade.

    Two rows with the same source, pair, side, open/close time, quantity
    and realized P&L are the same trade. Quantity and P&L are fixed to 8
    decimals so float noise below that does not split duplicates.

    Args:
        trade: Parsed broker row
        source: Broker identifier

    Returns:
        Fingerprint string (e.g. "bitget|inj/usdt|short|...|1645.20000000|-90.35481327")
    """
    parts = [
        source,
        trade.pair.lower(),
        trade.position_type.value.lower(),
        format_fingerprint_time(trade.opening_time),
        format_fingerprint_time(trade.closing_time),
        f"{trade.quantity:.8f}",
        f"{trade.realized_pnl:.8f}",
    ]
    return FINGERPRINT_SEPARATOR.join(parts)
