"""
Journal Engine Data Models
==========================

Pydantic models for the position-sizing engine and the broker import
normalizer.

Design decisions:
1. Pydantic over dataclasses: Runtime validation + JSON serialization
2. Immutability: Value objects are frozen, they have no identity beyond
   their field values
3. Explicit percent units: ``Percent100`` (0-100) and ``Fraction01`` (0-1)
   are distinct annotated types carried by distinct models
   (``PriceAllocation.percent`` vs ``PriceFraction.fraction``)
4. Nothing fabricated: fields that cannot be derived (e.g. RR of an
   imported trade) are ``None``, never a placeholder number
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


Percent100 = Annotated[float, Field(ge=0.0, le=100.0)]
Fraction01 = Annotated[float, Field(ge=0.0, le=1.0)]


class PositionType(str, Enum):
    """Trade direction, derived from the entry / target price pair."""

    LONG = "LONG"
    SHORT = "SHORT"
    UNDEFINED = "UNDEFINED"


class TradeStatus(str, Enum):
    """Lifecycle classification of a journaled trade."""

    OPEN = "OPEN"
    WIN = "WIN"
    LOSS = "LOSS"
    BE = "BE"


# ============================================================
# ALLOCATIONS
# ============================================================


class PriceAllocation(BaseModel):
    """One entry, take-profit or raw exit row, weighted in percent (0-100).

    A zero price or zero percent is accepted so blank form rows can be
    passed through; averaging skips them.

    Attributes:
        price: Fill or target price
        percent: Share of the leg in percent, 0-100
    """

    price: float = Field(ge=0.0)
    percent: Percent100

    @property
    def weight(self) -> float:
        return self.percent

    model_config = {"frozen": True}


class PriceFraction(BaseModel):
    """One normalized leg, weighted as a fraction (0-1) of the position.

    Attributes:
        price: Fill or target price
        fraction: Share of the original position, 0-1
    """

    price: float = Field(ge=0.0)
    fraction: Fraction01

    @property
    def weight(self) -> float:
        return self.fraction

    model_config = {"frozen": True}


class AllocationCheck(BaseModel):
    """Outcome of checking that an allocation set sums to 100%."""

    valid: bool
    total: float
    errors: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


# ============================================================
# PLANNING
# ============================================================


class TradeSetup(BaseModel):
    """A planned trade as entered in the calculator or new-trade form.

    Either ``entries`` (multi-entry) or the legacy single ``entry_price``
    is used; entries win when present.

    Attributes:
        portfolio_value: Capital the risk percentage applies to (> 0)
        risk_fraction: Fraction of the portfolio risked per trade, "R" (0-1]
        min_rr: Minimum acceptable weighted RR, None when not enforced
        entries: Entry allocations in percent
        entry_price: Legacy single entry price
        stop_loss: Stop-loss price
        take_profits: Take-profit allocations in percent (at least one; the
            upper limit is EngineConfig.max_take_profits, checked by
            validate_trade)
        leverage: Leverage multiplier (>= 1 in practice, not enforced here)
    """

    portfolio_value: float = Field(gt=0.0)
    risk_fraction: float = Field(gt=0.0, le=1.0)
    min_rr: Optional[float] = None
    entries: List[PriceAllocation] = Field(default_factory=list)
    entry_price: Optional[float] = None
    stop_loss: float
    take_profits: List[PriceAllocation] = Field(min_length=1)
    leverage: float = 1

    model_config = {"frozen": True}


class DistanceMetrics(BaseModel):
    """Stop-loss distance plus the first take-profit's distance.

    ``sl_distance_usd`` is signed: a stop on the wrong side of the entry
    yields a negative value.
    """

    sl_distance_usd: float
    sl_distance_pct: float
    tp_distance_usd: float
    tp_distance_pct: float

    model_config = {"frozen": True}


class TakeProfitMetrics(BaseModel):
    """Per-leg RR and potential profit for one take-profit."""

    price: float
    fraction: Fraction01
    rr: float
    potential_profit: float

    model_config = {"frozen": True}


class DirectionWarning(BaseModel):
    """A take-profit leg whose implied direction disagrees with the trade type."""

    leg_index: int
    price: float
    expected_type: PositionType
    implied_type: PositionType
    message: str

    model_config = {"frozen": True}


class TradeMetrics(BaseModel):
    """Planned sizing and reward metrics for a TradeSetup.

    Attributes:
        position_type: Direction implied by the first take-profit
        one_r: Dollar risk, portfolio x risk fraction
        weighted_pe: Weighted entry price
        distances: Stop / first-TP distances
        max_leverage: Leverage at which the stop consumes 100% of margin
        margin: Margin required to risk exactly 1R at the stop
        position_size: Notional size, margin x leverage
        quantity: Units, position_size / weighted_pe
        take_profits: Per-leg RR and potential profit
        planned_weighted_rr: Allocation-weighted RR across legs
        potential_profit: Sum of per-leg potential profits
        warnings: Legs that straddle the entry price
    """

    position_type: PositionType
    one_r: float
    weighted_pe: float
    distances: DistanceMetrics
    max_leverage: Optional[int] = None
    margin: float
    position_size: float
    quantity: float
    take_profits: List[TakeProfitMetrics]
    planned_weighted_rr: float
    potential_profit: float
    warnings: List[DirectionWarning] = Field(default_factory=list)

    model_config = {"frozen": True}


class TradeValidation(BaseModel):
    """Pre-submission verdict for a planned trade."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


# ============================================================
# EXECUTION
# ============================================================


class TradeExecution(BaseModel):
    """Actual fills and exits measured against the planned risk unit.

    ``one_r`` and ``position_size`` come from the plan and are not
    recomputed. Exit fractions are shares of the original position.
    """

    entries: List[PriceAllocation] = Field(default_factory=list)
    entry_price: Optional[float] = None
    stop_loss: float
    exits: List[PriceFraction] = Field(default_factory=list)
    one_r: float
    position_size: float
    position_type: PositionType

    model_config = {"frozen": True}


class ExitMetrics(BaseModel):
    """Outcome of one exit leg."""

    price: float
    fraction: Fraction01
    r_multiple: float
    pnl: float

    model_config = {"frozen": True}


class ExecutionMetrics(BaseModel):
    """Realized and hypothetical outcome of a trade.

    ``realized_pnl`` sums only exits that happened. ``total_pnl`` assumes
    the whole position closes at the weighted exit price; the hypothetical
    fields stay None while nothing has exited.
    """

    position_type: PositionType
    weighted_pe: float
    sl_distance_usd: float
    exits: List[ExitMetrics]
    total_exit_fraction: float
    weighted_exit_price: Optional[float] = None
    total_r_multiple_if_complete: Optional[float] = None
    total_pnl: Optional[float] = None
    realized_pnl: float
    effective_rr: float

    model_config = {"frozen": True}


class TradeEvaluation(BaseModel):
    """Plan, execution and status recomputed for one stored trade.

    ``exit_allocation`` is set only when the exit rows add up to more than
    100% of the position.
    """

    metrics: TradeMetrics
    validation: TradeValidation
    execution: Optional[ExecutionMetrics] = None
    total_exit_percent: float = 0.0
    status: TradeStatus = TradeStatus.OPEN
    total_pnl: Optional[float] = None
    effective_rr: Optional[float] = None
    exit_allocation: Optional[AllocationCheck] = None

    model_config = {"frozen": True}


# ============================================================
# IMPORT
# ============================================================


class ImportedTrade(BaseModel):
    """One broker CSV row after parsing and numeric coercion.

    Attributes:
        pair: Normalized pair (e.g. "INJ/USDT")
        position_type: LONG or SHORT
        entry_price: Broker-averaged entry price
        exit_price: Broker-averaged closing price
        quantity: Closed amount in base asset
        realized_pnl: Realized P&L in quote currency
        opening_time: Position open time (UTC)
        closing_time: Position close time (UTC)
        total_fees: Absolute opening + closing fees
        coerced_fields: Columns with no numeric prefix that defaulted to 0
    """

    pair: str
    position_type: PositionType
    entry_price: float
    exit_price: float
    quantity: float
    realized_pnl: float
    opening_time: datetime
    closing_time: datetime
    total_fees: float = 0.0
    coerced_fields: List[str] = Field(default_factory=list)

    @field_validator("position_type")
    @classmethod
    def validate_position_type(cls, v: PositionType) -> PositionType:
        if v == PositionType.UNDEFINED:
            raise ValueError("imported trades must be LONG or SHORT")
        return v

    model_config = {"frozen": True}


class ImportPreview(BaseModel):
    """A parsed row together with its dedup key, shown before importing."""

    trade: ImportedTrade
    fingerprint: str

    model_config = {"frozen": True}


class PlannedTakeProfit(BaseModel):
    price: float
    fraction: Fraction01
    rr: Optional[float] = None

    model_config = {"frozen": True}


class ExitRecord(BaseModel):
    label: Literal["TP1", "TP2", "TP3", "TP4", "BE", "SL"]
    price: float
    fraction: Fraction01
    pnl: Optional[float] = None
    rr: Optional[float] = None

    model_config = {"frozen": True}


class TradeRecord(BaseModel):
    """A journal trade as handed to the persistence layer.

    Records produced by the importer have ``estimated=True``: their stop
    loss and leverage are inferred, and every RR field is None.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    pair: str
    exchange: str
    position_type: PositionType
    analysis_date: Optional[datetime] = None
    trade_date: Optional[datetime] = None
    close_date: Optional[datetime] = None
    status: TradeStatus = TradeStatus.OPEN

    portfolio_value: float
    risk_fraction: float
    min_rr: Optional[float] = None

    planned_pe: float
    planned_sl: float
    leverage: int
    planned_entries: List[PriceAllocation] = Field(default_factory=list)
    planned_take_profits: List[PlannedTakeProfit] = Field(default_factory=list)

    one_r: float
    margin: float
    position_size: float
    quantity: float
    planned_weighted_rr: Optional[float] = None

    effective_pe: Optional[float] = None
    effective_entries: List[PriceAllocation] = Field(default_factory=list)
    exits: List[ExitRecord] = Field(default_factory=list)

    effective_weighted_rr: Optional[float] = None
    total_pnl: Optional[float] = None
    pnl_in_r: Optional[float] = None

    notes: str = ""
    total_fees: float = 0.0
    estimated: bool = False
    coerced_fields: List[str] = Field(default_factory=list)
    import_fingerprint: Optional[str] = None
    import_source: Literal["USER_CREATED", "API_IMPORT", "CSV_IMPORT"] = "USER_CREATED"

    @field_validator("leverage")
    @classmethod
    def validate_leverage(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"leverage must be >= 1, got {v}")
        return v

    model_config = {"frozen": True}


class RowError(BaseModel):
    """A CSV row that could not be imported, with its 1-based line number."""

    line: int
    error: str

    model_config = {"frozen": True}


class ImportBatchResult(BaseModel):
    """Batch import output: converted records plus per-line errors."""

    trades: List[TradeRecord] = Field(default_factory=list)
    errors: List[RowError] = Field(default_factory=list)


# ============================================================
# PERFORMANCE
# ============================================================


class DashboardStats(BaseModel):
    """Aggregate performance over a set of journal records.

    Attributes:
        win_rate: Wins / (wins + losses), in percent
        profit_factor: Gross profit / gross loss (inf with no losses)
        avg_effective_rr: Mean of non-null effective weighted RR values
    """

    total_trades: int
    wins: int
    losses: int
    breakevens: int
    open_trades: int
    win_rate: float
    total_pnl: float
    gross_profit: float
    gross_loss: float
    profit_factor: float
    avg_effective_rr: float
    best_trade: float
    worst_trade: float

    model_config = {"frozen": True}


class EquityCurvePoint(BaseModel):
    """Closed-trade P&L for one UTC calendar day."""

    day: date
    daily_pnl: float
    cumulative_pnl: float
    trade_count: int

    model_config = {"frozen": True}
