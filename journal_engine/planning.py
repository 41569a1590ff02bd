"""
Planned Trade Metrics
=====================

Pure functions for sizing a planned trade and measuring its reward.

Computes:
- Weighted entry price, direction and 1R
- Stop distance, max safe leverage, margin, position size, quantity
- Per take-profit RR and potential profit, weighted RR

Design:
- Direction comes from the FIRST take-profit row by list order, even a
  row whose percent is blank; a blank price there falls back to the entry
  and yields UNDEFINED. Legs on the other side of the entry are not
  rejected; they are reported as DirectionWarning entries and produce
  negative RR.
- Take-profit percents are normalized by their observed total, so each
  leg is a disjoint slice of the position and profits add up.
- Precondition violations raise; submission checks live in
  validate_trade() and never raise.
"""

from typing import List, Optional, Sequence
import logging

from journal_engine.allocation import (
    normalize_allocations,
    validate_allocation,
    weighted_average,
)
from journal_engine.config import DEFAULT_CONFIG, EngineConfig
from journal_engine.exceptions import (
    InvalidAllocation,
    InvalidEntryConfiguration,
    InvalidPositionSizing,
    ZeroEntryPrice,
)
from journal_engine.models import (
    DirectionWarning,
    DistanceMetrics,
    PositionType,
    PriceAllocation,
    PriceFraction,
    TakeProfitMetrics,
    TradeMetrics,
    TradeSetup,
    TradeValidation,
)
from journal_engine.ratios import (
    calculate_max_leverage,
    calculate_one_r,
    calculate_position_size,
    calculate_quantity,
    calculate_tp_rr,
    calculate_weighted_rr,
    distance_pct,
    get_position_type,
    sl_distance_usd,
    tp_distance_usd,
)


def resolve_entry_price(
    entries: Sequence[PriceAllocation],
    entry_price: Optional[float],
) -> float:
    """Weighted entry from ``entries`` or the legacy single price.

    Raises:
        InvalidEntryConfiguration: Entries given but none usable
        ZeroEntryPrice: Resolved entry is zero (or missing)
    """
    if entries:
        try:
            pe = weighted_average(entries)
        except InvalidAllocation as e:
            raise InvalidEntryConfiguration(str(e)) from e
    else:
        pe = entry_price or 0.0

    if pe == 0:
        raise ZeroEntryPrice("Entry price cannot be zero")
    return pe


def check_leg_directions(
    pe: float,
    position_type: PositionType,
    take_profits: Sequence[PriceFraction],
) -> List[DirectionWarning]:
    """Flag take-profit legs whose implied direction differs from the trade's."""
    warnings: List[DirectionWarning] = []
    for index, leg in enumerate(take_profits):
        implied = get_position_type(pe, leg.price)
        if implied == position_type:
            continue
        warnings.append(
            DirectionWarning(
                leg_index=index,
                price=leg.price,
                expected_type=position_type,
                implied_type=implied,
                message=(
                    f"TP{index + 1} at {leg.price} implies {implied.value}, "
                    f"trade is {position_type.value}"
                ),
            )
        )
    return warnings


def calculate_trade_metrics(
    setup: TradeSetup,
    config: Optional[EngineConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> TradeMetrics:
    """Compute sizing and reward metrics for a planned trade.

    Process:
    1. Resolve weighted entry price
    2. Derive direction from the first take-profit row as entered (a
       blank price there falls back to the entry, giving UNDEFINED)
    3. 1R = portfolio x risk fraction
    4. Stop distance (USD, %) and max safe leverage
    5. Margin, position size and quantity risking exactly 1R at the stop
    6. Per-leg RR and potential profit, weighted RR and total profit

    Args:
        setup: Planned trade
        config: Engine configuration
        logger: Optional logger

    Returns:
        TradeMetrics

    Raises:
        InvalidEntryConfiguration: Entries given but unusable
        ZeroEntryPrice: Resolved entry price is zero
        InvalidAllocation: No usable take-profit leg
        InvalidPositionSizing: Loss percentage at the stop is zero
    """
    pe = resolve_entry_price(setup.entries, setup.entry_price)
    take_profits = normalize_allocations(setup.take_profits, config, logger=logger)

    first_tp = setup.take_profits[0].price or pe
    position_type = get_position_type(pe, first_tp)
    one_r = calculate_one_r(setup.portfolio_value, setup.risk_fraction)

    sl_usd = sl_distance_usd(position_type, pe, setup.stop_loss)
    sl_pct = distance_pct(sl_usd, pe)
    first_tp_usd = tp_distance_usd(position_type, pe, first_tp)

    max_leverage = calculate_max_leverage(sl_pct)
    sizing = calculate_position_size(one_r, sl_pct, setup.leverage)
    if sizing is None:
        raise InvalidPositionSizing(
            f"Loss at stop is zero (sl_distance_pct={sl_pct}, leverage={setup.leverage})"
        )
    margin, position_size = sizing
    quantity = calculate_quantity(position_size, pe)

    legs: List[TakeProfitMetrics] = []
    for tp in take_profits:
        tp_pct = distance_pct(tp_distance_usd(position_type, pe, tp.price), pe)
        legs.append(
            TakeProfitMetrics(
                price=tp.price,
                fraction=tp.fraction,
                rr=calculate_tp_rr(position_type, tp.price, pe, setup.stop_loss),
                potential_profit=position_size * tp_pct * tp.fraction,
            )
        )

    warnings = check_leg_directions(pe, position_type, take_profits)
    if logger:
        for warning in warnings:
            logger.warning(warning.message)

    planned_weighted_rr = calculate_weighted_rr(legs)
    potential_profit = sum(leg.potential_profit for leg in legs)

    if logger:
        logger.info(
            f"Planned {position_type.value}: pe={pe:.4f}, sl={setup.stop_loss:.4f}, "
            f"1R={one_r:.2f}, margin={margin:.2f}, size={position_size:.2f}, "
            f"rr={planned_weighted_rr:.2f}"
        )

    return TradeMetrics(
        position_type=position_type,
        one_r=one_r,
        weighted_pe=pe,
        distances=DistanceMetrics(
            sl_distance_usd=sl_usd,
            sl_distance_pct=sl_pct,
            tp_distance_usd=first_tp_usd,
            tp_distance_pct=distance_pct(first_tp_usd, pe),
        ),
        max_leverage=max_leverage,
        margin=margin,
        position_size=position_size,
        quantity=quantity,
        take_profits=legs,
        planned_weighted_rr=planned_weighted_rr,
        potential_profit=potential_profit,
        warnings=warnings,
    )


def validate_trade(
    setup: TradeSetup,
    metrics: TradeMetrics,
    config: Optional[EngineConfig] = None,
) -> TradeValidation:
    """Pre-submission checks for a planned trade.

    Blocking errors:
    - Direction UNDEFINED, take-profit equal to entry
    - Weighted RR below the setup's minimum RR
    - Leverage above max safe leverage
    - Entry or take-profit allocation not summing to 100%
    - More take-profits than allowed

    Direction disagreements between legs are warnings only. An entry equal
    to the stop never reaches this point: calculate_trade_metrics() raises
    InvalidPositionSizing for it.
    """
    config = config or DEFAULT_CONFIG
    errors: List[str] = []
    pe = metrics.weighted_pe

    if metrics.position_type == PositionType.UNDEFINED:
        errors.append("Position type is undefined (take profit equals entry)")
    if any(tp.price == pe for tp in setup.take_profits):
        errors.append("Take Profit prices must not equal Entry Price")

    if setup.min_rr is not None and metrics.planned_weighted_rr < setup.min_rr:
        errors.append(
            f"RR ({metrics.planned_weighted_rr:.2f}) is below minimum ({setup.min_rr})"
        )

    if metrics.max_leverage is not None and setup.leverage > metrics.max_leverage:
        errors.append(
            f"Leverage ({setup.leverage:g}x) exceeds max safe leverage "
            f"({metrics.max_leverage}x)"
        )

    if setup.entries:
        errors.extend(validate_allocation(setup.entries, config, label="Entry allocation").errors)
    errors.extend(validate_allocation(setup.take_profits, config, label="TP allocation").errors)

    if len(setup.take_profits) > config.max_take_profits:
        errors.append(f"Maximum {config.max_take_profits} take profits allowed")

    return TradeValidation(
        valid=not errors,
        errors=errors,
        warnings=[w.message for w in metrics.warnings],
    )
