"""
Execution Metrics
=================

Pure functions measuring what actually happened against the planned risk
unit.

Computes:
- R-multiple and P&L per exit leg
- Realized P&L (exits that occurred only)
- Total P&L if the whole position closed at the weighted exit price
- Effective RR (R-multiples weighted by exit fraction)

``one_r`` and ``position_size`` are taken from the plan and never
recomputed. Exit fractions are shares of the ORIGINAL position, so
partial exits add up as more are recorded.
"""

from typing import List, Optional
import logging

from journal_engine.allocation import weighted_average
from journal_engine.config import DEFAULT_CONFIG, EngineConfig
from journal_engine.exceptions import ZeroStopDistance
from journal_engine.models import (
    ExecutionMetrics,
    ExitMetrics,
    TradeExecution,
    TradeStatus,
)
from journal_engine.planning import resolve_entry_price
from journal_engine.ratios import sl_distance_usd, tp_distance_usd


def calculate_execution_metrics(
    execution: TradeExecution,
    logger: Optional[logging.Logger] = None,
) -> ExecutionMetrics:
    """Compute realized and hypothetical outcome of a trade.

    Args:
        execution: Effective entries, fixed stop, exits and planned risk unit
        logger: Optional logger

    Returns:
        ExecutionMetrics

    Raises:
        InvalidEntryConfiguration: Entries given but unusable
        ZeroEntryPrice: Resolved effective entry is zero
        ZeroStopDistance: Effective entry equals the stop loss
        InvalidAllocation: Exits carry weight but no positive price
    """
    pe = resolve_entry_price(execution.entries, execution.entry_price)
    position_type = execution.position_type

    sl_usd = sl_distance_usd(position_type, pe, execution.stop_loss)
    if sl_usd == 0:
        raise ZeroStopDistance(
            f"Effective entry {pe} equals stop loss, R-multiple is undefined"
        )

    exits: List[ExitMetrics] = []
    realized_pnl = 0.0
    effective_rr = 0.0
    total_exit_fraction = 0.0

    for leg in execution.exits:
        r_multiple = tp_distance_usd(position_type, pe, leg.price) / sl_usd
        pnl = execution.one_r * r_multiple * leg.fraction

        exits.append(
            ExitMetrics(price=leg.price, fraction=leg.fraction, r_multiple=r_multiple, pnl=pnl)
        )
        realized_pnl += pnl
        effective_rr += r_multiple * leg.fraction
        total_exit_fraction += leg.fraction

    weighted_exit_price = None
    total_r_multiple = None
    total_pnl = None
    if total_exit_fraction > 0:
        weighted_exit_price = weighted_average(execution.exits)
        total_r_multiple = tp_distance_usd(position_type, pe, weighted_exit_price) / sl_usd
        total_pnl = execution.one_r * total_r_multiple

    if logger:
        logger.debug(
            f"Execution {position_type.value}: pe={pe:.4f}, exited={total_exit_fraction:.1%}, "
            f"realized={realized_pnl:.2f}, effective_rr={effective_rr:.2f}"
        )

    return ExecutionMetrics(
        position_type=position_type,
        weighted_pe=pe,
        sl_distance_usd=sl_usd,
        exits=exits,
        total_exit_fraction=total_exit_fraction,
        weighted_exit_price=weighted_exit_price,
        total_r_multiple_if_complete=total_r_multiple,
        total_pnl=total_pnl,
        realized_pnl=realized_pnl,
        effective_rr=effective_rr,
    )


def determine_status(
    total_exit_percent: float,
    total_pnl: Optional[float],
    manual_break_even: bool = False,
    config: Optional[EngineConfig] = None,
) -> TradeStatus:
    """Classify a trade from how much has exited and its full-close P&L.

    - OPEN: nothing exited, or exits do not yet sum to 100%
    - BE: |P&L| below the break-even band, or below the manual band when
      the trader flagged the trade as break-even
    - WIN / LOSS: by the sign of P&L otherwise
    """
    config = config or DEFAULT_CONFIG

    if total_exit_percent == 0 or total_pnl is None:
        return TradeStatus.OPEN
    if abs(total_exit_percent - 100.0) > config.allocation_tolerance:
        return TradeStatus.OPEN

    if manual_break_even and abs(total_pnl) < config.manual_break_even_band:
        return TradeStatus.BE
    if abs(total_pnl) < config.break_even_band:
        return TradeStatus.BE
    return TradeStatus.WIN if total_pnl > 0 else TradeStatus.LOSS
