"""
Journal Engine Orchestration
============================

Main entry point for recomputing a journaled trade.

Live R-multiples, effective RR and P&L are not stored as authoritative
values; they are recomputed from the stored plan and the raw
entry / exit rows every time a trade is displayed or edited.
evaluate_trade() runs that whole pipeline:

1. Planned metrics and pre-submission validation
2. Exit rows converted to fractions of the original position and
   checked for over-allocation
3. Execution metrics against the planned 1R
4. Status classification

Deterministic and side-effect free: same inputs, same TradeEvaluation.
"""

from typing import Optional, Sequence
import logging

from journal_engine.allocation import exits_to_fractions, usable_legs, validate_allocation
from journal_engine.config import DEFAULT_CONFIG, EngineConfig
from journal_engine.execution import calculate_execution_metrics, determine_status
from journal_engine.models import (
    PriceAllocation,
    TradeEvaluation,
    TradeExecution,
    TradeSetup,
    TradeStatus,
)
from journal_engine.planning import calculate_trade_metrics, validate_trade


def evaluate_trade(
    setup: TradeSetup,
    exits: Sequence[PriceAllocation] = (),
    effective_entries: Sequence[PriceAllocation] = (),
    effective_entry_price: Optional[float] = None,
    manual_break_even: bool = False,
    config: Optional[EngineConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> TradeEvaluation:
    """Recompute plan, execution and status for one trade.

    Args:
        setup: Stored planned setup
        exits: Raw exit rows, percent of the original position (0-100)
        effective_entries: Actual fills; blank rows ignored
        effective_entry_price: Legacy single fill price, used when no
            effective entry is usable (planned entry otherwise)
        manual_break_even: Trader flagged the trade as break-even
        config: Engine configuration
        logger: Optional logger

    Returns:
        TradeEvaluation. ``total_pnl`` is set only once exits sum to 100%;
        partial exits report ``effective_rr`` and stay OPEN. Exits over
        100% also stay OPEN and carry a failed ``exit_allocation`` check.

    Raises:
        JournalEngineError subclasses from the planning and execution steps
    """
    config = config or DEFAULT_CONFIG

    metrics = calculate_trade_metrics(setup, config, logger=logger)
    validation = validate_trade(setup, metrics, config)

    fractions = exits_to_fractions(exits, config)
    exited = [e for e in exits if e.price > 0]
    total_exit_percent = sum(e.percent for e in exited)

    exit_allocation = None
    if total_exit_percent > 100.0 + config.allocation_tolerance:
        exit_allocation = validate_allocation(exited, config, label="Exit allocation")
        if logger:
            logger.warning(exit_allocation.errors[0])

    if not fractions:
        if logger:
            logger.debug("No exits recorded, trade is OPEN")
        return TradeEvaluation(
            metrics=metrics,
            validation=validation,
            total_exit_percent=total_exit_percent,
            status=TradeStatus.OPEN,
        )

    entries = usable_legs(effective_entries)
    if entries:
        entry_price = None
    else:
        entry_price = effective_entry_price or metrics.weighted_pe

    execution = calculate_execution_metrics(
        TradeExecution(
            entries=entries,
            entry_price=entry_price,
            stop_loss=setup.stop_loss,
            exits=fractions,
            one_r=metrics.one_r,
            position_size=metrics.position_size,
            position_type=metrics.position_type,
        ),
        logger=logger,
    )

    fully_closed = abs(total_exit_percent - 100.0) <= config.allocation_tolerance
    total_pnl = execution.total_pnl if fully_closed else None
    status = determine_status(total_exit_percent, total_pnl, manual_break_even, config)

    if logger:
        logger.info(
            f"Trade evaluated: status={status.value}, exited={total_exit_percent:.1f}%, "
            f"effective_rr={execution.effective_rr:.2f}"
        )

    return TradeEvaluation(
        metrics=metrics,
        validation=validation,
        execution=execution,
        total_exit_percent=total_exit_percent,
        status=status,
        total_pnl=total_pnl,
        effective_rr=execution.effective_rr,
        exit_allocation=exit_allocation,
    )
