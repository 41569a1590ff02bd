"""
Distance & Ratio Primitives
===========================

Pure functions deriving direction, distances, risk:reward ratios and
position sizing from an entry price ``pe``, stop loss ``sl`` and target.

Conventions:
- Stop distance in USD is signed in the loss direction. A stop on the
  wrong side of the entry gives a negative distance, which propagates.
- Display ratios (rr, max_leverage) return None when undefined instead
  of raising.
- Per-leg RR returns 0 for the degenerate pe == sl case; zero-risk
  setups are rejected at submission, not here.
"""

import math
from typing import Iterable, Optional, Tuple

from journal_engine.models import PositionType, TakeProfitMetrics


def get_position_type(pe: float, target: float) -> PositionType:
    """LONG if the target is above the entry, SHORT if below, else UNDEFINED."""
    if target > pe:
        return PositionType.LONG
    if target < pe:
        return PositionType.SHORT
    return PositionType.UNDEFINED


def calculate_one_r(portfolio: float, risk_fraction: float) -> float:
    """Dollar amount at risk per trade."""
    return portfolio * risk_fraction


def sl_distance_usd(position_type: PositionType, pe: float, sl: float) -> float:
    return pe - sl if position_type == PositionType.LONG else sl - pe


def tp_distance_usd(position_type: PositionType, pe: float, tp: float) -> float:
    return tp - pe if position_type == PositionType.LONG else pe - tp


def distance_pct(distance_usd: float, pe: float) -> float:
    """Absolute distance as a fraction of the entry price."""
    return abs(distance_usd) / pe


def calculate_rr(tp_distance: float, sl_distance: float) -> Optional[float]:
    """Risk:reward ratio |tp| / |sl|, or None when undefined."""
    if sl_distance == 0:
        return None
    result = abs(tp_distance) / abs(sl_distance)
    if not math.isfinite(result):
        return None
    return result


def calculate_max_leverage(sl_distance_pct: float) -> Optional[int]:
    """Leverage at which hitting the stop consumes exactly 100% of margin.

    Advisory ceiling only; callers decide whether to block.
    """
    if sl_distance_pct == 0:
        return None
    result = 1.0 / sl_distance_pct
    if not math.isfinite(result):
        return None
    return math.floor(result)


def calculate_position_size(
    one_r: float,
    sl_distance_pct: float,
    leverage: float,
) -> Optional[Tuple[float, float]]:
    """Margin and notional size that lose exactly 1R at the stop.

    Returns:
        (margin, position_size), or None when the loss percentage at the
        stop is zero
    """
    loss_pct_at_stop = sl_distance_pct * leverage
    if loss_pct_at_stop == 0:
        return None

    margin = one_r / loss_pct_at_stop
    return margin, margin * leverage


def calculate_quantity(position_size: float, pe: float) -> float:
    if pe == 0:
        return 0.0
    return position_size / pe


def calculate_tp_rr(
    position_type: PositionType,
    tp: float,
    pe: float,
    sl: float,
) -> float:
    """Signed RR of a single target leg (0 when pe == sl)."""
    if pe == sl:
        return 0.0
    if position_type == PositionType.LONG:
        return (tp - pe) / (pe - sl)
    return (pe - tp) / (sl - pe)


def calculate_weighted_rr(legs: Iterable[TakeProfitMetrics]) -> float:
    """Allocation-weighted RR across take-profit legs (0 if no weight)."""
    legs = list(legs)
    total = sum(leg.fraction for leg in legs)
    if total == 0:
        return 0.0
    return sum(leg.fraction * leg.rr for leg in legs) / total
