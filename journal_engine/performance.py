"""
Performance Statistics
======================

Pure aggregation over journal records for the dashboard.

Computes:
- Win rate, profit factor, expectancy
- Status counts, gross profit / loss, best and worst trade
- Daily equity curve over closed trades

Records are passed in already filtered (date range, deleted trades);
this module does no querying.
"""

from collections import defaultdict
from datetime import timezone
from typing import Dict, Iterable, List, Optional, Sequence
import logging
import math

from journal_engine.models import (
    DashboardStats,
    EquityCurvePoint,
    TradeRecord,
    TradeStatus,
)


CLOSED_STATUSES = (TradeStatus.WIN, TradeStatus.LOSS, TradeStatus.BE)


def win_rate(wins: int, losses: int) -> float:
    """Wins / (wins + losses) as a fraction; break-evens are ignored."""
    total = wins + losses
    if total == 0:
        return 0.0
    return wins / total


def profit_factor(pnls: Iterable[Optional[float]]) -> float:
    """Gross profit / gross loss.

    Returns ``inf`` when there are profits but no losses and 0 when there
    are neither.
    """
    pnls = [p for p in pnls if p is not None]
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = abs(sum(p for p in pnls if p < 0))

    if gross_loss == 0:
        return math.inf if gross_profit > 0 else 0.0
    return gross_profit / gross_loss


def expectancy(rate: float, avg_win: float, avg_loss: float) -> float:
    """Expected P&L per trade from win rate and average win / loss."""
    return rate * avg_win - (1 - rate) * abs(avg_loss)


def summarize_trades(
    records: Sequence[TradeRecord],
    logger: Optional[logging.Logger] = None,
) -> DashboardStats:
    """Dashboard statistics over a set of records.

    Args:
        records: Journal records to aggregate
        logger: Optional logger

    Returns:
        DashboardStats (win rate in percent)
    """
    counts: Dict[TradeStatus, int] = defaultdict(int)
    for record in records:
        counts[record.status] += 1

    pnls = [r.total_pnl for r in records if r.total_pnl is not None]
    effective_rrs = [
        r.effective_weighted_rr for r in records if r.effective_weighted_rr is not None
    ]

    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = abs(sum(p for p in pnls if p < 0))

    stats = DashboardStats(
        total_trades=len(records),
        wins=counts[TradeStatus.WIN],
        losses=counts[TradeStatus.LOSS],
        breakevens=counts[TradeStatus.BE],
        open_trades=counts[TradeStatus.OPEN],
        win_rate=win_rate(counts[TradeStatus.WIN], counts[TradeStatus.LOSS]) * 100.0,
        total_pnl=sum(pnls),
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        profit_factor=profit_factor(pnls),
        avg_effective_rr=sum(effective_rrs) / len(effective_rrs) if effective_rrs else 0.0,
        best_trade=max(pnls) if pnls else 0.0,
        worst_trade=min(pnls) if pnls else 0.0,
    )

    if logger:
        logger.info(
            f"Stats over {stats.total_trades} trade(s): win_rate={stats.win_rate:.1f}%, "
            f"total_pnl={stats.total_pnl:.2f}, profit_factor={stats.profit_factor:.2f}"
        )

    return stats


def equity_curve(records: Sequence[TradeRecord]) -> List[EquityCurvePoint]:
    """Cumulative P&L per UTC close date over closed trades."""
    daily: Dict = defaultdict(lambda: [0.0, 0])

    for record in records:
        if record.status not in CLOSED_STATUSES:
            continue
        if record.close_date is None or record.total_pnl is None:
            continue

        close = record.close_date
        if close.tzinfo is not None:
            close = close.astimezone(timezone.utc)
        bucket = daily[close.date()]
        bucket[0] += record.total_pnl
        bucket[1] += 1

    points: List[EquityCurvePoint] = []
    cumulative = 0.0
    for day in sorted(daily):
        daily_pnl, count = daily[day]
        cumulative += daily_pnl
        points.append(
            EquityCurvePoint(
                day=day,
                daily_pnl=daily_pnl,
                cumulative_pnl=cumulative,
                trade_count=count,
            )
        )
    return points
