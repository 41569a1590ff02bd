"""Test execution metrics and status classification."""
import pytest
from journal_engine.config import EngineConfig
from journal_engine.exceptions import ZeroEntryPrice, ZeroStopDistance
from journal_engine.execution import calculate_execution_metrics, determine_status
from journal_engine.models import (
    PositionType,
    PriceAllocation,
    PriceFraction,
    TradeExecution,
    TradeStatus,
)


def leg(price, fraction):
    return PriceFraction(price=price, fraction=fraction)


def make_execution(**overrides):
    params = dict(
        entries=[PriceAllocation(price=100.0, percent=100.0)],
        stop_loss=90.0,
        exits=[leg(120, 1.0)],
        one_r=200.0,
        position_size=2000.0,
        position_type=PositionType.LONG,
    )
    params.update(overrides)
    return TradeExecution(**params)


def test_full_exit_at_target():
    result = calculate_execution_metrics(make_execution())

    assert result.weighted_pe == pytest.approx(100.0)
    assert result.sl_distance_usd == pytest.approx(10.0)
    assert result.exits[0].r_multiple == pytest.approx(2.0)
    assert result.exits[0].pnl == pytest.approx(400.0)
    assert result.realized_pnl == pytest.approx(400.0)
    assert result.total_pnl == pytest.approx(400.0)
    assert result.effective_rr == pytest.approx(2.0)
    assert result.total_exit_fraction == pytest.approx(1.0)


def test_partial_exit_realized_vs_full_close():
    """Half out at 120: 200 realized, 400 if the rest closes at the same price."""
    result = calculate_execution_metrics(make_execution(exits=[leg(120, 0.5)]))

    assert result.realized_pnl == pytest.approx(200.0)
    assert result.weighted_exit_price == pytest.approx(120.0)
    assert result.total_r_multiple_if_complete == pytest.approx(2.0)
    assert result.total_pnl == pytest.approx(400.0)
    assert result.effective_rr == pytest.approx(1.0)
    assert result.total_exit_fraction == pytest.approx(0.5)


def test_two_exits_add_up():
    result = calculate_execution_metrics(make_execution(exits=[leg(110, 0.5), leg(130, 0.5)]))

    assert [e.r_multiple for e in result.exits] == pytest.approx([1.0, 3.0])
    assert [e.pnl for e in result.exits] == pytest.approx([100.0, 300.0])
    assert result.realized_pnl == pytest.approx(400.0)
    assert result.weighted_exit_price == pytest.approx(120.0)
    assert result.total_pnl == pytest.approx(400.0)
    assert result.effective_rr == pytest.approx(2.0)


def test_stopped_out_loses_one_r():
    result = calculate_execution_metrics(make_execution(exits=[leg(90, 1.0)]))
    assert result.exits[0].r_multiple == pytest.approx(-1.0)
    assert result.realized_pnl == pytest.approx(-200.0)
    assert result.total_pnl == pytest.approx(-200.0)


def test_short_execution():
    result = calculate_execution_metrics(
        make_execution(
            stop_loss=105.0,
            exits=[leg(90, 1.0)],
            position_size=4000.0,
            position_type=PositionType.SHORT,
        )
    )
    assert result.sl_distance_usd == pytest.approx(5.0)
    assert result.exits[0].r_multiple == pytest.approx(2.0)
    assert result.total_pnl == pytest.approx(400.0)


def test_no_exits_leaves_hypotheticals_empty():
    result = calculate_execution_metrics(make_execution(exits=[]))

    assert result.exits == []
    assert result.realized_pnl == 0.0
    assert result.effective_rr == 0.0
    assert result.weighted_exit_price is None
    assert result.total_r_multiple_if_complete is None
    assert result.total_pnl is None


def test_multi_entry_fill_uses_weighted_price():
    result = calculate_execution_metrics(
        make_execution(
            entries=[PriceAllocation(price=100, percent=60), PriceAllocation(price=110, percent=40)],
            exits=[leg(118, 1.0)],
        )
    )
    assert result.weighted_pe == pytest.approx(104.0)
    assert result.exits[0].r_multiple == pytest.approx(1.0)
    assert result.total_pnl == pytest.approx(200.0)


def test_legacy_entry_price():
    result = calculate_execution_metrics(make_execution(entries=[], entry_price=100.0))
    assert result.total_pnl == pytest.approx(400.0)


def test_execution_is_deterministic():
    execution = make_execution(exits=[leg(110, 0.3), leg(125, 0.7)])
    assert calculate_execution_metrics(execution) == calculate_execution_metrics(execution)


def test_entry_at_stop_raises():
    with pytest.raises(ZeroStopDistance):
        calculate_execution_metrics(make_execution(stop_loss=100.0))


def test_missing_entry_raises():
    with pytest.raises(ZeroEntryPrice):
        calculate_execution_metrics(make_execution(entries=[], entry_price=None))


# ============================================================
# determine_status
# ============================================================


@pytest.mark.parametrize("exit_percent,pnl,manual,expected", [
    (0.0, None, False, TradeStatus.OPEN),
    (100.0, None, False, TradeStatus.OPEN),
    (50.0, 100.0, False, TradeStatus.OPEN),
    (99.95, 10.0, False, TradeStatus.WIN),
    (100.0, 400.0, False, TradeStatus.WIN),
    (100.0, -200.0, False, TradeStatus.LOSS),
    (100.0, 0.3, False, TradeStatus.BE),
    (100.0, -0.49, False, TradeStatus.BE),
    (100.0, 0.7, False, TradeStatus.WIN),
    (100.0, 0.7, True, TradeStatus.BE),
    (100.0, -0.9, True, TradeStatus.BE),
    (100.0, 1.5, True, TradeStatus.WIN),
])
def test_determine_status(exit_percent, pnl, manual, expected):
    assert determine_status(exit_percent, pnl, manual_break_even=manual) == expected


def test_determine_status_custom_band():
    config = EngineConfig(break_even_band=5.0)
    assert determine_status(100.0, 4.0, config=config) == TradeStatus.BE
