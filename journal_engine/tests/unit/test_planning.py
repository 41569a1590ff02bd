"""Test planned trade metrics and submission checks."""
import logging
import pytest
from pydantic import ValidationError
from journal_engine.config import EngineConfig
from journal_engine.exceptions import (
    InvalidAllocation,
    InvalidEntryConfiguration,
    InvalidPositionSizing,
    ZeroEntryPrice,
)
from journal_engine.models import PositionType, PriceAllocation, PriceFraction, TradeSetup
from journal_engine.planning import (
    calculate_trade_metrics,
    check_leg_directions,
    resolve_entry_price,
    validate_trade,
)


def alloc(price, percent):
    return PriceAllocation(price=price, percent=percent)


def make_setup(**overrides):
    params = dict(
        portfolio_value=10000.0,
        risk_fraction=0.02,
        entries=[alloc(100, 100)],
        stop_loss=90.0,
        take_profits=[alloc(120, 100)],
        leverage=10,
    )
    params.update(overrides)
    return TradeSetup(**params)


def test_single_leg_long_round_trip(basic_setup):
    metrics = calculate_trade_metrics(basic_setup)

    assert metrics.position_type == PositionType.LONG
    assert metrics.weighted_pe == pytest.approx(100.0)
    assert metrics.one_r == pytest.approx(200.0)
    assert metrics.distances.sl_distance_usd == pytest.approx(10.0)
    assert metrics.distances.sl_distance_pct == pytest.approx(0.10)
    assert metrics.max_leverage == 10
    assert metrics.margin == pytest.approx(200.0)
    assert metrics.position_size == pytest.approx(2000.0)
    assert metrics.quantity == pytest.approx(20.0)
    assert metrics.take_profits[0].rr == pytest.approx(2.0)
    assert metrics.planned_weighted_rr == pytest.approx(2.0)
    assert metrics.potential_profit == pytest.approx(400.0)
    assert metrics.warnings == []


def test_first_tp_distance_is_reported(basic_setup):
    metrics = calculate_trade_metrics(basic_setup)
    assert metrics.distances.tp_distance_usd == pytest.approx(20.0)
    assert metrics.distances.tp_distance_pct == pytest.approx(0.2)


def test_multi_tp_profits_are_additive():
    metrics = calculate_trade_metrics(
        make_setup(take_profits=[alloc(120, 50), alloc(140, 50)])
    )
    assert [leg.rr for leg in metrics.take_profits] == pytest.approx([2.0, 4.0])
    assert [leg.potential_profit for leg in metrics.take_profits] == pytest.approx([200.0, 400.0])
    assert metrics.planned_weighted_rr == pytest.approx(3.0)
    assert metrics.potential_profit == pytest.approx(600.0)


def test_tp_percents_are_normalized():
    """Legs at 30% + 30% are treated as two halves of the position."""
    metrics = calculate_trade_metrics(
        make_setup(take_profits=[alloc(120, 30), alloc(140, 30)])
    )
    assert [leg.fraction for leg in metrics.take_profits] == pytest.approx([0.5, 0.5])
    assert metrics.potential_profit == pytest.approx(600.0)


def test_weighted_multi_entry():
    metrics = calculate_trade_metrics(
        make_setup(entries=[alloc(100, 60), alloc(110, 40)], take_profits=[alloc(130, 100)])
    )
    assert metrics.weighted_pe == pytest.approx(104.0)
    assert metrics.distances.sl_distance_usd == pytest.approx(14.0)


def test_legacy_single_entry_price():
    metrics = calculate_trade_metrics(make_setup(entries=[], entry_price=100.0))
    assert metrics.weighted_pe == pytest.approx(100.0)
    assert metrics.quantity == pytest.approx(20.0)


def test_short_setup():
    metrics = calculate_trade_metrics(
        make_setup(stop_loss=105.0, take_profits=[alloc(90, 100)], leverage=5)
    )
    assert metrics.position_type == PositionType.SHORT
    assert metrics.distances.sl_distance_usd == pytest.approx(5.0)
    assert metrics.max_leverage == 20
    assert metrics.margin == pytest.approx(800.0)
    assert metrics.position_size == pytest.approx(4000.0)
    assert metrics.quantity == pytest.approx(40.0)
    assert metrics.take_profits[0].rr == pytest.approx(2.0)


def test_stop_on_wrong_side_propagates_negative_distance():
    metrics = calculate_trade_metrics(make_setup(stop_loss=110.0))
    assert metrics.distances.sl_distance_usd == pytest.approx(-10.0)
    assert metrics.distances.sl_distance_pct == pytest.approx(0.1)


def test_zero_entry_price_raises():
    with pytest.raises(ZeroEntryPrice):
        calculate_trade_metrics(make_setup(entries=[], entry_price=None))
    with pytest.raises(ZeroEntryPrice):
        calculate_trade_metrics(make_setup(entries=[], entry_price=0.0))


def test_unusable_entries_raise_entry_configuration():
    with pytest.raises(InvalidEntryConfiguration):
        resolve_entry_price([alloc(0, 50)], None)


def test_no_usable_take_profit_raises():
    with pytest.raises(InvalidAllocation):
        calculate_trade_metrics(make_setup(take_profits=[alloc(0, 100)]))


def test_zero_stop_distance_fails_sizing():
    with pytest.raises(InvalidPositionSizing):
        calculate_trade_metrics(make_setup(stop_loss=100.0))


def test_zero_leverage_fails_sizing():
    with pytest.raises(InvalidPositionSizing):
        calculate_trade_metrics(make_setup(leverage=0))


def test_first_leg_sets_direction_and_others_are_flagged(caplog):
    logger = logging.getLogger("test.planning")
    setup = make_setup(take_profits=[alloc(120, 50), alloc(95, 50)])

    with caplog.at_level(logging.WARNING, logger="test.planning"):
        metrics = calculate_trade_metrics(setup, logger=logger)

    assert metrics.position_type == PositionType.LONG
    assert metrics.take_profits[1].rr == pytest.approx(-0.5)
    assert len(metrics.warnings) == 1
    assert metrics.warnings[0].leg_index == 1
    assert metrics.warnings[0].implied_type == PositionType.SHORT
    assert "TP2" in caplog.text


def test_first_leg_by_order_not_by_price():
    metrics = calculate_trade_metrics(
        make_setup(stop_loss=110.0, take_profits=[alloc(95, 50), alloc(120, 50)])
    )
    assert metrics.position_type == PositionType.SHORT


def test_check_leg_directions_agreeing_legs():
    legs = [PriceFraction(price=110, fraction=0.5), PriceFraction(price=120, fraction=0.5)]
    assert check_leg_directions(100, PositionType.LONG, legs) == []


def test_check_leg_directions_flags_leg_at_entry():
    legs = [PriceFraction(price=110, fraction=0.5), PriceFraction(price=100, fraction=0.5)]
    warnings = check_leg_directions(100, PositionType.LONG, legs)
    assert [w.leg_index for w in warnings] == [1]
    assert warnings[0].implied_type == PositionType.UNDEFINED
    assert warnings[0].message == "TP2 at 100.0 implies UNDEFINED, trade is LONG"


def test_leading_blank_tp_row_still_sets_direction():
    """A first row at 120 with 0% makes the trade LONG; the 95 leg is flagged."""
    metrics = calculate_trade_metrics(
        make_setup(take_profits=[alloc(120, 0), alloc(95, 100)])
    )
    assert metrics.position_type == PositionType.LONG
    assert [leg.price for leg in metrics.take_profits] == [95.0]
    assert metrics.take_profits[0].rr == pytest.approx(-0.5)
    assert len(metrics.warnings) == 1


def test_leading_tp_row_without_price_is_undefined():
    metrics = calculate_trade_metrics(
        make_setup(take_profits=[alloc(0, 0), alloc(120, 100)])
    )
    assert metrics.position_type == PositionType.UNDEFINED


def test_setup_rejects_non_positive_portfolio():
    with pytest.raises(ValidationError):
        make_setup(portfolio_value=0)


# ============================================================
# validate_trade
# ============================================================


def test_validate_trade_passes(basic_setup):
    metrics = calculate_trade_metrics(basic_setup)
    result = validate_trade(basic_setup, metrics)
    assert result.valid
    assert result.errors == []


def test_validate_trade_rr_below_minimum():
    setup = make_setup(min_rr=3.0)
    result = validate_trade(setup, calculate_trade_metrics(setup))
    assert not result.valid
    assert any("below minimum" in e for e in result.errors)


def test_validate_trade_leverage_above_max():
    setup = make_setup(leverage=20)
    result = validate_trade(setup, calculate_trade_metrics(setup))
    assert not result.valid
    assert any("exceeds max safe leverage" in e for e in result.errors)


def test_validate_trade_allocation_not_100():
    setup = make_setup(take_profits=[alloc(120, 45), alloc(130, 45)])
    result = validate_trade(setup, calculate_trade_metrics(setup))
    assert not result.valid
    assert any("TP allocation" in e for e in result.errors)


def test_validate_trade_tp_equal_to_entry():
    setup = make_setup(take_profits=[alloc(120, 50), alloc(100, 50)])
    metrics = calculate_trade_metrics(setup)
    result = validate_trade(setup, metrics)
    assert not result.valid
    assert "Take Profit prices must not equal Entry Price" in result.errors
    assert result.warnings


def test_validate_trade_take_profit_limit_comes_from_config():
    setup = make_setup(take_profits=[alloc(110 + 5 * i, 20) for i in range(5)])
    metrics = calculate_trade_metrics(setup)

    result = validate_trade(setup, metrics)
    assert not result.valid
    assert "Maximum 4 take profits allowed" in result.errors

    assert validate_trade(setup, metrics, EngineConfig(max_take_profits=5)).valid


def test_validate_trade_undefined_direction():
    setup = make_setup(take_profits=[alloc(100, 100)])
    metrics = calculate_trade_metrics(setup)
    assert metrics.position_type == PositionType.UNDEFINED
    result = validate_trade(setup, metrics)
    assert not result.valid
    assert any("undefined" in e for e in result.errors)
