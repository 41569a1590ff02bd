"""Test import dedup keys."""
import pytest
from datetime import datetime, timedelta, timezone
from journal_engine.fingerprint import format_fingerprint_time, generate_trade_fingerprint
from journal_engine.models import PositionType

EXPECTED = (
    "bitget|inj/usdt|short|2026-01-25T17:21:15.000Z|2026-01-25T18:00:00.000Z"
    "|1645.20000000|-90.35481327"
)


def test_fingerprint_format(imported_trade):
    assert generate_trade_fingerprint(imported_trade) == EXPECTED


def test_fingerprint_is_deterministic(imported_trade):
    copy = imported_trade.model_copy()
    assert generate_trade_fingerprint(copy) == generate_trade_fingerprint(imported_trade)


@pytest.mark.parametrize("changes", [
    {"pair": "BTC/USDT"},
    {"position_type": PositionType.LONG},
    {"opening_time": datetime(2026, 1, 25, 17, 21, 16, tzinfo=timezone.utc)},
    {"closing_time": datetime(2026, 1, 25, 18, 0, 1, tzinfo=timezone.utc)},
    {"quantity": 1645.3},
    {"realized_pnl": -90.0},
])
def test_fingerprint_changes_with_key_fields(imported_trade, changes):
    other = imported_trade.model_copy(update=changes)
    assert generate_trade_fingerprint(other) != EXPECTED


def test_fingerprint_ignores_prices_and_fees(imported_trade):
    other = imported_trade.model_copy(
        update={"entry_price": 21.0, "exit_price": 22.0, "total_fees": 0.0}
    )
    assert generate_trade_fingerprint(other) == EXPECTED


def test_fingerprint_absorbs_noise_below_eight_decimals(imported_trade):
    other = imported_trade.model_copy(update={"realized_pnl": -90.354813265386 + 1e-11})
    assert generate_trade_fingerprint(other) == EXPECTED


def test_fingerprint_source_prefix(imported_trade):
    assert generate_trade_fingerprint(imported_trade, source="bybit").startswith("bybit|")


def test_format_time_naive_is_utc():
    assert format_fingerprint_time(datetime(2026, 1, 25, 17, 21, 15)) == "2026-01-25T17:21:15.000Z"


def test_format_time_converts_offset_to_utc():
    ts = datetime(2026, 1, 25, 19, 21, 15, 250000, tzinfo=timezone(timedelta(hours=2)))
    assert format_fingerprint_time(ts) == "2026-01-25T17:21:15.250Z"
