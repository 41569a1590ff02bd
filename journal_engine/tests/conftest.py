"""Pytest fixtures for journal engine tests."""
import pytest
from datetime import datetime, timezone
from journal_engine.models import (
    ImportedTrade,
    PositionType,
    PriceAllocation,
    TradeRecord,
    TradeSetup,
)

BITGET_HEADER = (
    "\ufeffFutures,Opening time,Average entry price,Average closing price,"
    "Closed amount,Closed value,Position PnL,Realized PnL,Fees,Opening fee,"
    "Closing fee,Closed time"
)
BITGET_LINE = (
    "INJUSDT Short·Isolated,2026-01-25 17:21:15,20.512,20.567,1645.2INJ,"
    "33837.4USDT,-90.354813265386USDT,-90.354813265386USDT,-38.51USDT,"
    "-19.25USDT,-19.26USDT,2026-01-25 18:00:00"
)


@pytest.fixture
def basic_setup():
    """Long setup: entry 100, stop 90, single TP at 120, 10x, 2% of 10k."""
    return TradeSetup(
        portfolio_value=10000.0,
        risk_fraction=0.02,
        min_rr=2.0,
        entries=[PriceAllocation(price=100.0, percent=100.0)],
        stop_loss=90.0,
        take_profits=[PriceAllocation(price=120.0, percent=100.0)],
        leverage=10,
    )


@pytest.fixture
def bitget_header():
    return BITGET_HEADER


@pytest.fixture
def bitget_line():
    return BITGET_LINE


@pytest.fixture
def bitget_csv():
    """Header plus one valid data row."""
    return "\n".join([BITGET_HEADER, BITGET_LINE])


@pytest.fixture
def imported_trade():
    """Parsed form of BITGET_LINE."""
    return ImportedTrade(
        pair="INJ/USDT",
        position_type=PositionType.SHORT,
        entry_price=20.512,
        exit_price=20.567,
        quantity=1645.2,
        realized_pnl=-90.354813265386,
        opening_time=datetime(2026, 1, 25, 17, 21, 15, tzinfo=timezone.utc),
        closing_time=datetime(2026, 1, 25, 18, 0, 0, tzinfo=timezone.utc),
        total_fees=38.51,
    )


@pytest.fixture
def make_record():
    """Factory for journal records with only the fields stats care about."""
    def _make(status, total_pnl=None, close_date=None, effective_rr=None):
        return TradeRecord(
            pair="BTC/USDT",
            exchange="BitGet",
            position_type=PositionType.LONG,
            close_date=close_date,
            status=status,
            portfolio_value=10000.0,
            risk_fraction=0.01,
            planned_pe=100.0,
            planned_sl=90.0,
            leverage=10,
            one_r=100.0,
            margin=100.0,
            position_size=1000.0,
            quantity=10.0,
            total_pnl=total_pnl,
            effective_weighted_rr=effective_rr,
        )
    return _make
