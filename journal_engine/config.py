"""
Journal Engine Configuration
============================

Two configuration objects:

- RiskSettings: the trader's risk policy (capital, R%, minimum RR,
  default leverage). The importer uses it to estimate stop losses for
  broker trades that carry none.
- EngineConfig: numeric policy of the engine itself (allocation
  tolerance, break-even bands, leverage brackets).

RiskSettings can be loaded from ``JOURNAL_*`` environment variables,
optionally via a ``.env`` file.
"""

import os
from typing import List, Optional, Tuple

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from journal_engine.exceptions import ConfigurationError


class RiskSettings(BaseModel):
    """Trader risk policy.

    Attributes:
        initial_capital: Portfolio value the risk fraction applies to
        risk_fraction: Fraction risked per trade, 0.001 (0.1%) to 1
        default_min_rr: Minimum acceptable RR for new setups
        default_leverage: Leverage pre-filled in forms (1-125)
        currency: Display currency
    """

    initial_capital: float = Field(gt=0.0)
    risk_fraction: float = Field(default=0.01, ge=0.001, le=1.0)
    default_min_rr: float = Field(default=2.0, gt=0.0)
    default_leverage: int = Field(default=10, ge=1, le=125)
    currency: str = "USD"

    @property
    def one_r(self) -> float:
        return self.initial_capital * self.risk_fraction

    model_config = {"frozen": True}


class EngineConfig(BaseModel):
    """Numeric policy of the metrics engine and importer.

    Attributes:
        allocation_tolerance: Allowed distance of an allocation total from 100
        break_even_band: |P&L| below this on a full close is BE
        manual_break_even_band: |P&L| below this honours a manual BE flag
        import_break_even_band: |P&L| within this on an imported row is BE
        max_take_profits: Maximum number of take-profit legs per setup
        leverage_brackets: (notional upper bound, leverage) pairs, ascending
        default_import_leverage: Leverage above the last bracket
    """

    allocation_tolerance: float = Field(default=0.1, ge=0.0)
    break_even_band: float = Field(default=0.5, ge=0.0)
    manual_break_even_band: float = Field(default=1.0, ge=0.0)
    import_break_even_band: float = Field(default=1.0, ge=0.0)
    max_take_profits: int = Field(default=4, ge=1)
    leverage_brackets: List[Tuple[float, int]] = Field(
        default_factory=lambda: [(1000.0, 20), (5000.0, 15), (10000.0, 10)]
    )
    default_import_leverage: int = Field(default=10, ge=1)

    @field_validator("leverage_brackets")
    @classmethod
    def validate_brackets(cls, v: List[Tuple[float, int]]) -> List[Tuple[float, int]]:
        bounds = [bound for bound, _ in v]
        if bounds != sorted(bounds):
            raise ValueError(f"leverage_brackets must be sorted by notional, got {bounds}")
        for _, leverage in v:
            if leverage < 1:
                raise ValueError(f"bracket leverage must be >= 1, got {leverage}")
        return v

    model_config = {"frozen": True}


DEFAULT_CONFIG = EngineConfig()


def load_risk_settings(env_file: Optional[str] = None) -> RiskSettings:
    """Build RiskSettings from the environment.

    Reads (after loading ``env_file``, or the nearest ``.env`` searching up
    from the working directory):
        JOURNAL_INITIAL_CAPITAL   required
        JOURNAL_RISK_PERCENT      R in percent, e.g. "1.5" (default 1)
        JOURNAL_MIN_RR            default 2
        JOURNAL_DEFAULT_LEVERAGE  default 10
        JOURNAL_CURRENCY          default USD

    Raises:
        ConfigurationError: Missing capital or invalid values
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    capital = os.getenv("JOURNAL_INITIAL_CAPITAL")
    if not capital:
        raise ConfigurationError("JOURNAL_INITIAL_CAPITAL is not set")

    try:
        return RiskSettings(
            initial_capital=float(capital),
            risk_fraction=float(os.getenv("JOURNAL_RISK_PERCENT", "1")) / 100.0,
            default_min_rr=float(os.getenv("JOURNAL_MIN_RR", "2")),
            default_leverage=int(os.getenv("JOURNAL_DEFAULT_LEVERAGE", "10")),
            currency=os.getenv("JOURNAL_CURRENCY", "USD"),
        )
    except (ValueError, ValidationError) as e:
        raise ConfigurationError(f"Invalid journal settings: {e}") from e
