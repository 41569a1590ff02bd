"""
Allocation Primitives
=====================

Pure functions over sets of weighted price legs (entries, take-profits,
exits).

Averaging divides by the observed weight total, so un-normalized sets
(e.g. entries summing to 97% after UI rounding) still produce the right
weighted price. Checking that a set sums to 100% is a separate, explicit
step whose result is reported to the caller, never silently corrected.

Percent (0-100) and fraction (0-1) legs are different models; the
functions in this module are the only places one becomes the other.
"""

from typing import List, Optional, Sequence, Union
import logging

from journal_engine.config import DEFAULT_CONFIG, EngineConfig
from journal_engine.exceptions import InvalidAllocation
from journal_engine.models import AllocationCheck, PriceAllocation, PriceFraction

Leg = Union[PriceAllocation, PriceFraction]


def to_fraction(percent: float) -> float:
    """Convert a 0-100 percent to a 0-1 fraction."""
    return percent / 100.0


def to_percent(fraction: float) -> float:
    """Convert a 0-1 fraction to a 0-100 percent."""
    return fraction * 100.0


def usable_legs(legs: Sequence[Leg]) -> List[Leg]:
    """Drop legs without a positive price and a positive weight (blank rows)."""
    return [leg for leg in legs if leg.price > 0 and leg.weight > 0]


def weighted_average(legs: Sequence[Leg]) -> float:
    """Weighted average price of a set of legs.

    Args:
        legs: Percent or fraction legs; unusable legs are ignored

    Returns:
        sum(price * weight) / sum(weight) over usable legs

    Raises:
        InvalidAllocation: No usable leg, or usable weights sum to zero
    """
    valid = usable_legs(legs)
    if not valid:
        raise InvalidAllocation(
            "At least one entry with valid price and percent is required"
        )

    total_weight = sum(leg.weight for leg in valid)
    if total_weight == 0:
        raise InvalidAllocation("Total allocation percent must be greater than 0")

    return sum(leg.price * leg.weight for leg in valid) / total_weight


def validate_allocation(
    allocations: Sequence[PriceAllocation],
    config: Optional[EngineConfig] = None,
    label: str = "Allocation",
) -> AllocationCheck:
    """Check that a percent allocation set sums to 100 within tolerance.

    Every allocation counts toward the total, blank rows included, exactly
    as the form shows them.
    """
    config = config or DEFAULT_CONFIG
    total = sum(a.percent for a in allocations)
    errors: List[str] = []

    if abs(total - 100.0) > config.allocation_tolerance:
        errors.append(f"{label} total ({total:.1f}%) must equal 100%")

    return AllocationCheck(valid=not errors, total=total, errors=errors)


def normalize_allocations(
    allocations: Sequence[PriceAllocation],
    config: Optional[EngineConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> List[PriceFraction]:
    """Turn usable percent legs into fractions of their observed total.

    Order of the usable legs is preserved.

    Raises:
        InvalidAllocation: No usable leg
    """
    config = config or DEFAULT_CONFIG
    valid = usable_legs(allocations)
    if not valid:
        raise InvalidAllocation(
            "At least one leg with valid price and percent is required"
        )

    total = sum(a.percent for a in valid)
    if logger and abs(total - 100.0) > config.allocation_tolerance:
        logger.debug(f"Normalizing allocation set totalling {total:.2f}%")

    return [PriceFraction(price=a.price, fraction=a.percent / total) for a in valid]


def exits_to_fractions(
    exits: Sequence[PriceAllocation],
    config: Optional[EngineConfig] = None,
) -> List[PriceFraction]:
    """Convert raw exit rows (percent of the original position) to fractions.

    A full close (total within tolerance of 100) is normalized by its
    observed total so rounding noise does not leak into P&L. A partial
    close is divided by 100 so each leg stays a share of the original
    position and later exits remain additive.
    """
    config = config or DEFAULT_CONFIG
    valid = [e for e in exits if e.price > 0]
    total = sum(e.percent for e in valid)
    if total == 0:
        return []

    if abs(total - 100.0) <= config.allocation_tolerance:
        return [PriceFraction(price=e.price, fraction=e.percent / total) for e in valid]
    return [PriceFraction(price=e.price, fraction=to_fraction(e.percent)) for e in valid]
