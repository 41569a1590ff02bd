"""
Journal Engine Exceptions
=========================

Domain-specific exceptions for explicit error handling.

All exceptions inherit from JournalEngineError for easy catching.
Metric errors are raised to the immediate caller (a form or a display
computation). Import row errors are raised by the row helpers and
collected by the batch parser so that one bad row never blocks a batch.
"""


class JournalEngineError(Exception):
    """Base exception for all journal engine errors."""
    pass


class InvalidAllocation(JournalEngineError):
    """Raised when an allocation set cannot be averaged.

    Examples:
    - No allocation has both a positive price and a positive percent
    - Percents of the usable allocations sum to zero
    """
    pass


class InvalidEntryConfiguration(JournalEngineError):
    """Raised when the entries of a setup or execution are unusable.

    Wraps the underlying InvalidAllocation so callers can tell entry
    problems apart from take-profit or exit problems.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid entry configuration: {reason}")


class ZeroEntryPrice(JournalEngineError):
    """Raised when the resolved entry price is zero.

    Every distance percentage divides by the entry price, so this is a
    hard precondition of all ratio math.
    """
    pass


class InvalidPositionSizing(JournalEngineError):
    """Raised when the loss percentage at the stop is zero.

    Examples:
    - Stop loss equals the entry price
    - Leverage of zero

    Margin and position size are undefined in these cases.
    """
    pass


class ZeroStopDistance(JournalEngineError):
    """Raised when execution metrics are requested with entry == stop loss.

    R-multiples are measured against the stop distance, which would be zero.
    """
    pass


class ConfigurationError(JournalEngineError):
    """Raised when risk settings or engine configuration are invalid.

    Examples:
    - JOURNAL_RISK_PERCENT is not a number
    - Default leverage outside 1-125
    """
    pass


# ============================================================
# IMPORT ROW ERRORS
# ============================================================


class ImportRowError(JournalEngineError):
    """Base class for errors affecting a single CSV row.

    The batch parser records these with the line number and moves on.
    """
    pass


class MalformedRow(ImportRowError):
    """Raised when a row cannot be split into the broker column layout.

    Examples:
    - Fewer than 12 comma-separated fields
    - Average entry price is not a number
    - Timestamp not in ``YYYY-MM-DD HH:MM:SS`` format
    """
    pass


class UnrecognizedFuturesField(ImportRowError):
    """Raised when the Futures column does not match ``SYMBOLUSDT Long|Short``."""

    def __init__(self, futures: str):
        self.futures = futures
        super().__init__(f"Failed to extract trade data from futures field: {futures!r}")


class InvalidImportValue(ImportRowError):
    """Raised when a parsed value makes record conversion impossible.

    Examples:
    - Closed amount of zero (stop estimation divides by quantity)
    """
    pass
