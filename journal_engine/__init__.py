"""
Trading Journal Engine
======================

Deterministic position-sizing and trade-outcome engine for a personal
trading journal.

This package provides pure, auditable functions for:
- Sizing a planned trade from a risk policy (1R, margin, quantity)
- Measuring planned and effective risk:reward across multiple legs
- Computing realized and full-close P&L from partial exits
- Normalizing BitGet CSV exports into journal records with dedup keys
- Aggregating dashboard performance statistics

Design Principles:
- Pure functions: No side effects, explicit inputs/outputs
- Storage-agnostic: All I/O via in-memory data structures
- Strong typing: Pydantic models with runtime validation
- Deterministic: Same inputs always produce same outputs
- Fail-fast: Explicit exceptions for precondition violations

Entry Points:
    evaluate_trade() - Recompute plan, execution and status of a trade
    calculate_trade_metrics() - Planned sizing and RR
    calculate_execution_metrics() - Realized outcome
    parse_bitget_csv() - Broker CSV import

Key Modules:
    models - Pydantic data models
    allocation - Weighted averages and allocation checks
    ratios - Distances, RR, leverage and sizing primitives
    planning - Planned metrics and submission checks
    execution - Execution metrics and status
    bitget_csv - BitGet CSV normalizer
    fingerprint - Import dedup keys
    performance - Dashboard statistics
    config - Risk settings and engine configuration
    exceptions - Domain-specific exceptions
"""

from journal_engine.models import (
    PositionType,
    TradeStatus,
    PriceAllocation,
    PriceFraction,
    AllocationCheck,
    TradeSetup,
    TradeMetrics,
    TradeValidation,
    TradeExecution,
    ExecutionMetrics,
    TradeEvaluation,
    ImportedTrade,
    TradeRecord,
    ImportBatchResult,
    DashboardStats,
    EquityCurvePoint,
)
from journal_engine.allocation import weighted_average, validate_allocation
from journal_engine.planning import calculate_trade_metrics, validate_trade
from journal_engine.execution import calculate_execution_metrics, determine_status
from journal_engine.engine import evaluate_trade
from journal_engine.bitget_csv import parse_bitget_csv, preview_bitget_import
from journal_engine.fingerprint import generate_trade_fingerprint
from journal_engine.performance import summarize_trades, equity_curve
from journal_engine.config import RiskSettings, EngineConfig, load_risk_settings
from journal_engine.exceptions import (
    JournalEngineError,
    InvalidAllocation,
    InvalidEntryConfiguration,
    ZeroEntryPrice,
    InvalidPositionSizing,
    ZeroStopDistance,
    ConfigurationError,
    ImportRowError,
    MalformedRow,
    UnrecognizedFuturesField,
    InvalidImportValue,
)

__version__ = "1.0.0"
__all__ = [
    # Entry points
    "evaluate_trade",
    "calculate_trade_metrics",
    "validate_trade",
    "calculate_execution_metrics",
    "determine_status",
    "weighted_average",
    "validate_allocation",
    "parse_bitget_csv",
    "preview_bitget_import",
    "generate_trade_fingerprint",
    "summarize_trades",
    "equity_curve",
    "load_risk_settings",
    # Models
    "PositionType",
    "TradeStatus",
    "PriceAllocation",
    "PriceFraction",
    "AllocationCheck",
    "TradeSetup",
    "TradeMetrics",
    "TradeValidation",
    "TradeExecution",
    "ExecutionMetrics",
    "TradeEvaluation",
    "ImportedTrade",
    "TradeRecord",
    "ImportBatchResult",
    "DashboardStats",
    "EquityCurvePoint",
    "RiskSettings",
    "EngineConfig",
    # Exceptions
    "JournalEngineError",
    "InvalidAllocation",
    "InvalidEntryConfiguration",
    "ZeroEntryPrice",
    "InvalidPositionSizing",
    "ZeroStopDistance",
    "ConfigurationError",
    "ImportRowError",
    "MalformedRow",
    "UnrecognizedFuturesField",
    "InvalidImportValue",
]
