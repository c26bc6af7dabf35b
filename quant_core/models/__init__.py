from quant_core.models.bar import Bar, PriceSeries
from quant_core.models.position import ExitReason, Position, PositionStatus
from quant_core.models.risk import (
    Asset,
    CorrelationAnalysis,
    Portfolio,
    RiskReport,
    SensitivityResult,
    StressResult,
    TradeRisk,
    VarResult,
    WeightChange,
)
from quant_core.models.signal import (
    Direction,
    EstimatorResult,
    FusedDecision,
    RiskLevel,
    Signal,
)

__all__ = [
    "Asset",
    "Bar",
    "CorrelationAnalysis",
    "Direction",
    "EstimatorResult",
    "ExitReason",
    "FusedDecision",
    "Portfolio",
    "Position",
    "PositionStatus",
    "PriceSeries",
    "RiskLevel",
    "RiskReport",
    "SensitivityResult",
    "Signal",
    "StressResult",
    "TradeRisk",
    "VarResult",
    "WeightChange",
]
