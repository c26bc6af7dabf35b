"""Engine services."""

from quant_engine.services.fusion_engine import AnalysisOptions, SignalFusionEngine, build_strategies
from quant_engine.services.position_manager import PositionManager
from quant_engine.services.prediction_ensemble import (
    ENSEMBLE_SIGNAL_NAME,
    PredictionEnsemble,
    to_signal,
)
from quant_engine.services.risk_engine import RiskAnalyticsEngine
from quant_engine.services.scheduler import TaskScheduler

__all__ = [
    "AnalysisOptions",
    "ENSEMBLE_SIGNAL_NAME",
    "PositionManager",
    "PredictionEnsemble",
    "RiskAnalyticsEngine",
    "SignalFusionEngine",
    "TaskScheduler",
    "build_strategies",
    "to_signal",
]
