"""Specialized heuristic predictors for the prediction ensemble."""

from quant_core.predictors.base import BasePredictor, Predictor
from quant_core.predictors.models import EnsemblePrediction, MarketSnapshot, Prediction
from quant_core.predictors.price import PricePredictor
from quant_core.predictors.sentiment import SentimentPredictor
from quant_core.predictors.trend import TrendPredictor
from quant_core.predictors.volatility import VolatilityPredictor


def default_predictors() -> list[BasePredictor]:
    return [PricePredictor(), TrendPredictor(), VolatilityPredictor(), SentimentPredictor()]


__all__ = [
    "BasePredictor",
    "EnsemblePrediction",
    "MarketSnapshot",
    "Prediction",
    "Predictor",
    "PricePredictor",
    "SentimentPredictor",
    "TrendPredictor",
    "VolatilityPredictor",
    "default_predictors",
]
