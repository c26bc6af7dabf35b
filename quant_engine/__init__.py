"""Quantitative decision engine services: fusion, risk analytics and positions."""

from quant_engine.config import EngineSettings, get_settings, load_engine_config
from quant_engine.engine import QuantEngine
from quant_engine.log_config import setup_logging

__all__ = [
    "EngineSettings",
    "QuantEngine",
    "get_settings",
    "load_engine_config",
    "setup_logging",
]
