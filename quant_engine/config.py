"""Engine configuration.

Typed sections validated at construction, aggregated into EngineSettings
which reads QDE_-prefixed environment variables (nested with ``__``) and
an optional YAML file:

    fusion:
      min_confidence: 0.65
      weights:
        trend_breakout: 0.4
    position:
      max_positions: 3
"""

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quant_core.risk.scoring import RiskThresholds

logger = logging.getLogger(__name__)


DEFAULT_STRATEGY_WEIGHTS: dict[str, float] = {
    "mean_reversion_advanced": 0.25,
    "trend_breakout": 0.30,
    "composite_momentum": 0.25,
    "price_action": 0.20,
}

DEFAULT_PREDICTOR_WEIGHTS: dict[str, float] = {
    "price": 0.4,
    "trend": 0.3,
    "volatility": 0.2,
    "sentiment": 0.1,
}


def _check_weights(name: str, weights: dict[str, float]) -> None:
    if any(w < 0 for w in weights.values()):
        raise ValueError(f"{name} must be non-negative, got {weights}")
    if weights and sum(weights.values()) <= 0:
        raise ValueError(f"{name} must have a positive sum")


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


class FusionConfig(BaseModel):
    """Signal fusion, gating and decision cache."""

    strategies: list[str] = Field(default_factory=lambda: list(DEFAULT_STRATEGY_WEIGHTS))
    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_STRATEGY_WEIGHTS))
    # Per-strategy constructor config, e.g. {"trend_breakout": {"trend_period": 30}}
    strategy_params: dict[str, dict] = Field(default_factory=dict)

    min_confidence: float = 0.6
    min_strength: float = 0.5
    estimator_timeout: float = Field(default=5.0, gt=0)

    ensemble_enabled: bool = False
    ensemble_weight: float = Field(default=0.1, ge=0)

    cache_size: int = Field(default=100, gt=0)
    history_limit: int = Field(default=1000, gt=0)
    history_trim: int = Field(default=500, gt=0)

    @model_validator(mode="after")
    def _validate(self):
        _check_weights("fusion weights", self.weights)
        _check_unit("min_confidence", self.min_confidence)
        _check_unit("min_strength", self.min_strength)
        if self.history_trim > self.history_limit:
            raise ValueError("history_trim must not exceed history_limit")
        return self


class PredictionConfig(BaseModel):
    """Prediction ensemble weights and thresholds."""

    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_PREDICTOR_WEIGHTS))
    confidence_threshold: float = 0.7
    bullish_threshold: float = 0.6
    bearish_threshold: float = 0.4
    horizon: int = Field(default=5, gt=0)
    timeout: float = Field(default=5.0, gt=0)
    cache_size: int = Field(default=100, gt=0)

    @model_validator(mode="after")
    def _validate(self):
        _check_weights("prediction weights", self.weights)
        _check_unit("confidence_threshold", self.confidence_threshold)
        if not 0.0 <= self.bearish_threshold <= self.bullish_threshold <= 1.0:
            raise ValueError("expected 0 <= bearish_threshold <= bullish_threshold <= 1")
        return self


class RiskConfig(BaseModel):
    """Portfolio risk analytics."""

    thresholds: RiskThresholds = Field(default_factory=RiskThresholds)
    var_confidence: float = 0.95
    monte_carlo_simulations: int = 10_000
    monte_carlo_seed: int | None = None
    risk_free_rate: float = 0.05  # annual
    periods_per_year: int = Field(default=252, gt=0)
    check_interval: float = Field(default=60.0, gt=0)
    history_limit: int = Field(default=1000, gt=0)
    trend_period: int = Field(default=20, gt=1)

    @model_validator(mode="after")
    def _validate(self):
        if not 0.0 < self.var_confidence < 1.0:
            raise ValueError(f"var_confidence must be in (0, 1), got {self.var_confidence}")
        if self.monte_carlo_simulations < 10_000:
            raise ValueError(
                f"monte_carlo_simulations must be >= 10000, got {self.monte_carlo_simulations}"
            )
        return self

    @property
    def risk_free_rate_per_period(self) -> float:
        return self.risk_free_rate / self.periods_per_year


class PositionConfig(BaseModel):
    """Position sizing, limits and monitoring."""

    account_size: Decimal = Decimal("100000000")
    risk_per_trade: float = 0.02
    min_position_fraction: float = 0.01
    max_position_fraction: float = 0.10
    max_positions: int = Field(default=5, gt=0)
    daily_loss_limit: float = 0.05
    commission_rate: Decimal = Decimal("0.0015")
    base_stop_pct: float = Field(default=3.0, gt=0)
    monitor_interval: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _validate(self):
        if self.account_size <= 0:
            raise ValueError("account_size must be positive")
        for name in ("risk_per_trade", "min_position_fraction", "max_position_fraction", "daily_loss_limit"):
            _check_unit(name, getattr(self, name))
        if self.min_position_fraction > self.max_position_fraction:
            raise ValueError(
                f"min_position_fraction ({self.min_position_fraction}) must not exceed "
                f"max_position_fraction ({self.max_position_fraction})"
            )
        if not Decimal("0") <= self.commission_rate < Decimal("1"):
            raise ValueError(f"commission_rate must be in [0, 1), got {self.commission_rate}")
        return self


class EngineSettings(BaseSettings):
    """Top-level engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="QDE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    fusion: FusionConfig = Field(default_factory=FusionConfig)
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    position: PositionConfig = Field(default_factory=PositionConfig)


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()


_DEFAULT_PATH = Path("engine.yaml")


def load_engine_config(path: Path | None = None) -> EngineSettings:
    """Load settings from a YAML file layered over environment variables.

    Falls back to environment/defaults if the file doesn't exist.
    """
    config_path = path or _DEFAULT_PATH

    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info("No engine config found at %s, using defaults", config_path)
        return EngineSettings()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    settings = EngineSettings(**raw)
    logger.info(
        "Loaded engine config: %d strategies, ensemble=%s, max_positions=%d",
        len(settings.fusion.strategies),
        settings.fusion.ensemble_enabled,
        settings.position.max_positions,
    )
    return settings
