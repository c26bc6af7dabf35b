"""Signal and decision data models."""

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Direction(str, Enum):
    """Directional view of a strategy or decision."""

    LONG = "LONG"
    SHORT = "SHORT"
    NEUTRAL = "NEUTRAL"


class RiskLevel(str, Enum):
    """Ordered risk grade."""

    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"
    EXTREME = "EXTREME"

    @property
    def rank(self) -> int:
        """Position in the ordering (VERY_LOW = 0)."""
        return _RISK_ORDER.index(self)

    @property
    def blocks_execution(self) -> bool:
        """HIGH and above block trade execution."""
        return self.rank >= _RISK_ORDER.index(RiskLevel.HIGH)

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        """Map a risk score in [0, 1] to a level."""
        if score > 0.8:
            return cls.EXTREME
        if score > 0.7:
            return cls.VERY_HIGH
        if score > 0.6:
            return cls.HIGH
        if score > 0.4:
            return cls.MEDIUM
        if score > 0.3:
            return cls.LOW
        return cls.VERY_LOW


_RISK_ORDER = list(RiskLevel)


class Signal(BaseModel):
    """Output of a single strategy evaluation."""

    model_config = ConfigDict(frozen=True)

    strategy_id: str
    direction: Direction = Direction.NEUTRAL
    strength: float = Field(default=0.0, ge=0.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    parameters: dict[str, Any] = Field(default_factory=dict)
    is_fallback: bool = False
    reason: str | None = None

    @classmethod
    def neutral(
        cls,
        strategy_id: str,
        reason: str | None = None,
        fallback: bool = False,
        **parameters: Any,
    ) -> "Signal":
        """Build the neutral default (strength 0, confidence 0)."""
        return cls(
            strategy_id=strategy_id,
            direction=Direction.NEUTRAL,
            strength=0.0,
            confidence=0.0,
            parameters=parameters,
            is_fallback=fallback,
            reason=reason,
        )

    @property
    def is_directional(self) -> bool:
        return self.direction != Direction.NEUTRAL


class EstimatorResult(BaseModel):
    """Outcome of running one estimator inside a fan-out.

    Either ``signal`` is the estimator's own output or ``error`` describes
    why it was replaced by a fallback neutral signal.
    """

    name: str
    signal: Signal
    error: str | None = None
    elapsed: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None


def _generate_decision_id(symbol: str, timeframe: str, fingerprint: str, created_at: datetime) -> str:
    """Deterministic decision ID from its identifying attributes."""
    ts_str = created_at.strftime("%Y%m%d%H%M%S%f")
    key = f"{symbol}:{timeframe}:{fingerprint}:{ts_str}"
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class FusedDecision(BaseModel):
    """Fused directional decision for one symbol."""

    id: str = ""  # Set in model_post_init
    symbol: str
    timeframe: str = "1d"
    direction: Direction = Direction.NEUTRAL
    strength: float = Field(default=0.0, ge=0.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    risk_level: RiskLevel = RiskLevel.MEDIUM
    risk_score: float = Field(default=0.5, ge=0.0, le=1.0)
    supporting_strategies: list[str] = Field(default_factory=list)
    failed_strategies: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    reason: str | None = None
    price: float | None = None
    volatility: float = 0.0
    signals: dict[str, Signal] = Field(default_factory=dict)
    fingerprint: str = ""
    is_executable: bool = False
    is_fallback: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def model_post_init(self, __context) -> None:
        if not self.id:
            object.__setattr__(
                self,
                "id",
                _generate_decision_id(
                    self.symbol, self.timeframe, self.fingerprint, self.created_at
                ),
            )

    @classmethod
    def fallback(
        cls,
        symbol: str,
        timeframe: str = "1d",
        reason: str = "analysis failed",
        **kwargs: Any,
    ) -> "FusedDecision":
        """Neutral, non-executable decision returned when analysis fails."""
        return cls(
            symbol=symbol,
            timeframe=timeframe,
            direction=Direction.NEUTRAL,
            strength=0.0,
            confidence=0.0,
            risk_level=RiskLevel.MEDIUM,
            risk_score=0.5,
            reason=reason,
            recommendations=["Analysis unavailable; hold current positions"],
            is_executable=False,
            is_fallback=True,
            **kwargs,
        )
