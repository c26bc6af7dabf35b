"""Price action strategy configuration and pattern results."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from quant_core.models import Direction

PRICE_ACTION_STRATEGY_NAME = "price_action"

# Historical reliability of each chart pattern
PATTERN_RELIABILITY: dict[str, float] = {
    "DOUBLE_TOP": 0.75,
    "DOUBLE_BOTTOM": 0.78,
    "HEAD_AND_SHOULDERS": 0.82,
}


class PriceActionConfig(BaseModel):
    """Configuration for the price action strategy."""

    lookback_period: int = Field(default=30, ge=10)
    pattern_tolerance: float = Field(default=0.02, gt=0, lt=1)
    volume_confirmation: bool = True

    # Strength multiplier while the neckline still holds
    unconfirmed_strength: float = Field(default=0.7, ge=0, le=1)
    # Confidence multiplier when volume does not confirm
    low_volume_penalty: float = Field(default=0.8, ge=0, le=1)


@dataclass(frozen=True)
class PatternMatch:
    """A detected chart pattern."""

    pattern: str
    direction: Direction
    reliability: float
    neckline: float
    neckline_broken: bool
    target: float
