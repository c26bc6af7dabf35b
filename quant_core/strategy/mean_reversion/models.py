"""Mean reversion strategy configuration."""

from pydantic import BaseModel, Field

MEAN_REVERSION_STRATEGY_NAME = "mean_reversion_advanced"


class MeanReversionConfig(BaseModel):
    """Configuration for the advanced mean reversion strategy."""

    short_period: int = Field(default=10, gt=0)
    long_period: int = Field(default=30, gt=1)
    deviation_threshold: float = Field(default=2.0, gt=0)
    confirmation_period: int = Field(default=3, gt=0)
    volume_filter: bool = True
