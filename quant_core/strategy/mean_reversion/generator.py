"""Advanced mean reversion strategy.

Fades large deviations from the long moving average:
- z = (price - SMA_long) / stddev_long
- z > +threshold -> SHORT (overbought)
- z < -threshold -> LONG (oversold)

Confidence rises with the number of recent bars that were also outside
the band, plus a bonus when current volume beats its short average.

This module is pure business logic with no I/O dependencies.
"""

from quant_core.indicators import sma, standard_deviation
from quant_core.models import Direction, PriceSeries, Signal
from quant_core.strategy.base import BaseStrategy
from quant_core.strategy.mean_reversion.models import (
    MEAN_REVERSION_STRATEGY_NAME,
    MeanReversionConfig,
)
from quant_core.strategy.registry import register_strategy


@register_strategy(MEAN_REVERSION_STRATEGY_NAME)
class MeanReversionStrategy(BaseStrategy):
    """Z-score mean reversion with multi-bar confirmation and volume filter."""

    name = MEAN_REVERSION_STRATEGY_NAME
    version = "1.0.0"
    config_class = MeanReversionConfig

    def __init__(self, config: MeanReversionConfig | None = None):
        self.config = config or MeanReversionConfig()

    @property
    def required_bars(self) -> int:
        return self.config.long_period

    def _generate(self, series: PriceSeries) -> Signal:
        cfg = self.config
        prices = series.closes()
        volumes = series.volumes()

        long_ma = sma(prices, cfg.long_period)
        deviation = standard_deviation(prices, cfg.long_period)
        current = prices[-1]
        z_score = (current - long_ma) / deviation if deviation > 0 else 0.0

        volume_ok = True
        if cfg.volume_filter:
            volume_ok = volumes[-1] > sma(volumes, cfg.short_period)

        band = cfg.deviation_threshold * deviation
        confirmations = 0
        for i in range(1, cfg.confirmation_period + 1):
            if i >= len(prices):
                break
            if abs(prices[-i] - sma(prices[:-i], cfg.long_period)) > band:
                confirmations += 1

        if z_score > cfg.deviation_threshold:
            direction = Direction.SHORT
        elif z_score < -cfg.deviation_threshold:
            direction = Direction.LONG
        else:
            direction = Direction.NEUTRAL

        confidence = (confirmations / cfg.confirmation_period) * 0.8 + (0.2 if volume_ok else 0.0)

        return Signal(
            strategy_id=self.name,
            direction=direction,
            strength=min(abs(z_score) / 3, 1.0),
            confidence=min(confidence, 1.0),
            parameters={
                "z_score": z_score,
                "deviation": deviation,
                "long_ma": long_ma,
                "volume_filter": volume_ok,
                "confirmations": confirmations,
            },
        )
