"""Trend breakout strategy.

Resistance and support come from the ``trend_period`` bars preceding the
current one. A close beyond resistance * (1 + threshold) or below
support * (1 - threshold), on volume above avg * spike, is a breakout.
"""

from quant_core.indicators import detect_trend, highest, lowest, sma
from quant_core.models import Direction, PriceSeries, Signal
from quant_core.strategy.base import BaseStrategy
from quant_core.strategy.registry import register_strategy
from quant_core.strategy.trend_breakout.models import (
    TREND_BREAKOUT_STRATEGY_NAME,
    TrendBreakoutConfig,
)


@register_strategy(TREND_BREAKOUT_STRATEGY_NAME)
class TrendBreakoutStrategy(BaseStrategy):
    """Volume-confirmed breakout of the prior range."""

    name = TREND_BREAKOUT_STRATEGY_NAME
    version = "1.0.0"
    config_class = TrendBreakoutConfig

    def __init__(self, config: TrendBreakoutConfig | None = None):
        self.config = config or TrendBreakoutConfig()

    @property
    def required_bars(self) -> int:
        return self.config.trend_period + 1

    def _generate(self, series: PriceSeries) -> Signal:
        cfg = self.config
        period = cfg.trend_period
        closes = series.closes()
        volumes = series.volumes()

        # Window excludes the current bar so it can break out of it
        prior_highs = series.highs()[-(period + 1) : -1]
        prior_lows = series.lows()[-(period + 1) : -1]
        prior_volumes = volumes[-(period + 1) : -1]

        resistance = highest(prior_highs, period)
        support = lowest(prior_lows, period)
        volume_avg = sma(prior_volumes, period)

        current_price = closes[-1]
        breakout_up = current_price > resistance * (1 + cfg.breakout_threshold)
        breakout_down = current_price < support * (1 - cfg.breakout_threshold)
        volume_spike = volumes[-1] > volume_avg * cfg.volume_spike

        parameters = {
            "trend": detect_trend(closes, period),
            "resistance": resistance,
            "support": support,
            "volume_spike": volume_spike,
        }

        if breakout_up and volume_spike:
            direction = Direction.LONG
        elif breakout_down and volume_spike:
            direction = Direction.SHORT
        else:
            return Signal.neutral(self.name, reason="no breakout", **parameters)

        return Signal(
            strategy_id=self.name,
            direction=direction,
            strength=cfg.breakout_strength,
            confidence=cfg.breakout_confidence,
            parameters=parameters,
        )
