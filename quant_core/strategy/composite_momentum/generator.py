"""Composite momentum strategy.

Three oscillators each cast a vote in {-1, 0, +1}:
- RSI: oversold +1, overbought -1
- Stochastic: %K and %D both oversold +1, both overbought -1
- MACD: histogram > 0 and MACD above signal +1, the mirror -1

score = sum(votes) / 3; LONG above +0.3, SHORT below -0.3.
"""

from quant_core.indicators import macd, rsi, stochastic
from quant_core.models import Direction, PriceSeries, Signal
from quant_core.strategy.base import BaseStrategy
from quant_core.strategy.composite_momentum.models import (
    COMPOSITE_MOMENTUM_STRATEGY_NAME,
    CompositeMomentumConfig,
)
from quant_core.strategy.registry import register_strategy

_INDICATOR_COUNT = 3


def momentum_confidence(votes: list[int]) -> float:
    """Confidence from vote participation and agreement.

    Half comes from how many indicators voted at all, half from how many
    of the active votes agree with the net direction.
    """
    active = [v for v in votes if v != 0]
    if not active:
        return 0.0
    net = sum(active)
    agreeing = sum(1 for v in active if (v > 0) == (net > 0)) if net != 0 else 0
    return 0.5 * (len(active) / len(votes)) + 0.5 * (agreeing / len(active))


@register_strategy(COMPOSITE_MOMENTUM_STRATEGY_NAME)
class CompositeMomentumStrategy(BaseStrategy):
    """RSI + Stochastic + MACD voting strategy."""

    name = COMPOSITE_MOMENTUM_STRATEGY_NAME
    version = "1.0.0"
    config_class = CompositeMomentumConfig

    def __init__(self, config: CompositeMomentumConfig | None = None):
        self.config = config or CompositeMomentumConfig()

    @property
    def required_bars(self) -> int:
        cfg = self.config
        return max(cfg.rsi_period + 1, cfg.stochastic_period, cfg.macd_slow)

    def _generate(self, series: PriceSeries) -> Signal:
        cfg = self.config
        closes = series.closes()

        rsi_value = rsi(closes, cfg.rsi_period)
        stoch = stochastic(series.highs(), series.lows(), closes, cfg.stochastic_period)
        macd_result = macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)

        votes = [0, 0, 0]
        if rsi_value < cfg.rsi_oversold:
            votes[0] = 1
        elif rsi_value > cfg.rsi_overbought:
            votes[0] = -1

        if stoch.k < cfg.stochastic_oversold and stoch.d < cfg.stochastic_oversold:
            votes[1] = 1
        elif stoch.k > cfg.stochastic_overbought and stoch.d > cfg.stochastic_overbought:
            votes[1] = -1

        if macd_result.histogram > 0 and macd_result.macd > macd_result.signal:
            votes[2] = 1
        elif macd_result.histogram < 0 and macd_result.macd < macd_result.signal:
            votes[2] = -1

        score = sum(votes) / _INDICATOR_COUNT
        if score > cfg.score_threshold:
            direction = Direction.LONG
        elif score < -cfg.score_threshold:
            direction = Direction.SHORT
        else:
            direction = Direction.NEUTRAL

        return Signal(
            strategy_id=self.name,
            direction=direction,
            strength=min(abs(score), 1.0),
            confidence=momentum_confidence(votes),
            parameters={
                "rsi": rsi_value,
                "stochastic_k": stoch.k,
                "stochastic_d": stoch.d,
                "macd": macd_result.macd,
                "macd_signal": macd_result.signal,
                "macd_histogram": macd_result.histogram,
                "momentum_score": score,
                "votes": votes,
            },
        )
