"""Price action (chart pattern) strategy.

Scans the lookback window for strict local extrema (two bars either side)
and matches them against three reversal patterns:

- DOUBLE_TOP: two similar peaks with a trough between them -> SHORT
- DOUBLE_BOTTOM: two similar troughs with a peak between them -> LONG
- HEAD_AND_SHOULDERS: a peak higher than two similar shoulders -> SHORT

The direction with the larger summed reliability wins. A close through
the neckline gives full strength; without it strength is reduced. Volume
below its lookback average reduces confidence.
"""

from quant_core.models import Direction, PriceSeries, Signal
from quant_core.strategy.base import BaseStrategy
from quant_core.strategy.price_action.models import (
    PATTERN_RELIABILITY,
    PRICE_ACTION_STRATEGY_NAME,
    PatternMatch,
    PriceActionConfig,
)
from quant_core.strategy.registry import register_strategy

_EXTREMA_SPAN = 2


def find_peaks(prices: list[float]) -> list[int]:
    """Indices strictly higher than the two bars on either side."""
    peaks = []
    for i in range(_EXTREMA_SPAN, len(prices) - _EXTREMA_SPAN):
        neighbours = prices[i - _EXTREMA_SPAN : i] + prices[i + 1 : i + 1 + _EXTREMA_SPAN]
        if all(prices[i] > p for p in neighbours):
            peaks.append(i)
    return peaks


def find_troughs(prices: list[float]) -> list[int]:
    """Indices strictly lower than the two bars on either side."""
    troughs = []
    for i in range(_EXTREMA_SPAN, len(prices) - _EXTREMA_SPAN):
        neighbours = prices[i - _EXTREMA_SPAN : i] + prices[i + 1 : i + 1 + _EXTREMA_SPAN]
        if all(prices[i] < p for p in neighbours):
            troughs.append(i)
    return troughs


def _similar(a: float, b: float, tolerance: float) -> bool:
    base = max(abs(a), abs(b))
    if base == 0:
        return True
    return abs(a - b) / base <= tolerance


def detect_double_top(prices: list[float], tolerance: float) -> PatternMatch | None:
    peaks = find_peaks(prices)
    if len(peaks) < 2:
        return None

    first, second = peaks[-2], peaks[-1]
    if not _similar(prices[first], prices[second], tolerance):
        return None

    neckline = min(prices[first : second + 1])
    top = max(prices[first], prices[second])
    if neckline >= top * (1 - tolerance):
        return None

    current = prices[-1]
    return PatternMatch(
        pattern="DOUBLE_TOP",
        direction=Direction.SHORT,
        reliability=PATTERN_RELIABILITY["DOUBLE_TOP"],
        neckline=neckline,
        neckline_broken=current < neckline,
        target=neckline - (top - neckline),
    )


def detect_double_bottom(prices: list[float], tolerance: float) -> PatternMatch | None:
    troughs = find_troughs(prices)
    if len(troughs) < 2:
        return None

    first, second = troughs[-2], troughs[-1]
    if not _similar(prices[first], prices[second], tolerance):
        return None

    neckline = max(prices[first : second + 1])
    bottom = min(prices[first], prices[second])
    if neckline <= bottom * (1 + tolerance):
        return None

    current = prices[-1]
    return PatternMatch(
        pattern="DOUBLE_BOTTOM",
        direction=Direction.LONG,
        reliability=PATTERN_RELIABILITY["DOUBLE_BOTTOM"],
        neckline=neckline,
        neckline_broken=current > neckline,
        target=neckline + (neckline - bottom),
    )


def detect_head_and_shoulders(prices: list[float], tolerance: float) -> PatternMatch | None:
    peaks = find_peaks(prices)
    if len(peaks) < 3:
        return None

    left, head, right = peaks[-3], peaks[-2], peaks[-1]
    shoulder = max(prices[left], prices[right])
    if prices[head] <= shoulder * (1 + tolerance):
        return None
    if not _similar(prices[left], prices[right], tolerance):
        return None

    neckline = min(prices[left : right + 1])
    current = prices[-1]
    return PatternMatch(
        pattern="HEAD_AND_SHOULDERS",
        direction=Direction.SHORT,
        reliability=PATTERN_RELIABILITY["HEAD_AND_SHOULDERS"],
        neckline=neckline,
        neckline_broken=current < neckline,
        target=neckline - (prices[head] - neckline),
    )


@register_strategy(PRICE_ACTION_STRATEGY_NAME)
class PriceActionStrategy(BaseStrategy):
    """Reversal chart-pattern recognition."""

    name = PRICE_ACTION_STRATEGY_NAME
    version = "1.0.0"
    config_class = PriceActionConfig

    def __init__(self, config: PriceActionConfig | None = None):
        self.config = config or PriceActionConfig()

    @property
    def required_bars(self) -> int:
        return 10

    def detect_patterns(self, prices: list[float]) -> list[PatternMatch]:
        tolerance = self.config.pattern_tolerance
        matches = [
            detect_double_top(prices, tolerance),
            detect_double_bottom(prices, tolerance),
            detect_head_and_shoulders(prices, tolerance),
        ]
        return [m for m in matches if m is not None]

    def _generate(self, series: PriceSeries) -> Signal:
        cfg = self.config
        prices = series.closes()[-cfg.lookback_period :]
        volumes = series.volumes()[-cfg.lookback_period :]

        patterns = self.detect_patterns(prices)
        if not patterns:
            return Signal.neutral(self.name, reason="no pattern", patterns=[])

        long_weight = sum(p.reliability for p in patterns if p.direction == Direction.LONG)
        short_weight = sum(p.reliability for p in patterns if p.direction == Direction.SHORT)
        names = [p.pattern for p in patterns]

        if long_weight == short_weight:
            return Signal.neutral(self.name, reason="conflicting patterns", patterns=names)

        direction = Direction.LONG if long_weight > short_weight else Direction.SHORT
        winners = [p for p in patterns if p.direction == direction]
        best = max(winners, key=lambda p: p.reliability)

        strength = max(
            p.reliability * (1.0 if p.neckline_broken else cfg.unconfirmed_strength)
            for p in winners
        )

        volume_ok = True
        if cfg.volume_confirmation and volumes:
            volume_ok = volumes[-1] > sum(volumes) / len(volumes)
        confidence = best.reliability * (1.0 if volume_ok else cfg.low_volume_penalty)

        return Signal(
            strategy_id=self.name,
            direction=direction,
            strength=min(strength, 1.0),
            confidence=min(confidence, 1.0),
            parameters={
                "patterns": names,
                "neckline": best.neckline,
                "neckline_broken": best.neckline_broken,
                "target": best.target,
                "volume_confirmed": volume_ok,
            },
        )
