"""Tests for the strategy plugins and registry."""

import pytest

from conftest import make_series
from quant_core.models import Direction
from quant_core.strategy import (
    BaseStrategy,
    Strategy,
    create_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
)
from quant_core.strategy.composite_momentum import CompositeMomentumStrategy
from quant_core.strategy.composite_momentum.generator import momentum_confidence
from quant_core.strategy.mean_reversion import MeanReversionConfig, MeanReversionStrategy
from quant_core.strategy.price_action import PriceActionStrategy
from quant_core.strategy.price_action.generator import (
    detect_double_bottom,
    detect_double_top,
    detect_head_and_shoulders,
    find_peaks,
    find_troughs,
)
from quant_core.strategy.trend_breakout import TrendBreakoutConfig, TrendBreakoutStrategy

DOUBLE_TOP = [100, 101, 102, 110, 102, 101, 100, 95, 100, 101, 102, 110, 102, 101, 92]
DOUBLE_BOTTOM = [100, 99, 98, 90, 98, 99, 100, 105, 100, 99, 98, 90, 98, 99, 108]


class TestRegistry:
    """Tests for strategy discovery."""

    def test_builtin_strategies_registered(self):
        assert list_strategies() == [
            "composite_momentum",
            "mean_reversion_advanced",
            "price_action",
            "trend_breakout",
        ]

    def test_create_strategy(self):
        strategy = create_strategy("trend_breakout")
        assert isinstance(strategy, TrendBreakoutStrategy)
        assert isinstance(strategy, Strategy)

    def test_unknown_strategy(self):
        with pytest.raises(KeyError, match="Unknown strategy"):
            get_strategy_class("does_not_exist")

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError, match="already registered"):
            register_strategy("trend_breakout")(type("Dup", (BaseStrategy,), {}))

    def test_from_params(self):
        strategy = TrendBreakoutStrategy.from_params({"trend_period": 30})
        assert strategy.config.trend_period == 30
        assert strategy.required_bars == 31

        default = MeanReversionStrategy.from_params(None)
        assert default.config == MeanReversionConfig()


class TestFlatSeries:
    """Every strategy is neutral on constant prices."""

    @pytest.mark.parametrize("name", ["mean_reversion_advanced", "trend_breakout", "composite_momentum", "price_action"])
    def test_neutral_on_flat_series(self, name, flat_series):
        signal = create_strategy(name).generate(flat_series)

        assert signal.direction == Direction.NEUTRAL
        assert signal.strength == 0.0
        assert signal.strategy_id == name

    @pytest.mark.parametrize("name", ["mean_reversion_advanced", "trend_breakout", "composite_momentum"])
    def test_insufficient_data(self, name):
        signal = create_strategy(name).generate(make_series([100.0, 101.0]))

        assert signal.direction == Direction.NEUTRAL
        assert signal.strength == 0.0
        assert signal.confidence == 0.0
        assert signal.reason.startswith("insufficient data")
        assert not signal.is_fallback

    def test_failure_becomes_fallback(self, flat_series):
        """An exception inside a strategy yields a fallback neutral signal."""

        class Broken(BaseStrategy):
            name = "broken"

            def _generate(self, series):
                raise RuntimeError("boom")

        signal = Broken().generate(flat_series)
        assert signal.direction == Direction.NEUTRAL
        assert signal.is_fallback
        assert "boom" in signal.reason

    @pytest.mark.asyncio
    async def test_evaluate_matches_generate(self, flat_series):
        strategy = MeanReversionStrategy()
        assert await strategy.evaluate(flat_series) == strategy.generate(flat_series)


class TestMeanReversion:
    """Tests for MeanReversionStrategy."""

    def test_oversold_goes_long(self):
        closes = [100.0] * 39 + [70.0]
        volumes = [1000.0] * 39 + [5000.0]
        signal = MeanReversionStrategy().generate(make_series(closes, volumes))

        assert signal.direction == Direction.LONG
        assert signal.strength == 1.0
        assert signal.parameters["z_score"] < -2.0
        assert signal.parameters["volume_filter"] is True
        # 1 of 3 bars confirmed, plus the volume bonus
        assert signal.confidence == pytest.approx(1 / 3 * 0.8 + 0.2)

    def test_overbought_goes_short(self):
        closes = [100.0] * 39 + [130.0]
        signal = MeanReversionStrategy().generate(make_series(closes))

        assert signal.direction == Direction.SHORT
        # Flat volume fails the filter
        assert signal.parameters["volume_filter"] is False

    def test_inside_band_is_neutral(self):
        closes = [100.0, 101.0] * 20
        signal = MeanReversionStrategy().generate(make_series(closes))
        assert signal.direction == Direction.NEUTRAL


class TestTrendBreakout:
    """Tests for TrendBreakoutStrategy."""

    def test_upside_breakout(self):
        closes = [100.0] * 20 + [110.0]
        volumes = [1000.0] * 20 + [5000.0]
        signal = TrendBreakoutStrategy().generate(make_series(closes, volumes))

        assert signal.direction == Direction.LONG
        assert signal.strength == 0.8
        assert signal.confidence == 0.75
        assert signal.parameters["resistance"] == 100.0

    def test_downside_breakout(self):
        closes = [100.0] * 20 + [90.0]
        volumes = [1000.0] * 20 + [5000.0]
        signal = TrendBreakoutStrategy().generate(make_series(closes, volumes))
        assert signal.direction == Direction.SHORT

    def test_breakout_without_volume(self):
        closes = [100.0] * 20 + [110.0]
        signal = TrendBreakoutStrategy().generate(make_series(closes))

        assert signal.direction == Direction.NEUTRAL
        assert signal.reason == "no breakout"

    def test_custom_threshold(self):
        config = TrendBreakoutConfig(trend_period=5, breakout_threshold=0.2)
        closes = [100.0] * 5 + [110.0]
        volumes = [1000.0] * 5 + [5000.0]
        signal = TrendBreakoutStrategy(config).generate(make_series(closes, volumes))
        assert signal.direction == Direction.NEUTRAL


class TestCompositeMomentum:
    """Tests for CompositeMomentumStrategy."""

    def test_confidence_all_agree(self):
        assert momentum_confidence([1, 1, 1]) == pytest.approx(1.0)

    def test_confidence_partial(self):
        # 2 of 3 active, both agree
        assert momentum_confidence([1, 1, 0]) == pytest.approx(0.5 * 2 / 3 + 0.5)

    def test_confidence_no_votes(self):
        assert momentum_confidence([0, 0, 0]) == 0.0

    def test_confidence_split(self):
        """Opposing votes cancel out the agreement half."""
        assert momentum_confidence([1, -1, 0]) == pytest.approx(0.5 * 2 / 3)

    def test_accelerating_uptrend_is_overbought(self):
        closes = [100 + 0.05 * i * i for i in range(60)]
        signal = CompositeMomentumStrategy().generate(make_series(closes))

        assert signal.parameters["votes"] == [-1, -1, 1]
        assert signal.direction == Direction.SHORT
        assert signal.strength == pytest.approx(1 / 3)
        assert signal.confidence == pytest.approx(0.5 + 0.5 * 2 / 3)

    def test_required_bars(self):
        assert CompositeMomentumStrategy().required_bars == 26


class TestPriceAction:
    """Tests for PriceActionStrategy and its pattern detectors."""

    def test_extrema(self):
        assert find_peaks(DOUBLE_TOP) == [3, 11]
        assert find_troughs(DOUBLE_TOP) == [7]

    def test_double_top_detected(self):
        match = detect_double_top(DOUBLE_TOP, 0.02)

        assert match is not None
        assert match.direction == Direction.SHORT
        assert match.neckline == 95
        assert match.neckline_broken

    def test_double_bottom_detected(self):
        match = detect_double_bottom(DOUBLE_BOTTOM, 0.02)

        assert match is not None
        assert match.direction == Direction.LONG
        assert match.neckline == 105
        assert match.neckline_broken

    def test_head_and_shoulders_needs_three_peaks(self):
        assert detect_head_and_shoulders(DOUBLE_TOP, 0.02) is None

    def test_head_and_shoulders_detected(self):
        prices = [100, 101, 105, 101, 100, 102, 112, 102, 100, 101, 105, 101, 100, 96]
        match = detect_head_and_shoulders(prices, 0.02)

        assert match is not None
        assert match.pattern == "HEAD_AND_SHOULDERS"
        assert match.reliability == 0.82

    def test_strategy_double_top_with_volume(self):
        volumes = [1000.0] * 14 + [5000.0]
        signal = PriceActionStrategy().generate(make_series(DOUBLE_TOP, volumes))

        assert signal.direction == Direction.SHORT
        assert signal.strength == pytest.approx(0.75)
        assert signal.confidence == pytest.approx(0.75)
        assert signal.parameters["patterns"] == ["DOUBLE_TOP"]

    def test_strategy_low_volume_penalty(self):
        signal = PriceActionStrategy().generate(make_series(DOUBLE_BOTTOM))

        assert signal.direction == Direction.LONG
        assert signal.strength == pytest.approx(0.78)
        assert signal.confidence == pytest.approx(0.78 * 0.8)

    def test_no_pattern(self):
        closes = [100 + i for i in range(20)]
        signal = PriceActionStrategy().generate(make_series(closes))

        assert signal.direction == Direction.NEUTRAL
        assert signal.reason == "no pattern"

    def test_deterministic(self):
        series = make_series(DOUBLE_TOP)
        strategy = PriceActionStrategy()
        assert strategy.generate(series) == strategy.generate(series)
