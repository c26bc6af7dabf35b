"""Technical indicators (pure math, no I/O)."""

from quant_core.indicators.indicators import (
    MacdResult,
    RegressionResult,
    StochasticResult,
    atr,
    detect_trend,
    ema,
    ema_series,
    highest,
    linear_regression,
    lowest,
    macd,
    returns,
    rsi,
    sma,
    sma_series,
    standard_deviation,
    stochastic,
    true_range,
    volatility,
    volume_stability,
)

__all__ = [
    "MacdResult",
    "RegressionResult",
    "StochasticResult",
    "atr",
    "detect_trend",
    "ema",
    "ema_series",
    "highest",
    "linear_regression",
    "lowest",
    "macd",
    "returns",
    "rsi",
    "sma",
    "sma_series",
    "standard_deviation",
    "stochastic",
    "true_range",
    "volatility",
    "volume_stability",
]
