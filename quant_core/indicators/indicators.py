"""Technical indicators for strategy evaluation.

Every function here is pure: it takes sequences of numbers (float or
Decimal) and returns plain floats or small named tuples. Series shorter
than the requested window degrade to a documented neutral value instead
of raising, so callers can evaluate partial history:

- sma / ema: last observed value (0.0 for an empty series)
- rsi: 50.0
- macd: all zeros
- stochastic: %K = %D = 50.0
- atr: mean of the true ranges that exist
- volatility / standard_deviation: 0.0
- linear_regression: slope 0.0, intercept = last value
"""

from __future__ import annotations

from decimal import Decimal
from typing import NamedTuple, Sequence, Union

import numpy as np

Number = Union[float, int, Decimal]

NEUTRAL_RSI = 50.0
NEUTRAL_STOCHASTIC = 50.0


class MacdResult(NamedTuple):
    """MACD line, signal line and histogram at the latest bar."""

    macd: float
    signal: float
    histogram: float


class StochasticResult(NamedTuple):
    """Stochastic oscillator %K and %D at the latest bar."""

    k: float
    d: float


class RegressionResult(NamedTuple):
    """Least-squares line fitted to the latest observations."""

    slope: float
    intercept: float


def _to_array(values: Sequence[Number]) -> np.ndarray:
    return np.array([float(v) for v in values], dtype=np.float64)


# =============================================================================
# Moving averages
# =============================================================================

def sma_series(values: Sequence[Number], period: int) -> list[float]:
    """
    Calculate the Simple Moving Average at every index.

    Returns:
        List of SMA values (same length as input, NaN for initial values)
    """
    arr = _to_array(values)
    if period <= 0 or len(arr) < period:
        return [float("nan")] * len(arr)

    result = np.empty_like(arr)
    result[: period - 1] = np.nan
    cumsum = np.cumsum(np.insert(arr, 0, 0.0))
    result[period - 1 :] = (cumsum[period:] - cumsum[:-period]) / period
    return result.tolist()


def ema_series(values: Sequence[Number], period: int) -> list[float]:
    """
    Calculate the Exponential Moving Average at every index.

    Seeded with the SMA of the first ``period`` values.

    Returns:
        List of EMA values (same length as input, NaN for initial values)
    """
    arr = _to_array(values)
    if period <= 0 or len(arr) < period:
        return [float("nan")] * len(arr)

    multiplier = 2.0 / (period + 1)
    result = np.empty_like(arr)
    result[: period - 1] = np.nan
    result[period - 1] = np.mean(arr[:period])

    for i in range(period, len(arr)):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)

    return result.tolist()


def sma(values: Sequence[Number], period: int) -> float:
    """Simple moving average of the last ``period`` observations."""
    arr = _to_array(values)
    if len(arr) == 0:
        return 0.0
    if period <= 0 or len(arr) < period:
        return float(arr[-1])
    return float(np.mean(arr[-period:]))


def ema(values: Sequence[Number], period: int) -> float:
    """Exponential moving average at the latest observation."""
    if len(values) == 0:
        return 0.0
    if period <= 0 or len(values) < period:
        return float(values[-1])
    return ema_series(values, period)[-1]


# =============================================================================
# Oscillators
# =============================================================================

def rsi(values: Sequence[Number], period: int = 14) -> float:
    """
    Calculate the Relative Strength Index over the last ``period`` deltas.

    Uses simple averages of gains and losses (no Wilder smoothing).

    Returns:
        RSI in [0, 100]; 50.0 when there is not enough data or the
        window is completely flat.
    """
    arr = _to_array(values)
    if period <= 0 or len(arr) < period + 1:
        return NEUTRAL_RSI

    deltas = np.diff(arr[-(period + 1):])
    avg_gain = float(deltas[deltas > 0].sum()) / period
    avg_loss = float(-deltas[deltas < 0].sum()) / period

    if avg_loss == 0:
        return NEUTRAL_RSI if avg_gain == 0 else 100.0

    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(
    values: Sequence[Number],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdResult:
    """
    Calculate MACD (fast EMA - slow EMA), its signal EMA and histogram.

    When fewer MACD points exist than ``signal_period``, the signal line is
    the plain mean of the available points.
    """
    if len(values) < max(fast_period, slow_period):
        return MacdResult(0.0, 0.0, 0.0)

    fast = np.array(ema_series(values, fast_period))
    slow = np.array(ema_series(values, slow_period))
    macd_line = (fast - slow)[slow_period - 1 :]

    if len(macd_line) < signal_period:
        signal = float(np.mean(macd_line))
    else:
        signal = ema_series(macd_line.tolist(), signal_period)[-1]

    latest = float(macd_line[-1])
    return MacdResult(latest, signal, latest - signal)


def _stochastic_k(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, end: int, period: int
) -> float:
    start = end - period + 1
    period_high = float(np.max(highs[start : end + 1]))
    period_low = float(np.min(lows[start : end + 1]))
    if period_high == period_low:
        return NEUTRAL_STOCHASTIC
    return (float(closes[end]) - period_low) / (period_high - period_low) * 100.0


def stochastic(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    period: int = 14,
    smooth: int = 3,
) -> StochasticResult:
    """
    Calculate the Stochastic oscillator.

    %K = (close - periodLow) / (periodHigh - periodLow) * 100
    %D = mean of the last ``smooth`` %K values

    Returns:
        StochasticResult; (50, 50) when there is not enough data.
    """
    h, l, c = _to_array(highs), _to_array(lows), _to_array(closes)
    n = len(c)
    if period <= 0 or n < period or len(h) != n or len(l) != n:
        return StochasticResult(NEUTRAL_STOCHASTIC, NEUTRAL_STOCHASTIC)

    first_end = max(period - 1, n - max(smooth, 1))
    k_values = [_stochastic_k(h, l, c, end, period) for end in range(first_end, n)]
    return StochasticResult(k_values[-1], float(np.mean(k_values)))


# =============================================================================
# Range and volatility
# =============================================================================

def true_range(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    The first bar has no previous close and uses high - low.
    """
    h, l, c = _to_array(highs), _to_array(lows), _to_array(closes)
    n = min(len(h), len(l), len(c))
    if n == 0:
        return []

    result = [float(h[0] - l[0])]
    for i in range(1, n):
        result.append(
            float(max(h[i] - l[i], abs(h[i] - c[i - 1]), abs(l[i] - c[i - 1])))
        )
    return result


def atr(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    period: int = 14,
) -> float:
    """
    Average True Range over the last ``period`` bars (simple rolling mean).

    Only bars with a previous close contribute. With fewer bars than
    ``period`` the available true ranges are averaged.
    """
    tr = true_range(highs, lows, closes)
    if len(tr) == 0:
        return 0.0
    if len(tr) == 1:
        return tr[0]

    ranges = tr[1:]
    if period > 0 and len(ranges) >= period:
        ranges = ranges[-period:]
    return float(np.mean(ranges))


def returns(values: Sequence[Number]) -> list[float]:
    """Simple returns between consecutive values (0.0 where the base is 0)."""
    arr = _to_array(values)
    if len(arr) < 2:
        return []

    prev = arr[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        result = np.where(prev != 0, np.diff(arr) / prev, 0.0)
    return result.tolist()


def standard_deviation(values: Sequence[Number], period: int | None = None) -> float:
    """Population standard deviation of the last ``period`` values."""
    arr = _to_array(values)
    if period is not None and period > 0:
        arr = arr[-period:]
    if len(arr) < 2:
        return 0.0
    return float(np.std(arr))


def volatility(prices: Sequence[Number]) -> float:
    """Standard deviation of simple returns (population)."""
    rets = returns(prices)
    if len(rets) < 2:
        return 0.0
    return float(np.std(rets))


def highest(values: Sequence[Number], period: int) -> float:
    """Highest value over the last ``period`` observations."""
    arr = _to_array(values)
    if len(arr) == 0:
        return 0.0
    return float(np.max(arr[-period:] if period > 0 else arr))


def lowest(values: Sequence[Number], period: int) -> float:
    """Lowest value over the last ``period`` observations."""
    arr = _to_array(values)
    if len(arr) == 0:
        return 0.0
    return float(np.min(arr[-period:] if period > 0 else arr))


# =============================================================================
# Trend
# =============================================================================

def linear_regression(values: Sequence[Number], period: int | None = None) -> RegressionResult:
    """
    Fit y = slope * x + intercept over the last ``period`` values (x = 0..n-1).

    Used as a trend-strength measure.
    """
    arr = _to_array(values)
    if period is not None and period > 0:
        arr = arr[-period:]
    n = len(arr)
    if n < 2:
        return RegressionResult(0.0, float(arr[-1]) if n else 0.0)

    x = np.arange(n, dtype=np.float64)
    sum_x = float(x.sum())
    sum_y = float(arr.sum())
    sum_xy = float((x * arr).sum())
    sum_x2 = float((x * x).sum())

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return RegressionResult(slope, intercept)


def detect_trend(prices: Sequence[Number], period: int = 20) -> str:
    """
    Classify the trend by comparing a short SMA (period // 3) to a long SMA.

    Returns:
        "UPTREND", "DOWNTREND" or "SIDEWAYS" (2% band around the long SMA)
    """
    if len(prices) == 0:
        return "SIDEWAYS"

    sma_short = sma(prices, max(period // 3, 1))
    sma_long = sma(prices, period)

    if sma_short > sma_long * 1.02:
        return "UPTREND"
    if sma_short < sma_long * 0.98:
        return "DOWNTREND"
    return "SIDEWAYS"


def volume_stability(volumes: Sequence[Number]) -> float:
    """
    Volume stability in [0, 1]: 1 - mean absolute relative volume change.

    1.0 means perfectly stable volume (or not enough data to tell).
    """
    arr = _to_array(volumes)
    if len(arr) < 2:
        return 1.0

    prev = arr[:-1]
    mask = prev != 0
    if not mask.any():
        return 1.0

    changes = np.abs(np.diff(arr)[mask] / prev[mask])
    return max(0.0, 1.0 - float(np.mean(changes)))
