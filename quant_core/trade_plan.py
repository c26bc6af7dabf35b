"""Position sizing and exit-level arithmetic shared by decisions and positions."""

from __future__ import annotations

BASE_SIZE_PCT = 2.0
BASE_STOP_PCT = 3.0
STRONG_CONFIDENCE = 0.7
STRONG_REWARD_RATIO = 2.0
DEFAULT_REWARD_RATIO = 1.5


def suggested_size_pct(strength: float, risk_score: float, base_pct: float = BASE_SIZE_PCT) -> float:
    """Suggested position size as a percent of capital.

    base * strength * (1 - risk), rounded to two decimals.
    """
    return round(base_pct * strength * (1 - risk_score), 2)


def stop_loss_pct(volatility: float, base_pct: float = BASE_STOP_PCT) -> float:
    """Stop distance in percent: base stop plus volatility in percent."""
    return round(base_pct + volatility * 100, 1)


def reward_ratio(confidence: float) -> float:
    """Take-profit multiple of the stop distance."""
    return STRONG_REWARD_RATIO if confidence >= STRONG_CONFIDENCE else DEFAULT_REWARD_RATIO


def take_profit_pct(volatility: float, confidence: float, base_pct: float = BASE_STOP_PCT) -> float:
    """Target distance in percent: stop distance times the reward ratio."""
    return round(stop_loss_pct(volatility, base_pct) * reward_ratio(confidence), 1)
