"""Weighted fusion of per-strategy signals into one directional view.

Given a name-keyed mapping of signals and a weight per estimator:

1. Weights are normalized over the estimators present (unknown names get
   DEFAULT_WEIGHT before normalization).
2. Only non-NEUTRAL, non-fallback signals contribute.
3. Each contribution adds strength * confidence * weight to its direction.
4. The larger bucket wins; equal buckets are a NEUTRAL tie.
5. strength = winning bucket / sum(contributing weights), so it is <= 1.
6. confidence = mean confidence of the contributing signals.

This module is pure business logic with no I/O dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from quant_core.models import Direction, RiskLevel, Signal
from quant_core.trade_plan import stop_loss_pct, suggested_size_pct, take_profit_pct

DEFAULT_WEIGHT = 0.1

REASON_NO_SIGNAL = "no signal"
REASON_CONFLICT = "conflicting signals"


@dataclass(frozen=True)
class FusionResult:
    """Outcome of fusing a set of signals."""

    direction: Direction
    strength: float
    confidence: float
    long_score: float = 0.0
    short_score: float = 0.0
    supporting: list[str] = field(default_factory=list)
    contributing: list[str] = field(default_factory=list)
    reason: str | None = None


def normalize_weights(names: list[str], weights: Mapping[str, float]) -> dict[str, float]:
    """Normalize weights over ``names`` so they sum to 1.

    Falls back to equal weights when every configured weight is zero.
    """
    if not names:
        return {}
    raw = {name: max(float(weights.get(name, DEFAULT_WEIGHT)), 0.0) for name in names}
    total = sum(raw.values())
    if total <= 0:
        return {name: 1.0 / len(names) for name in names}
    return {name: w / total for name, w in raw.items()}


def fuse_signals(signals: Mapping[str, Signal], weights: Mapping[str, float]) -> FusionResult:
    """Fuse strategy signals into a single direction, strength and confidence."""
    names = sorted(signals)
    normalized = normalize_weights(names, weights)

    long_score = 0.0
    short_score = 0.0
    contributing_weight = 0.0
    contributing: list[str] = []
    confidences: list[float] = []

    for name in names:
        signal = signals[name]
        if signal.direction == Direction.NEUTRAL or signal.is_fallback:
            continue
        weight = normalized[name]
        score = signal.strength * signal.confidence * weight
        if signal.direction == Direction.LONG:
            long_score += score
        else:
            short_score += score
        contributing_weight += weight
        contributing.append(name)
        confidences.append(signal.confidence)

    if not contributing:
        return FusionResult(Direction.NEUTRAL, 0.0, 0.0, reason=REASON_NO_SIGNAL)

    confidence = sum(confidences) / len(confidences)

    if long_score == short_score:
        return FusionResult(
            Direction.NEUTRAL,
            0.0,
            confidence,
            long_score=long_score,
            short_score=short_score,
            contributing=contributing,
            reason=REASON_CONFLICT,
        )

    direction = Direction.LONG if long_score > short_score else Direction.SHORT
    strength = 0.0
    if contributing_weight > 0:
        strength = min(max(long_score, short_score) / contributing_weight, 1.0)

    supporting = [n for n in contributing if signals[n].direction == direction]
    return FusionResult(
        direction,
        strength,
        confidence,
        long_score=long_score,
        short_score=short_score,
        supporting=supporting,
        contributing=contributing,
    )


def is_executable(
    direction: Direction,
    strength: float,
    confidence: float,
    risk_level: RiskLevel,
    min_confidence: float = 0.6,
    min_strength: float = 0.5,
) -> bool:
    """Gate a decision: directional, confident, strong enough and below HIGH risk."""
    return (
        direction != Direction.NEUTRAL
        and confidence >= min_confidence
        and strength >= min_strength
        and not risk_level.blocks_execution
    )


def conviction_label(strength: float) -> str:
    if strength > 0.7:
        return "high"
    if strength > 0.5:
        return "medium"
    return "low"


def build_recommendations(
    direction: Direction,
    strength: float,
    confidence: float,
    risk_level: RiskLevel,
    risk_score: float,
    volatility: float,
) -> list[str]:
    """Human-readable trade recommendations for a fused decision."""
    if direction == Direction.NEUTRAL:
        return [
            "Wait for a stronger signal",
            "Check the market on other timeframes",
        ]

    action = "Buy" if direction == Direction.LONG else "Sell"
    recommendations = [
        f"{action} with {conviction_label(strength)} conviction",
        f"Suggested position size: {suggested_size_pct(strength, risk_score)}% of capital",
        f"Stop loss: {stop_loss_pct(volatility)}%",
        f"Take profit: {take_profit_pct(volatility, confidence)}%",
    ]
    if risk_level.rank >= RiskLevel.HIGH.rank:
        recommendations.append("Exit early if market conditions change")
    return recommendations
