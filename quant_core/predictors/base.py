"""Predictor protocol and shared helpers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from quant_core.predictors.models import MarketSnapshot, Prediction


@runtime_checkable
class Predictor(Protocol):
    """A deterministic heuristic scorer over a market snapshot."""

    @property
    def name(self) -> str:
        ...

    def score(self, snapshot: MarketSnapshot) -> Prediction:
        """Compute the prediction synchronously."""
        ...

    async def predict(self, snapshot: MarketSnapshot) -> Prediction:
        """Coroutine wrapper used by the ensemble fan-out."""
        ...


class BasePredictor:
    """Supplies ``predict`` on top of a pure ``score``."""

    name: str = ""

    def score(self, snapshot: MarketSnapshot) -> Prediction:
        raise NotImplementedError

    async def predict(self, snapshot: MarketSnapshot) -> Prediction:
        return self.score(snapshot)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def simple_change(prices: list[float]) -> float:
    """Relative change from the first to the last price."""
    if len(prices) < 2 or prices[0] == 0:
        return 0.0
    return (prices[-1] - prices[0]) / prices[0]
