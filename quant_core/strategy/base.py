"""Shared strategy behaviour: the evaluation guard."""

from __future__ import annotations

import logging

from quant_core.models import PriceSeries, Signal

logger = logging.getLogger(__name__)


class BaseStrategy:
    """Base class supplying ``evaluate`` and the short-input guard.

    Subclasses set ``name``/``version`` and implement ``_generate``; they
    may assume at least ``required_bars`` bars are present.
    """

    name: str = ""
    version: str = "1.0.0"
    config_class: type | None = None

    @classmethod
    def from_params(cls, params: dict | None = None) -> "BaseStrategy":
        """Instantiate from a plain mapping of config fields (YAML or env)."""
        if cls.config_class is None or not params:
            return cls()
        return cls(config=cls.config_class(**params))

    @property
    def required_bars(self) -> int:
        return 1

    def generate(self, series: PriceSeries) -> Signal:
        if len(series) < self.required_bars:
            return Signal.neutral(
                self.name,
                reason=f"insufficient data: {len(series)} < {self.required_bars} bars",
            )
        try:
            return self._generate(series)
        except Exception as e:
            logger.warning("%s failed on %s: %s", self.name, series.symbol, e)
            return Signal.neutral(self.name, reason=f"error: {e}", fallback=True)

    async def evaluate(self, series: PriceSeries) -> Signal:
        return self.generate(series)

    def _generate(self, series: PriceSeries) -> Signal:
        raise NotImplementedError
