"""Strategy protocol defining the interface all strategies must implement."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from quant_core.models import PriceSeries, Signal


@runtime_checkable
class Strategy(Protocol):
    """Protocol that all signal strategies must implement.

    A strategy maps a price series to a single Signal. ``generate`` is pure
    and synchronous; ``evaluate`` is the coroutine the fusion engine fans
    out over and must never raise.
    """

    @property
    def name(self) -> str:
        """Unique strategy identifier (e.g., 'mean_reversion_advanced')."""
        ...

    @property
    def version(self) -> str:
        """Strategy version string (e.g., '1.0.0')."""
        ...

    @property
    def required_bars(self) -> int:
        """Minimum number of bars needed for a non-neutral signal."""
        ...

    def generate(self, series: PriceSeries) -> Signal:
        """Compute the signal for the latest bar of ``series``."""
        ...

    async def evaluate(self, series: PriceSeries) -> Signal:
        """Compute the signal, degrading to a neutral one on any failure."""
        ...
