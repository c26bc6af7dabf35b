"""Collaborators the engine consumes but does not implement.

Market data, decision publishing and time are injected into the services
so they can be replaced with fakes in tests.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from quant_core.models import FusedDecision, Position, PriceSeries


@runtime_checkable
class MarketDataProvider(Protocol):
    """Source of price history, indicator snapshots and latest prices."""

    async def get_series(self, symbol: str, timeframe: str) -> PriceSeries:
        ...

    async def get_indicators(self, symbol: str) -> dict[str, Any]:
        """Indicator snapshot; fields may be missing and mean 'unknown'."""
        ...

    async def get_latest_price(self, symbol: str) -> Decimal | None:
        ...


@runtime_checkable
class DecisionSink(Protocol):
    """Persistence/notification target. Failures are logged, never raised."""

    async def publish_decision(self, decision: FusedDecision) -> None:
        ...

    async def publish_position_closed(self, position: Position) -> None:
        ...


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def monotonic(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Wall clock backed by the running event loop."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
