"""Shared test helpers: series builders, a manual clock and a fake market."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from quant_core.models import Bar, PriceSeries

START = datetime(2024, 1, 2, tzinfo=timezone.utc)


def make_series(
    closes,
    volumes=None,
    highs=None,
    lows=None,
    symbol="TEST",
    timeframe="1d",
) -> PriceSeries:
    """Build a daily series; highs/lows default to the closes."""
    volumes = volumes if volumes is not None else [1000.0] * len(closes)
    highs = highs if highs is not None else closes
    lows = lows if lows is not None else closes
    bars = [
        Bar(
            date=START + timedelta(days=i),
            open=Decimal(str(c)),
            high=Decimal(str(h)),
            low=Decimal(str(lo)),
            close=Decimal(str(c)),
            volume=Decimal(str(v)),
        )
        for i, (c, v, h, lo) in enumerate(zip(closes, volumes, highs, lows))
    ]
    return PriceSeries(symbol=symbol, timeframe=timeframe, bars=bars)


class FakeClock:
    """Manually advanced clock; ``sleep`` waits until ``advance`` passes its deadline."""

    def __init__(self, start: datetime = START):
        self._start = start
        self._elapsed = 0.0
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        return self._elapsed

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self._elapsed + seconds, future))
        await future

    @staticmethod
    async def settle(rounds: int = 20) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        """Move time forward, waking sleepers in deadline order."""
        target = self._elapsed + seconds
        await self.settle()
        while True:
            self._sleepers = [s for s in self._sleepers if not s[1].done()]
            due = [s for s in self._sleepers if s[0] <= target]
            if not due:
                break
            deadline = min(d for d, _ in due)
            self._elapsed = deadline
            for entry in [s for s in self._sleepers if s[0] <= deadline]:
                self._sleepers.remove(entry)
                entry[1].set_result(None)
            await self.settle()
        self._elapsed = target


class FakeMarket:
    """In-memory MarketDataProvider."""

    def __init__(self):
        self.series: dict[str, PriceSeries] = {}
        self.prices: dict[str, Decimal] = {}
        self.indicators: dict[str, dict] = {}

    async def get_series(self, symbol: str, timeframe: str) -> PriceSeries:
        if symbol not in self.series:
            raise KeyError(f"no data for {symbol}")
        return self.series[symbol]

    async def get_indicators(self, symbol: str) -> dict:
        return self.indicators.get(symbol, {})

    async def get_latest_price(self, symbol: str) -> Decimal | None:
        return self.prices.get(symbol)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def market():
    return FakeMarket()


@pytest.fixture
def sink():
    """Mock DecisionSink."""
    mock = MagicMock()
    mock.publish_decision = AsyncMock()
    mock.publish_position_closed = AsyncMock()
    return mock


@pytest.fixture
def flat_series():
    """30 constant bars."""
    return make_series([100.0] * 30)
