"""OHLCV bar and price series models."""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field


class Bar(BaseModel):
    """One OHLCV observation."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) bar."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) bar."""
        return self.close < self.open

    @property
    def body_size(self) -> Decimal:
        """Get the absolute size of the bar body."""
        return abs(self.close - self.open)

    @property
    def range_size(self) -> Decimal:
        """Get the full range (high - low) of the bar."""
        return self.high - self.low


class PriceSeries(BaseModel):
    """Chronologically ordered bars for one symbol and timeframe."""

    symbol: str
    timeframe: str = "1d"
    bars: list[Bar] = Field(default_factory=list)
    max_size: int = 500

    def add(self, bar: Bar) -> None:
        """Append a bar, keeping chronological order and max size."""
        if self.bars and bar.date <= self.bars[-1].date:
            # Same date replaces the last bar, older dates are ignored
            if bar.date == self.bars[-1].date:
                self.bars[-1] = bar
            return

        self.bars.append(bar)
        if len(self.bars) > self.max_size:
            self.bars = self.bars[-self.max_size :]

    def closes(self) -> list[float]:
        return [float(b.close) for b in self.bars]

    def highs(self) -> list[float]:
        return [float(b.high) for b in self.bars]

    def lows(self) -> list[float]:
        return [float(b.low) for b in self.bars]

    def opens(self) -> list[float]:
        return [float(b.open) for b in self.bars]

    def volumes(self) -> list[float]:
        return [float(b.volume) for b in self.bars]

    @property
    def last_close(self) -> float | None:
        """Close of the most recent bar, or None for an empty series."""
        if not self.bars:
            return None
        return float(self.bars[-1].close)

    @property
    def last_date(self) -> datetime | None:
        if not self.bars:
            return None
        return self.bars[-1].date

    def __len__(self) -> int:
        return len(self.bars)
