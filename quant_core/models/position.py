"""Position data model and lifecycle states."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from quant_core.models.signal import Direction


class PositionStatus(str, Enum):
    """Position lifecycle state."""

    OPEN = "OPEN"
    MONITORING = "MONITORING"
    CLOSED = "CLOSED"


# Allowed forward transitions; nothing leaves CLOSED
_TRANSITIONS: dict[PositionStatus, set[PositionStatus]] = {
    PositionStatus.OPEN: {PositionStatus.MONITORING},
    PositionStatus.MONITORING: {PositionStatus.CLOSED},
    PositionStatus.CLOSED: set(),
}


class ExitReason(str, Enum):
    """Why a position was closed."""

    TAKE_PROFIT = "TAKE_PROFIT"
    STOP_LOSS = "STOP_LOSS"
    EMERGENCY = "EMERGENCY"
    MANUAL = "MANUAL"


class Position(BaseModel):
    """An open or closed trade."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    symbol: str
    side: Direction
    quantity: Decimal = Field(frozen=True, gt=0)
    entry_price: Decimal = Field(gt=0)
    stop_loss: Decimal
    take_profit: Decimal
    status: PositionStatus = PositionStatus.OPEN
    current_price: Decimal | None = None
    unrealized_pl: Decimal = Decimal("0")
    realized_pl: Decimal | None = None
    entry_commission: Decimal = Decimal("0")
    exit_commission: Decimal = Decimal("0")
    exit_price: Decimal | None = None
    exit_reason: str | None = None
    opened_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    closed_at: datetime | None = None
    decision_id: str | None = None

    @field_validator("side")
    @classmethod
    def _side_is_directional(cls, v: Direction) -> Direction:
        if v == Direction.NEUTRAL:
            raise ValueError("position side must be LONG or SHORT")
        return v

    @property
    def is_long(self) -> bool:
        return self.side == Direction.LONG

    @property
    def is_closed(self) -> bool:
        return self.status == PositionStatus.CLOSED

    @property
    def entry_value(self) -> Decimal:
        return self.entry_price * self.quantity

    def can_advance(self, status: PositionStatus) -> bool:
        """Check whether moving to ``status`` is a legal forward transition."""
        return status in _TRANSITIONS[self.status]

    def advance(self, status: PositionStatus) -> bool:
        """Move to ``status`` if allowed.

        Returns:
            True if the transition was applied, False if it was rejected.
        """
        if not self.can_advance(status):
            return False
        self.status = status
        return True

    def gross_pl_at(self, price: Decimal) -> Decimal:
        """Sign-adjusted price P/L at ``price`` before commissions."""
        diff = (price - self.entry_price) * self.quantity
        return diff if self.is_long else -diff

    def mark(self, price: Decimal) -> Decimal:
        """Refresh current price and unrealized P/L."""
        self.current_price = price
        self.unrealized_pl = self.gross_pl_at(price)
        return self.unrealized_pl

    def hit_take_profit(self, price: Decimal) -> bool:
        if self.is_long:
            return price >= self.take_profit
        return price <= self.take_profit

    def hit_stop_loss(self, price: Decimal) -> bool:
        if self.is_long:
            return price <= self.stop_loss
        return price >= self.stop_loss
