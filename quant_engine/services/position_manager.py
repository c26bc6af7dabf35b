"""Position lifecycle manager.

Opens positions from executable decisions, monitors each one on its own
scheduled task and closes it on take-profit, stop-loss, emergency exit or
manual request.

Lifecycle: OPEN -> MONITORING -> CLOSED. A position moves to MONITORING
as soon as its monitor is scheduled; CLOSED is terminal and a second close
is a logged no-op that returns the archived position.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal

from quant_core.models import (
    Direction,
    ExitReason,
    FusedDecision,
    Position,
    PositionStatus,
)
from quant_core.trade_plan import stop_loss_pct, take_profit_pct
from quant_engine.config import PositionConfig
from quant_engine.errors import InvalidTransitionError, PositionRejectedError
from quant_engine.interfaces import Clock, DecisionSink, MarketDataProvider, SystemClock
from quant_engine.services.scheduler import TaskScheduler

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


class PositionManager:
    """
    Track open positions and their exits.

    The open-position table, daily P/L and statistics are guarded by one
    asyncio.Lock so that concurrent opens cannot exceed the position limit
    and concurrent closes of the same id settle exactly once.
    """

    def __init__(
        self,
        config: PositionConfig | None = None,
        provider: MarketDataProvider | None = None,
        scheduler: TaskScheduler | None = None,
        sink: DecisionSink | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or PositionConfig()
        self.provider = provider
        self.clock = clock or SystemClock()
        self.scheduler = scheduler or TaskScheduler(self.clock)
        self.sink = sink

        self._positions: dict[str, Position] = {}
        self._closed: dict[str, Position] = {}
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

        self._daily_date: date = self.clock.now().date()
        self._daily_pl = _ZERO

        self.total_trades = 0
        self.winning_trades = 0
        self.total_pl = _ZERO

    # =========================================================================
    # Queries
    # =========================================================================

    def get_position(self, position_id: str) -> Position | None:
        return self._positions.get(position_id) or self._closed.get(position_id)

    def open_positions(self) -> list[Position]:
        return list(self._positions.values())

    def closed_positions(self) -> list[Position]:
        return list(self._closed.values())

    @property
    def daily_pl(self) -> Decimal:
        self._roll_day()
        return self._daily_pl

    @property
    def win_rate(self) -> float:
        if self.total_trades == 0:
            return 0.0
        return self.winning_trades / self.total_trades

    # =========================================================================
    # Opening
    # =========================================================================

    def position_fraction(self, decision: FusedDecision) -> float:
        """Share of the account to commit: base risk scaled by strength and risk, clamped."""
        cfg = self.config
        raw = cfg.risk_per_trade * decision.strength * (1 - decision.risk_score)
        return min(max(raw, cfg.min_position_fraction), cfg.max_position_fraction)

    async def open_position(
        self,
        decision: FusedDecision,
        entry_price: Decimal | None = None,
    ) -> Position:
        """Open a position for an executable decision.

        The entry price defaults to the provider's latest price, then to the
        decision's price.

        Raises:
            PositionRejectedError: The decision is not executable, no entry
                price is available, or a position/loss limit is reached.
        """
        if not decision.is_executable or decision.direction == Direction.NEUTRAL:
            raise PositionRejectedError(f"Decision {decision.id} for {decision.symbol} is not executable")

        price = await self._entry_price(decision, entry_price)

        async with self._lock:
            if len(self._positions) >= self.config.max_positions:
                raise PositionRejectedError(
                    f"Max open positions reached ({self.config.max_positions})"
                )
            if self._daily_loss_breached():
                raise PositionRejectedError("Daily loss limit reached")

            position = self._build_position(decision, price)
            self._positions[position.id] = position

            position.advance(PositionStatus.MONITORING)
            self.scheduler.schedule(
                position.id,
                self.config.monitor_interval,
                lambda pid=position.id: self._monitor_tick(pid),
            )

        logger.info(
            f"Opened {position.side.value} {position.symbol} qty={position.quantity:.8f} "
            f"@ {position.entry_price} SL={position.stop_loss:.4f} TP={position.take_profit:.4f}"
        )
        return position

    async def _entry_price(self, decision: FusedDecision, entry_price: Decimal | None) -> Decimal:
        price = entry_price
        if price is None and self.provider is not None:
            price = await self.provider.get_latest_price(decision.symbol)
        if price is None and decision.price is not None:
            price = _dec(decision.price)
        if price is None or price <= 0:
            raise PositionRejectedError(f"No valid entry price for {decision.symbol}")
        return Decimal(price)

    def _build_position(self, decision: FusedDecision, price: Decimal) -> Position:
        cfg = self.config
        notional = cfg.account_size * _dec(self.position_fraction(decision))
        quantity = notional / price

        stop_pct = _dec(stop_loss_pct(decision.volatility, cfg.base_stop_pct)) / _HUNDRED
        target_pct = _dec(take_profit_pct(decision.volatility, decision.confidence, cfg.base_stop_pct)) / _HUNDRED
        if decision.direction == Direction.LONG:
            stop_loss = price * (1 - stop_pct)
            take_profit = price * (1 + target_pct)
        else:
            stop_loss = price * (1 + stop_pct)
            take_profit = price * (1 - target_pct)

        return Position(
            symbol=decision.symbol,
            side=decision.direction,
            quantity=quantity,
            entry_price=price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            current_price=price,
            entry_commission=notional * cfg.commission_rate,
            opened_at=self.clock.now(),
            decision_id=decision.id,
        )

    # =========================================================================
    # Monitoring
    # =========================================================================

    async def _monitor_tick(self, position_id: str) -> None:
        position = self._positions.get(position_id)
        if position is None or position.is_closed:
            self.scheduler.cancel(position_id)
            return
        if self.provider is None:
            return

        price = await self.provider.get_latest_price(position.symbol)
        if price is None:
            logger.debug(f"No price for {position.symbol}, skipping tick")
            return
        price = Decimal(price)
        position.mark(price)

        if position.hit_take_profit(price):
            await self.close_position(position_id, price, ExitReason.TAKE_PROFIT)
        elif position.hit_stop_loss(price):
            await self.close_position(position_id, price, ExitReason.STOP_LOSS)
        elif self._daily_loss_breached():
            logger.warning(f"Daily loss limit breached, emergency exit for {position.symbol}")
            await self.close_position(position_id, price, ExitReason.EMERGENCY)

    def _roll_day(self) -> None:
        today = self.clock.now().date()
        if today != self._daily_date:
            self._daily_date = today
            self._daily_pl = _ZERO

    def _daily_loss_breached(self) -> bool:
        """Realized P/L today plus open unrealized P/L below the loss limit."""
        self._roll_day()
        unrealized = sum((p.unrealized_pl for p in self._positions.values()), _ZERO)
        limit = self.config.account_size * _dec(self.config.daily_loss_limit)
        return self._daily_pl + unrealized <= -limit

    # =========================================================================
    # Closing
    # =========================================================================

    async def close_position(
        self,
        position_id: str,
        exit_price: Decimal | None = None,
        reason: ExitReason | str = ExitReason.MANUAL,
    ) -> Position | None:
        """Close a position and settle its P/L.

        Idempotent: an already closed id logs a warning and returns the
        archived position unchanged; an unknown id returns None. The exit
        price defaults to the provider's latest price, fetched before the
        book lock is taken, then to the last marked price.
        """
        reason = reason.value if isinstance(reason, ExitReason) else str(reason)

        if exit_price is None and position_id in self._positions:
            exit_price = await self._exit_price(self._positions[position_id])

        async with self._lock:
            position = self._positions.get(position_id)
            if position is None:
                archived = self._closed.get(position_id)
                if archived is not None:
                    logger.warning(f"Position {position_id} is already closed")
                else:
                    logger.warning(f"Unknown position {position_id}")
                return archived

            self.scheduler.cancel(position_id)

            if exit_price is None:
                exit_price = position.current_price or position.entry_price
            exit_price = Decimal(exit_price)

            if not position.advance(PositionStatus.CLOSED):
                logger.warning(
                    str(InvalidTransitionError(position_id, position.status.value, PositionStatus.CLOSED.value))
                )
                return None

            exit_commission = exit_price * position.quantity * self.config.commission_rate
            position.exit_price = exit_price
            position.exit_reason = reason
            position.exit_commission = exit_commission
            position.current_price = exit_price
            position.unrealized_pl = _ZERO
            position.realized_pl = (
                position.gross_pl_at(exit_price) - position.entry_commission - exit_commission
            )
            position.closed_at = self.clock.now()

            del self._positions[position_id]
            self._closed[position_id] = position

            self._roll_day()
            self._daily_pl += position.realized_pl
            self.total_trades += 1
            if position.realized_pl > 0:
                self.winning_trades += 1
            self.total_pl += position.realized_pl

        logger.info(
            f"Closed {position.symbol} ({reason}) @ {exit_price} P/L={position.realized_pl:.2f}"
        )
        self._publish(position)
        return position

    async def _exit_price(self, position: Position) -> Decimal | None:
        if self.provider is None:
            return None
        price = await self.provider.get_latest_price(position.symbol)
        return None if price is None else Decimal(price)

    async def close_all(self, reason: ExitReason | str = ExitReason.EMERGENCY) -> list[Position]:
        """Close every open position at its latest known price."""
        closed = []
        for position_id in list(self._positions):
            position = await self.close_position(position_id, reason=reason)
            if position is not None:
                closed.append(position)
        if closed:
            logger.warning(f"Closed all {len(closed)} positions ({reason})")
        return closed

    # =========================================================================
    # Notification and reporting
    # =========================================================================

    def _publish(self, position: Position) -> None:
        if self.sink is None:
            return
        task = asyncio.create_task(self._deliver(position))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, position: Position) -> None:
        try:
            await self.sink.publish_position_closed(position)
        except Exception as e:
            logger.warning(f"Failed to publish closed position {position.id}: {e}")

    def get_trading_report(self) -> dict:
        unrealized = sum((p.unrealized_pl for p in self._positions.values()), _ZERO)
        return {
            "open_positions": len(self._positions),
            "closed_positions": len(self._closed),
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.total_trades - self.winning_trades,
            "win_rate": self.win_rate,
            "total_pl": self.total_pl,
            "daily_pl": self.daily_pl,
            "unrealized_pl": unrealized,
            "positions": [
                {
                    "id": p.id,
                    "symbol": p.symbol,
                    "side": p.side.value,
                    "status": p.status.value,
                    "entry_price": p.entry_price,
                    "current_price": p.current_price,
                    "unrealized_pl": p.unrealized_pl,
                }
                for p in self._positions.values()
            ],
        }

    async def stop(self) -> None:
        """Cancel all monitors and wait for pending notifications.

        Open positions stay open; use ``close_all`` to flatten first.
        """
        for position_id in list(self._positions):
            self.scheduler.cancel(position_id)
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        logger.info("Position manager stopped")
