"""
Polling subscription engine.

Emulates push-style block and transaction notifications by polling the
chain height on a fixed period.

Subscription state machine:
    IDLE -> POLLING -> IDLE       (tick finished)
                    -> CANCELLED  (unsubscribed)

Policy: skip-ahead. Each tick emits only the latest observed height;
heights skipped between two ticks are not backfilled.
"""

import asyncio
import inspect
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from vigie.application.subscriptions.scheduler import (
    AsyncioScheduler,
    ScheduledTask,
    Scheduler,
)
from vigie.config.settings import PollingConfig
from vigie.domain.exceptions import DecodeError, RPCError, TransportError
from vigie.infrastructure.chain import ChainClient
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji

EventCallback = Callable[[Any], Any]


class SubscriptionKind(str, Enum):
    """What a subscription emits."""

    BLOCKS = "blocks"
    TXS = "txs"


class SubscriptionState(str, Enum):
    """Lifecycle state of a subscription."""

    IDLE = "idle"
    POLLING = "polling"
    CANCELLED = "cancelled"


@dataclass
class PollCursor:
    """Last emitted height of one subscription. Only moves forward."""

    height: int = 0

    def should_emit(self, height: int) -> bool:
        return height > self.height

    def advance(self, height: int) -> None:
        if height <= self.height:
            raise ValueError(f"Cursor cannot move from {self.height} to {height}")
        self.height = height


class Subscription:
    """Handle returned by subscribe_blocks / subscribe_txs."""

    _ids = itertools.count(1)

    def __init__(self, kind: SubscriptionKind, callback: EventCallback):
        self.id = next(self._ids)
        self.kind = kind
        self.callback = callback
        self.cursor = PollCursor()
        self.state = SubscriptionState.IDLE
        self.task: Optional[ScheduledTask] = None
        self.ticks = 0
        self.emitted = 0
        self.busy = False

    @property
    def cancelled(self) -> bool:
        return self.state == SubscriptionState.CANCELLED

    def __repr__(self) -> str:
        return (
            f"Subscription(id={self.id}, kind={self.kind.value}, "
            f"state={self.state.value}, cursor={self.cursor.height})"
        )


class PollingEngine:
    """
    Polling-based block and transaction subscriptions.

    At most one subscription per kind is active; subscribing again
    replaces the previous one.

    Example:
        engine = PollingEngine(chain_client, settings.polling)
        handle = engine.subscribe_blocks(on_block)
        ...
        engine.unsubscribe(handle)
    """

    def __init__(
        self,
        client: ChainClient,
        config: Optional[PollingConfig] = None,
        scheduler: Optional[Scheduler] = None,
        reporter: Optional[SystemReporter] = None,
    ):
        """
        Initialize polling engine.

        Args:
            client: ChainClient used for height, block and tx queries
            config: Poll interval and per-block tx cap
            scheduler: Source of repeating tasks (asyncio by default)
            reporter: SystemReporter for logging
        """
        self.client = client
        self.config = config or PollingConfig()
        self.scheduler = scheduler or AsyncioScheduler()
        self.reporter = reporter or client.reporter
        self._subscriptions: Dict[SubscriptionKind, Subscription] = {}

    @property
    def subscriptions(self) -> List[Subscription]:
        """Currently active subscriptions."""
        return list(self._subscriptions.values())

    # ============================================================
    # Subscription lifecycle
    # ============================================================

    def subscribe_blocks(self, callback: EventCallback) -> Subscription:
        """
        Emit a BlockEvent for each newly observed height.

        Args:
            callback: Called with BlockEvent (sync or async)

        Returns:
            Subscription handle
        """
        return self._subscribe(SubscriptionKind.BLOCKS, callback)

    def subscribe_txs(self, callback: EventCallback) -> Subscription:
        """
        Emit a TxEvent for each transaction of each newly observed height.

        Args:
            callback: Called with TxEvent (sync or async)

        Returns:
            Subscription handle
        """
        return self._subscribe(SubscriptionKind.TXS, callback)

    def _subscribe(self, kind: SubscriptionKind, callback: EventCallback) -> Subscription:
        previous = self._subscriptions.get(kind)
        if previous is not None:
            self.unsubscribe(previous)

        subscription = Subscription(kind, callback)
        subscription.task = self.scheduler.schedule_repeating(
            self.config.interval, lambda: self.tick(subscription)
        )
        self._subscriptions[kind] = subscription

        self.reporter.info(
            f"{Emoji.NETWORK.SUBSCRIPTION} Subscribed to {kind.value} "
            f"(interval: {self.config.interval}s)",
            context="Polling",
            verbose_level=2,
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Stop a subscription. Safe to call more than once.

        Returns:
            True if the subscription was active
        """
        if subscription.cancelled:
            return False

        subscription.state = SubscriptionState.CANCELLED
        if subscription.task is not None:
            subscription.task.cancel()
            subscription.task = None

        if self._subscriptions.get(subscription.kind) is subscription:
            del self._subscriptions[subscription.kind]

        self.reporter.info(
            f"{Emoji.NETWORK.UNSUBSCRIBE} Unsubscribed from "
            f"{subscription.kind.value} (cursor: {subscription.cursor.height})",
            context="Polling",
            verbose_level=2,
        )
        return True

    def stop(self) -> None:
        """Cancel every active subscription."""
        for subscription in self.subscriptions:
            self.unsubscribe(subscription)

    # ============================================================
    # Ticks
    # ============================================================

    async def tick(self, subscription: Subscription) -> int:
        """
        Run one poll cycle for a subscription.

        A tick that finds the previous one still running is skipped.
        Fetch failures are logged and leave the cursor unchanged.

        Returns:
            Number of events delivered
        """
        if subscription.cancelled:
            return 0

        if subscription.busy:
            self.reporter.debug(
                f"{Emoji.STATE.SKIP} {subscription.kind.value} tick skipped "
                f"(previous tick still running)",
                context="Polling",
            )
            return 0

        subscription.busy = True
        subscription.state = SubscriptionState.POLLING
        subscription.ticks += 1

        try:
            if subscription.kind == SubscriptionKind.BLOCKS:
                delivered = await self._tick_blocks(subscription)
            else:
                delivered = await self._tick_txs(subscription)
        except (TransportError, DecodeError) as e:
            self.reporter.warning(
                f"{Emoji.ERROR.RETRY} {subscription.kind.value} poll failed, "
                f"retrying next tick: {e.message}",
                context="Polling",
            )
            delivered = 0
        except Exception as e:
            self.reporter.error(
                f"{Emoji.ERROR.ERROR} {subscription.kind.value} tick error: {e}",
                context="Polling",
            )
            delivered = 0
        finally:
            subscription.busy = False
            if subscription.state == SubscriptionState.POLLING:
                subscription.state = SubscriptionState.IDLE

        subscription.emitted += delivered
        return delivered

    async def _tick_blocks(self, subscription: Subscription) -> int:
        height = await self.client.latest_height()
        if not subscription.cursor.should_emit(height):
            return 0

        block = await self.client.block(height)
        delivered = await self._deliver(subscription, block)
        subscription.cursor.advance(height)

        self.reporter.debug(
            f"{Emoji.CHAIN.BLOCK} Block {height} ({block.tx_count} txs)",
            context="Polling",
        )
        return delivered

    async def _tick_txs(self, subscription: Subscription) -> int:
        height = await self.client.latest_height()
        if not subscription.cursor.should_emit(height):
            return 0

        block = await self.client.block(height)
        raw_txs = block.txs[: self.config.max_txs_per_block]

        results = await asyncio.gather(
            *(
                self.client.tx(raw_tx, height=height, index=index)
                for index, raw_tx in enumerate(raw_txs)
            ),
            return_exceptions=True,
        )

        delivered = 0
        for index, result in enumerate(results):
            if isinstance(result, (RPCError, DecodeError)):
                self.reporter.debug(
                    f"{Emoji.ERROR.NOT_FOUND} tx {index} at {height}: {result.message}",
                    context="Polling",
                )
                continue
            if isinstance(result, TransportError):
                self.reporter.warning(
                    f"{Emoji.ERROR.ERROR} tx {index} at {height}: {result.message}",
                    context="Polling",
                )
                continue
            if isinstance(result, Exception):
                self.reporter.error(
                    f"{Emoji.ERROR.ERROR} tx {index} at {height}: {result}",
                    context="Polling",
                )
                continue
            if isinstance(result, BaseException):
                raise result

            delivered += await self._deliver(subscription, result)

        subscription.cursor.advance(height)

        if len(block.txs) > len(raw_txs):
            self.reporter.info(
                f"{Emoji.CHAIN.TX} Block {height}: processed {len(raw_txs)} "
                f"of {len(block.txs)} txs",
                context="Polling",
                verbose_level=2,
            )
        return delivered

    async def _deliver(self, subscription: Subscription, event: Any) -> int:
        """Invoke the callback unless the subscription was cancelled."""
        if subscription.cancelled:
            return 0

        try:
            outcome = subscription.callback(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self.reporter.error(
                f"{Emoji.ERROR.ERROR} {subscription.kind.value} callback failed: {e}",
                context="Polling",
            )
        return 1
