"""
Row-change subscriptions with reconnection.

A ChangeSource delivers row-change events for one table until its connection
ends. RealtimeSubscription keeps a source listening, waiting between attempts
according to a ReconnectPolicy. SupabaseChangeSource is the production source,
built on Supabase Realtime postgres_changes channels.
"""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from app.config import settings
from app.database.supabase_client import create_realtime_client

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]

CLOSED_STATES = ("CLOSED", "CHANNEL_ERROR", "TIMED_OUT")


class ChangeSource(Protocol):
    async def listen(
        self,
        table: str,
        callback: ChangeCallback,
        filter: Optional[str] = None,
        on_subscribed: Optional[Callable[[], None]] = None,
    ) -> None:
        """Deliver events to callback; return or raise once the connection ends."""
        ...

    async def close(self) -> None:
        ...


@dataclass
class ReconnectPolicy:
    initial_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: float = 0.0

    @classmethod
    def from_settings(cls) -> "ReconnectPolicy":
        return cls(
            initial_delay=settings.realtime_initial_delay,
            max_delay=settings.realtime_max_delay,
            multiplier=settings.realtime_backoff_multiplier,
            jitter=settings.realtime_jitter,
        )

    def delay(self, attempt: int) -> float:
        """Seconds to wait before reconnect attempt number `attempt` (0-based)."""
        delay = min(self.initial_delay * (self.multiplier ** attempt), self.max_delay)
        if self.jitter:
            delay += delay * self.jitter * random.uniform(-1.0, 1.0)
        return max(0.0, min(delay, self.max_delay))


class RealtimeSubscription:
    """Keeps `source` listening on `table` until stop() is called."""

    def __init__(
        self,
        source: ChangeSource,
        table: str,
        callback: ChangeCallback,
        filter: Optional[str] = None,
        policy: Optional[ReconnectPolicy] = None,
    ):
        self.source = source
        self.table = table
        self.callback = callback
        self.filter = filter
        self.policy = policy or ReconnectPolicy.from_settings()
        self.attempt = 0
        self.connections = 0
        self._stop = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _on_subscribed(self):
        self.connections += 1
        self.attempt = 0
        logger.info(f"Subscribed to {self.table} changes (filter={self.filter})")

    async def run(self):
        while not self._stop.is_set():
            try:
                await self.source.listen(
                    self.table, self.callback, self.filter, on_subscribed=self._on_subscribed
                )
                logger.info(f"Subscription to {self.table} closed")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Subscription to {self.table} failed: {str(e)}")

            if self._stop.is_set():
                break

            delay = self.policy.delay(self.attempt)
            self.attempt += 1
            logger.info(f"Reconnecting to {self.table} in {delay:.2f}s (attempt {self.attempt})")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def stop(self):
        self._stop.set()
        await self.source.close()


class SupabaseChangeSource:
    """postgres_changes on the public schema through the async Supabase client."""

    def __init__(
        self,
        event: str = "*",
        schema: str = "public",
        client_factory: Callable[[], Awaitable[Any]] = create_realtime_client,
    ):
        self.event = event
        self.schema = schema
        self.client_factory = client_factory
        self._closed: Optional[asyncio.Event] = None

    async def listen(
        self,
        table: str,
        callback: ChangeCallback,
        filter: Optional[str] = None,
        on_subscribed: Optional[Callable[[], None]] = None,
    ) -> None:
        closed = asyncio.Event()
        self._closed = closed
        failure: Dict[str, Any] = {}

        def handle_status(status, err=None):
            state = getattr(status, "value", status)
            if state == "SUBSCRIBED":
                if on_subscribed:
                    on_subscribed()
            elif state in CLOSED_STATES:
                if state != "CLOSED":
                    failure["state"] = state
                    failure["error"] = err
                closed.set()

        client = await self.client_factory()
        channel = client.channel(f"{table}-{uuid.uuid4().hex[:8]}")
        options = {"schema": self.schema, "table": table, "callback": callback}
        if filter:
            options["filter"] = filter
        channel.on_postgres_changes(self.event, **options)
        try:
            await channel.subscribe(handle_status)
            await closed.wait()
        finally:
            try:
                await client.remove_channel(channel)
            except Exception as e:
                logger.warning(f"Failed to remove realtime channel for {table}: {str(e)}")
            # Each attempt opens its own client and socket
            try:
                await client.realtime.close()
            except Exception as e:
                logger.warning(f"Failed to close realtime client for {table}: {str(e)}")

        if failure:
            raise ConnectionError(f"Realtime channel {failure['state']}: {failure.get('error')}")

    async def close(self) -> None:
        if self._closed is not None:
            self._closed.set()


def extract_record(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """The new row of a postgres_changes payload"""
    data = payload.get("data", payload)
    return data.get("record") or data.get("new")
