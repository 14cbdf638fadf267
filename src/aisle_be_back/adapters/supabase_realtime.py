"""Supabase realtime transport for table invalidation signals."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from supabase import AsyncClient

from aisle_be_back.services.invalidation import InvalidationHandler, PushTransport

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseRealtimeTransport(PushTransport):
    """Subscribes to ``postgres_changes`` on one channel per table."""

    client: AsyncClient
    schema: str = "public"
    _channels: list[Any] = field(default_factory=list, repr=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, repr=False)

    async def subscribe(self, table: str, handler: InvalidationHandler) -> None:
        """Run ``handler`` on every insert, update or delete in ``table``."""
        loop = asyncio.get_running_loop()

        def on_change(_payload: dict[str, Any]) -> None:
            task = loop.create_task(handler())
            self._tasks.add(task)
            task.add_done_callback(self._finished)

        channel = self.client.channel(f"{table}-changes")
        channel.on_postgres_changes(
            "*", schema=self.schema, table=table, callback=on_change
        )
        await channel.subscribe()
        self._channels.append(channel)

    async def close(self) -> None:
        """Remove every channel and wait for running handlers."""
        for channel in self._channels:
            await self.client.remove_channel(channel)
        self._channels.clear()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _logger.error("Invalidation handler failed", exc_info=task.exception())
