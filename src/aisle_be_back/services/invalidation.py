"""Push invalidation: table change signals trigger a full reconciliation."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)

WATCHED_TABLES = (
    "inventory",
    "shopping_list",
    "custom_categories",
    "custom_sub_categories",
    "meal_ideas",
    "storage_locations",
    "cellar_items",
    "consumption_logs",
)

InvalidationHandler = Callable[[], Awaitable[None]]


class PushTransport(Protocol):
    """Delivers "something changed in this table" signals."""

    async def subscribe(self, table: str, handler: InvalidationHandler) -> None:
        """Call ``handler`` for every change on ``table``."""

    async def close(self) -> None:
        """Stop delivering signals."""


class InvalidationTarget(Protocol):
    async def handle_invalidation(self, table: str) -> bool: ...


@dataclass
class InvalidationListener:
    """Routes change signals for the watched tables to the coordinator.

    Signal payloads are ignored: any change means "reload everything".
    """

    transport: PushTransport
    target: InvalidationTarget
    tables: tuple[str, ...] = WATCHED_TABLES
    received: dict[str, int] = field(default_factory=dict)

    async def start(self) -> None:
        for table in self.tables:
            await self.transport.subscribe(table, self._handler_for(table))
        _logger.info("Listening for changes on %s table(s)", len(self.tables))

    async def stop(self) -> None:
        await self.transport.close()

    def _handler_for(self, table: str) -> InvalidationHandler:
        async def handle() -> None:
            self.received[table] = self.received.get(table, 0) + 1
            await self.target.handle_invalidation(table)

        return handle
