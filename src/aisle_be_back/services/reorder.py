"""Debounced commit of storage-location order.

States and transitions::

    IDLE / PENDING_COMMIT --reorder--> PENDING_COMMIT (timer reset)
    PENDING_COMMIT --timer-fire--> COMMITTING (bulk write issued)
    COMMITTING --remote-ack--> COMMITTING_SETTLING (until settle window ends)
    COMMITTING_SETTLING --window ends--> IDLE, or PENDING_COMMIT if reordered

Inbound invalidations are dropped while COMMITTING or COMMITTING_SETTLING.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID

from aisle_be_back.domain.inventory import StorageLocation

_logger = logging.getLogger(__name__)

CommitFn = Callable[[list[StorageLocation]], Awaitable[None]]


class ReorderState(StrEnum):
    """Phases of a debounced reorder commit."""

    IDLE = "IDLE"
    PENDING_COMMIT = "PENDING_COMMIT"
    COMMITTING = "COMMITTING"
    COMMITTING_SETTLING = "COMMITTING_SETTLING"


_GUARDED_STATES = {ReorderState.COMMITTING, ReorderState.COMMITTING_SETTLING}


@dataclass
class ReorderDebouncer:
    """Collapses bursts of reorders into one bulk write."""

    commit: CommitFn
    debounce_seconds: float = 0.8
    settle_seconds: float = 1.5
    state: ReorderState = ReorderState.IDLE
    _pending: list[StorageLocation] | None = field(default=None, repr=False)
    _timer: asyncio.Task[None] | None = field(default=None, repr=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, repr=False)
    _in_flight: int = field(default=0, repr=False)
    _settle_until: float = field(default=0.0, repr=False)

    @property
    def guard_active(self) -> bool:
        """True while a commit is in flight or settling."""
        return self.state in _GUARDED_STATES

    @property
    def pending_ids(self) -> list[UUID] | None:
        """Ids of an order set locally but not yet sent, in that order."""
        if self._pending is None:
            return None
        return [location.id for location in self._pending]

    def accepts_invalidation(self) -> bool:
        """Return whether an inbound invalidation may trigger a reload."""
        return not self.guard_active

    def on_reorder(self, locations: list[StorageLocation]) -> None:
        """Record the latest order and restart the quiet-period timer."""
        self._pending = list(locations)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_fire())
        self._tasks.add(self._timer)
        self._timer.add_done_callback(self._tasks.discard)
        if not self.guard_active:
            self.state = ReorderState.PENDING_COMMIT

    async def flush(self) -> None:
        """Commit a pending order immediately instead of waiting."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None:
            await self._fire()

    async def drain(self) -> None:
        """Wait until every scheduled commit and settle window has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._timer = None
        await self._fire()

    async def _fire(self) -> None:
        locations = self._pending
        self._pending = None
        if locations is None:
            return
        loop = asyncio.get_running_loop()
        self._in_flight += 1
        self._settle_until = max(self._settle_until, loop.time() + self.settle_seconds)
        self.state = ReorderState.COMMITTING
        _logger.info("Committing storage order for %s location(s)", len(locations))
        try:
            await self.commit(locations)
        except Exception:
            _logger.exception("Storage order commit raised")
        finally:
            self._in_flight -= 1
        await self._settle()

    async def _settle(self) -> None:
        loop = asyncio.get_running_loop()
        if self._in_flight:
            return
        while (remaining := self._settle_until - loop.time()) > 0:
            self.state = ReorderState.COMMITTING_SETTLING
            await asyncio.sleep(remaining)
            if self._in_flight:
                return
        self.state = (
            ReorderState.PENDING_COMMIT
            if self._timer is not None
            else ReorderState.IDLE
        )
