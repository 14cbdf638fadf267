"""In-memory fakes shared by the test suite."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID, uuid4

from aisle_be_back.domain.assistant import GroundedAnswer
from aisle_be_back.domain.catalog import PriceRecord, Product
from aisle_be_back.domain.inventory import InventoryItem
from aisle_be_back.domain.models import Family, Profile, SyncScope
from aisle_be_back.domain.shopping import Coordinates
from aisle_be_back.services.gateway import (
    EntityRepository,
    PriceRecordRepository,
    ProfileRepository,
    RemoteGateway,
)
from aisle_be_back.services.invalidation import InvalidationHandler, PushTransport

T = TypeVar("T")


@dataclass
class InMemoryRepository(EntityRepository[T]):
    """Records every call; flip ``fail`` to make writes raise."""

    rows: dict[UUID, T] = field(default_factory=dict)
    fail: bool = False
    fail_fetch: bool = False
    upserts: list[T] = field(default_factory=list)
    bulk_upserts: list[list[T]] = field(default_factory=list)
    deletes: list[UUID] = field(default_factory=list)
    fetches: int = 0
    delay: float = 0.0

    async def fetch_all(self, scope: SyncScope) -> list[T]:
        self.fetches += 1
        if self.fail_fetch:
            raise RuntimeError("fetch failed")
        return list(self.rows.values())

    async def upsert(self, record: T) -> T:
        await self._pause()
        self.upserts.append(record)
        if self.fail:
            raise RuntimeError("upsert failed")
        self.rows[record.id] = record
        return record

    async def bulk_upsert(self, records: list[T]) -> None:
        await self._pause()
        self.bulk_upserts.append(list(records))
        if self.fail:
            raise RuntimeError("bulk upsert failed")
        for record in records:
            self.rows[record.id] = record

    async def delete(self, record_id: UUID) -> None:
        await self._pause()
        self.deletes.append(record_id)
        if self.fail:
            raise RuntimeError("delete failed")
        self.rows.pop(record_id, None)

    async def _pause(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)


@dataclass
class InMemoryPriceRecords(PriceRecordRepository):
    added: list[tuple[UUID, PriceRecord, UUID]] = field(default_factory=list)
    fail: bool = False

    async def add(self, product_id: UUID, record: PriceRecord, user_id: UUID) -> None:
        if self.fail:
            raise RuntimeError("price insert failed")
        self.added.append((product_id, record, user_id))


@dataclass
class InMemoryProfiles(ProfileRepository):
    profiles: dict[UUID, Profile] = field(default_factory=dict)
    families: dict[UUID, Family] = field(default_factory=dict)
    fail: bool = False

    async def fetch_profile(self, user_id: UUID) -> Profile | None:
        if self.fail:
            raise RuntimeError("profile fetch failed")
        return self.profiles.get(user_id)

    async def upsert_profile(self, profile: Profile) -> Profile:
        self.profiles[profile.id] = profile
        return profile

    async def fetch_family(self, family_id: UUID) -> Family | None:
        return self.families.get(family_id)

    async def create_family(self, family: Family) -> Family:
        self.families[family.id] = family
        return family

    async def find_family_by_invite_code(self, invite_code: str) -> Family | None:
        return next(
            (f for f in self.families.values() if f.invite_code == invite_code), None
        )


def build_fake_gateway() -> RemoteGateway:
    return RemoteGateway(
        profiles=InMemoryProfiles(),
        products=InMemoryRepository(),
        price_records=InMemoryPriceRecords(),
        inventory=InMemoryRepository(),
        shopping_list=InMemoryRepository(),
        storage_locations=InMemoryRepository(),
        sub_locations=InMemoryRepository(),
        stores=InMemoryRepository(),
        vehicles=InMemoryRepository(),
        custom_categories=InMemoryRepository(),
        custom_sub_categories=InMemoryRepository(),
        meal_ideas=InMemoryRepository(),
        cellar_items=InMemoryRepository(),
        consumption_logs=InMemoryRepository(),
    )


@dataclass
class FakeTransport(PushTransport):
    """Push transport whose signals are fired by the test."""

    handlers: dict[str, InvalidationHandler] = field(default_factory=dict)
    closed: bool = False

    async def subscribe(self, table: str, handler: InvalidationHandler) -> None:
        self.handlers[table] = handler

    async def close(self) -> None:
        self.closed = True

    async def fire(self, table: str) -> None:
        await self.handlers[table]()


@dataclass
class FakeAssistantClient:
    """Assistant client returning canned replies."""

    structured_reply: dict[str, object] | None = None
    grounded_reply: GroundedAnswer | None = None
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def structured(self, **kwargs: object) -> dict[str, object]:
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.structured_reply or {}

    async def grounded(self, **kwargs: object) -> GroundedAnswer:
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        assert self.grounded_reply is not None
        return self.grounded_reply


@dataclass
class FakeLocationProvider:
    position: Coordinates | None = None

    async def current_position(self) -> Coordinates | None:
        return self.position


def make_record(
    store: str,
    price: float,
    quantity: float = 1.0,
    unit: str = "lb",
    captured_at: datetime | None = None,
) -> PriceRecord:
    return PriceRecord(
        id=uuid4(),
        store=store,
        price=price,
        quantity=quantity,
        unit=unit,
        captured_at=captured_at or datetime.now(tz=UTC),
    )


def make_product(
    item_name: str,
    *records: PriceRecord,
    category: str = "Produce",
    variety: str | None = None,
    brand: str | None = None,
    barcode: str | None = None,
) -> Product:
    return Product(
        id=uuid4(),
        category=category,
        item_name=item_name,
        variety=variety,
        brand=brand,
        barcode=barcode,
        history=tuple(records),
    )


def make_inventory_item(
    item_name: str,
    quantity: float,
    location_id: UUID | None = None,
    category: str = "Pantry",
    sub_category: str | None = None,
) -> InventoryItem:
    return InventoryItem(
        id=uuid4(),
        product_id="manual",
        item_name=item_name,
        category=category,
        sub_category=sub_category,
        quantity=quantity,
        unit="pc",
        location_id=location_id,
        updated_at=datetime.now(tz=UTC),
    )


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "upsert": [], "delete": []}
    )
    last_payload: object | None = None
    last_select: str | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_order: str | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, columns: str = "*") -> "FakeTable":
        self._action = "select"
        self.last_select = columns
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def or_(self, filters: str) -> "FakeTable":
        self.last_filters.append(("or", filters))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = column
        return self

    async def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeChannel:
    name: str
    callbacks: list[object] = field(default_factory=list)
    filters: list[dict[str, object]] = field(default_factory=list)
    subscribed: bool = False

    def on_postgres_changes(self, event: str, **kwargs) -> "FakeChannel":  # type: ignore[no-untyped-def]
        self.callbacks.append(kwargs.pop("callback"))
        self.filters.append({"event": event, **kwargs})
        return self

    async def subscribe(self) -> "FakeChannel":
        self.subscribed = True
        return self


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    channels: list[FakeChannel] = field(default_factory=list)
    removed: list[FakeChannel] = field(default_factory=list)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]

    def channel(self, name: str) -> FakeChannel:
        channel = FakeChannel(name=name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: FakeChannel) -> None:
        self.removed.append(channel)
