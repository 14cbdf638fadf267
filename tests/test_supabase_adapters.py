"""Tests for Supabase adapter implementations."""

import asyncio
from datetime import UTC, datetime
from uuid import UUID, uuid4

from aisle_be_back.adapters.supabase_entity_repository import (
    Ownership,
    SupabasePriceRecordRepository,
    SupabaseProfileRepository,
    SupabaseTableRepository,
    build_supabase_gateway,
)
from aisle_be_back.adapters.supabase_realtime import SupabaseRealtimeTransport
from aisle_be_back.adapters.supabase_rows import (
    parse_custom_category,
    parse_inventory_item,
    parse_product,
    parse_profile,
    price_record_row,
    product_row,
)
from aisle_be_back.domain.inventory import InventoryItem
from aisle_be_back.domain.models import Profile, SyncScope
from aisle_be_back.domain.taxonomy import DEFAULT_CATEGORIES
from tests.fakes import FakeSupabaseClient, make_product, make_record


def _inventory_row(item_id: UUID) -> dict[str, object]:
    return {
        "id": str(item_id),
        "product_id": None,
        "item_name": "Rice",
        "category": "Pantry",
        "quantity": 2,
        "unit": "lb",
        "location_id": None,
        "updated_at": "2026-01-05T10:00:00",
    }


def test_user_table_fetch_filters_by_user() -> None:
    client = FakeSupabaseClient()
    item_id = uuid4()
    user_id = uuid4()
    client.table("inventory").queue("select", [_inventory_row(item_id)])
    repo = SupabaseTableRepository(
        client=client, table="inventory", parse=parse_inventory_item, owner_id=user_id
    )

    [item] = asyncio.run(repo.fetch_all(SyncScope(user_id=user_id, family_id=uuid4())))

    assert item.id == item_id
    assert item.product_id == "manual"
    assert item.updated_at.tzinfo is UTC
    assert client.tables["inventory"].last_filters == [("user_id", str(user_id))]


def test_household_table_fetch_includes_family_rows() -> None:
    client = FakeSupabaseClient()
    user_id, family_id = uuid4(), uuid4()
    repo = SupabaseTableRepository(
        client=client,
        table="custom_categories",
        parse=parse_custom_category,
        owner_id=user_id,
        ownership=Ownership.HOUSEHOLD,
    )

    asyncio.run(repo.fetch_all(SyncScope(user_id=user_id, family_id=family_id)))

    assert client.tables["custom_categories"].last_filters == [
        ("or", f"user_id.eq.{user_id},family_id.eq.{family_id}")
    ]


def test_upsert_stamps_owner_and_serializes() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    item = InventoryItem(
        id=uuid4(),
        product_id="manual",
        item_name="Rice",
        category="Pantry",
        quantity=2,
        unit="lb",
        location_id=uuid4(),
        updated_at=datetime(2026, 1, 5, tzinfo=UTC),
    )
    table = client.table("inventory")
    table.queue("upsert", [_inventory_row(item.id)])
    repo = SupabaseTableRepository(
        client=client, table="inventory", parse=parse_inventory_item, owner_id=user_id
    )

    stored = asyncio.run(repo.upsert(item))

    assert stored.id == item.id
    payload = table.last_payload
    assert payload["user_id"] == str(user_id)
    assert payload["location_id"] == str(item.location_id)
    assert payload["updated_at"] == "2026-01-05T00:00:00+00:00"


def test_bulk_upsert_and_delete() -> None:
    client = FakeSupabaseClient()
    gateway = build_supabase_gateway(client, uuid4())
    locations_repo = gateway.storage_locations
    location_id = uuid4()

    asyncio.run(locations_repo.bulk_upsert([]))
    assert "storage_locations" not in client.tables

    asyncio.run(locations_repo.delete(location_id))
    assert client.tables["storage_locations"].last_filters == [("id", str(location_id))]


def test_products_embed_price_history_newest_first() -> None:
    older, newer = uuid4(), uuid4()
    product = parse_product(
        {
            "id": str(uuid4()),
            "category": "Produce",
            "item_name": "Apples",
            "price_records": [
                {"id": str(older), "store": "Aldi", "price": 2, "quantity": 1,
                 "unit": "lb", "date": "2026-01-01T00:00:00+00:00"},
                {"id": str(newer), "store": "Kroger", "price": 3, "quantity": 2,
                 "unit": "lb", "date": "2026-02-01T00:00:00+00:00"},
            ],
        }
    )

    assert [record.id for record in product.history] == [newer, older]
    assert product.history[0].unit_price == 1.5
    assert "history" not in product_row(product)


def test_gateway_products_select_price_records() -> None:
    client = FakeSupabaseClient()
    gateway = build_supabase_gateway(client, uuid4())

    asyncio.run(gateway.products.fetch_all(SyncScope(user_id=uuid4())))
    asyncio.run(gateway.storage_locations.fetch_all(SyncScope(user_id=uuid4())))

    assert client.tables["products"].last_select == "*, price_records(*)"
    assert client.tables["storage_locations"].last_order == "sort_order"


def test_price_record_insert_uses_date_column() -> None:
    client = FakeSupabaseClient()
    product = make_product("Apples")
    record = make_record("Aldi", 2.0, captured_at=datetime(2026, 3, 1, tzinfo=UTC))
    user_id = uuid4()
    client.table("price_records").queue("insert", [{"id": str(record.id)}])

    asyncio.run(SupabasePriceRecordRepository(client=client).add(product.id, record, user_id))

    payload = client.tables["price_records"].last_payload
    assert payload == price_record_row(product.id, record, user_id)
    assert payload["date"] == "2026-03-01T00:00:00+00:00"
    assert "captured_at" not in payload


def test_profile_repository_round_trip() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    repo = SupabaseProfileRepository(client=client)

    assert asyncio.run(repo.fetch_profile(user_id)) is None

    client.table("profiles").queue("upsert", [{"id": str(user_id), "gas_price": 4.1}])
    saved = asyncio.run(repo.upsert_profile(Profile(id=user_id, gas_price=4.1)))

    assert saved.gas_price == 4.1
    assert saved.category_order == DEFAULT_CATEGORIES
    assert parse_profile({"id": str(user_id), "category_order": ["Dairy"]}).category_order == (
        "Dairy",
    )


def test_family_lookup_by_invite_code() -> None:
    client = FakeSupabaseClient()
    family_id, creator = uuid4(), uuid4()
    client.table("families").queue(
        "select",
        [{"id": str(family_id), "name": "Home", "invite_code": "ABC123",
          "created_by": str(creator)}],
    )
    repo = SupabaseProfileRepository(client=client)

    family = asyncio.run(repo.find_family_by_invite_code("ABC123"))

    assert family is not None
    assert family.id == family_id
    assert client.tables["families"].last_filters == [("invite_code", "ABC123")]


def test_realtime_transport_runs_handler_per_change() -> None:
    client = FakeSupabaseClient()
    transport = SupabaseRealtimeTransport(client=client)
    calls: list[str] = []

    async def handler() -> None:
        calls.append("reload")

    async def run() -> None:
        await transport.subscribe("inventory", handler)
        [channel] = client.channels
        assert channel.name == "inventory-changes"
        assert channel.subscribed is True
        assert channel.filters == [{"event": "*", "schema": "public", "table": "inventory"}]
        channel.callbacks[0]({"eventType": "UPDATE"})
        channel.callbacks[0]({"eventType": "DELETE"})
        await transport.close()

    asyncio.run(run())

    assert calls == ["reload", "reload"]
    assert len(client.removed) == 1
