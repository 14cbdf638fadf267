"""Supabase implementations of the remote gateway repositories."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar
from uuid import UUID

from supabase import AsyncClient

from aisle_be_back.adapters.supabase_rows import (
    Row,
    parse_cellar_item,
    parse_consumption_log,
    parse_custom_category,
    parse_custom_sub_category,
    parse_family,
    parse_inventory_item,
    parse_meal_idea,
    parse_product,
    parse_profile,
    parse_shopping_item,
    parse_storage_location,
    parse_store,
    parse_sub_location,
    parse_vehicle,
    price_record_row,
    product_row,
    to_row,
)
from aisle_be_back.domain.catalog import PriceRecord
from aisle_be_back.domain.models import Family, Profile, SyncScope
from aisle_be_back.services.gateway import (
    EntityRepository,
    PriceRecordRepository,
    ProfileRepository,
    RemoteGateway,
)

T = TypeVar("T")


class Ownership(StrEnum):
    """How rows of a table are scoped to a user or household."""

    USER = "user"
    HOUSEHOLD = "household"


@dataclass
class SupabaseTableRepository(EntityRepository[T]):
    """Generic repository over one Supabase table."""

    client: AsyncClient
    table: str
    parse: Callable[[Row], T]
    owner_id: UUID
    ownership: Ownership = Ownership.USER
    encode: Callable[[T], Row] = to_row
    select: str = "*"
    order_by: str | None = None

    async def fetch_all(self, scope: SyncScope) -> list[T]:
        """Return rows owned by the user, or shared with the household."""
        query = self.client.table(self.table).select(self.select)
        if self.ownership is Ownership.HOUSEHOLD and scope.family_id:
            query = query.or_(
                f"user_id.eq.{scope.user_id},family_id.eq.{scope.family_id}"
            )
        else:
            query = query.eq("user_id", str(scope.user_id))
        if self.order_by:
            query = query.order(self.order_by)
        response = await query.execute()
        return [self.parse(row) for row in response.data or []]

    async def upsert(self, record: T) -> T:
        """Insert or update a record and return the stored version."""
        response = await (
            self.client.table(self.table).upsert(self._row(record)).execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to upsert into {self.table}")
        return self.parse(response.data[0])

    async def bulk_upsert(self, records: list[T]) -> None:
        """Insert or update many records in one request."""
        if not records:
            return
        await (
            self.client.table(self.table)
            .upsert([self._row(record) for record in records])
            .execute()
        )

    async def delete(self, record_id: UUID) -> None:
        """Delete a record by id."""
        await self.client.table(self.table).delete().eq("id", str(record_id)).execute()

    def _row(self, record: T) -> Row:
        row = self.encode(record)
        if not row.get("user_id"):
            row["user_id"] = str(self.owner_id)
        return row


@dataclass
class SupabasePriceRecordRepository(PriceRecordRepository):
    """Supabase-backed storage for price history rows."""

    client: AsyncClient

    async def add(self, product_id: UUID, record: PriceRecord, user_id: UUID) -> None:
        """Insert a price record for a product."""
        response = await (
            self.client.table("price_records")
            .insert(price_record_row(product_id, record, user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to add price record")


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase-backed storage for profiles and families."""

    client: AsyncClient

    async def fetch_profile(self, user_id: UUID) -> Profile | None:
        """Return the user's profile, if one exists."""
        response = await (
            self.client.table("profiles")
            .select("*")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_profile(response.data[0])

    async def upsert_profile(self, profile: Profile) -> Profile:
        """Insert or update a profile."""
        response = await self.client.table("profiles").upsert(to_row(profile)).execute()
        if not response.data:
            raise RuntimeError("Failed to save profile")
        return parse_profile(response.data[0])

    async def fetch_family(self, family_id: UUID) -> Family | None:
        """Return a family by id."""
        response = await (
            self.client.table("families")
            .select("*")
            .eq("id", str(family_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_family(response.data[0])

    async def create_family(self, family: Family) -> Family:
        """Create a family and return it."""
        response = await self.client.table("families").insert(to_row(family)).execute()
        if not response.data:
            raise RuntimeError("Failed to create family")
        return parse_family(response.data[0])

    async def find_family_by_invite_code(self, invite_code: str) -> Family | None:
        """Return the family with ``invite_code``, if any."""
        response = await (
            self.client.table("families")
            .select("*")
            .eq("invite_code", invite_code)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_family(response.data[0])


def build_supabase_gateway(client: AsyncClient, owner_id: UUID) -> RemoteGateway:
    """Wire one Supabase repository per entity type."""

    def table(
        name: str,
        parse: Callable[[Row], T],
        ownership: Ownership = Ownership.USER,
        **options: object,
    ) -> SupabaseTableRepository[T]:
        return SupabaseTableRepository(
            client=client,
            table=name,
            parse=parse,
            owner_id=owner_id,
            ownership=ownership,
            **options,
        )

    return RemoteGateway(
        profiles=SupabaseProfileRepository(client=client),
        products=table(
            "products",
            parse_product,
            encode=product_row,
            select="*, price_records(*)",
        ),
        price_records=SupabasePriceRecordRepository(client=client),
        inventory=table("inventory", parse_inventory_item),
        shopping_list=table("shopping_list", parse_shopping_item),
        storage_locations=table(
            "storage_locations", parse_storage_location, order_by="sort_order"
        ),
        sub_locations=table("sub_locations", parse_sub_location),
        stores=table("stores", parse_store),
        vehicles=table("vehicles", parse_vehicle),
        custom_categories=table(
            "custom_categories", parse_custom_category, Ownership.HOUSEHOLD
        ),
        custom_sub_categories=table(
            "custom_sub_categories", parse_custom_sub_category, Ownership.HOUSEHOLD
        ),
        meal_ideas=table("meal_ideas", parse_meal_idea),
        cellar_items=table("cellar_items", parse_cellar_item, Ownership.HOUSEHOLD),
        consumption_logs=table(
            "consumption_logs", parse_consumption_log, order_by="consumed_at"
        ),
    )
