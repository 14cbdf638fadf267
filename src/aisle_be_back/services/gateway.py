"""Remote persistence interfaces used by the sync coordinator."""

from dataclasses import dataclass
from typing import Protocol, TypeVar
from uuid import UUID

from aisle_be_back.domain.catalog import PriceRecord, Product
from aisle_be_back.domain.inventory import (
    CellarItem,
    ConsumptionLog,
    InventoryItem,
    StorageLocation,
    SubLocation,
)
from aisle_be_back.domain.meals import MealIdea
from aisle_be_back.domain.models import (
    CustomCategory,
    CustomSubCategory,
    Family,
    Profile,
    SyncScope,
)
from aisle_be_back.domain.shopping import ShoppingItem, StoreLocation, Vehicle
from aisle_be_back.services.cache import collection_name

T = TypeVar("T")


class EntityRepository(Protocol[T]):
    """Per-table remote operations; every failure is raised, never returned."""

    async def fetch_all(self, scope: SyncScope) -> list[T]:
        """Return every record visible in ``scope``."""

    async def upsert(self, record: T) -> T:
        """Insert or update a record and return the stored version."""

    async def bulk_upsert(self, records: list[T]) -> None:
        """Insert or update many records in one call."""

    async def delete(self, record_id: UUID) -> None:
        """Delete a record by id."""


class PriceRecordRepository(Protocol):
    """Remote storage for price history rows."""

    async def add(self, product_id: UUID, record: PriceRecord, user_id: UUID) -> None:
        """Persist a new price record for a product."""


class ProfileRepository(Protocol):
    """Remote storage for profiles and families."""

    async def fetch_profile(self, user_id: UUID) -> Profile | None:
        """Return the user's profile, if one exists."""

    async def upsert_profile(self, profile: Profile) -> Profile:
        """Insert or update a profile."""

    async def fetch_family(self, family_id: UUID) -> Family | None:
        """Return a family by id."""

    async def create_family(self, family: Family) -> Family:
        """Create a family and return it."""

    async def find_family_by_invite_code(self, invite_code: str) -> Family | None:
        """Return the family with ``invite_code``, if any."""


@dataclass
class RemoteGateway:
    """One repository per entity type plus profile/family storage."""

    profiles: ProfileRepository
    products: EntityRepository[Product]
    price_records: PriceRecordRepository
    inventory: EntityRepository[InventoryItem]
    shopping_list: EntityRepository[ShoppingItem]
    storage_locations: EntityRepository[StorageLocation]
    sub_locations: EntityRepository[SubLocation]
    stores: EntityRepository[StoreLocation]
    vehicles: EntityRepository[Vehicle]
    custom_categories: EntityRepository[CustomCategory]
    custom_sub_categories: EntityRepository[CustomSubCategory]
    meal_ideas: EntityRepository[MealIdea]
    cellar_items: EntityRepository[CellarItem]
    consumption_logs: EntityRepository[ConsumptionLog]

    def repository_for(self, record_type: type[T]) -> EntityRepository[T]:
        """Return the repository handling ``record_type``."""
        return getattr(self, collection_name(record_type))
