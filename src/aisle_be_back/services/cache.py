"""In-memory entity cache the UI renders from."""

from dataclasses import dataclass, fields, replace
from typing import TypeVar
from uuid import UUID, uuid5

from aisle_be_back.domain.catalog import Product
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
)
from aisle_be_back.domain.shopping import ShoppingItem, StoreLocation, Vehicle
from aisle_be_back.domain.taxonomy import DEFAULT_STORAGE

T = TypeVar("T")

_DEFAULT_STORAGE_NAMESPACE = UUID("6f1c1f0e-3d5b-4f5c-9a55-2d1c0e6b7a10")

COLLECTIONS: dict[type, str] = {
    Product: "products",
    InventoryItem: "inventory",
    ShoppingItem: "shopping_list",
    StorageLocation: "storage_locations",
    SubLocation: "sub_locations",
    StoreLocation: "stores",
    Vehicle: "vehicles",
    CustomCategory: "custom_categories",
    CustomSubCategory: "custom_sub_categories",
    MealIdea: "meal_ideas",
    CellarItem: "cellar_items",
    ConsumptionLog: "consumption_logs",
}


@dataclass(frozen=True)
class EntitySnapshot:
    """Complete authoritative state for one user or household."""

    products: tuple[Product, ...] = ()
    inventory: tuple[InventoryItem, ...] = ()
    shopping_list: tuple[ShoppingItem, ...] = ()
    storage_locations: tuple[StorageLocation, ...] = ()
    sub_locations: tuple[SubLocation, ...] = ()
    stores: tuple[StoreLocation, ...] = ()
    vehicles: tuple[Vehicle, ...] = ()
    custom_categories: tuple[CustomCategory, ...] = ()
    custom_sub_categories: tuple[CustomSubCategory, ...] = ()
    meal_ideas: tuple[MealIdea, ...] = ()
    cellar_items: tuple[CellarItem, ...] = ()
    consumption_logs: tuple[ConsumptionLog, ...] = ()
    profile: Profile | None = None
    family: Family | None = None

    @classmethod
    def empty(cls) -> "EntitySnapshot":
        """Return an empty snapshot seeded with the default storage areas."""
        return cls(
            storage_locations=tuple(
                StorageLocation(
                    id=uuid5(_DEFAULT_STORAGE_NAMESPACE, name),
                    name=name,
                    sort_order=order,
                )
                for name, order in DEFAULT_STORAGE
            )
        )


def collection_name(record_type: type) -> str:
    """Return the snapshot field holding records of ``record_type``."""
    try:
        return COLLECTIONS[record_type]
    except KeyError as exc:
        raise TypeError(f"Unsupported cache record type: {record_type!r}") from exc


class EntityCache:
    """Synchronous, whole-record view over the latest snapshot.

    Every write replaces entire records; reads always reflect the last
    mutation or reconciliation.
    """

    def __init__(self, snapshot: EntitySnapshot | None = None) -> None:
        self._snapshot = snapshot or EntitySnapshot.empty()

    @property
    def snapshot(self) -> EntitySnapshot:
        """Return the current immutable snapshot."""
        return self._snapshot

    @property
    def profile(self) -> Profile | None:
        return self._snapshot.profile

    @property
    def family(self) -> Family | None:
        return self._snapshot.family

    @property
    def products(self) -> list[Product]:
        return list(self._snapshot.products)

    @property
    def inventory(self) -> list[InventoryItem]:
        return list(self._snapshot.inventory)

    @property
    def shopping_list(self) -> list[ShoppingItem]:
        return list(self._snapshot.shopping_list)

    @property
    def storage_locations(self) -> list[StorageLocation]:
        """Storage locations in their household sort order."""
        return sorted(self._snapshot.storage_locations, key=lambda loc: loc.sort_order)

    @property
    def sub_locations(self) -> list[SubLocation]:
        return list(self._snapshot.sub_locations)

    @property
    def stores(self) -> list[StoreLocation]:
        return list(self._snapshot.stores)

    @property
    def vehicles(self) -> list[Vehicle]:
        return list(self._snapshot.vehicles)

    @property
    def custom_categories(self) -> list[CustomCategory]:
        return list(self._snapshot.custom_categories)

    @property
    def custom_sub_categories(self) -> list[CustomSubCategory]:
        return list(self._snapshot.custom_sub_categories)

    @property
    def meal_ideas(self) -> list[MealIdea]:
        return list(self._snapshot.meal_ideas)

    @property
    def cellar_items(self) -> list[CellarItem]:
        return list(self._snapshot.cellar_items)

    @property
    def consumption_logs(self) -> list[ConsumptionLog]:
        return list(self._snapshot.consumption_logs)

    def get(self, record_type: type[T], record_id: UUID) -> T | None:
        """Return the cached record with ``record_id``, if present."""
        for record in getattr(self._snapshot, collection_name(record_type)):
            if record.id == record_id:
                return record
        return None

    def put(self, record: object) -> None:
        """Replace the record with the same id, or append it."""
        name = collection_name(type(record))
        current = getattr(self._snapshot, name)
        if any(existing.id == record.id for existing in current):
            updated = tuple(
                record if existing.id == record.id else existing for existing in current
            )
        else:
            updated = (*current, record)
        self._snapshot = replace(self._snapshot, **{name: updated})

    def put_many(self, records: list[object]) -> None:
        """Replace or append several records in order."""
        for record in records:
            self.put(record)

    def remove(self, record_type: type[T], record_id: UUID) -> T | None:
        """Remove a record by id and return it, if it was cached."""
        name = collection_name(record_type)
        current = getattr(self._snapshot, name)
        removed = next((record for record in current if record.id == record_id), None)
        if removed is None:
            return None
        self._snapshot = replace(
            self._snapshot,
            **{name: tuple(record for record in current if record.id != record_id)},
        )
        return removed

    def set_profile(self, profile: Profile | None) -> None:
        self._snapshot = replace(self._snapshot, profile=profile)

    def set_family(self, family: Family | None) -> None:
        self._snapshot = replace(self._snapshot, family=family)

    def reorder_storage_locations(
        self, ordered_ids: list[UUID]
    ) -> list[StorageLocation]:
        """Rewrite sort orders to follow ``ordered_ids`` and return the result.

        Locations missing from ``ordered_ids`` keep their relative order after
        the listed ones.
        """
        by_id = {loc.id: loc for loc in self.storage_locations}
        ordered = [by_id[loc_id] for loc_id in ordered_ids if loc_id in by_id]
        ordered.extend(loc for loc in by_id.values() if loc.id not in ordered_ids)
        reordered = tuple(
            replace(loc, sort_order=index) for index, loc in enumerate(ordered)
        )
        self._snapshot = replace(self._snapshot, storage_locations=reordered)
        return list(reordered)

    def replace_snapshot(self, snapshot: EntitySnapshot) -> None:
        """Discard all cached state in favour of ``snapshot``."""
        self._snapshot = snapshot

    def counts(self) -> dict[str, int]:
        """Return the number of cached records per collection."""
        return {
            item.name: len(getattr(self._snapshot, item.name))
            for item in fields(EntitySnapshot)
            if item.name not in {"profile", "family"}
        }
