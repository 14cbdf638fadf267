"""Sync coordinator: optimistic mutations, debounced reorders and reconciliation.

Every operation mutates the entity cache first and only then awaits the
remote gateway. A failed remote call is logged and answered with a full
reconciliation fetch; the local change is never inverted by hand.
"""

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID, uuid4

from aisle_be_back.domain.catalog import MANUAL_PRODUCT_ID, PriceRecord, Product
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
from aisle_be_back.services.cache import COLLECTIONS, EntityCache, EntitySnapshot
from aisle_be_back.services.csv_import import InventoryDraft
from aisle_be_back.services.gateway import RemoteGateway
from aisle_be_back.services.pricing import (
    find_products_by_name,
    linked_product,
    resolve_product,
    validate_price,
)
from aisle_be_back.services.reorder import ReorderDebouncer
from aisle_be_back.services.stock import (
    DepletionEvent,
    DepletionNotifier,
    QuantityChange,
    apply_quantity_delta,
)
from aisle_be_back.services.taxonomy import (
    ensure_category_unused,
    ensure_sub_category_unused,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_RATING = 1
MAX_RATING = 5


class UnknownEntityError(ValueError):
    """Raised when an operation targets an id missing from the cache."""


class StorageLocationInUseError(ValueError):
    """Raised when deleting a storage location that still holds stock."""


@dataclass
class SyncContext:
    """State owned by one coordinator: cache, scope and the reorder guard."""

    cache: EntityCache
    scope: SyncScope
    reorder: ReorderDebouncer | None = None
    depletion: DepletionNotifier = field(default_factory=DepletionNotifier)
    reconcile_count: int = 0
    last_reconciled_at: datetime | None = None


@dataclass
class SyncCoordinator:
    """Applies user actions to the cache and persists them remotely."""

    gateway: RemoteGateway
    context: SyncContext
    debounce_seconds: float = 0.8
    settle_seconds: float = 1.5

    def __post_init__(self) -> None:
        if self.context.reorder is None:
            self.context.reorder = ReorderDebouncer(
                commit=self._commit_storage_order,
                debounce_seconds=self.debounce_seconds,
                settle_seconds=self.settle_seconds,
            )

    @property
    def cache(self) -> EntityCache:
        return self.context.cache

    @property
    def reorder(self) -> ReorderDebouncer:
        assert self.context.reorder is not None
        return self.context.reorder

    # Reconciliation

    async def reconcile(self) -> bool:
        """Replace the cache with the authoritative remote state.

        Returns False when the fetch failed; the cache is then left as is.
        """
        user_id = self.context.scope.user_id
        try:
            profile = await self.gateway.profiles.fetch_profile(user_id)
            family_id = profile.family_id if profile else None
            scope = SyncScope(user_id=user_id, family_id=family_id)
            family = (
                await self.gateway.profiles.fetch_family(family_id)
                if family_id
                else None
            )
            names = list(COLLECTIONS.values())
            results = await asyncio.gather(
                *(getattr(self.gateway, name).fetch_all(scope) for name in names)
            )
        except Exception:
            _logger.exception("Reconciliation fetch failed for user %s", user_id)
            return False

        collections = {name: tuple(rows) for name, rows in zip(names, results, strict=True)}
        if not collections["storage_locations"]:
            collections["storage_locations"] = EntitySnapshot.empty().storage_locations
        self.context.scope = scope
        self.cache.replace_snapshot(
            EntitySnapshot(**collections, profile=profile, family=family)
        )
        pending = self.reorder.pending_ids
        if pending is not None:
            self.cache.reorder_storage_locations(pending)
        self.context.reconcile_count += 1
        self.context.last_reconciled_at = datetime.now(tz=UTC)
        _logger.info("Reconciled cache: %s", self.cache.counts())
        return True

    async def handle_invalidation(self, table: str) -> bool:
        """React to a push signal for ``table`` with a full reload.

        Signals arriving while a storage-order commit is in flight or settling
        are dropped.
        """
        if not self.reorder.accepts_invalidation():
            _logger.info(
                "Dropped %s invalidation while storage order is %s",
                table,
                self.reorder.state,
            )
            return False
        return await self.reconcile()

    async def drain(self) -> None:
        """Wait for scheduled storage-order commits to finish."""
        await self.reorder.drain()

    async def close(self) -> None:
        """Commit any pending storage order before shutting down."""
        await self.reorder.flush()

    # Generic record operations

    async def save(self, record: object) -> bool:
        """Create or update any cached record."""
        self.cache.put(record)
        repository = self.gateway.repository_for(type(record))
        return await self._persist(
            f"upsert {type(record).__name__}", lambda: repository.upsert(record)
        )

    async def delete(self, record_type: type, record_id: UUID) -> bool:
        """Delete any cached record by id."""
        self.cache.remove(record_type, record_id)
        repository = self.gateway.repository_for(record_type)
        return await self._persist(
            f"delete {record_type.__name__}", lambda: repository.delete(record_id)
        )

    # Products and prices

    async def add_price_record(  # noqa: PLR0913
        self,
        *,
        category: str,
        item_name: str,
        store: str,
        price: float,
        quantity: float,
        unit: str,
        variety: str | None = None,
        brand: str | None = None,
        barcode: str | None = None,
        sub_category: str | None = None,
        image: str | None = None,
    ) -> Product:
        """Record a price, attaching it to an existing product when one matches."""
        validate_price(price, quantity)
        profile = self.cache.profile
        record = PriceRecord(
            id=uuid4(),
            store=store,
            price=price,
            quantity=quantity,
            unit=unit,
            captured_at=datetime.now(tz=UTC),
            image=image,
            is_public=profile.share_prices if profile else False,
        )
        existing = resolve_product(
            self.cache.products, item_name, variety=variety, brand=brand, barcode=barcode
        )
        if existing is not None:
            product = replace(
                existing,
                category=category,
                sub_category=sub_category or existing.sub_category,
                brand=brand or existing.brand,
                barcode=barcode or existing.barcode,
                history=(record, *existing.history),
            )
        else:
            product = Product(
                id=uuid4(),
                category=category,
                item_name=item_name,
                sub_category=sub_category,
                variety=variety,
                brand=brand,
                barcode=barcode,
                history=(record,),
            )
        self.cache.put(product)

        async def push() -> None:
            await self.gateway.products.upsert(product)
            await self.gateway.price_records.add(
                product.id, record, self.context.scope.user_id
            )

        await self._persist("add price record", push)
        return product

    # Inventory

    async def add_to_inventory(  # noqa: PLR0913
        self,
        *,
        item_name: str,
        category: str,
        quantity: float,
        unit: str,
        location_id: UUID | None,
        product_id: str = MANUAL_PRODUCT_ID,
        variety: str | None = None,
        sub_category: str | None = None,
        sub_location: str | None = None,
    ) -> InventoryItem:
        """Add stock to a storage location."""
        item = InventoryItem(
            id=uuid4(),
            product_id=product_id,
            item_name=item_name,
            category=category,
            sub_category=sub_category,
            variety=variety,
            quantity=max(0.0, quantity),
            unit=unit,
            location_id=location_id,
            sub_location=sub_location,
            updated_at=datetime.now(tz=UTC),
            user_id=self.context.scope.user_id,
        )
        await self.save(item)
        return item

    async def update_inventory_item(
        self, item_id: UUID, **changes: object
    ) -> InventoryItem:
        """Replace fields of an inventory item."""
        item = self._require(InventoryItem, item_id)
        if "quantity" in changes:
            changes["quantity"] = max(0.0, float(changes["quantity"]))
        updated = replace(item, **changes, updated_at=datetime.now(tz=UTC))
        await self.save(updated)
        return updated

    async def adjust_inventory_quantity(
        self, item_id: UUID, delta: float
    ) -> QuantityChange:
        """Change stock by ``delta``; items reaching zero are removed."""
        item = self._require(InventoryItem, item_id)
        change = apply_quantity_delta(item.quantity, delta)
        if change.quantity > 0:
            await self.save(
                replace(item, quantity=change.quantity, updated_at=datetime.now(tz=UTC))
            )
            return change
        self.cache.remove(InventoryItem, item_id)
        if change.depleted:
            self.context.depletion.notify(
                DepletionEvent(
                    kind="inventory",
                    item_id=item.id,
                    name=item.item_name,
                    unit=item.unit,
                    product_id=item.product_id,
                )
            )
        await self._persist(
            "delete depleted inventory item",
            lambda: self.gateway.inventory.delete(item_id),
        )
        return change

    async def consume_inventory(self, item_id: UUID, amount: float) -> QuantityChange:
        """Decrement stock by ``|amount|``."""
        return await self.adjust_inventory_quantity(item_id, -abs(amount))

    async def remove_inventory_item(self, item_id: UUID) -> bool:
        return await self.delete(InventoryItem, item_id)

    async def import_inventory(self, drafts: list[InventoryDraft]) -> list[InventoryItem]:
        """Add many items in one bulk write.

        Unlike other mutations, a remote failure is raised to the caller after
        the cache has been reconciled.
        """
        now = datetime.now(tz=UTC)
        items = [
            InventoryItem(
                id=uuid4(),
                product_id=MANUAL_PRODUCT_ID,
                item_name=draft.item_name,
                category=draft.category,
                sub_category=draft.sub_category,
                variety=draft.variety,
                quantity=draft.quantity,
                unit=draft.unit,
                location_id=draft.location_id,
                sub_location=draft.sub_location,
                updated_at=now,
                user_id=self.context.scope.user_id,
            )
            for draft in drafts
        ]
        self.cache.put_many(items)
        await self._persist(
            "bulk inventory import",
            lambda: self.gateway.inventory.bulk_upsert(items),
            propagate=True,
        )
        return items

    # Shopping list

    async def add_to_list(
        self,
        name: str,
        quantity: float,
        unit: str,
        product_id: str | None = None,
        category: str | None = None,
    ) -> ShoppingItem:
        item = ShoppingItem(
            id=uuid4(),
            name=name,
            needed_quantity=quantity,
            unit=unit,
            product_id=product_id or MANUAL_PRODUCT_ID,
            category=category,
            user_id=self.context.scope.user_id,
        )
        await self.save(item)
        return item

    async def toggle_list_item(self, item_id: UUID) -> ShoppingItem:
        item = self._require(ShoppingItem, item_id)
        updated = replace(item, is_completed=not item.is_completed)
        await self.save(updated)
        return updated

    async def remove_list_item(self, item_id: UUID) -> bool:
        return await self.delete(ShoppingItem, item_id)

    async def override_store(self, item_id: UUID, store: str | None) -> ShoppingItem:
        """Pin an item to a store, or clear the pin with ``None``."""
        item = self._require(ShoppingItem, item_id)
        updated = replace(item, manual_store=store or None)
        await self.save(updated)
        return updated

    async def stock_purchased_item(
        self,
        item_id: UUID,
        *,
        location_id: UUID | None,
        quantity: float | None = None,
        unit: str | None = None,
        sub_location: str | None = None,
    ) -> InventoryItem:
        """Move a bought shopping-list item into inventory."""
        item = self._require(ShoppingItem, item_id)
        products = self.cache.products
        product = linked_product(products, item)
        if product is None:
            product = next(
                (
                    p
                    for p in find_products_by_name(products, item.name)
                    if p.item_name.lower() == item.name.lower()
                ),
                None,
            )
        stocked = await self.add_to_inventory(
            item_name=item.name,
            category=product.category if product else "Other",
            sub_category=product.sub_category if product else None,
            variety=product.variety if product else None,
            quantity=item.needed_quantity if quantity is None else quantity,
            unit=unit or item.unit,
            location_id=location_id,
            sub_location=sub_location,
            product_id=item.product_id,
        )
        await self.remove_list_item(item_id)
        return stocked

    # Stores and vehicles

    async def add_store(self, name: str, **details: object) -> StoreLocation:
        store = StoreLocation(id=uuid4(), name=name.strip(), **details)
        await self.save(store)
        return store

    async def remove_store(self, store_id: UUID) -> bool:
        self._require(StoreLocation, store_id)
        return await self.delete(StoreLocation, store_id)

    async def add_vehicle(self, name: str, mpg: float) -> Vehicle:
        """Save a vehicle used for fuel estimates."""
        if mpg <= 0:
            raise ValueError("Fuel economy must be positive")
        vehicle = Vehicle(id=uuid4(), name=name.strip(), mpg=mpg)
        await self.save(vehicle)
        return vehicle

    async def remove_vehicle(self, vehicle_id: UUID) -> bool:
        self._require(Vehicle, vehicle_id)
        return await self.delete(Vehicle, vehicle_id)

    # Storage locations

    async def add_storage_location(self, name: str) -> StorageLocation:
        location = StorageLocation(
            id=uuid4(), name=name, sort_order=len(self.cache.storage_locations)
        )
        await self.save(location)
        return location

    async def delete_storage_location(self, location_id: UUID) -> bool:
        """Delete an empty storage location together with its sub-locations."""
        location = self._require(StorageLocation, location_id)
        stored = sum(1 for item in self.cache.inventory if item.location_id == location_id)
        if stored:
            raise StorageLocationInUseError(
                f"'{location.name}' still holds {stored} item(s). Move them first."
            )
        subs = [sub for sub in self.cache.sub_locations if sub.location_id == location_id]
        for sub in subs:
            self.cache.remove(SubLocation, sub.id)
        self.cache.remove(StorageLocation, location_id)

        async def push() -> None:
            for sub in subs:
                await self.gateway.sub_locations.delete(sub.id)
            await self.gateway.storage_locations.delete(location_id)

        return await self._persist("delete storage location", push)

    async def add_sub_location(self, location_id: UUID, name: str) -> SubLocation:
        self._require(StorageLocation, location_id)
        sub = SubLocation(id=uuid4(), location_id=location_id, name=name.strip())
        await self.save(sub)
        return sub

    async def reorder_storage_locations(
        self, ordered_ids: list[UUID]
    ) -> list[StorageLocation]:
        """Apply a new order now; persist it once reordering goes quiet."""
        reordered = self.cache.reorder_storage_locations(ordered_ids)
        self.reorder.on_reorder(reordered)
        return reordered

    async def _commit_storage_order(self, locations: list[StorageLocation]) -> None:
        persisted = await self._persist(
            "storage order bulk upsert",
            lambda: self.gateway.storage_locations.bulk_upsert(locations),
        )
        # A reload during the commit may have restored the previous order.
        if persisted and self.reorder.pending_ids is None:
            self.cache.reorder_storage_locations([loc.id for loc in locations])

    # Profile and family

    async def update_profile(self, **changes: object) -> Profile:
        """Update profile settings; a family change triggers a full reload."""
        current = self.cache.profile or Profile(id=self.context.scope.user_id)
        updated = replace(current, **changes)
        self.cache.set_profile(updated)
        if updated.family_id is None:
            self.cache.set_family(None)
        persisted = await self._persist(
            "upsert profile", lambda: self.gateway.profiles.upsert_profile(updated)
        )
        if persisted and updated.family_id != current.family_id:
            await self.reconcile()
        return updated

    async def create_family(self, name: str) -> Family:
        """Create a household and move the current user into it."""
        family = Family(
            id=uuid4(),
            name=name,
            invite_code=secrets.token_hex(3).upper(),
            created_by=self.context.scope.user_id,
        )
        await self.gateway.profiles.create_family(family)
        self.cache.set_family(family)
        await self.update_profile(family_id=family.id)
        return family

    async def join_family(self, invite_code: str) -> Family | None:
        """Join a household by invite code; None when the code is unknown."""
        family = await self.gateway.profiles.find_family_by_invite_code(
            invite_code.strip().upper()
        )
        if family is None:
            return None
        self.cache.set_family(family)
        await self.update_profile(family_id=family.id)
        return family

    async def leave_family(self) -> Profile:
        return await self.update_profile(family_id=None)

    # Taxonomy

    async def add_category(self, name: str) -> CustomCategory:
        category = CustomCategory(
            id=uuid4(), name=name.strip(), family_id=self.context.scope.family_id
        )
        await self.save(category)
        return category

    async def remove_category(self, category_id: UUID) -> bool:
        category = self._require(CustomCategory, category_id)
        ensure_category_unused(category.name, self.cache.inventory, self.cache.products)
        return await self.delete(CustomCategory, category_id)

    async def add_sub_category(self, category_name: str, name: str) -> CustomSubCategory:
        sub = CustomSubCategory(
            id=uuid4(),
            category_name=category_name,
            name=name.strip(),
            family_id=self.context.scope.family_id,
        )
        await self.save(sub)
        return sub

    async def remove_sub_category(self, sub_category_id: UUID) -> bool:
        sub = self._require(CustomSubCategory, sub_category_id)
        ensure_sub_category_unused(
            sub.category_name, sub.name, self.cache.inventory, self.cache.products
        )
        return await self.delete(CustomSubCategory, sub_category_id)

    # Meals

    async def replace_meal_ideas(self, ideas: list[MealIdea]) -> list[MealIdea]:
        """Swap in freshly generated ideas, keeping cooked or rated ones."""
        stale = [
            idea
            for idea in self.cache.meal_ideas
            if idea.cook_count == 0 and idea.rating is None
        ]
        for idea in stale:
            self.cache.remove(MealIdea, idea.id)
        self.cache.put_many(ideas)

        async def push() -> None:
            await self.gateway.meal_ideas.bulk_upsert(ideas)
            for idea in stale:
                await self.gateway.meal_ideas.delete(idea.id)

        await self._persist("replace meal ideas", push)
        return self.cache.meal_ideas

    async def record_meal_cooked(self, meal_id: UUID) -> MealIdea:
        meal = self._require(MealIdea, meal_id)
        updated = replace(
            meal, cook_count=meal.cook_count + 1, last_cooked=datetime.now(tz=UTC)
        )
        await self.save(updated)
        return updated

    async def rate_meal(self, meal_id: UUID, rating: int) -> MealIdea:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")
        meal = self._require(MealIdea, meal_id)
        updated = replace(meal, rating=rating)
        await self.save(updated)
        return updated

    # Cellar

    async def add_cellar_item(  # noqa: PLR0913
        self,
        *,
        name: str,
        category: str,
        type: str,  # noqa: A002
        quantity: float,
        unit: str,
        low_stock_threshold: float,
        **details: object,
    ) -> CellarItem:
        item = CellarItem(
            id=uuid4(),
            name=name,
            category=category,
            type=type,
            quantity=max(0.0, quantity),
            unit=unit,
            low_stock_threshold=low_stock_threshold,
            updated_at=datetime.now(tz=UTC),
            user_id=self.context.scope.user_id,
            family_id=self.context.scope.family_id,
            **details,
        )
        await self.save(item)
        return item

    async def adjust_cellar_quantity(self, item_id: UUID, delta: float) -> QuantityChange:
        """Change cellar stock; unlike inventory, empty items are kept."""
        item = self._require(CellarItem, item_id)
        change = apply_quantity_delta(item.quantity, delta)
        await self.save(
            replace(item, quantity=change.quantity, updated_at=datetime.now(tz=UTC))
        )
        if change.depleted:
            self.context.depletion.notify(
                DepletionEvent(
                    kind="cellar", item_id=item.id, name=item.name, unit=item.unit
                )
            )
        return change

    async def consume_cellar_item(
        self,
        item_id: UUID,
        quantity: float = 1,
        occasion: str | None = None,
        notes: str | None = None,
    ) -> ConsumptionLog:
        """Drink from the cellar and append a consumption log entry."""
        await self.adjust_cellar_quantity(item_id, -abs(quantity))
        log = ConsumptionLog(
            id=uuid4(),
            item_id=item_id,
            quantity=abs(quantity),
            consumed_at=datetime.now(tz=UTC),
            occasion=occasion or None,
            notes=notes or None,
        )
        await self.save(log)
        return log

    # Helpers

    def _require(self, record_type: type[T], record_id: UUID) -> T:
        record = self.cache.get(record_type, record_id)
        if record is None:
            raise UnknownEntityError(f"{record_type.__name__} {record_id} not found")
        return record

    async def _persist(
        self,
        action: str,
        call: Callable[[], Awaitable[object]],
        *,
        propagate: bool = False,
    ) -> bool:
        """Run a remote call; on failure log, reconcile and optionally re-raise."""
        try:
            await call()
        except Exception:
            _logger.exception("Remote %s failed; reconciling", action)
            await self.reconcile()
            if propagate:
                raise
            return False
        return True
