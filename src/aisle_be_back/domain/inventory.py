"""Domain models for household storage and stock."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class StorageLocation:
    """A storage area in the home, ordered by ``sort_order``."""

    id: UUID
    name: str
    sort_order: int


@dataclass(frozen=True)
class SubLocation:
    """A named shelf or bin inside a storage location."""

    id: UUID
    location_id: UUID
    name: str


@dataclass(frozen=True)
class InventoryItem:
    """Stock of one item held in a storage location."""

    id: UUID
    product_id: str
    item_name: str
    category: str
    quantity: float
    unit: str
    location_id: UUID | None
    updated_at: datetime
    sub_category: str | None = None
    variety: str | None = None
    sub_location: str | None = None
    user_id: UUID | None = None


@dataclass(frozen=True)
class CellarItem:
    """Beverage stock tracked against a low-stock threshold."""

    id: UUID
    name: str
    category: str
    type: str
    quantity: float
    unit: str
    low_stock_threshold: float
    updated_at: datetime
    producer: str | None = None
    sub_category: str | None = None
    is_opened: bool = False
    notes: str | None = None
    rating: int | None = None
    vintage: str | None = None
    abv: str | None = None
    price: float | None = None
    location: str | None = None
    user_id: UUID | None = None
    family_id: UUID | None = None


@dataclass(frozen=True)
class ConsumptionLog:
    """Append-only record of a cellar item being consumed."""

    id: UUID
    item_id: UUID
    quantity: float
    consumed_at: datetime
    occasion: str | None = None
    notes: str | None = None
