"""Domain models for products and their recorded prices."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

MANUAL_PRODUCT_ID = "manual"


@dataclass(frozen=True)
class PriceRecord:
    """A single observed price for a product at a store."""

    id: UUID
    store: str
    price: float
    quantity: float
    unit: str
    captured_at: datetime
    image: str | None = None
    is_public: bool = False

    @property
    def unit_price(self) -> float:
        """Price per unit, always derived from price and quantity."""
        return self.price / self.quantity


@dataclass(frozen=True)
class Product:
    """A tracked product with its price history, newest record first."""

    id: UUID
    category: str
    item_name: str
    sub_category: str | None = None
    variety: str | None = None
    brand: str | None = None
    barcode: str | None = None
    history: tuple[PriceRecord, ...] = ()
    notes: str | None = None

    @property
    def full_name(self) -> str:
        """Display name including the variety when present."""
        if self.variety:
            return f"{self.item_name} ({self.variety})"
        return self.item_name
