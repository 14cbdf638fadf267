"""Pydantic models for household API request bodies."""

from uuid import UUID

from pydantic import BaseModel, Field

from aisle_be_back.services.assistant import ScanMode


class QuantityAdjustment(BaseModel):
    """Signed change to a stock quantity."""

    delta: float


class InventoryImport(BaseModel):
    """CSV export to import into one storage location."""

    csv: str
    location_id: UUID | None = None
    sub_location: str | None = None


class ShoppingItemCreate(BaseModel):
    """New shopping list entry."""

    name: str = Field(min_length=1)
    quantity: float = Field(default=1.0, gt=0)
    unit: str = "pc"
    product_id: str | None = None
    category: str | None = None


class StoreOverride(BaseModel):
    """Manual store assignment; null clears it."""

    store: str | None = None


class StockPurchase(BaseModel):
    """Where a bought item goes in the home."""

    location_id: UUID | None = None
    quantity: float | None = Field(default=None, ge=0)
    unit: str | None = None
    sub_location: str | None = None


class PriceRecordCreate(BaseModel):
    """Observed price for a product at a store."""

    category: str
    item_name: str = Field(min_length=1)
    store: str
    price: float
    quantity: float
    unit: str
    variety: str | None = None
    brand: str | None = None
    barcode: str | None = None
    sub_category: str | None = None
    image: str | None = None


class StorageOrder(BaseModel):
    """Storage location ids in their new order."""

    ids: list[UUID]


class NameCreate(BaseModel):
    """Payload carrying a single name."""

    name: str = Field(min_length=1)


class MealRating(BaseModel):
    """Star rating for a meal."""

    rating: int = Field(ge=1, le=5)


class ProductScan(BaseModel):
    """Base64 photo of a barcode, product or price tag."""

    image_base64: str
    mode: ScanMode = "tag"


class StoreSearch(BaseModel):
    """Free-text store search near a location."""

    query: str = Field(min_length=1)
    location: str | None = None


class CellarItemCreate(BaseModel):
    """New wine, beer or spirits entry."""

    name: str = Field(min_length=1)
    category: str
    type: str
    quantity: float = Field(default=1.0, ge=0)
    unit: str = "bottle"
    low_stock_threshold: float = Field(default=1.0, ge=0)
    producer: str | None = None
    vintage: str | None = None
    abv: str | None = None
    price: float | None = Field(default=None, ge=0)
    location: str | None = None
    notes: str | None = None


class CellarConsumption(BaseModel):
    """Amount drunk and the occasion."""

    quantity: float = Field(default=1.0, gt=0)
    occasion: str | None = None
    notes: str | None = None


class ProfileUpdate(BaseModel):
    """Profile settings; omitted fields stay unchanged."""

    location_label: str | None = None
    zip: str | None = None
    gas_price: float | None = Field(default=None, ge=0)
    category_order: list[str] | None = None
    active_vehicle_id: UUID | None = None
    share_prices: bool | None = None


class FamilyJoin(BaseModel):
    invite_code: str = Field(min_length=1)


class StoreCreate(BaseModel):
    """A store to remember, with optional contact details and coordinates."""

    name: str = Field(min_length=1)
    address: str | None = None
    phone: str | None = None
    hours: str | None = None
    zip: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)


class VehicleCreate(BaseModel):
    name: str = Field(min_length=1)
    mpg: float = Field(gt=0)
