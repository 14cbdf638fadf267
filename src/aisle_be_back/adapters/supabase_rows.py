"""Row codecs between Supabase tables and domain records."""

from dataclasses import asdict, is_dataclass
from datetime import UTC, datetime
from uuid import UUID

from aisle_be_back.domain.catalog import PriceRecord, Product
from aisle_be_back.domain.inventory import (
    CellarItem,
    ConsumptionLog,
    InventoryItem,
    StorageLocation,
    SubLocation,
)
from aisle_be_back.domain.meals import MealIdea, MealIngredient
from aisle_be_back.domain.models import (
    CustomCategory,
    CustomSubCategory,
    Family,
    Profile,
)
from aisle_be_back.domain.shopping import ShoppingItem, StoreLocation, Vehicle
from aisle_be_back.domain.taxonomy import DEFAULT_CATEGORIES

Row = dict[str, object]


def to_row(record: object, *, exclude: frozenset[str] = frozenset()) -> Row:
    """Serialize a domain dataclass into a JSON-safe row."""
    if not is_dataclass(record):
        raise TypeError(f"Cannot serialize {type(record)!r}")
    return {
        key: _to_json(value)
        for key, value in asdict(record).items()
        if key not in exclude
    }


def _to_json(value: object) -> object:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, tuple | list):
        return [_to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_json(item) for key, item in value.items()}
    return value


def _uuid(value: object) -> UUID | None:
    if value in (None, ""):
        return None
    return value if isinstance(value, UUID) else UUID(str(value))


def _datetime(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _float(value: object, default: float = 0.0) -> float:
    return default if value is None else float(value)


def _text(value: object) -> str | None:
    return str(value) if value not in (None, "") else None


def parse_price_record(row: Row) -> PriceRecord:
    return PriceRecord(
        id=UUID(str(row["id"])),
        store=str(row.get("store", "")),
        price=_float(row.get("price")),
        quantity=_float(row.get("quantity"), 1.0),
        unit=str(row.get("unit", "")),
        captured_at=_datetime(row.get("date")) or datetime.now(tz=UTC),
        image=_text(row.get("image")),
        is_public=bool(row.get("is_public", False)),
    )


def price_record_row(product_id: UUID, record: PriceRecord, user_id: UUID) -> Row:
    row = to_row(record, exclude=frozenset({"captured_at"}))
    row["date"] = record.captured_at.isoformat()
    row["product_id"] = str(product_id)
    row["user_id"] = str(user_id)
    return row


def parse_product(row: Row) -> Product:
    """Parse a product row with its embedded price records, newest first."""
    history = [parse_price_record(item) for item in row.get("price_records") or []]
    history.sort(key=lambda record: record.captured_at, reverse=True)
    return Product(
        id=UUID(str(row["id"])),
        category=str(row.get("category") or "Other"),
        item_name=str(row.get("item_name", "")),
        sub_category=_text(row.get("sub_category")),
        variety=_text(row.get("variety")),
        brand=_text(row.get("brand")),
        barcode=_text(row.get("barcode")),
        history=tuple(history),
        notes=_text(row.get("notes")),
    )


def product_row(product: Product) -> Row:
    return to_row(product, exclude=frozenset({"history"}))


def parse_inventory_item(row: Row) -> InventoryItem:
    return InventoryItem(
        id=UUID(str(row["id"])),
        product_id=str(row.get("product_id") or "manual"),
        item_name=str(row.get("item_name", "")),
        category=str(row.get("category") or "Other"),
        sub_category=_text(row.get("sub_category")),
        variety=_text(row.get("variety")),
        sub_location=_text(row.get("sub_location")),
        quantity=_float(row.get("quantity")),
        unit=str(row.get("unit") or "pc"),
        location_id=_uuid(row.get("location_id")),
        updated_at=_datetime(row.get("updated_at")) or datetime.now(tz=UTC),
        user_id=_uuid(row.get("user_id")),
    )


def parse_shopping_item(row: Row) -> ShoppingItem:
    return ShoppingItem(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        needed_quantity=_float(row.get("needed_quantity"), 1.0),
        unit=str(row.get("unit") or "pc"),
        product_id=str(row.get("product_id") or "manual"),
        is_completed=bool(row.get("is_completed", False)),
        manual_store=_text(row.get("manual_store")),
        category=_text(row.get("category")),
        user_id=_uuid(row.get("user_id")),
    )


def parse_storage_location(row: Row) -> StorageLocation:
    return StorageLocation(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        sort_order=int(row.get("sort_order") or 0),
    )


def parse_sub_location(row: Row) -> SubLocation:
    return SubLocation(
        id=UUID(str(row["id"])),
        location_id=UUID(str(row["location_id"])),
        name=str(row.get("name", "")),
    )


def parse_store(row: Row) -> StoreLocation:
    lat = row.get("lat")
    lng = row.get("lng")
    return StoreLocation(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        address=_text(row.get("address")),
        phone=_text(row.get("phone")),
        hours=_text(row.get("hours")),
        zip=_text(row.get("zip")),
        lat=float(lat) if lat is not None else None,
        lng=float(lng) if lng is not None else None,
    )


def parse_vehicle(row: Row) -> Vehicle:
    return Vehicle(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        mpg=_float(row.get("mpg")),
    )


def parse_custom_category(row: Row) -> CustomCategory:
    return CustomCategory(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        family_id=_uuid(row.get("family_id")),
    )


def parse_custom_sub_category(row: Row) -> CustomSubCategory:
    return CustomSubCategory(
        id=UUID(str(row["id"])),
        category_name=str(row.get("category_name", "")),
        name=str(row.get("name", "")),
        family_id=_uuid(row.get("family_id")),
    )


def parse_meal_idea(row: Row) -> MealIdea:
    rating = row.get("rating")
    return MealIdea(
        id=UUID(str(row["id"])),
        title=str(row.get("title", "")),
        description=str(row.get("description", "")),
        difficulty=str(row.get("difficulty", "")),
        cook_time=int(row.get("cook_time") or 0),
        ingredients=tuple(
            MealIngredient(
                name=str(item.get("name", "")),
                quantity=_float(item.get("quantity")),
                unit=str(item.get("unit", "")),
                is_missing=bool(item.get("is_missing", False)),
            )
            for item in row.get("ingredients") or []
        ),
        instructions=tuple(str(step) for step in row.get("instructions") or []),
        match_percentage=_float(row.get("match_percentage")),
        generated_at=_datetime(row.get("generated_at")) or datetime.now(tz=UTC),
        cook_count=int(row.get("cook_count") or 0),
        rating=int(rating) if rating is not None else None,
        last_cooked=_datetime(row.get("last_cooked")),
    )


def parse_cellar_item(row: Row) -> CellarItem:
    rating = row.get("rating")
    price = row.get("price")
    return CellarItem(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        category=str(row.get("category", "")),
        type=str(row.get("type", "")),
        quantity=_float(row.get("quantity")),
        unit=str(row.get("unit", "")),
        low_stock_threshold=_float(row.get("low_stock_threshold")),
        updated_at=_datetime(row.get("updated_at")) or datetime.now(tz=UTC),
        producer=_text(row.get("producer")),
        sub_category=_text(row.get("sub_category")),
        is_opened=bool(row.get("is_opened", False)),
        notes=_text(row.get("notes")),
        rating=int(rating) if rating is not None else None,
        vintage=_text(row.get("vintage")),
        abv=_text(row.get("abv")),
        price=float(price) if price is not None else None,
        location=_text(row.get("location")),
        user_id=_uuid(row.get("user_id")),
        family_id=_uuid(row.get("family_id")),
    )


def parse_consumption_log(row: Row) -> ConsumptionLog:
    return ConsumptionLog(
        id=UUID(str(row["id"])),
        item_id=UUID(str(row["item_id"])),
        quantity=_float(row.get("quantity"), 1.0),
        consumed_at=_datetime(row.get("consumed_at")) or datetime.now(tz=UTC),
        occasion=_text(row.get("occasion")),
        notes=_text(row.get("notes")),
    )


def parse_profile(row: Row) -> Profile:
    order = row.get("category_order")
    return Profile(
        id=UUID(str(row["id"])),
        location_label=str(row.get("location_label") or ""),
        zip=str(row.get("zip") or ""),
        gas_price=_float(row.get("gas_price"), 3.50),
        category_order=tuple(order) if order else DEFAULT_CATEGORIES,
        active_vehicle_id=_uuid(row.get("active_vehicle_id")),
        share_prices=bool(row.get("share_prices", False)),
        family_id=_uuid(row.get("family_id")),
    )


def parse_family(row: Row) -> Family:
    return Family(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        invite_code=str(row.get("invite_code", "")),
        created_by=UUID(str(row["created_by"])),
    )
