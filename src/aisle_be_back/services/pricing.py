"""Price history derivations: best value, product identity and price memory."""

from dataclasses import dataclass

from aisle_be_back.domain.catalog import MANUAL_PRODUCT_ID, PriceRecord, Product
from aisle_be_back.domain.shopping import ShoppingItem, StoreLocation

PRICE_MEMORY_MIN_CHARS = 2


class InvalidPriceRecordError(ValueError):
    """Raised when a price record has a non-positive price or quantity."""


@dataclass(frozen=True)
class PriceMatch:
    """A product matched by name together with its best record."""

    product: Product
    best: PriceRecord


@dataclass(frozen=True)
class PriceComparison:
    """How a newly entered unit price compares to the best remembered one."""

    unit_price: float
    best_unit_price: float
    difference: float
    percent: float
    is_better: bool


def validate_price(price: float, quantity: float) -> None:
    """Reject records whose unit price cannot be derived."""
    if price <= 0:
        raise InvalidPriceRecordError("Price must be greater than zero.")
    if quantity <= 0:
        raise InvalidPriceRecordError("Quantity must be greater than zero.")


def best_price_record(product: Product) -> PriceRecord | None:
    """Return the record with the lowest unit price.

    Ties keep the first record encountered in history order.
    """
    best: PriceRecord | None = None
    for record in product.history:
        if best is None or record.unit_price < best.unit_price:
            best = record
    return best


def best_unit_price(product: Product) -> float | None:
    """Return the lowest recorded price per unit for a product."""
    best = best_price_record(product)
    return best.unit_price if best else None


def _fold(value: str | None) -> str:
    return (value or "").lower()


def resolve_product(
    products: list[Product],
    item_name: str,
    variety: str | None = None,
    brand: str | None = None,
    barcode: str | None = None,
) -> Product | None:
    """Find the existing product a new price record belongs to.

    A product matches on an equal barcode, or when item name, variety and
    brand are all equal ignoring case.
    """
    for product in products:
        if barcode and product.barcode == barcode:
            return product
        if (
            _fold(product.item_name) == _fold(item_name)
            and _fold(product.variety) == _fold(variety)
            and _fold(product.brand) == _fold(brand)
        ):
            return product
    return None


def find_products_by_name(products: list[Product], name: str) -> list[Product]:
    """Case-insensitive substring match of ``name`` against item names.

    A blank name matches nothing.
    """
    needle = name.strip().lower()
    if not needle:
        return []
    return [product for product in products if needle in product.item_name.lower()]


def linked_product(products: list[Product], item: ShoppingItem) -> Product | None:
    """Return the product a shopping item links to by id."""
    if item.product_id == MANUAL_PRODUCT_ID:
        return None
    return next((p for p in products if str(p.id) == item.product_id), None)


def price_memory(
    products: list[Product], name: str, limit: int = 5
) -> list[PriceMatch]:
    """Return remembered best prices for products matching a typed name."""
    if len(name.strip()) < PRICE_MEMORY_MIN_CHARS:
        return []
    matches: list[PriceMatch] = []
    for product in find_products_by_name(products, name.strip()):
        best = best_price_record(product)
        if best is not None:
            matches.append(PriceMatch(product=product, best=best))
    return matches[:limit]


def compare_price(price: float, quantity: float, best: PriceRecord) -> PriceComparison:
    """Compare an entered price against a remembered best record."""
    validate_price(price, quantity)
    unit_price = price / quantity
    difference = unit_price - best.unit_price
    return PriceComparison(
        unit_price=unit_price,
        best_unit_price=best.unit_price,
        difference=difference,
        percent=(difference / best.unit_price) * 100,
        is_better=difference < 0,
    )


def best_value_deals(products: list[Product], limit: int = 5) -> list[PriceMatch]:
    """Products ranked by their best unit price, cheapest first."""
    deals = [
        PriceMatch(product=product, best=best)
        for product in products
        if (best := best_price_record(product)) is not None
    ]
    deals.sort(key=lambda deal: deal.best.unit_price)
    return deals[:limit]


def recent_records(products: list[Product], limit: int = 5) -> list[PriceMatch]:
    """Most recently captured price records across all products."""
    records = [
        PriceMatch(product=product, best=record)
        for product in products
        for record in product.history
    ]
    records.sort(key=lambda match: match.best.captured_at, reverse=True)
    return records[:limit]


def known_store_names(
    products: list[Product], stores: list[StoreLocation]
) -> list[str]:
    """Sorted union of stores seen in price history and saved stores."""
    names = {record.store for product in products for record in product.history}
    names.update(store.name for store in stores)
    return sorted(name for name in names if name)
