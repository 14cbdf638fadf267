"""Category taxonomy: defaults merged with household extensions."""

from aisle_be_back.domain.catalog import Product
from aisle_be_back.domain.inventory import InventoryItem
from aisle_be_back.domain.models import CustomCategory, CustomSubCategory
from aisle_be_back.domain.taxonomy import DEFAULT_CATEGORIES, SUB_CATEGORIES


class TaxonomyInUseError(ValueError):
    """Raised when removing a taxonomy entry that is still referenced."""


def all_categories(custom: list[CustomCategory]) -> list[str]:
    """Sorted union of default and household categories."""
    return sorted({*DEFAULT_CATEGORIES, *(category.name for category in custom)})


def sub_categories_for(category: str, custom: list[CustomSubCategory]) -> list[str]:
    """Default sub-categories followed by household ones for ``category``."""
    names = list(SUB_CATEGORIES.get(category, ()))
    for sub in custom:
        if sub.category_name == category and sub.name not in names:
            names.append(sub.name)
    return names


def ensure_category_unused(
    name: str, inventory: list[InventoryItem], products: list[Product]
) -> None:
    """Reject removal of a category that stock or price history still uses."""
    in_stock = sum(1 for item in inventory if item.category == name)
    priced = sum(1 for product in products if product.category == name and product.history)
    if in_stock or priced:
        raise TaxonomyInUseError(
            f"Category '{name}' is used by {in_stock} inventory item(s) and "
            f"{priced} product(s) with price history. Move them first."
        )


def ensure_sub_category_unused(
    category: str,
    name: str,
    inventory: list[InventoryItem],
    products: list[Product],
) -> None:
    """Reject removal of a sub-category that stock or price history still uses."""
    in_stock = sum(
        1
        for item in inventory
        if item.category == category and item.sub_category == name
    )
    priced = sum(
        1
        for product in products
        if product.category == category
        and product.sub_category == name
        and product.history
    )
    if in_stock or priced:
        raise TaxonomyInUseError(
            f"Sub-category '{name}' is used by {in_stock} inventory item(s) and "
            f"{priced} product(s) with price history. Move them first."
        )
