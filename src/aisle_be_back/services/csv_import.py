"""Bulk inventory import from CSV exports."""

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from aisle_be_back.domain.taxonomy import DEFAULT_CATEGORIES

IGNORE = "ignore"
MAPPABLE_FIELDS = ("item_name", "variety", "quantity", "unit", "category")
FALLBACK_CATEGORY = "Other"
FALLBACK_UNIT = "pc"


class CsvImportError(ValueError):
    """Raised when a CSV export cannot be turned into inventory rows."""


@dataclass(frozen=True)
class InventoryDraft:
    """An inventory row ready to be stored; ids are assigned on import."""

    item_name: str
    category: str
    quantity: float
    unit: str
    location_id: UUID | None
    variety: str | None = None
    sub_category: str | None = None
    sub_location: str | None = None


def auto_map_columns(headers: list[str]) -> dict[int, str]:
    """Guess the inventory field for each header by keyword."""
    mappings: dict[int, str] = {}
    for index, header in enumerate(headers):
        lower = header.lower()
        if "item" in lower or "name" in lower:
            mappings[index] = "item_name"
        elif "variety" in lower:
            mappings[index] = "variety"
        elif "qty" in lower or "quantity" in lower:
            mappings[index] = "quantity"
        elif "unit" in lower:
            mappings[index] = "unit"
        elif "category" in lower:
            mappings[index] = "category"
        else:
            mappings[index] = IGNORE
    return mappings


def read_rows(text: str) -> tuple[list[str], list[list[str]]]:
    """Split CSV text into a header row and data rows, skipping blank lines."""
    rows = [
        [cell.strip() for cell in row]
        for row in csv.reader(io.StringIO(text.lstrip("\ufeff")))
        if any(cell.strip() for cell in row)
    ]
    if len(rows) < 2:  # noqa: PLR2004
        raise CsvImportError("CSV must have a header row and at least one data row.")
    return rows[0], rows[1:]


def _quantity(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def _category(value: str, category_order: Iterable[str]) -> str:
    lower = value.lower()
    return next((c for c in category_order if c.lower() == lower), FALLBACK_CATEGORY)


def parse_inventory_csv(
    text: str,
    *,
    location_id: UUID | None,
    category_order: Iterable[str] = DEFAULT_CATEGORIES,
    mappings: dict[int, str] | None = None,
    sub_location: str | None = None,
) -> list[InventoryDraft]:
    """Turn CSV text into inventory drafts.

    Columns are mapped with :func:`auto_map_columns` unless ``mappings`` is
    given. Rows without an item name are skipped.
    """
    headers, rows = read_rows(text)
    mappings = auto_map_columns(headers) if mappings is None else mappings
    unknown = set(mappings.values()) - {*MAPPABLE_FIELDS, IGNORE}
    if unknown:
        raise CsvImportError(f"Unknown column mapping(s): {', '.join(sorted(unknown))}")
    categories = list(category_order)

    drafts: list[InventoryDraft] = []
    for row in rows:
        values: dict[str, str] = {}
        for index, field_name in mappings.items():
            if field_name != IGNORE and index < len(row):
                values[field_name] = row[index]
        if not values.get("item_name"):
            continue
        drafts.append(
            InventoryDraft(
                item_name=values["item_name"],
                variety=values.get("variety") or None,
                quantity=_quantity(values.get("quantity", "")),
                unit=values.get("unit") or FALLBACK_UNIT,
                category=_category(values.get("category", ""), categories),
                location_id=location_id,
                sub_location=sub_location,
            )
        )
    return drafts
