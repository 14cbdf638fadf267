"""AI collaborator: product photos, meal ideas and grounded lookups."""

import base64
import logging
import re
from dataclasses import dataclass
from typing import Literal, Protocol
from uuid import uuid4

from aisle_be_back.domain.assistant import (
    AnalyzedProduct,
    GroundedAnswer,
    MealSuggestion,
    MealSuggestions,
)
from aisle_be_back.domain.inventory import InventoryItem
from aisle_be_back.domain.shopping import StoreLocation

_logger = logging.getLogger(__name__)

MEAL_SUGGESTION_COUNT = 6

ScanMode = Literal["barcode", "product", "tag"]

_NULLABLE_STRING = {"anyOf": [{"type": "string"}, {"type": "null"}]}
_NULLABLE_NUMBER = {"anyOf": [{"type": "number"}, {"type": "null"}]}

PRODUCT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "category": {
            "type": "string",
            "description": "Broad group like Produce, Dairy, Meat, Pantry",
        },
        "item_name": {
            "type": "string",
            "description": "The specific product, e.g. Onion, Milk, Bread",
        },
        "variety": _NULLABLE_STRING,
        "brand": _NULLABLE_STRING,
        "barcode": _NULLABLE_STRING,
        "price": _NULLABLE_NUMBER,
        "store": _NULLABLE_STRING,
        "quantity": {"type": "number"},
        "unit": {"type": "string"},
    },
    "required": [
        "category",
        "item_name",
        "variety",
        "brand",
        "barcode",
        "price",
        "store",
        "quantity",
        "unit",
    ],
    "additionalProperties": False,
}

MEALS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "meals": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "difficulty": {"type": "string", "enum": ["Easy", "Medium", "Hard"]},
                    "cook_time": {"type": "integer", "minimum": 0},
                    "match_percentage": {"type": "number", "minimum": 0, "maximum": 100},
                    "ingredients": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "quantity": {"type": "number"},
                                "unit": {"type": "string"},
                                "is_missing": {"type": "boolean"},
                            },
                            "required": ["name", "quantity", "unit", "is_missing"],
                            "additionalProperties": False,
                        },
                    },
                    "instructions": {"type": "array", "items": {"type": "string"}},
                },
                "required": [
                    "title",
                    "description",
                    "difficulty",
                    "cook_time",
                    "match_percentage",
                    "ingredients",
                    "instructions",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["meals"],
    "additionalProperties": False,
}

SCAN_PROMPTS: dict[str, str] = {
    "barcode": (
        "This is a photo of a barcode. Extract the UPC/EAN digits. Also identify "
        "the product hierarchy: category (e.g. Produce), item name (e.g. Onion) "
        "and variety (e.g. Yellow)."
    ),
    "product": (
        "This is a photo of a product. Identify the hierarchy: category "
        "(e.g. Dairy), item name (e.g. Milk) and variety (e.g. 2% Reduced Fat). "
        "Also find the brand."
    ),
    "tag": (
        "This is a photo of a price tag or shelf label. Extract the hierarchy: "
        "category (e.g. Produce), item name (e.g. Onion) and variety "
        "(e.g. Yellow). Also extract total price, quantity, unit and store name."
    ),
}

_LAT_LNG = re.compile(r"(-?\d+\.\d+),\s*(-?\d+\.\d+)")
_PHONE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
DEFAULT_HOURS = "Check online"


class AssistantClient(Protocol):
    """Interface for the language model behind the assistant."""

    async def structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return JSON output constrained to ``schema``."""

    async def grounded(self, *, model: str, store: bool, prompt: str) -> GroundedAnswer:
        """Answer ``prompt`` using web search and return the cited sources."""


@dataclass
class AssistantService:
    """Prepares prompts, validates replies and degrades to empty results."""

    client: AssistantClient
    model: str
    search_model: str
    store: bool

    async def identify_product(
        self, image_bytes: bytes, mode: ScanMode = "tag"
    ) -> AnalyzedProduct | None:
        """Read a product hierarchy (and price details) from a photo."""
        prompt = SCAN_PROMPTS[mode] + " Return the result as structured JSON."
        try:
            raw = await self.client.structured(
                model=self.model,
                store=self.store,
                prompt=prompt,
                schema=PRODUCT_SCHEMA,
                schema_name="analyzed_product",
                image_data_url=to_data_url(image_bytes),
            )
            return AnalyzedProduct.model_validate(raw)
        except Exception:
            _logger.exception("Product identification failed (mode=%s)", mode)
            return None

    async def suggest_meals(self, inventory: list[InventoryItem]) -> list[MealSuggestion]:
        """Suggest exactly six meals from current stock, or nothing."""
        if not inventory:
            return []
        stock = ", ".join(_describe_stock(item) for item in inventory)
        prompt = (
            f"Based on the following pantry/fridge inventory: [{stock}]. "
            f"Suggest exactly {MEAL_SUGGESTION_COUNT} meal ideas. "
            "Mark ingredients that are not in the inventory as missing and rate "
            "how much of each meal the inventory covers as a percentage."
        )
        try:
            raw = await self.client.structured(
                model=self.model,
                store=self.store,
                prompt=prompt,
                schema=MEALS_SCHEMA,
                schema_name="meal_suggestions",
            )
            meals = MealSuggestions.model_validate(raw).meals
        except Exception:
            _logger.exception("Meal suggestion failed")
            return []
        if len(meals) != MEAL_SUGGESTION_COUNT:
            _logger.warning(
                "Expected %s meal suggestions, got %s", MEAL_SUGGESTION_COUNT, len(meals)
            )
            return []
        return meals

    async def lookup_market(
        self, item_name: str, variety: str | None = None
    ) -> GroundedAnswer | None:
        """Current average US price and typical units for an item."""
        subject = f"{item_name} {variety}" if variety else item_name
        query = f"Current average grocery price and standard units for {subject} in the US."
        return await self._grounded(query)

    async def search_store(self, query: str, location: str) -> GroundedAnswer | None:
        """Find a store near ``location`` and describe it."""
        prompt = (
            f'Find the most relevant store matching "{query}" near "{location}". '
            "Extract and return the following as a structured list:\n"
            "- Full Name\n"
            "- Address\n"
            "- Latitude/Longitude (as decimals)\n"
            "- Phone Number\n"
            "- Hours of Operation"
        )
        return await self._grounded(prompt)

    async def _grounded(self, prompt: str) -> GroundedAnswer | None:
        try:
            return await self.client.grounded(
                model=self.search_model, store=self.store, prompt=prompt
            )
        except Exception:
            _logger.exception("Grounded lookup failed")
            return None


def parse_store_details(query: str, answer: GroundedAnswer) -> StoreLocation:
    """Build a store draft from a free-text store search answer."""
    text = answer.text
    lines = text.splitlines()
    lat_lng = _LAT_LNG.search(text)
    phone = _PHONE.search(text)
    return StoreLocation(
        id=uuid4(),
        name=query,
        address=_labelled(lines, "address") or (lines[0].strip() if lines else None),
        phone=phone.group(0) if phone else None,
        hours=_labelled(lines, "hours") or DEFAULT_HOURS,
        lat=float(lat_lng.group(1)) if lat_lng else None,
        lng=float(lat_lng.group(2)) if lat_lng else None,
    )


def _labelled(lines: list[str], label: str) -> str | None:
    for line in lines:
        if label in line.lower() and ":" in line:
            value = line.split(":", 1)[1].strip()
            if value:
                return value
    return None


def _describe_stock(item: InventoryItem) -> str:
    variety = f" ({item.variety})" if item.variety else ""
    return f"{item.quantity:g} {item.unit} of {item.item_name}{variety}"


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
