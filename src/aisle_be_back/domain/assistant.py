"""Models for AI collaborator results."""

from pydantic import BaseModel, Field


class AnalyzedProduct(BaseModel):
    """Best-effort product record extracted from a photo."""

    category: str | None = None
    item_name: str | None = None
    variety: str | None = None
    brand: str | None = None
    barcode: str | None = None
    price: float | None = Field(default=None, ge=0.0)
    store: str | None = None
    quantity: float | None = Field(default=None, ge=0.0)
    unit: str | None = None


class SuggestedIngredient(BaseModel):
    """Ingredient line in a suggested meal."""

    name: str
    quantity: float = Field(ge=0.0)
    unit: str
    is_missing: bool


class MealSuggestion(BaseModel):
    """Single meal suggestion built from current inventory."""

    title: str
    description: str
    difficulty: str
    cook_time: int = Field(ge=0)
    match_percentage: float = Field(ge=0.0, le=100.0)
    ingredients: list[SuggestedIngredient]
    instructions: list[str]


class MealSuggestions(BaseModel):
    """Structured output wrapper for meal suggestions."""

    meals: list[MealSuggestion]


class Source(BaseModel):
    """Citation attached to a grounded answer."""

    url: str
    title: str | None = None


class GroundedAnswer(BaseModel):
    """Free-text answer with the sources it was grounded on."""

    text: str
    sources: list[Source] = Field(default_factory=list)
