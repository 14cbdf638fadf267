"""Domain models for meal ideas."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class MealIngredient:
    """Ingredient of a meal idea, flagged when not in stock."""

    name: str
    quantity: float
    unit: str
    is_missing: bool


@dataclass(frozen=True)
class MealIdea:
    """A generated meal suggestion and its local cooking history."""

    id: UUID
    title: str
    description: str
    difficulty: str
    cook_time: int
    ingredients: tuple[MealIngredient, ...]
    instructions: tuple[str, ...]
    match_percentage: float
    generated_at: datetime
    cook_count: int = 0
    rating: int | None = None
    last_cooked: datetime | None = None

    @property
    def missing_ingredients(self) -> list[MealIngredient]:
        """Ingredients that would need to be bought."""
        return [ingredient for ingredient in self.ingredients if ingredient.is_missing]
