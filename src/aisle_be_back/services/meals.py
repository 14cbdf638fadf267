"""Meal planning: AI-generated ideas bucketed by how well stock covers them."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from aisle_be_back.domain.assistant import MealSuggestion
from aisle_be_back.domain.inventory import InventoryItem
from aisle_be_back.domain.meals import MealIdea, MealIngredient

_logger = logging.getLogger(__name__)

READY_THRESHOLD = 100.0
CLOSE_THRESHOLD = 75.0


class MealSuggester(Protocol):
    async def suggest_meals(self, inventory: list[InventoryItem]) -> list[MealSuggestion]:
        """Return meal suggestions for the given stock."""


@dataclass(frozen=True)
class MealBuckets:
    """Meal ideas split by inventory coverage."""

    ready: list[MealIdea] = field(default_factory=list)
    close: list[MealIdea] = field(default_factory=list)
    other: list[MealIdea] = field(default_factory=list)


def bucket_meals(ideas: list[MealIdea]) -> MealBuckets:
    """Split ideas into ready (100%), close (75% to 99%) and the rest."""
    buckets = MealBuckets()
    for idea in ideas:
        if idea.match_percentage >= READY_THRESHOLD:
            buckets.ready.append(idea)
        elif idea.match_percentage >= CLOSE_THRESHOLD:
            buckets.close.append(idea)
        else:
            buckets.other.append(idea)
    return buckets


def to_meal_idea(suggestion: MealSuggestion, generated_at: datetime) -> MealIdea:
    return MealIdea(
        id=uuid4(),
        title=suggestion.title,
        description=suggestion.description,
        difficulty=suggestion.difficulty,
        cook_time=suggestion.cook_time,
        ingredients=tuple(
            MealIngredient(
                name=ingredient.name,
                quantity=ingredient.quantity,
                unit=ingredient.unit,
                is_missing=ingredient.is_missing,
            )
            for ingredient in suggestion.ingredients
        ),
        instructions=tuple(suggestion.instructions),
        match_percentage=suggestion.match_percentage,
        generated_at=generated_at,
    )


@dataclass
class MealPlannerService:
    """Turns inventory into a fresh set of meal ideas."""

    suggester: MealSuggester

    async def generate(self, inventory: list[InventoryItem]) -> list[MealIdea]:
        suggestions = await self.suggester.suggest_meals(inventory)
        if not suggestions:
            _logger.info("No meal ideas generated for %s item(s)", len(inventory))
            return []
        now = datetime.now(tz=UTC)
        return [to_meal_idea(suggestion, now) for suggestion in suggestions]
