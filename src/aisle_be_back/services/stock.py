"""Stock level rules: clamped quantity changes, depletion and low stock."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID

from aisle_be_back.domain.inventory import CellarItem
from aisle_be_back.domain.taxonomy import CELLAR_CATEGORIES

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuantityChange:
    """Result of applying a delta to a stock quantity."""

    previous: float
    quantity: float

    @property
    def depleted(self) -> bool:
        """True only for the transition from a positive quantity to zero."""
        return self.previous > 0 and self.quantity == 0


def apply_quantity_delta(previous: float, delta: float) -> QuantityChange:
    """Apply a signed delta, clamping the result at zero."""
    return QuantityChange(previous=previous, quantity=max(0.0, previous + delta))


def decrement(previous: float, amount: float) -> QuantityChange:
    """Remove ``|amount|`` from stock, never going below zero."""
    return apply_quantity_delta(previous, -abs(amount))


def is_low_stock(quantity: float, threshold: float) -> bool:
    """Low stock holds whenever quantity is at or below the threshold."""
    return quantity <= threshold


def low_stock_cellar_items(items: list[CellarItem]) -> list[CellarItem]:
    return [item for item in items if is_low_stock(item.quantity, item.low_stock_threshold)]


def cellar_totals(items: list[CellarItem]) -> dict[str, float]:
    """Total bottles/cans per cellar category."""
    totals = dict.fromkeys(CELLAR_CATEGORIES, 0.0)
    for item in items:
        totals[item.category] = totals.get(item.category, 0.0) + item.quantity
    return totals


@dataclass(frozen=True)
class DepletionEvent:
    """Emitted once when an item runs out."""

    kind: str
    item_id: UUID
    name: str
    unit: str
    product_id: str | None = None


DepletionListener = Callable[[DepletionEvent], None]


@dataclass
class DepletionNotifier:
    """Fan-out of depletion events to registered listeners."""

    listeners: list[DepletionListener] = field(default_factory=list)

    def subscribe(self, listener: DepletionListener) -> None:
        self.listeners.append(listener)

    def notify(self, event: DepletionEvent) -> None:
        _logger.info("Depleted %s %s (%s)", event.kind, event.name, event.item_id)
        for listener in self.listeners:
            try:
                listener(event)
            except Exception:
                _logger.exception("Depletion listener failed for %s", event.item_id)
