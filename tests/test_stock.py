"""Tests for stock level rules."""

from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from aisle_be_back.domain.inventory import CellarItem
from aisle_be_back.services.stock import (
    DepletionEvent,
    DepletionNotifier,
    apply_quantity_delta,
    cellar_totals,
    decrement,
    is_low_stock,
    low_stock_cellar_items,
)


def _cellar(quantity: float, threshold: float, category: str = "Wine") -> CellarItem:
    return CellarItem(
        id=uuid4(),
        name="Rioja",
        category=category,
        type="Red",
        quantity=quantity,
        unit="bottle",
        low_stock_threshold=threshold,
        updated_at=datetime.now(tz=UTC),
    )


@pytest.mark.parametrize(
    ("previous", "amount", "expected"),
    [(5, 2, 3), (5, -2, 3), (1, 4, 0), (0, 1, 0)],
)
def test_decrement_never_goes_negative(previous: float, amount: float, expected: float) -> None:
    assert decrement(previous, amount).quantity == expected


def test_depleted_only_on_positive_to_zero() -> None:
    assert apply_quantity_delta(2, -2).depleted is True
    assert apply_quantity_delta(2, -5).depleted is True
    assert apply_quantity_delta(0, -1).depleted is False
    assert apply_quantity_delta(2, -1).depleted is False
    assert apply_quantity_delta(0, 3).depleted is False


def test_low_stock_is_reevaluated_on_read() -> None:
    assert is_low_stock(2, 3) is True
    assert is_low_stock(3, 3) is True
    assert is_low_stock(4, 3) is False

    item = _cellar(quantity=2, threshold=3)
    assert low_stock_cellar_items([item]) == [item]
    restocked = replace(item, quantity=4)
    assert low_stock_cellar_items([restocked]) == []


def test_cellar_totals_per_category() -> None:
    totals = cellar_totals([_cellar(2, 1), _cellar(3, 1), _cellar(6, 2, category="Beer")])

    assert totals["Wine"] == 5
    assert totals["Beer"] == 6
    assert totals["Spirits"] == 0


def test_notifier_isolates_failing_listeners() -> None:
    received: list[DepletionEvent] = []

    def broken(_: DepletionEvent) -> None:
        raise RuntimeError("boom")

    notifier = DepletionNotifier()
    notifier.subscribe(broken)
    notifier.subscribe(received.append)
    event = DepletionEvent(kind="inventory", item_id=uuid4(), name="Eggs", unit="pc")

    notifier.notify(event)

    assert received == [event]
