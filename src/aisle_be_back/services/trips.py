"""Trip planning: store resolution, grouping and fuel estimates."""

import math
from dataclasses import dataclass
from typing import Protocol

from aisle_be_back.domain.catalog import PriceRecord, Product
from aisle_be_back.domain.shopping import (
    Coordinates,
    ShoppingItem,
    StoreLocation,
    Vehicle,
)
from aisle_be_back.services.pricing import (
    best_price_record,
    find_products_by_name,
    linked_product,
)

UNKNOWN_STORE = "Unknown / Any Store"
EARTH_RADIUS_MILES = 3958.8

# Shown when distance or fuel cost cannot be computed.
PLACEHOLDER_DISTANCE = "2.4"
PLACEHOLDER_FUEL_COST = "0.45"


class LocationProvider(Protocol):
    """One-shot source of the user's current position."""

    async def current_position(self) -> Coordinates | None:
        """Return coordinates, or None when the position is unavailable."""


@dataclass(frozen=True)
class TripStop:
    """Items to buy at one store plus travel estimates."""

    store: str
    items: list[ShoppingItem]
    distance_miles: float | None
    fuel_cost: float | None
    estimated_cost: float | None

    @property
    def has_estimate(self) -> bool:
        return self.distance_miles is not None

    @property
    def display_distance(self) -> str:
        if self.distance_miles is None:
            return PLACEHOLDER_DISTANCE
        return f"{self.distance_miles:.1f}"

    @property
    def display_fuel_cost(self) -> str:
        if self.distance_miles is None or self.fuel_cost is None:
            return PLACEHOLDER_FUEL_COST
        return f"{self.fuel_cost:.2f}"


@dataclass(frozen=True)
class TripPlan:
    """Ordered list of stops for the current shopping list."""

    stops: list[TripStop]

    @property
    def total_items(self) -> int:
        return sum(len(stop.items) for stop in self.stops)


def _match_product(products: list[Product], item: ShoppingItem) -> Product | None:
    """The linked product, else the first name match, that has price history."""
    linked = linked_product(products, item)
    if linked is not None and best_price_record(linked) is not None:
        return linked
    for product in find_products_by_name(products, item.name):
        if best_price_record(product) is not None:
            return product
    return None


def resolve_store(item: ShoppingItem, products: list[Product]) -> str:
    """Pick the store an item should be bought at.

    Manual override first, then the cheapest record of the linked product,
    then the cheapest record of a product matched by name.
    """
    if item.manual_store:
        return item.manual_store
    product = _match_product(products, item)
    if product is None:
        return UNKNOWN_STORE
    return best_price_record(product).store


def group_trip(
    items: list[ShoppingItem], products: list[Product]
) -> dict[str, list[ShoppingItem]]:
    """Partition incomplete items by resolved store, keys sorted."""
    groups: dict[str, list[ShoppingItem]] = {}
    for item in items:
        if item.is_completed:
            continue
        groups.setdefault(resolve_store(item, products), []).append(item)
    return {store: groups[store] for store in sorted(groups)}


def haversine_miles(origin: Coordinates, destination: Coordinates) -> float:
    """Great-circle distance between two coordinates in miles."""
    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat))
        * math.cos(math.radians(destination.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_fuel_cost(
    distance_miles: float, vehicle: Vehicle | None, fuel_price: float | None
) -> float | None:
    """Fuel cost for a distance, or None without a vehicle or fuel price."""
    if vehicle is None or not fuel_price or vehicle.mpg <= 0:
        return None
    return (distance_miles / vehicle.mpg) * fuel_price


def _record_for_store(product: Product, store: str) -> PriceRecord | None:
    for record in product.history:
        if record.store == store:
            return record
    return best_price_record(product)


def estimate_item_cost(
    item: ShoppingItem, products: list[Product], store: str
) -> float | None:
    """Expected cost of an item at a store from its recorded unit price."""
    product = _match_product(products, item)
    if product is None or not product.history:
        return None
    record = _record_for_store(product, store)
    return record.unit_price * item.needed_quantity


def plan_trip(  # noqa: PLR0913
    items: list[ShoppingItem],
    products: list[Product],
    stores: list[StoreLocation],
    vehicle: Vehicle | None,
    fuel_price: float | None,
    origin: Coordinates | None,
) -> TripPlan:
    """Build the trip plan for the incomplete shopping list."""
    coordinates = {
        store.name: store.coordinates for store in stores if store.coordinates
    }
    stops: list[TripStop] = []
    for store, grouped in group_trip(items, products).items():
        destination = coordinates.get(store)
        distance = (
            haversine_miles(origin, destination)
            if origin is not None and destination is not None
            else None
        )
        fuel_cost = (
            estimate_fuel_cost(distance, vehicle, fuel_price)
            if distance is not None
            else None
        )
        costs = [estimate_item_cost(item, products, store) for item in grouped]
        known_costs = [cost for cost in costs if cost is not None]
        stops.append(
            TripStop(
                store=store,
                items=grouped,
                distance_miles=distance,
                fuel_cost=fuel_cost,
                estimated_cost=sum(known_costs) if known_costs else None,
            )
        )
    return TripPlan(stops=stops)
