"""Household API endpoints with simple token auth."""

from __future__ import annotations

import base64
import binascii
from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from aisle_be_back.api.schemas import (
    CellarConsumption,
    CellarItemCreate,
    FamilyJoin,
    InventoryImport,
    MealRating,
    NameCreate,
    PriceRecordCreate,
    ProductScan,
    ProfileUpdate,
    QuantityAdjustment,
    ShoppingItemCreate,
    StockPurchase,
    StorageOrder,
    StoreCreate,
    StoreOverride,
    StoreSearch,
    VehicleCreate,
)
from aisle_be_back.domain.taxonomy import NATIONAL_STORES, UNITS
from aisle_be_back.services.assistant import parse_store_details
from aisle_be_back.services.csv_import import parse_inventory_csv
from aisle_be_back.services.meals import bucket_meals
from aisle_be_back.services.pricing import (
    best_value_deals,
    compare_price,
    known_store_names,
    price_memory,
    recent_records,
)
from aisle_be_back.services.stock import cellar_totals, low_stock_cellar_items
from aisle_be_back.services.taxonomy import all_categories, sub_categories_for
from aisle_be_back.services.trips import plan_trip

if TYPE_CHECKING:
    from aisle_be_back.containers import AppContainer
    from aisle_be_back.services.sync import SyncCoordinator

router = APIRouter()


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _coordinator(request: Request) -> SyncCoordinator:
    return _container(request).coordinator


authorized = [Depends(require_token)]


@router.post("/sync/refresh", dependencies=authorized, tags=["sync"])
async def refresh(request: Request) -> dict[str, object]:
    """Reload everything from the remote store."""
    coordinator = _coordinator(request)
    reconciled = await coordinator.reconcile()
    return {"reconciled": reconciled, "counts": coordinator.cache.counts()}


@router.get("/sync/status", dependencies=authorized, tags=["sync"])
async def sync_status(request: Request) -> dict[str, object]:
    """Return reconciliation counters and the storage-order state."""
    context = _coordinator(request).context
    return {
        "reconcile_count": context.reconcile_count,
        "last_reconciled_at": context.last_reconciled_at,
        "reorder_state": context.reorder.state if context.reorder else None,
    }


@router.get("/inventory", dependencies=authorized, tags=["inventory"])
async def list_inventory(request: Request) -> dict[str, object]:
    cache = _coordinator(request).cache
    return {"items": cache.inventory, "locations": cache.storage_locations}


@router.post("/inventory/{item_id}/adjust", dependencies=authorized, tags=["inventory"])
async def adjust_inventory(
    item_id: UUID, body: QuantityAdjustment, request: Request
) -> dict[str, object]:
    """Change stock by a signed delta; empty items are removed."""
    change = await _coordinator(request).adjust_inventory_quantity(item_id, body.delta)
    return {**asdict(change), "depleted": change.depleted}


@router.delete("/inventory/{item_id}", dependencies=authorized, tags=["inventory"])
async def remove_inventory(item_id: UUID, request: Request) -> dict[str, object]:
    return {"persisted": await _coordinator(request).remove_inventory_item(item_id)}


@router.post("/inventory/import", dependencies=authorized, tags=["inventory"])
async def import_inventory(body: InventoryImport, request: Request) -> dict[str, object]:
    """Bulk import inventory rows from a CSV export."""
    coordinator = _coordinator(request)
    cache = coordinator.cache
    location_id = body.location_id
    if location_id is None and cache.storage_locations:
        location_id = cache.storage_locations[0].id
    profile = cache.profile
    drafts = parse_inventory_csv(
        body.csv,
        location_id=location_id,
        category_order=profile.category_order if profile else all_categories([]),
        sub_location=body.sub_location,
    )
    try:
        items = await coordinator.import_inventory(drafts)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Import failed"
        ) from exc
    return {"imported": len(items)}


@router.get("/shopping-list", dependencies=authorized, tags=["shopping"])
async def list_shopping(request: Request) -> dict[str, object]:
    return {"items": _coordinator(request).cache.shopping_list}


@router.post("/shopping-list", dependencies=authorized, tags=["shopping"])
async def add_shopping_item(
    body: ShoppingItemCreate, request: Request
) -> dict[str, object]:
    item = await _coordinator(request).add_to_list(
        body.name, body.quantity, body.unit, body.product_id, body.category
    )
    return {"item": item}


@router.post("/shopping-list/{item_id}/toggle", dependencies=authorized, tags=["shopping"])
async def toggle_shopping_item(item_id: UUID, request: Request) -> dict[str, object]:
    return {"item": await _coordinator(request).toggle_list_item(item_id)}


@router.put("/shopping-list/{item_id}/store", dependencies=authorized, tags=["shopping"])
async def override_store(
    item_id: UUID, body: StoreOverride, request: Request
) -> dict[str, object]:
    """Pin an item to a store or clear the pin."""
    return {"item": await _coordinator(request).override_store(item_id, body.store)}


@router.post("/shopping-list/{item_id}/stock", dependencies=authorized, tags=["shopping"])
async def stock_purchased(
    item_id: UUID, body: StockPurchase, request: Request
) -> dict[str, object]:
    """Move a bought item from the list into inventory."""
    item = await _coordinator(request).stock_purchased_item(
        item_id,
        location_id=body.location_id,
        quantity=body.quantity,
        unit=body.unit,
        sub_location=body.sub_location,
    )
    return {"item": item}


@router.delete("/shopping-list/{item_id}", dependencies=authorized, tags=["shopping"])
async def remove_shopping_item(item_id: UUID, request: Request) -> dict[str, object]:
    return {"persisted": await _coordinator(request).remove_list_item(item_id)}


@router.get("/trip-plan", dependencies=authorized, tags=["shopping"])
async def trip_plan(request: Request) -> dict[str, object]:
    """Group the open list by store with distance and fuel estimates."""
    container = _container(request)
    cache = container.coordinator.cache
    profile = cache.profile
    vehicle = None
    if profile and profile.active_vehicle_id:
        vehicle = next(
            (v for v in cache.vehicles if v.id == profile.active_vehicle_id), None
        )
    elif cache.vehicles:
        vehicle = cache.vehicles[0]
    origin = (
        await container.location_provider.current_position()
        if container.location_provider
        else None
    )
    plan = plan_trip(
        cache.shopping_list,
        cache.products,
        cache.stores,
        vehicle,
        profile.gas_price if profile else container.settings.default_fuel_price,
        origin,
    )
    return {
        "total_items": plan.total_items,
        "stops": [
            {
                "store": stop.store,
                "items": stop.items,
                "distance_miles": stop.distance_miles,
                "fuel_cost": stop.fuel_cost,
                "display_distance": stop.display_distance,
                "display_fuel_cost": stop.display_fuel_cost,
                "has_estimate": stop.has_estimate,
                "estimated_cost": stop.estimated_cost,
            }
            for stop in plan.stops
        ],
    }


@router.post("/prices", dependencies=authorized, tags=["prices"])
async def add_price(body: PriceRecordCreate, request: Request) -> dict[str, object]:
    """Record a price against an existing or new product."""
    product = await _coordinator(request).add_price_record(**body.model_dump())
    return {"product": product}


@router.get("/prices/memory", dependencies=authorized, tags=["prices"])
async def remembered_prices(
    request: Request,
    name: str,
    price: float | None = None,
    quantity: float | None = None,
) -> dict[str, object]:
    """Best remembered prices for a typed name, compared to an entered price."""
    matches = price_memory(_coordinator(request).cache.products, name)
    results: list[dict[str, object]] = []
    for match in matches:
        entry: dict[str, object] = {"product": match.product, "best": match.best}
        if price is not None and quantity is not None:
            entry["comparison"] = compare_price(price, quantity, match.best)
        results.append(entry)
    return {"matches": results}


@router.get("/prices/deals", dependencies=authorized, tags=["prices"])
async def deals(request: Request) -> dict[str, object]:
    products = _coordinator(request).cache.products
    return {"deals": best_value_deals(products), "recent": recent_records(products)}


@router.get("/storage-locations", dependencies=authorized, tags=["storage"])
async def list_storage(request: Request) -> dict[str, object]:
    cache = _coordinator(request).cache
    return {"locations": cache.storage_locations, "sub_locations": cache.sub_locations}


@router.post("/storage-locations", dependencies=authorized, tags=["storage"])
async def add_storage(body: NameCreate, request: Request) -> dict[str, object]:
    return {"location": await _coordinator(request).add_storage_location(body.name)}


@router.delete(
    "/storage-locations/{location_id}", dependencies=authorized, tags=["storage"]
)
async def delete_storage(location_id: UUID, request: Request) -> dict[str, object]:
    return {
        "persisted": await _coordinator(request).delete_storage_location(location_id)
    }


@router.post("/storage-locations/reorder", dependencies=authorized, tags=["storage"])
async def reorder_storage(body: StorageOrder, request: Request) -> dict[str, object]:
    """Apply a new order now; the remote write is debounced."""
    locations = await _coordinator(request).reorder_storage_locations(body.ids)
    return {"locations": locations}


@router.get("/categories", dependencies=authorized, tags=["taxonomy"])
async def list_categories(request: Request) -> dict[str, object]:
    cache = _coordinator(request).cache
    categories = all_categories(cache.custom_categories)
    return {
        "categories": categories,
        "sub_categories": {
            name: sub_categories_for(name, cache.custom_sub_categories)
            for name in categories
        },
        "units": list(UNITS),
    }


@router.get("/stores", dependencies=authorized, tags=["shopping"])
async def list_stores(request: Request) -> dict[str, object]:
    """Saved stores plus every store name worth suggesting."""
    cache = _coordinator(request).cache
    known = known_store_names(cache.products, cache.stores)
    return {
        "stores": cache.stores,
        "suggestions": sorted({*known, *NATIONAL_STORES}),
    }


@router.post("/stores", dependencies=authorized, tags=["shopping"])
async def add_store(body: StoreCreate, request: Request) -> dict[str, object]:
    details = body.model_dump(exclude={"name"}, exclude_none=True)
    return {"store": await _coordinator(request).add_store(body.name, **details)}


@router.delete("/stores/{store_id}", dependencies=authorized, tags=["shopping"])
async def remove_store(store_id: UUID, request: Request) -> dict[str, object]:
    return {"persisted": await _coordinator(request).remove_store(store_id)}


@router.get("/vehicles", dependencies=authorized, tags=["shopping"])
async def list_vehicles(request: Request) -> dict[str, object]:
    cache = _coordinator(request).cache
    profile = cache.profile
    return {
        "vehicles": cache.vehicles,
        "active_vehicle_id": profile.active_vehicle_id if profile else None,
    }


@router.post("/vehicles", dependencies=authorized, tags=["shopping"])
async def add_vehicle(body: VehicleCreate, request: Request) -> dict[str, object]:
    """Save a vehicle for trip fuel estimates."""
    return {"vehicle": await _coordinator(request).add_vehicle(body.name, body.mpg)}


@router.delete("/vehicles/{vehicle_id}", dependencies=authorized, tags=["shopping"])
async def remove_vehicle(vehicle_id: UUID, request: Request) -> dict[str, object]:
    return {"persisted": await _coordinator(request).remove_vehicle(vehicle_id)}


@router.post("/categories", dependencies=authorized, tags=["taxonomy"])
async def add_category(body: NameCreate, request: Request) -> dict[str, object]:
    return {"category": await _coordinator(request).add_category(body.name)}


@router.delete("/categories/{category_id}", dependencies=authorized, tags=["taxonomy"])
async def remove_category(category_id: UUID, request: Request) -> dict[str, object]:
    return {"persisted": await _coordinator(request).remove_category(category_id)}


@router.get("/meals", dependencies=authorized, tags=["meals"])
async def list_meals(request: Request) -> dict[str, object]:
    """Meal ideas bucketed by how much of each is in stock."""
    buckets = bucket_meals(_coordinator(request).cache.meal_ideas)
    return {"ready": buckets.ready, "close": buckets.close, "other": buckets.other}


@router.post("/meals/generate", dependencies=authorized, tags=["meals"])
async def generate_meals(request: Request) -> dict[str, object]:
    """Ask the assistant for fresh ideas from current stock."""
    container = _container(request)
    ideas = await container.meal_planner.generate(container.coordinator.cache.inventory)
    if not ideas:
        return {"generated": 0}
    await container.coordinator.replace_meal_ideas(ideas)
    return {"generated": len(ideas)}


@router.post("/meals/{meal_id}/cook", dependencies=authorized, tags=["meals"])
async def cook_meal(meal_id: UUID, request: Request) -> dict[str, object]:
    return {"meal": await _coordinator(request).record_meal_cooked(meal_id)}


@router.post("/meals/{meal_id}/rate", dependencies=authorized, tags=["meals"])
async def rate_meal(
    meal_id: UUID, body: MealRating, request: Request
) -> dict[str, object]:
    return {"meal": await _coordinator(request).rate_meal(meal_id, body.rating)}


@router.get("/cellar/low-stock", dependencies=authorized, tags=["cellar"])
async def cellar_low_stock(request: Request) -> dict[str, object]:
    items = _coordinator(request).cache.cellar_items
    return {"items": low_stock_cellar_items(items), "totals": cellar_totals(items)}


@router.post("/assistant/identify", dependencies=authorized, tags=["assistant"])
async def identify_product(body: ProductScan, request: Request) -> dict[str, object]:
    """Read product details from a photo."""
    try:
        image_bytes = base64.b64decode(body.image_base64.split(",")[-1], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid image data"
        ) from exc
    product = await _container(request).assistant_service.identify_product(
        image_bytes, body.mode
    )
    return {"product": product}


@router.get("/assistant/market", dependencies=authorized, tags=["assistant"])
async def market_lookup(
    request: Request, item: str, variety: str | None = None
) -> dict[str, object]:
    answer = await _container(request).assistant_service.lookup_market(item, variety)
    return {"answer": answer}


@router.post("/stores/search", dependencies=authorized, tags=["assistant"])
async def search_store(body: StoreSearch, request: Request) -> dict[str, object]:
    """Search for a store and return a draft with the parsed details."""
    container = _container(request)
    profile = container.coordinator.cache.profile
    location = body.location or (
        (profile.zip or profile.location_label) if profile else ""
    )
    answer = await container.assistant_service.search_store(body.query, location)
    if answer is None:
        return {"answer": None, "store": None}
    return {"answer": answer, "store": parse_store_details(body.query, answer)}


@router.post("/cellar", dependencies=authorized, tags=["cellar"])
async def add_cellar_item(body: CellarItemCreate, request: Request) -> dict[str, object]:
    details = body.model_dump(exclude_none=True)
    return {"item": await _coordinator(request).add_cellar_item(**details)}


@router.post("/cellar/{item_id}/consume", dependencies=authorized, tags=["cellar"])
async def consume_cellar_item(
    item_id: UUID, body: CellarConsumption, request: Request
) -> dict[str, object]:
    """Drink from the cellar and log it."""
    log = await _coordinator(request).consume_cellar_item(
        item_id, body.quantity, body.occasion, body.notes
    )
    return {"log": log}


@router.put("/profile", dependencies=authorized, tags=["household"])
async def update_profile(body: ProfileUpdate, request: Request) -> dict[str, object]:
    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key == "active_vehicle_id"
    }
    if "category_order" in changes:
        changes["category_order"] = tuple(changes["category_order"])
    return {"profile": await _coordinator(request).update_profile(**changes)}


@router.post("/family", dependencies=authorized, tags=["household"])
async def create_family(body: NameCreate, request: Request) -> dict[str, object]:
    return {"family": await _coordinator(request).create_family(body.name)}


@router.post("/family/join", dependencies=authorized, tags=["household"])
async def join_family(body: FamilyJoin, request: Request) -> dict[str, object]:
    family = await _coordinator(request).join_family(body.invite_code)
    if family is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Unknown invite code"
        )
    return {"family": family}


@router.post("/family/leave", dependencies=authorized, tags=["household"])
async def leave_family(request: Request) -> dict[str, object]:
    return {"profile": await _coordinator(request).leave_family()}
