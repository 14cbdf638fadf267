"""Domain models for shopping lists and trips."""

from dataclasses import dataclass
from uuid import UUID

from aisle_be_back.domain.catalog import MANUAL_PRODUCT_ID


@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


@dataclass(frozen=True)
class ShoppingItem:
    """An entry on the household shopping list."""

    id: UUID
    name: str
    needed_quantity: float
    unit: str
    product_id: str = MANUAL_PRODUCT_ID
    is_completed: bool = False
    manual_store: str | None = None
    category: str | None = None
    user_id: UUID | None = None


@dataclass(frozen=True)
class StoreLocation:
    """A saved store, optionally geolocated."""

    id: UUID
    name: str
    address: str | None = None
    phone: str | None = None
    hours: str | None = None
    zip: str | None = None
    lat: float | None = None
    lng: float | None = None

    @property
    def coordinates(self) -> Coordinates | None:
        """Return the store coordinates when both are known."""
        if self.lat is None or self.lng is None:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)


@dataclass(frozen=True)
class Vehicle:
    """A household vehicle used for fuel estimates."""

    id: UUID
    name: str
    mpg: float
