"""Domain models for users, households and taxonomy extensions."""

from dataclasses import dataclass
from uuid import UUID

from aisle_be_back.domain.taxonomy import DEFAULT_CATEGORIES


@dataclass(frozen=True)
class SyncScope:
    """Ownership scope used for every remote fetch."""

    user_id: UUID
    family_id: UUID | None = None


@dataclass(frozen=True)
class Profile:
    """Per-user settings."""

    id: UUID
    location_label: str = ""
    zip: str = ""
    gas_price: float = 3.50
    category_order: tuple[str, ...] = DEFAULT_CATEGORIES
    active_vehicle_id: UUID | None = None
    share_prices: bool = False
    family_id: UUID | None = None


@dataclass(frozen=True)
class Family:
    """Shared household scope joined through an invite code."""

    id: UUID
    name: str
    invite_code: str
    created_by: UUID


@dataclass(frozen=True)
class CustomCategory:
    """Household-defined category layered on the defaults."""

    id: UUID
    name: str
    family_id: UUID | None = None


@dataclass(frozen=True)
class CustomSubCategory:
    """Household-defined sub-category under a named parent category."""

    id: UUID
    category_name: str
    name: str
    family_id: UUID | None = None
