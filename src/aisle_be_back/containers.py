"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import acreate_client

from aisle_be_back.adapters.geolocation_client import HttpxGeolocationClient
from aisle_be_back.adapters.openai_assistant_client import OpenAIAssistantClient
from aisle_be_back.adapters.supabase_entity_repository import build_supabase_gateway
from aisle_be_back.adapters.supabase_realtime import SupabaseRealtimeTransport
from aisle_be_back.config import Settings, parse_watched_tables
from aisle_be_back.domain.models import SyncScope
from aisle_be_back.services.assistant import AssistantService
from aisle_be_back.services.cache import EntityCache
from aisle_be_back.services.invalidation import InvalidationListener
from aisle_be_back.services.meals import MealPlannerService
from aisle_be_back.services.sync import SyncContext, SyncCoordinator
from aisle_be_back.services.trips import LocationProvider


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    coordinator: SyncCoordinator
    invalidation_listener: InvalidationListener
    assistant_service: AssistantService
    meal_planner: MealPlannerService
    location_provider: LocationProvider | None
    close_resources: Callable[[], Awaitable[None]]

    async def start(self) -> None:
        """Load the initial state and start listening for remote changes."""
        await self.coordinator.reconcile()
        await self.invalidation_listener.start()


async def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = await acreate_client(
        resolved_settings.supabase_url, resolved_settings.supabase_key
    )
    gateway = build_supabase_gateway(
        supabase_client, resolved_settings.household_user_id
    )
    coordinator = SyncCoordinator(
        gateway=gateway,
        context=SyncContext(
            cache=EntityCache(),
            scope=SyncScope(user_id=resolved_settings.household_user_id),
        ),
        debounce_seconds=resolved_settings.reorder_debounce_seconds,
        settle_seconds=resolved_settings.reorder_settle_seconds,
    )
    invalidation_listener = InvalidationListener(
        transport=SupabaseRealtimeTransport(client=supabase_client),
        target=coordinator,
        tables=parse_watched_tables(resolved_settings.watched_tables),
    )
    assistant_service = AssistantService(
        client=OpenAIAssistantClient.create(resolved_settings.openai_api_key),
        model=resolved_settings.openai_model,
        search_model=resolved_settings.openai_search_model,
        store=resolved_settings.openai_store,
    )
    geolocation_client = HttpxGeolocationClient.create(resolved_settings.geolocation_url)

    async def close_resources() -> None:
        await coordinator.close()
        await invalidation_listener.stop()
        await geolocation_client.close()

    return AppContainer(
        settings=resolved_settings,
        coordinator=coordinator,
        invalidation_listener=invalidation_listener,
        assistant_service=assistant_service,
        meal_planner=MealPlannerService(suggester=assistant_service),
        location_provider=geolocation_client,
        close_resources=close_resources,
    )
