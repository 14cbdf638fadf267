"""Shared test fixtures."""

from uuid import UUID, uuid4

import pytest

from aisle_be_back.config import Settings
from aisle_be_back.containers import AppContainer
from aisle_be_back.domain.models import SyncScope
from aisle_be_back.services.assistant import AssistantService
from aisle_be_back.services.cache import EntityCache
from aisle_be_back.services.gateway import RemoteGateway
from aisle_be_back.services.invalidation import InvalidationListener
from aisle_be_back.services.meals import MealPlannerService
from aisle_be_back.services.sync import SyncContext, SyncCoordinator
from tests.fakes import (
    FakeAssistantClient,
    FakeLocationProvider,
    FakeTransport,
    build_fake_gateway,
)


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def settings(user_id: UUID) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="service-key",
        household_user_id=user_id,
        api_token="api-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def gateway() -> RemoteGateway:
    return build_fake_gateway()


@pytest.fixture
def coordinator(gateway: RemoteGateway, user_id: UUID) -> SyncCoordinator:
    return SyncCoordinator(
        gateway=gateway,
        context=SyncContext(cache=EntityCache(), scope=SyncScope(user_id=user_id)),
        debounce_seconds=0.05,
        settle_seconds=0.1,
    )


@pytest.fixture
def assistant_client() -> FakeAssistantClient:
    return FakeAssistantClient()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def container(
    settings: Settings,
    coordinator: SyncCoordinator,
    assistant_client: FakeAssistantClient,
    transport: FakeTransport,
) -> AppContainer:
    assistant_service = AssistantService(
        client=assistant_client,
        model=settings.openai_model,
        search_model=settings.openai_search_model,
        store=settings.openai_store,
    )

    async def close_resources() -> None:
        await coordinator.close()
        await transport.close()

    return AppContainer(
        settings=settings,
        coordinator=coordinator,
        invalidation_listener=InvalidationListener(
            transport=transport, target=coordinator
        ),
        assistant_service=assistant_service,
        meal_planner=MealPlannerService(suggester=assistant_service),
        location_provider=FakeLocationProvider(),
        close_resources=close_resources,
    )
