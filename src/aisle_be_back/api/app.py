"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from aisle_be_back.api.household import router as household_router
from aisle_be_back.app_logging import configure_logging
from aisle_be_back.containers import AppContainer, build_container
from aisle_be_back.services.sync import StorageLocationInUseError, UnknownEntityError
from aisle_be_back.services.taxonomy import TaxonomyInUseError

ContainerFactory = Callable[[], Awaitable[AppContainer]]


def create_app(
    container: AppContainer | None = None,
    *,
    container_factory: ContainerFactory = build_container,
) -> FastAPI:
    """Create a FastAPI app configured with dependencies.

    Without ``container`` the dependencies are built on startup.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "container", None) is None:
            app.state.container = await container_factory()
        state_container: AppContainer = app.state.container
        configure_logging(state_container.settings.log_level)
        try:
            await state_container.start()
        except Exception:
            logger.exception("Failed to start household sync")
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(household_router)

    @app.exception_handler(UnknownEntityError)
    async def unknown_entity(_: Request, exc: UnknownEntityError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(TaxonomyInUseError)
    @app.exception_handler(StorageLocationInUseError)
    async def in_use(_: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(ValueError)
    async def invalid_value(_: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
