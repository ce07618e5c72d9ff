"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from uno_server.api.games import GameApiError
from uno_server.api.games import router as games_router
from uno_server.app_logging import configure_logging
from uno_server.containers import AppContainer
from uno_server.domain.results import ErrorKind


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(games_router)

    @app.exception_handler(GameApiError)
    async def game_error_handler(request: Request, exc: GameApiError) -> JSONResponse:
        failure = exc.failure
        if failure.kind == ErrorKind.INVARIANT:
            logger.error(
                "Session invariant violated: path=%s detail=%s",
                request.url.path,
                failure.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": failure.message, "error": failure.kind.value},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unhandled error: path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error": "server_error"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
