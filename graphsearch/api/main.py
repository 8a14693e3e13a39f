"""FastAPI application entrypoint for graphsearch."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from graphsearch.api.dependencies import get_mapping
from graphsearch.api.middleware.logging import LoggingMiddleware
from graphsearch.api.routes import admin, search
from graphsearch.core.config import settings
from graphsearch.core.database import database_manager
from graphsearch.core.exceptions import (
    GraphSearchError,
    IndexProvisioningError,
    InvalidQueryError,
    MappingConfigurationError,
    SearchTransportError,
)
from graphsearch.core.logging import configure_logging

ERROR_STATUS = {
    InvalidQueryError: status.HTTP_400_BAD_REQUEST,
    SearchTransportError: status.HTTP_502_BAD_GATEWAY,
    IndexProvisioningError: status.HTTP_503_SERVICE_UNAVAILABLE,
    MappingConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize shared resources on startup and tear them down on shutdown."""

    configure_logging(settings.LOG_LEVEL)
    mapping = get_mapping()
    await database_manager.initialize()
    if settings.ENSURE_INDICES_ON_STARTUP:
        await mapping.ensure_indices(database_manager.index_client)

    try:
        yield
    finally:
        await database_manager.close()


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(search.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.exception_handler(GraphSearchError)
async def handle_graphsearch_error(_: Request, exc: GraphSearchError):
    """Return standardized responses for application layer exceptions."""

    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.error_code, "details": exc.details or {}},
    )
