"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.api.v1.router import api_v1_router
from portal.core.config import settings
from portal.core.exceptions import (
    BackendError,
    BackendUnavailable,
    ProblemDetailError,
    backend_error_handler,
    backend_unavailable_handler,
    http_exception_handler,
    problem_detail_handler,
    validation_exception_handler,
)
from portal.core.middleware.cors import get_cors_config
from portal.core.middleware.request_id import RequestIdMiddleware
from portal.services.backend_client import BackendClient
from portal.services.inflight import build_guard
from portal.services.locations import LocationDirectory
from portal.services.session import SessionRegistry

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.backend = BackendClient.from_settings()
    app.state.sessions = SessionRegistry()
    app.state.inflight = build_guard()
    app.state.locations = LocationDirectory.from_dir(settings.LOCATIONS_DIR)
    try:
        yield
    finally:
        app.state.sessions.clear()
        await app.state.inflight.close()
        await app.state.backend.aclose()


app = FastAPI(
    title="Blood Bond Portal API",
    version="0.1.0",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Middleware (last added = first executed)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(CORSMiddleware, **get_cors_config())

# Exception handlers (RFC 7807)
app.add_exception_handler(ProblemDetailError, problem_detail_handler)
app.add_exception_handler(BackendError, backend_error_handler)
app.add_exception_handler(BackendUnavailable, backend_unavailable_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Routes
app.include_router(api_v1_router, prefix="/api/v1")
