"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

logging.basicConfig(level=logging.INFO)

from apps.api.config import Settings, load_settings
from apps.api.db import Store
from apps.api.routes import actions, avatars, entities, health, identities
from apps.api.services.blob_store import BlobStore, LocalBlobStore
from apps.api.services.errors import GENERIC_INTERNAL_MESSAGE, AgentHuntError, InternalError

_LOG = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def _domain_error_handler(request: Request, exc: AgentHuntError) -> JSONResponse:
    if isinstance(exc, InternalError) or exc.status_code >= 500:
        _LOG.error("internal error on %s %s: %s", request.method, request.url.path, exc.message)
        return _error(500, GENERIC_INTERNAL_MESSAGE)
    return _error(exc.status_code, exc.message)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path/query/body -> 400 (never 422)."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else str(err.get("msg", "invalid")))
    return _error(400, "Invalid request. " + "; ".join(parts) if parts else "Invalid request.")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown route (404) and wrong method (405, keeps Allow header)."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    if exc.status_code == 405:
        message = f"Method {request.method} Not Allowed"
    return _error(exc.status_code, message, headers=getattr(exc, "headers", None))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _LOG.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error(500, GENERIC_INTERNAL_MESSAGE)


def create_app(
    settings: Settings | None = None,
    store: Store | None = None,
    blob_store: BlobStore | None = None,
) -> FastAPI:
    """Build the app. Collaborators not passed in are built from settings (env by default)."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Ensure tables exist on startup (SQLite / SCHEMA_AUTHORITY=ensure_tables); Alembic owns Postgres."""
        app.state.store.ensure_tables()
        yield
        app.state.store.dispose()

    app = FastAPI(
        title="Agent Hunt API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or Store.from_settings(settings)
    app.state.blob_store = blob_store or LocalBlobStore(settings.avatar_dir, settings.avatar_base_url)

    app.add_middleware(CORSMiddleware, allow_origins=settings.cors_origins, allow_methods=["*"], allow_headers=["*"])

    app.add_exception_handler(AgentHuntError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(health.router, tags=["health"])
    app.include_router(entities.router, prefix="/entities", tags=["entities"])
    app.include_router(actions.router, prefix="/entities", tags=["actions"])
    app.include_router(identities.router, prefix="/identities", tags=["identities"])
    app.include_router(avatars.router, prefix="/avatars", tags=["avatars"])
    return app


app = create_app()
