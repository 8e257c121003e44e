"""
Main API module for Link Platform.

Responsibilities:
    - Expose REST endpoints for creating, looking up, deleting and listing links
    - Redirect visitors from /{code} to the original URL while counting the visit
    - Provide a liveness endpoint

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - One storage backend, registry and resolver per app instance, created at
      start-up and released by the lifespan hook on shutdown.
    - Registry and resolver raise LinkError subclasses; this module alone maps
      them to HTTP status codes.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.responses import RedirectResponse

from link_platform import __version__
from link_platform.config import settings
from link_platform.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    LinkError,
    NotFoundError,
    ResourceExhaustedError,
)
from link_platform.manager.link_registry import LinkRegistry
from link_platform.manager.resolver import RedirectResolver
from link_platform.schemas import HealthOut, LinkCreate, LinkOut, MessageOut
from link_platform.storage.base import BaseStorage
from link_platform.storage.storage_factory import get_storage

log = logging.getLogger("link_platform.api")

_STATUS_BY_ERROR = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ResourceExhaustedError: status.HTTP_503_SERVICE_UNAVAILABLE,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _http_error(err: LinkError) -> HTTPException:
    """Map a registry/resolver error to an HTTPException carrying its reason."""
    for err_type, code in _STATUS_BY_ERROR.items():
        if isinstance(err, err_type):
            if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
                log.error("Internal error: %s", err, exc_info=err.__cause__ or err)
                return HTTPException(status_code=code, detail="Internal server error")
            return HTTPException(status_code=code, detail=str(err))
    log.error("Unmapped link error: %r", err)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


def create_app(storage: Optional[BaseStorage] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage (Optional[BaseStorage]): Backend to use; when omitted, the
            storage factory picks one from LINK_STORAGE_BACKEND.

    Returns:
        FastAPI: A fully configured application instance with its own
                 storage, registry and resolver.
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    storage = storage if storage is not None else get_storage()
    registry = LinkRegistry(storage=storage, max_attempts=settings.MAX_CODE_ATTEMPTS)
    resolver = RedirectResolver(registry)
    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        storage.ensure_schema()
        log.info("Link storage backend ready: %s", type(storage).__name__)
        try:
            yield
        finally:
            storage.close()
            log.info("Link storage backend closed")

    app = FastAPI(
        title="Link Platform",
        description="URL shortener with atomic click accounting",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.storage = storage
    app.state.registry = registry
    app.state.resolver = resolver

    # ----------------------------------------------------------------
    # Health
    # ----------------------------------------------------------------
    @app.get("/healthz", response_model=HealthOut)
    def healthz() -> HealthOut:
        return HealthOut(
            ok=True,
            version=__version__,
            timestamp=datetime.now(timezone.utc),
            uptime=time.monotonic() - started,
        )

    # ----------------------------------------------------------------
    # Link management
    # ----------------------------------------------------------------
    @app.post("/api/links", response_model=LinkOut, status_code=status.HTTP_201_CREATED)
    def create_link(req: LinkCreate) -> LinkOut:
        """
        Create a short link for a given URL.

        Raises:
            HTTPException: 400 on a malformed URL or code, 409 when the custom
            code is taken, 503 when no random code could be allocated.
        """
        try:
            link = registry.create(req.original_url, req.short_code)
        except LinkError as err:
            raise _http_error(err)
        return LinkOut.model_validate(link)

    @app.get("/api/links", response_model=List[LinkOut])
    def list_links() -> List[LinkOut]:
        try:
            links = registry.list()
        except LinkError as err:
            raise _http_error(err)
        return [LinkOut.model_validate(link) for link in links]

    @app.get("/api/links/{code}", response_model=LinkOut)
    def get_link(code: str) -> LinkOut:
        try:
            link = registry.get(code)
        except LinkError as err:
            raise _http_error(err)
        return LinkOut.model_validate(link)

    @app.delete("/api/links/{code}", response_model=MessageOut)
    def delete_link(code: str) -> MessageOut:
        try:
            registry.delete(code)
        except LinkError as err:
            raise _http_error(err)
        return MessageOut(message="Link deleted successfully")

    # ----------------------------------------------------------------
    # Redirect (registered last so it never shadows the routes above)
    # ----------------------------------------------------------------
    @app.get("/{code}")
    def redirect_link(code: str) -> RedirectResponse:
        """
        Redirect to the original URL with a 302 and count the visit.

        Unknown and deleted codes both answer 404.
        """
        try:
            target = resolver.resolve(code)
        except LinkError as err:
            raise _http_error(err)
        return RedirectResponse(url=target, status_code=status.HTTP_302_FOUND)

    return app


# `uvicorn main:app` and `from main import app` keep working.
app = create_app()
