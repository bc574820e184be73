"""
FastAPI application factory for the shared document store.

* Registers routes for documents and admin.
* Creates missing tables on startup (migrations stay authoritative).
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from roninride.api.middleware import limiter
from roninride.api.routes import admin, documents
from roninride.infrastructure.database import create_schema

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_schema()
    logger.info("Document store ready")
    yield
    logger.info("Document store stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="RoninRide Document Store",
        description=(
            "Session-scoped JSON documents shared by rider and driver "
            "clients.  Whole-document read and replace, with optional "
            "compare-and-swap through ETag / If-Match."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(documents.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
