"""
FastAPI application factory.

* Builds the process-wide cache, HTTP client and aggregator via
  lifespan events and closes the client on shutdown.
* Maps domain errors to ``{"error": ...}`` JSON bodies.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.dependencies import build_aggregator
from src.api.middleware import limiter
from src.api.routes import cities
from src.api.schemas import HealthResponse
from src.config import settings
from src.domain.errors import OriginUnresolved, ValidationError
from src.infrastructure.cache import TTLCache
from src.infrastructure.http_client import create_http_client

logging.basicConfig(level=settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create shared resources on startup; release them on shutdown."""
    cache = TTLCache(default_ttl_seconds=settings.cache_ttl_seconds)
    client = create_http_client()
    app.state.aggregator = build_aggregator(client, cache, settings)
    logger.info("Nearby cities service ready (cache ttl=%ds)", settings.cache_ttl_seconds)
    yield
    await client.aclose()


async def _validation_error(request: Request, exc: ValidationError):
    logger.warning("Rejected %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        where = ".".join(str(p) for p in errors[0].get("loc", ())[1:])
        message = f"Invalid parameter {where}: {errors[0].get('msg')}"
    else:
        message = "Invalid parameters"
    logger.warning("Rejected %s: %s", request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


async def _origin_unresolved(request: Request, exc: OriginUnresolved):
    logger.error("Origin unresolved: %s, %s", exc.city, exc.state)
    return JSONResponse(
        status_code=500,
        content={"error": "Could not fetch coordinates for the city"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Nearby Cities API",
        description=(
            "Given a Brazilian city and state, lists the cities within a "
            "radius with their population, state and road distance."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Error mapping
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(OriginUnresolved, _origin_unresolved)

    # Routers
    app.include_router(cities.router)

    @app.get("/health", response_model=HealthResponse, tags=["admin"])
    async def health():
        return HealthResponse()

    return app
