"""FastAPI application entry point.

Airport Radar API - nearby and popular airports.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from dataclasses import dataclass
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import redis.asyncio as redis

from airport_radar.errors import AirportRadarError
from airport_radar.routes import api_router
from airport_radar.schemas import ErrorDetail, ErrorResponse
from airport_radar.services.airport_data import load_airports_file
from airport_radar.services.coordinator import IndexCoordinator
from airport_radar.services.queries import QueryService
from airport_radar.settings import Settings, get_settings
from airport_radar.stores.popularity_index import RedisPopularityIndex
from airport_radar.stores.postgres import Database
from airport_radar.stores.record_store import SqlRecordStore
from airport_radar.stores.redis import close_redis, create_redis
from airport_radar.stores.spatial_index import RedisSpatialIndex

logger = logging.getLogger("uvicorn.error")


@dataclass
class Stores:
    """Connections owned by one application instance."""

    database: Database
    geo_redis: redis.Redis
    pop_redis: redis.Redis

    async def close(self) -> None:
        await close_redis(self.geo_redis)
        if self.pop_redis is not self.geo_redis:
            await close_redis(self.pop_redis)
        await self.database.dispose()


def open_stores(settings: Settings) -> Stores:
    """Create the database engine and Redis clients (connections are lazy)."""
    geo_redis = create_redis(settings.geo_redis_url, settings.store_timeout_seconds)
    if settings.popularity_redis_url == settings.geo_redis_url:
        pop_redis = geo_redis
    else:
        pop_redis = create_redis(settings.popularity_redis_url, settings.store_timeout_seconds)
    return Stores(database=Database.from_settings(settings), geo_redis=geo_redis, pop_redis=pop_redis)


def build_services(stores: Stores, settings: Settings) -> tuple[IndexCoordinator, QueryService]:
    """Wire the record store and both indexes into the coordinator and query service."""
    timeout = settings.store_timeout_seconds
    records = SqlRecordStore(stores.database, timeout=timeout)
    spatial = RedisSpatialIndex(stores.geo_redis, key=settings.geo_index_key, timeout=timeout)
    popularity = RedisPopularityIndex(
        stores.pop_redis,
        key=settings.popularity_key,
        window_seconds=settings.popularity_window_seconds,
        timeout=timeout,
    )
    coordinator = IndexCoordinator(records, spatial, popularity)
    queries = QueryService(records, spatial, popularity, popular_limit=settings.popular_limit)
    return coordinator, queries


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()
    stores = open_stores(settings)
    app.state.coordinator, app.state.queries = build_services(stores, settings)

    # Check connectivity (keep serving if a store is down; requests will 503)
    try:
        await stores.database.ping()
        if settings.auto_create_tables:
            await stores.database.create_tables()
        logger.info("Database connected")
    except Exception:
        logger.exception("Database init failed")

    try:
        await stores.geo_redis.ping()
        await stores.pop_redis.ping()
        logger.info("Redis connected")
    except Exception:
        logger.exception("Redis init failed")

    if settings.load_airports_on_startup and settings.airports_data_path:
        try:
            airports = load_airports_file(settings.airports_data_path)
            await app.state.coordinator.bulk_load(airports)
        except Exception:
            logger.exception("Initial airport load failed")

    yield

    # Shutdown
    await stores.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Nearby and popular airports",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AirportRadarError)
    async def domain_exception_handler(request: Request, exc: AirportRadarError) -> JSONResponse:
        """Render domain errors in the structured error format."""
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(code=exc.code, message=exc.message, detail=exc.detail)
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Missing/malformed parameters and invalid bodies are 400s."""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="VALIDATION_ERROR",
                    message="Missing or invalid parameters",
                    detail=jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
                )
            ).model_dump(),
        )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": str(exc) if settings.debug else "Internal server error",
                    "detail": None,
                }
            },
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "airport_radar.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
