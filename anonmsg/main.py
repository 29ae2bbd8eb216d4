from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from .api import links, messages
from .config import Settings, get_settings
from .database import Database
from .errors import ErrorHandlingMiddleware, register_exception_handlers
from .logging_config import setup_logging
from .observability import PrometheusMiddleware, metrics_endpoint
from .redis import RedisClient
from .services.rate_limiter import MemoryWindowStore, RedisWindowStore
from .utils import IdentifierFactory

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Welcome to the Anonymous Messages API! Use /api/links/create to create a link."


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    # Startup logic
    database = Database(settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development")
    try:
        await database.connect()
    except (SQLAlchemyError, OSError) as e:
        logger.critical(f"Database connection error: {e}")
        await database.close()
        raise SystemExit(1)
    logger.info("Database connected")
    app.state.database = database

    app.state.rate_limit_store = MemoryWindowStore()
    if settings.REDIS_URL:
        redis_client = RedisClient(settings.REDIS_URL)
        try:
            await redis_client.connect()
            app.state.rate_limit_store = RedisWindowStore(redis_client)
        except RedisError as e:
            # Rate limiting degrades to per-process counters; only the database is fatal
            logger.warning(f"Redis unavailable, using in-memory rate limits: {e}")
            await redis_client.close()

    logger.info(f"Environment: {settings.ENVIRONMENT}")
    yield

    # Shutdown logic
    await app.state.rate_limit_store.close()
    await database.close()


def create_app(settings: Optional[Settings] = None, identifiers: Optional[IdentifierFactory] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Anonymous Messages",
        description="Shareable links that collect anonymous messages",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.identifiers = identifiers or IdentifierFactory()

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.add_route("/metrics", metrics_endpoint)

    app.include_router(links.router, prefix="/api")
    app.include_router(messages.router, prefix="/api")

    @app.get("/", response_class=PlainTextResponse)
    async def welcome():
        return WELCOME_TEXT

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
