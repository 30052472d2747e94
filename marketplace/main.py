"""
Marketplace API — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.ext.asyncio import AsyncEngine

from marketplace.api import auth, cart, catalog, health, notifications, orders
from marketplace.core.config import get_settings
from marketplace.core.errors import register_error_handlers
from marketplace.core.redis_client import close_redis, get_redis
from marketplace.db.database import build_engine, build_session_factory, create_schema
from marketplace.middleware.auth import JWTAuthMiddleware
from marketplace.notifications.publisher import NullPublisher, Publisher, RedisPublisher
from marketplace.workflow.orders import OrderWorkflow, generate_order_number

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def _default_publisher() -> Publisher:
    if settings.NOTIFICATIONS_ENABLED:
        return RedisPublisher(get_redis(), channel_prefix=settings.NOTIFICATION_CHANNEL_PREFIX)
    return NullPublisher()


def create_app(engine: AsyncEngine | None = None, publisher: Publisher | None = None) -> FastAPI:
    engine = engine or build_engine()
    publisher = publisher or _default_publisher()
    session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: create tables (migrations are handled outside the service)
        await create_schema(engine)
        yield
        # Shutdown
        if isinstance(publisher, RedisPublisher):
            await publisher.drain()
        await close_redis()
        await engine.dispose()

    app = FastAPI(
        title="Food Marketplace API",
        description="Customers, restaurant operators and admins: catalog, cart and the order workflow.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )

    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.publisher = publisher
    app.state.workflow = OrderWorkflow(
        session_factory,
        publisher,
        tax_rate=settings.TAX_RATE,
        delivery_estimate_minutes=settings.DELIVERY_ESTIMATE_MINUTES,
        order_number_factory=lambda: generate_order_number(settings.ORDER_NUMBER_PREFIX),
        max_page_size=settings.ORDERS_MAX_PAGE_SIZE,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Tighten in production via env var
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Authentication ────────────────────────────────────────────────────────
    app.add_middleware(JWTAuthMiddleware)

    # ── Errors ────────────────────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Prometheus Metrics ────────────────────────────────────────────────────
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(catalog.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(notifications.router)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}

    return app


app = create_app()
