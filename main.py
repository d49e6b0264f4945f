# main.py
"""
VitaBalance API - Main Application.

FastAPI app with a SQLAlchemy row store and Mercado Pago checkout.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging

import httpx
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from settings import Settings, settings
from vitabalance import __version__
from vitabalance.database import Database
from vitabalance.services.mercadopago import MercadoPagoClient
from vitabalance.services.notifications import EntitlementNotifier
from vitabalance.services.reconciliation import WebhookReconciler
from vitabalance.services.store import Store
from vitabalance.utils.errors import VitaBalanceException
from vitabalance.routes import checkout, payment, plan, registration, webhooks

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def init_sentry(config: Settings) -> None:
    """Initialize Sentry for error tracking when a DSN is configured."""
    if not config.SENTRY_DSN:
        logger.warning("Sentry DSN not configured - error tracking disabled")
        return
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.SENTRY_ENVIRONMENT,
        traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR
            ),
        ],
    )
    logger.info(f"Sentry initialized ({config.SENTRY_ENVIRONMENT})")


def create_app(
    config: Settings,
    payment_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application settings.
        payment_transport: Optional httpx transport for the Mercado Pago
            client (tests pass a MockTransport).

    Returns:
        FastAPI: Configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Starting VitaBalance API...")
        # Missing required configuration is fatal
        config.validate_required_settings()

        database = Database(config.DATABASE_URL)
        database.create_all()
        store = Store(
            database,
            retry_attempts=config.STORE_RETRY_ATTEMPTS,
            retry_base_delay=config.STORE_RETRY_BASE_DELAY_SECONDS,
        )
        payment_client = MercadoPagoClient(
            access_token=config.MERCADOPAGO_ACCESS_TOKEN,
            base_url=config.MERCADOPAGO_API_URL,
            timeout=config.MERCADOPAGO_TIMEOUT_SECONDS,
            retry_attempts=config.UPSTREAM_RETRY_ATTEMPTS,
            retry_base_delay=config.UPSTREAM_RETRY_BASE_DELAY_SECONDS,
            transport=payment_transport,
        )
        notifier = EntitlementNotifier()

        app.state.database = database
        app.state.store = store
        app.state.payment_client = payment_client
        app.state.notifier = notifier
        app.state.reconciler = WebhookReconciler(
            store,
            payment_client,
            notifier,
            config.MERCADOPAGO_WEBHOOK_SECRET,
        )
        logger.info("Store and payment provider initialized")

        yield

        await payment_client.aclose()
        database.dispose()
        logger.info("VitaBalance API shutdown complete")

    init_sentry(config)

    app = FastAPI(
        title="VitaBalance API",
        version=__version__,
        description="Personalised nutrition and training plans",
        lifespan=lifespan
    )
    app.state.config = config

    # CORS middleware - Allow frontend origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(VitaBalanceException)
    async def vitabalance_exception_handler(request: Request, exc: VitaBalanceException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "detail": exc.detail},
        )

    # Health check
    @app.get("/health")
    async def health_check():
        """Health check endpoint - fast response without database dependency."""
        return {
            "status": "ok",
            "environment": config.ENV,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        }

    @app.get("/health/detailed")
    async def health_check_detailed(request: Request):
        """Detailed health check with store connectivity test."""
        store_ok = await request.app.state.store.aping()
        return {
            "status": "ok" if store_ok else "degraded",
            "database": "sqlite" if config.is_sqlite else "postgresql",
            "database_connected": store_ok,
            "environment": config.ENV,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        }

    # Include routers
    app.include_router(registration.router, prefix="/registration", tags=["Registration"])
    app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
    app.include_router(payment.router, prefix="/payment", tags=["Payment"])
    app.include_router(plan.router, prefix="/plan", tags=["Plan"])

    # Root endpoint
    @app.get("/")
    async def root():
        """API root endpoint."""
        return {
            "message": "VitaBalance API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app(settings)
