"""
FastAPI application factory.

Creates and configures the FastAPI application with:
- Document store selected by DOCUMENT_STORE_BACKEND
- Optional HTTP payment gateway
- CORS middleware
- Booking API router
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, config
from .api import booking_api
from .db.document_store import DocumentStore
from .db.memory_store import InMemoryDocumentStore
from .services.payment_gateway import HttpPaymentGateway, PaymentGateway
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def build_document_store() -> DocumentStore:
    """Create the store for the configured backend."""
    if config.DOCUMENT_STORE_BACKEND == "supabase":
        from .database import get_booking_client_async
        from .db.supabase_store import SupabaseDocumentStore

        client = await get_booking_client_async()
        logger.info("✅ Supabase document store ready")
        return SupabaseDocumentStore(client)

    logger.warning("Using in-memory document store; data is lost on restart")
    return InMemoryDocumentStore()


def build_payment_gateway() -> Optional[PaymentGateway]:
    if not config.PAYMENT_GATEWAY_URL:
        logger.warning("PAYMENT_GATEWAY_URL not set; only pay-later bookings are accepted")
        return None
    return HttpPaymentGateway(config.PAYMENT_GATEWAY_URL, api_key=config.PAYMENT_GATEWAY_API_KEY)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "document_store", None) is None:
        app.state.document_store = await build_document_store()
    if getattr(app.state, "payment_gateway", None) is None:
        app.state.payment_gateway = build_payment_gateway()

    logger.info(f"Booking engine {__version__} started (backend={config.DOCUMENT_STORE_BACKEND})")
    yield

    if config.DOCUMENT_STORE_BACKEND == "supabase":
        from .database import close_all_clients
        await close_all_clients()
    logger.info("Booking engine stopped")


def configure_cors(app: FastAPI):
    """Configure CORS middleware for the booking frontend."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


def create_app(
    store: Optional[DocumentStore] = None,
    payment_gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Document store to use instead of the configured backend
        payment_gateway: Payment collaborator to use instead of PAYMENT_GATEWAY_URL

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(config.LOG_LEVEL)

    app = FastAPI(
        title="Clinic Booking Engine",
        description="Service catalog, availability, discount evaluation and booking commit for clinics.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.document_store = store
    app.state.payment_gateway = payment_gateway

    configure_cors(app)
    app.include_router(booking_api.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "healthy", "version": __version__}

    return app
