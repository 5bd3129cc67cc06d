"""
Storefront Backend with OpenTelemetry Instrumentation

Run with:
    uvicorn storefront.main:get_app --factory --reload
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from storefront import __version__, config
from storefront.auth import ensure_admin
from storefront.errors import register_exception_handlers
from storefront.payments import MockPaymentGateway, PaymentGateway
from storefront.routes import routers
from storefront.storage import Storage, build_storage
from storefront.telemetry import configure_logging, record_request_metrics

logger = logging.getLogger(__name__)


def create_app(
    storage: Optional[Storage] = None,
    payments: Optional[PaymentGateway] = None,
    upload_dir: Optional[str] = None,
) -> FastAPI:
    """
    Build the API.

    Tests pass their own storage / gateway / upload directory; the module-level
    ``app`` below uses the configured defaults.
    """
    app = FastAPI(
        title="Storefront API",
        description="Storefront and back-office backend with observability features",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(record_request_metrics)
    register_exception_handlers(app)

    app.state.storage = storage if storage is not None else build_storage()
    app.state.payments = payments if payments is not None else MockPaymentGateway()
    app.state.upload_dir = upload_dir or config.UPLOAD_DIR
    os.makedirs(app.state.upload_dir, exist_ok=True)

    if config.ADMIN_PASSWORD:
        ensure_admin(app.state.storage, config.ADMIN_USERNAME, config.ADMIN_PASSWORD)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "storefront-backend"}

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router in routers:
        app.include_router(router)

    app.mount("/uploads", StaticFiles(directory=app.state.upload_dir), name="uploads")

    FastAPIInstrumentor.instrument_app(app)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Storefront backend started (storage: %s)", type(app.state.storage).__name__)
        logger.info("Prometheus metrics at /metrics")

    return app


def get_app() -> FastAPI:
    """Configured application for uvicorn; tests build their own with create_app()."""
    configure_logging()
    return create_app()
