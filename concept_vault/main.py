"""FastAPI application entry point."""
from __future__ import annotations
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from concept_vault.api import concepts, sync
from concept_vault.api.errors import store_error_handler, unhandled_exception_handler
from concept_vault.core.log import configure_logging
from concept_vault.domain.common.errors import StoreError
from concept_vault.persistence.db import init_db

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# App creation
# ------------------------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title="Concept Vault API",
        description="Store and sync service for the Concept Vault knowledge base",
        version="1.0.0",
    )

    # CORS: allow everything for local use (restrict for production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Startup: initialise DB schema
    # --------------------------------------------------------------
    @app.on_event("startup")
    def on_startup():
        configure_logging()
        init_db()
        logger.info("Concept Vault API ready")

    # --------------------------------------------------------------
    # Routers (sync first so /api/concepts/sync is not taken as an id)
    # --------------------------------------------------------------
    app.include_router(sync.router)
    app.include_router(concepts.router)
    return app


app = create_app()
