# book_inventory/main.py
# Book Inventory API - multi-tenant stock of used-book sellers
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from book_inventory.settings import Settings, settings as default_settings
from book_inventory.database import Database
from book_inventory.logging_setup import setup_logging
from book_inventory.routers.imports import router as imports_router
from book_inventory.routers.inventory import router as inventory_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    The database handle is created in the lifespan (or passed in) and kept
    on app.state; routes reach it through the get_session dependency.
    """
    settings = settings or default_settings

    # ---------------------------------------------------------
    # Lifespan: Database init/cleanup
    # ---------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        db = database or Database.from_settings(settings)
        app.state.db = db
        if settings.DB_CREATE_ALL:
            await db.create_all()
        logger.info("Database ready: %s", db.engine.url.render_as_string(hide_password=True))
        yield
        if database is None:
            await db.dispose()
        logger.info("Database disconnected")

    # ---------------------------------------------------------
    # FastAPI app + CORS
    # ---------------------------------------------------------
    app = FastAPI(
        title="Book Inventory API",
        version=VERSION,
        description="Used-book seller inventory - spreadsheet import and reconciliation",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------
    # Error bodies: {"message": ...} like every other response
    # ---------------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(imports_router)
    app.include_router(inventory_router)

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint with database status."""
        result = {"status": "ok", "version": VERSION}
        db_health = await request.app.state.db.check_health()
        result["database"] = db_health
        if db_health.get("status") != "healthy":
            result["status"] = "degraded"
        return result

    return app


# ---------------------------------------------------------
# Logging setup + default app (uvicorn book_inventory.main:app)
# ---------------------------------------------------------
setup_logging(default_settings)
app = create_app()
