"""
app/main.py — Portfolio FastAPI application
============================================
Public portfolio pages plus the owner's admin dashboard, backed by a hosted
relational store and object storage (or their local SQLite / directory
stand-ins for development).

Routes:
  GET /, /projets, /projets/{id}, /about, /contact, /login   → public pages (app/routers/pages.py)
  GET /api/...                                               → public JSON API (app/routers/api.py)
  GET /admin, POST /admin/tabs/...                           → admin dashboard (admin/routers/pages.py)
  /admin/api/...                                             → admin JSON API (admin/routers/admin.py)
  GET /media/...                                             → local bucket files (local storage only)
  GET /health                                                → liveness check

Store and bucket clients are built from config by create_app() and kept on
app.state; prebuilt ones can be passed in instead (tests do this). Run with
`uvicorn app.main:create_app --factory` or `python -m app.main`.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from admin.dependencies.access_control import LoginRequired
from admin.routers import admin as admin_api
from admin.routers import pages as admin_pages
from admin.services.dashboard import DashboardRegistry
from app.limits import limiter
from app.routers import api, pages
from app.services.contact import SimulatedContactSender
from db.client import Store, create_store
from db.storage import Bucket, LocalBucket, create_bucket

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
ROOT = Path(__file__).parent.parent


def load_config() -> dict:
    """Load config.yaml + environment overrides from the project root."""
    from config_loader import load_config as _load
    return _load(root=ROOT)


def create_app(
    config: Optional[dict] = None,
    store: Optional[Store] = None,
    bucket: Optional[Bucket] = None,
    contact_sender=None,
) -> FastAPI:
    """Create and configure the application. Injected clients are not closed on shutdown."""
    config = config if config is not None else load_config()
    owns_store = store is None
    owns_bucket = bucket is None
    store = store or create_store(config)
    bucket = bucket or create_bucket(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Portfolio started with {type(store).__name__} / {type(bucket).__name__}")
        yield
        if owns_store:
            store.close()
        if owns_bucket:
            bucket.close()

    app = FastAPI(
        title="Portfolio",
        description="Portfolio site with an admin dashboard.",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )

    app.state.config = config
    app.state.store = store
    app.state.bucket = bucket
    app.state.dashboards = DashboardRegistry(store, bucket)
    app.state.contact_sender = contact_sender or SimulatedContactSender(
        config.get("contact", {}).get("simulated_delay_seconds", 2.0)
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)

    # Security settings from config (with safe defaults)
    cors_origins = config.get("security", {}).get("cors_origins", ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(pages.router)
    app.include_router(api.router)
    app.include_router(admin_api.router, prefix="/admin/api", tags=["admin"])
    app.include_router(admin_pages.router, prefix="/admin", tags=["admin"])

    if isinstance(bucket, LocalBucket):
        bucket.root.mkdir(parents=True, exist_ok=True)
        app.mount(bucket.base_url, StaticFiles(directory=str(bucket.root)), name="media")

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "ok", "version": APP_VERSION}

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    _config = load_config()
    _server = _config.get("server", {})
    uvicorn.run(
        create_app(_config),
        host=_server.get("host", "0.0.0.0"),
        port=_server.get("port", 8000),
        log_level="info",
    )
