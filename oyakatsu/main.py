"""Oyakatsu API - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from oyakatsu.api.errors import register_error_handlers
from oyakatsu.config import settings
from oyakatsu.database import Database
from oyakatsu.services.notification_service import LogNotifier

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup and close it on shutdown."""
    db = Database(
        settings.database_url,
        echo=settings.debug,
        busy_timeout=settings.db_busy_timeout_seconds,
    )
    db.open()
    app.state.db = db
    app.state.notifier = LogNotifier()

    yield

    db.close()


app = FastAPI(
    title="Oyakatsu API",
    description="Family accounts: code/password sign-in and invite-based families",
    version=settings.version,
    lifespan=lifespan,
)

# CORS - mobile clients call from anywhere
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# --- Register API routers ---
from oyakatsu.api.auth import router as auth_router  # noqa: E402
from oyakatsu.api.users import router as users_router  # noqa: E402
from oyakatsu.api.families import router as families_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(families_router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Service info."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}
