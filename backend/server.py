from __future__ import annotations

import os
import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from renthub.config import APP_NAME, APP_VERSION, SERVICE_NAME
from renthub.db import close_mongo, connect_mongo, get_db
from renthub.exception_handlers import register_exception_handlers
from renthub.indexes.account_indexes import ensure_account_indexes
from renthub.middleware.correlation_id import CorrelationIdMiddleware
from renthub.routers.bookings import router as bookings_router
from renthub.routers.notifications import router as notifications_router
from renthub.routers.payments import router as payments_router

ROOT_DIR = Path(__file__).parent

# Load .env only if exists (development fallback)
env_path = ROOT_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(SERVICE_NAME)

app = FastAPI(title=APP_NAME, version=APP_VERSION)

app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers (/api prefix is on each router). Bookings first: GET /api/bookings/notifications
# lists bookings, which is why "bookings" is a reserved account id (config.RESERVED_ACCOUNT_IDS)
app.include_router(bookings_router)
app.include_router(payments_router)
app.include_router(notifications_router)


@app.get("/api/health")
async def health() -> dict[str, Any]:
    """Health check with database ping"""
    db = await get_db()
    ok = False
    try:
        await db.command("ping")
        ok = True
    except Exception:
        logger.warning("Database ping failed", exc_info=True)
    return {"ok": ok, "service": SERVICE_NAME}


@app.get("/health")
async def deployment_health() -> dict[str, Any]:
    """Simple health check for deployment platforms"""
    return {"ok": True, "service": SERVICE_NAME, "status": "healthy"}


@app.on_event("startup")
async def _startup() -> None:
    await connect_mongo()
    await ensure_account_indexes(await get_db())
    logger.info("Startup complete")


@app.on_event("shutdown")
async def _shutdown() -> None:
    await close_mongo()
    logger.info("Shutdown complete")
