"""FastAPI application entrypoint. No business logic; only wiring, startup provisioning and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authstarr.api.v1 import router as v1_router
from authstarr.core.config import settings
from authstarr.core.database import SessionLocal
from authstarr.services.store import provision_store

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Provision the base client once at startup (idempotent upsert)."""
    db = SessionLocal()
    try:
        provision_store(db, settings)
    finally:
        db.close()
    logger.info("Auth-Starr API started (env=%s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="Auth-Starr API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Auth-Starr API"}
