from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from site_tracker.core.config import settings
from site_tracker.core.migrations import run_migrations
from site_tracker.routers import (
    auth,
    catalog,
    files,
    inventory,
    pmr,
    suggestions,
    trending,
    users,
)
from site_tracker.seeds.seed_data import seed_initial_data

logger = logging.getLogger("site_tracker")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Site Inventory Tracker API", version="0.1.0")

cors_origins = settings.cors_allow_origins or ["*"]
allow_credentials = "*" not in cors_origins
if "*" in cors_origins:
    logger.warning("CORS_ALLOW_ORIGINS includes '*'; do not use this in production")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=settings.cors_allow_origin_regex,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("Permissions-Policy", "camera=(), microphone=(), geolocation=()")
    return response


@app.on_event("startup")
async def startup_event() -> None:
    if settings.run_migrations_on_startup:
        run_migrations()
    if settings.seed_initial_data:
        logger.warning("Seeding demo users and catalog; disable SEED_INITIAL_DATA in production")
        seed_initial_data()
    settings.media_storage_dir.mkdir(parents=True, exist_ok=True)


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
app.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
app.include_router(pmr.router, prefix="/pmr", tags=["pmr"])
app.include_router(trending.router, prefix="/trending", tags=["trending"])
app.include_router(suggestions.router, prefix="/suggestions", tags=["suggestions"])
app.include_router(files.router, prefix="/files", tags=["files"])


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
