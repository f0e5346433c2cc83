import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from signage.api import content, health, player, playlist, schedule, screen, space, timecode, venue
from signage.db import init_db
from signage.errors import NotFoundError, TransientStoreError, ValidationFailed
from signage.services.clock import ClockService
from signage.services.realtime import NotificationBus

LOG_LEVEL = os.getenv("SIGNAGE_LOG_LEVEL", "INFO").strip().upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("SIGNAGE_CORS_ORIGINS", "*").split(",") if o.strip()]
QUIET_ACCESS_LOG = os.getenv("SIGNAGE_QUIET_ACCESS_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

if QUIET_ACCESS_LOG:
    # Players poll config and clock status constantly; keep warnings and errors only.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

app = FastAPI(title="signage-sync")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_events() -> None:
    init_db()
    bus = NotificationBus()
    app.state.bus = bus
    app.state.clocks = ClockService(bus)
    logger.info("Signage service started")


@app.on_event("shutdown")
def shutdown_events() -> None:
    bus = getattr(app.state, "bus", None)
    if bus is not None:
        bus.close()
    logger.info("Signage service stopped")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse({"detail": str(exc), "entity": exc.entity, "id": exc.entity_id}, status_code=404)


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse({"detail": exc.message, "errors": exc.errors}, status_code=422)


@app.exception_handler(TransientStoreError)
async def store_error_handler(request: Request, exc: TransientStoreError):
    return JSONResponse({"detail": str(exc)}, status_code=503)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "signage-sync",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }


@app.get("/healthz")
def healthz():
    return {"ok": True}


app.include_router(venue.router)
app.include_router(space.router)
app.include_router(screen.router)
app.include_router(content.router)
app.include_router(playlist.router)
app.include_router(schedule.router)
app.include_router(timecode.router)
app.include_router(player.router)
app.include_router(health.router)
