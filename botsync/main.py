"""
FastAPI app entrypoint.

Hosts the lifecycle tick: APScheduler runs it every TICK_INTERVAL_SECONDS (one minute by
default). The HTTP surface is for operators only: health, last tick report, manual tick.
"""
import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request

# Load .env from the repo root before any settings are read
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from botsync import __version__
from botsync.config import get_settings
from botsync.core.constants import SYNC_TICK_JOB_ID
from botsync.scheduler.lifecycle_job import ControlLoop, build_control_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    control_loop = build_control_loop(settings)
    app.state.control_loop = control_loop

    scheduler = BackgroundScheduler()
    app.state.scheduler = scheduler
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false); use POST /tick or scripts/run_tick.py")
    elif not settings.is_configured():
        logger.warning(
            "Firebase settings incomplete (FIREBASE_PROJECT_ID, FIREBASE_DATABASE_URL, SA_CLIENT_EMAIL, "
            "SA_PRIVATE_KEY); lifecycle tick not scheduled"
        )
    else:
        # max_instances=1 + coalesce: a slow tick never piles up runs behind it
        scheduler.add_job(
            control_loop.tick,
            "interval",
            seconds=settings.tick_interval_seconds,
            id=SYNC_TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()

        def startup_tick():
            # One tick on startup so a restart does not wait a full interval.
            try:
                control_loop.tick()
            except Exception as e:
                logger.warning("Lifecycle tick on startup failed: %s", e, exc_info=True)

        threading.Thread(target=startup_tick, daemon=True).start()
        logger.info("Lifecycle tick scheduled every %ss", settings.tick_interval_seconds)
    yield
    if scheduler.running:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Bot deployment sync", version=__version__, lifespan=lifespan)


def _control_loop(request: Request) -> ControlLoop:
    return request.app.state.control_loop


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Bot deployment sync", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/status")
def status(request: Request) -> dict:
    """Loop state, skipped-tick count and the last tick report."""
    return _control_loop(request).status()


@app.post("/tick")
def run_tick(request: Request) -> dict:
    """Run one tick now (blocks until done). 409 if a tick is already running."""
    report = _control_loop(request).tick()
    if report is None:
        raise HTTPException(status_code=409, detail="Another run is active; skipped.")
    return report.as_dict()
