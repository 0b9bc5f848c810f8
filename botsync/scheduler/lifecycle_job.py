"""
Runs every minute: promote due schedules, then complete due ones.

Single flight: a tick that cannot take the lock within lock_timeout_seconds is skipped
(logged, not an error), so overlapping ticks never double-promote a schedule.
"""
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

import httpx

from botsync.config import Settings
from botsync.core import constants as c
from botsync.core.clock import Clock, to_iso, utc_now
from botsync.scheduler.batch import BatchReport, BatchRunner
from botsync.services.auth.credentials import ServiceAccountCredentials
from botsync.services.firestore.client import FirestoreClient
from botsync.services.lifecycle.bots import BotStatusSync
from botsync.services.lifecycle.engine import LifecycleEngine
from botsync.services.rtdb.client import RealtimeClient
from botsync.services.telemetry.aggregate import TelemetryAggregator

logger = logging.getLogger(__name__)

# One tick at a time per process, whichever ControlLoop instance runs it
_tick_lock = threading.Lock()


class TickLock(Protocol):
    def try_acquire(self, timeout: float) -> bool:
        ...

    def release(self) -> None:
        ...


class ProcessLock:
    """threading.Lock with a bounded wait."""

    def __init__(self, lock: Any = None) -> None:
        self._lock = lock if lock is not None else _tick_lock

    def try_acquire(self, timeout: float) -> bool:
        if timeout <= 0:
            return self._lock.acquire(blocking=False)
        return self._lock.acquire(timeout=timeout)

    def release(self) -> None:
        self._lock.release()


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class TickReport:
    started_at: datetime
    elapsed_ms: int = 0
    promoted: BatchReport | None = None
    completed: BatchReport | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "started_at": to_iso(self.started_at),
            "elapsed_ms": self.elapsed_ms,
            "promoted": self.promoted.as_dict() if self.promoted else None,
            "completed": self.completed.as_dict() if self.completed else None,
            "error": self.error,
        }


class ControlLoop:
    def __init__(
        self,
        runner: BatchRunner,
        engine: LifecycleEngine,
        *,
        lock: TickLock | None = None,
        lock_timeout_seconds: float = 30.0,
        clock: Clock = utc_now,
    ) -> None:
        self._runner = runner
        self._engine = engine
        self._lock = lock or ProcessLock()
        self._lock_timeout = lock_timeout_seconds
        self._clock = clock
        self.state = LoopState.IDLE
        self.last_report: TickReport | None = None
        self.skipped_ticks = 0

    def tick(self) -> TickReport | None:
        """One pass. Returns None when skipped because another tick holds the lock."""
        if not self._lock.try_acquire(self._lock_timeout):
            self.skipped_ticks += 1
            logger.info("Another run is active; skipping.")
            return None

        self.state = LoopState.RUNNING
        t0 = time.monotonic()
        report = TickReport(started_at=self._clock())
        try:
            report.promoted = self._runner.run_batch(c.STATUS_SCHEDULED, self._engine.promote)
            report.completed = self._runner.run_batch(c.STATUS_ACTIVE, self._engine.complete)
        except Exception as e:
            # Credential failure (or a bug outside per-item handling): abort the rest of this tick
            report.error = str(e)
            logger.exception("tick error: %s", e)
        finally:
            self._lock.release()
            self.state = LoopState.IDLE
            report.elapsed_ms = int((time.monotonic() - t0) * 1000)
            logger.info("tick finished in %s ms", report.elapsed_ms)
        self.last_report = report
        return report

    def status(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "skipped_ticks": self.skipped_ticks,
            "last_tick": self.last_report.as_dict() if self.last_report else None,
        }


def build_control_loop(settings: Settings, *, http: httpx.Client | None = None) -> ControlLoop:
    """Wire adapters, aggregator and engine from one Settings instance."""
    credentials = ServiceAccountCredentials(settings, http=http)
    firestore = FirestoreClient(settings, credentials, http=http)
    rtdb = RealtimeClient(settings, credentials, http=http)
    aggregator = TelemetryAggregator(rtdb, trash_input_unit=settings.trash_input_unit)
    engine = LifecycleEngine(firestore, rtdb, aggregator, BotStatusSync(firestore, rtdb))
    return ControlLoop(
        BatchRunner(firestore, limit=settings.batch_limit),
        engine,
        lock_timeout_seconds=settings.lock_timeout_seconds,
    )
