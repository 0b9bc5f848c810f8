"""
Lifecycle engine: promote (scheduled -> active) and complete (active -> completed).

Write order is fixed. Firestore writes up to and including the schedule patch must succeed
(StoreWriteError otherwise): the schedule then keeps its status and the next poll retries the
whole transition, which is safe because every write is idempotent (ensure-create, same-value
patches). Writes after the schedule patch (bot status, RTDB deployment node) are best effort:
failures are logged and nothing is rolled back. A telemetry read that fails (rather than finding
nothing) raises StoreReadError before any write, so completion is retried with the real readings.
"""
import logging
from dataclasses import replace
from typing import Any

from botsync.core import constants as c
from botsync.core.clock import Clock, to_iso, utc_now
from botsync.core.errors import StoreWriteError
from botsync.core.results import AlreadyExists, Ok, StoreResult
from botsync.models.schedule import Schedule
from botsync.services.base import DocumentStore, TreeStore
from botsync.services.firestore.types import Document
from botsync.services.lifecycle.bots import BotStatusSync
from botsync.services.rtdb.client import join_path
from botsync.services.telemetry.aggregate import TelemetryAggregator

logger = logging.getLogger(__name__)


def _require(result: StoreResult, what: str) -> Any:
    if not isinstance(result, Ok):
        raise StoreWriteError(what, result)
    return result.value


class LifecycleEngine:
    def __init__(
        self,
        firestore: DocumentStore,
        rtdb: TreeStore,
        aggregator: TelemetryAggregator,
        bots: BotStatusSync,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._fs = firestore
        self._rt = rtdb
        self._aggregator = aggregator
        self._bots = bots
        self._clock = clock

    def _best_effort(self, result: StoreResult, what: str) -> None:
        if not isinstance(result, Ok):
            logger.warning("%s failed (continuing): %s", what, result)

    def ensure_deployment(self, deployment_id: str, fields: dict[str, Any]) -> Document | None:
        """
        Create deployments/{deployment_id} only if it does not exist. An existing doc is left
        untouched (returned as-is); losing a create race to another writer is accepted silently.
        """
        existing = self._fs.get(c.FS_DEPLOYMENTS, deployment_id)
        if isinstance(existing, Ok):
            return existing.value
        created = self._fs.create(c.FS_DEPLOYMENTS, deployment_id, fields)
        if isinstance(created, AlreadyExists):
            logger.info("Deployment %s already created by another writer; keeping it", deployment_id)
            return None
        doc = _require(created, f"create deployment {deployment_id}")
        logger.info("Created Firestore deployment %s", deployment_id)
        return doc

    def promote(self, schedule: Schedule) -> bool:
        """scheduled -> active. False if the schedule is not due (nothing written)."""
        now = self._clock()
        if not schedule.is_due_to_start(now):
            return False

        deployment_id = schedule.durable_deployment_id
        bot_id = schedule.bot_id

        self.ensure_deployment(
            deployment_id,
            {
                c.DEPLOYMENT_SCHEDULE_ID: schedule.id,
                c.DEPLOYMENT_BOT_ID: bot_id or "",
                c.DEPLOYMENT_STATUS: c.STATUS_ACTIVE,
                c.DEPLOYMENT_CREATED_AT: now,
                c.DEPLOYMENT_STARTED_AT: now,
            },
        )

        _require(
            self._fs.patch(
                schedule.name,
                {
                    c.SCHEDULE_STATUS: c.STATUS_ACTIVE,
                    c.SCHEDULE_STARTED_AT: now,
                    c.SCHEDULE_DEPLOYMENT_ID: deployment_id,
                },
                [c.SCHEDULE_STATUS, c.SCHEDULE_STARTED_AT, c.SCHEDULE_DEPLOYMENT_ID],
            ),
            f"activate schedule {schedule.id}",
        )

        if bot_id:
            self._bots.set_bot_status(bot_id, c.BOT_ACTIVE, schedule.id, bot_id)
            # RTDB deployment node is keyed by bot id; deployment_id points back to the Firestore doc
            self._best_effort(
                self._rt.patch(
                    join_path(c.RT_DEPLOYMENTS_ROOT, bot_id),
                    {
                        "status": c.STATUS_ACTIVE,
                        "schedule_id": schedule.id,
                        "deployment_id": deployment_id,
                        "bot_id": bot_id,
                        "actual_start_time": to_iso(now),
                        "updated_at": to_iso(now),
                    },
                ),
                f"RTDB deployment node {bot_id} -> active",
            )

        logger.info(
            "Activated schedule %s (Firestore deployment %s, RTDB deployment node %s)",
            schedule.id,
            deployment_id,
            bot_id,
        )

        # Already past its end (never polled while active, or clock skew): finish in the same poll
        if schedule.end_at is not None and schedule.end_at <= now:
            self.complete(replace(schedule, status=c.STATUS_ACTIVE, deployment_id=deployment_id))
        return True

    def complete(self, schedule: Schedule) -> bool:
        """active -> completed with aggregated metrics. False if not due (nothing written)."""
        now = self._clock()
        if not schedule.is_due_to_end(now):
            return False

        deployment_id = schedule.durable_deployment_id
        bot_id = schedule.bot_id

        summary = self._aggregator.summarize(bot_id, deployment_id)

        _require(
            self._fs.patch(
                self._fs.document_name(c.FS_DEPLOYMENTS, deployment_id),
                {
                    c.DEPLOYMENT_STATUS: c.STATUS_COMPLETED,
                    c.DEPLOYMENT_ENDED_AT: now,
                    c.DEPLOYMENT_METRICS: summary.to_metrics(),
                },
                [c.DEPLOYMENT_STATUS, c.DEPLOYMENT_ENDED_AT, c.DEPLOYMENT_METRICS],
            ),
            f"complete deployment {deployment_id}",
        )

        _require(
            self._fs.patch(
                schedule.name,
                {c.SCHEDULE_STATUS: c.STATUS_COMPLETED, c.SCHEDULE_ENDED_AT: now},
                [c.SCHEDULE_STATUS, c.SCHEDULE_ENDED_AT],
            ),
            f"complete schedule {schedule.id}",
        )

        if bot_id:
            self._best_effort(
                self._rt.patch(
                    join_path(c.RT_DEPLOYMENTS_ROOT, bot_id),
                    {"status": c.STATUS_COMPLETED, "actual_end_time": to_iso(now), "updated_at": to_iso(now)},
                ),
                f"RTDB deployment node {bot_id} -> completed",
            )
            self._bots.set_bot_status(bot_id, c.BOT_IDLE, None, None)

        logger.info(
            "Completed schedule %s / Firestore deployment %s (%s samples from %s)",
            schedule.id,
            deployment_id,
            summary.sample_count,
            summary.source,
        )
        return True
