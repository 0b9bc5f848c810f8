"""Run one transition over every schedule in a status, isolating per-item failures."""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable

from botsync.core import constants as c
from botsync.core.errors import CredentialError
from botsync.core.results import Ok
from botsync.models.schedule import Schedule
from botsync.services.base import DocumentStore

logger = logging.getLogger(__name__)

ScheduleAction = Callable[[Schedule], bool]


@dataclass
class BatchReport:
    """Best-effort counts for one batch. transitioned + skipped + failed == found."""
    status: str
    found: int = 0
    transitioned: int = 0
    skipped: int = 0
    failed: int = 0
    query_failed: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class BatchRunner:
    def __init__(self, firestore: DocumentStore, *, limit: int = 200) -> None:
        self._fs = firestore
        self._limit = limit

    def run_batch(self, status: str, action: ScheduleAction) -> BatchReport:
        """
        Query schedules with this status (capped at `limit`, no pagination: anything past the cap
        is picked up on a later poll) and apply `action` to each in result order. An exception
        from one item is logged and the loop moves on; only a credential failure escapes.
        """
        report = BatchReport(status=status)
        result = self._fs.query(c.FS_SCHEDULES, {c.SCHEDULE_STATUS: status}, self._limit)
        if not isinstance(result, Ok):
            logger.error("Query for %s schedules failed: %s", status, result)
            report.query_failed = True
            return report

        docs = result.value or []
        report.found = len(docs)
        logger.info("Found %s %s items", len(docs), status)
        if len(docs) >= self._limit:
            logger.warning("%s batch hit limit %s; remaining schedules wait for a later poll", status, self._limit)

        for doc in docs:
            try:
                if action(Schedule.from_document(doc)):
                    report.transitioned += 1
                else:
                    report.skipped += 1
            except CredentialError:
                raise
            except Exception as e:
                report.failed += 1
                logger.exception("%s schedule %s failed: %s", status, doc.id, e)
        return report
