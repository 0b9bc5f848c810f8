"""Schedule: a planned deployment window (Firestore schedules/{id})."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from botsync.core import constants as c
from botsync.services.firestore.types import Document
from botsync.services.firestore.values import get_string, get_timestamp


@dataclass(frozen=True)
class Schedule:
    id: str
    name: str  # full Firestore resource name, used for patches
    status: str | None
    start_at: datetime | None
    end_at: datetime | None = None
    bot_id: str | None = None
    deployment_id: str | None = None

    @property
    def durable_deployment_id(self) -> str:
        """Firestore deployment doc id: the assigned one, else the schedule id."""
        return self.deployment_id or self.id

    def is_due_to_start(self, now: datetime) -> bool:
        return self.status == c.STATUS_SCHEDULED and self.start_at is not None and self.start_at <= now

    def is_due_to_end(self, now: datetime) -> bool:
        return self.status == c.STATUS_ACTIVE and self.end_at is not None and self.end_at <= now

    @classmethod
    def from_document(cls, doc: Document) -> "Schedule":
        f = doc.fields
        return cls(
            id=doc.id,
            name=doc.name,
            status=get_string(f, c.SCHEDULE_STATUS),
            start_at=get_timestamp(f, c.SCHEDULE_START_AT),
            end_at=get_timestamp(f, c.SCHEDULE_END_AT),
            # Empty strings (dashboard clears the field) mean "not assigned"
            bot_id=get_string(f, c.SCHEDULE_BOT_ID) or None,
            deployment_id=get_string(f, c.SCHEDULE_DEPLOYMENT_ID) or None,
        )
