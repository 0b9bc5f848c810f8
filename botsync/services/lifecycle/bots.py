"""Bot status in both stores: Firestore bots/{id} first, then RTDB /bots/{id}, same timestamp."""
import logging

from botsync.core import constants as c
from botsync.core.clock import Clock, to_iso, utc_now
from botsync.core.results import Ok
from botsync.services.base import DocumentStore, TreeStore
from botsync.services.rtdb.client import join_path

logger = logging.getLogger(__name__)


class BotStatusSync:
    def __init__(self, firestore: DocumentStore, rtdb: TreeStore, *, clock: Clock = utc_now) -> None:
        self._fs = firestore
        self._rt = rtdb
        self._clock = clock

    def set_bot_status(
        self,
        bot_id: str,
        status: str,
        schedule_id: str | None,
        deployment_node_id: str | None = None,
    ) -> bool:
        """
        Write status + references to both stores. Not atomic across stores; returns True only if
        both writes succeeded. current_deployment_id (RTDB only) is the RTDB deployment node id,
        which is the bot id for any non-idle status and null for idle.
        """
        now = self._clock()
        if status == c.BOT_IDLE:
            schedule_id = None
            deployment_node_id = None
        else:
            deployment_node_id = deployment_node_id or bot_id

        fs_result = self._fs.patch(
            self._fs.document_name(c.FS_BOTS, bot_id),
            {c.BOT_STATUS: status, c.BOT_CURRENT_SCHEDULE: schedule_id, c.BOT_LAST_UPDATED: now},
            [c.BOT_STATUS, c.BOT_CURRENT_SCHEDULE, c.BOT_LAST_UPDATED],
        )
        if isinstance(fs_result, Ok):
            logger.info("Updated Firestore bot %s status to %s", bot_id, status)
        else:
            logger.warning("Firestore bot %s status update to %s failed: %s", bot_id, status, fs_result)

        rt_result = self._rt.patch(
            join_path(c.RT_BOTS_ROOT, bot_id),
            {
                c.RT_BOT_STATUS: status,
                c.RT_BOT_CURRENT_SCHEDULE: schedule_id,
                c.RT_BOT_CURRENT_DEPLOYMENT: deployment_node_id,
                c.RT_BOT_LAST_UPDATED: to_iso(now),
            },
        )
        if isinstance(rt_result, Ok):
            logger.info(
                "Updated RTDB bot %s status to %s, current_deployment_id to %s", bot_id, status, deployment_node_id
            )
        else:
            logger.warning("RTDB bot %s status update to %s failed: %s", bot_id, status, rt_result)

        return isinstance(fs_result, Ok) and isinstance(rt_result, Ok)
