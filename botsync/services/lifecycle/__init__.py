"""
Schedule lifecycle: scheduled -> active -> completed, mirrored across Firestore and RTDB.
"""
from botsync.services.lifecycle.bots import BotStatusSync
from botsync.services.lifecycle.engine import LifecycleEngine

__all__ = ["BotStatusSync", "LifecycleEngine"]
