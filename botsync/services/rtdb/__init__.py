from botsync.services.rtdb.client import RealtimeClient, join_path

__all__ = ["RealtimeClient", "join_path"]
