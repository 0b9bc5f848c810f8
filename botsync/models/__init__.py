from botsync.models.schedule import Schedule

__all__ = ["Schedule"]
