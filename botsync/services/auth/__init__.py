from botsync.services.auth.credentials import ServiceAccountCredentials, TokenProvider

__all__ = ["ServiceAccountCredentials", "TokenProvider"]
