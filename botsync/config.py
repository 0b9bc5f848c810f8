"""
Application settings (Pydantic Settings).

Built once at process start (get_settings) and passed into every component; core code
never reads the environment itself.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from botsync.core.constants import DEFAULT_TOKEN_URI, TRASH_UNIT_GRAMS, TRASH_UNIT_KG

# .env at the repository root (parent of botsync/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_path, extra="ignore")

    firebase_project_id: str = ""
    # e.g. https://your-project-id-default-rtdb.firebaseio.com
    firebase_database_url: str = ""
    sa_client_email: str = ""
    sa_private_key: str = ""  # PEM; literal \n allowed (as pasted from the JSON key file)
    token_uri: str = DEFAULT_TOKEN_URI

    batch_limit: int = 200
    tick_interval_seconds: int = 60
    lock_timeout_seconds: float = 30.0
    http_timeout_seconds: float = 30.0
    token_ttl_seconds: int = 55 * 60  # tokens live 1h; refresh a bit before
    trash_input_unit: str = TRASH_UNIT_KG
    scheduler_enabled: bool = True

    @field_validator("firebase_project_id", "sa_client_email", mode="after")
    @classmethod
    def strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("firebase_database_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    @field_validator("sa_private_key", mode="after")
    @classmethod
    def unescape_newlines(cls, v: str) -> str:
        return (v or "").replace("\\n", "\n")

    @field_validator("trash_input_unit", mode="after")
    @classmethod
    def check_unit(cls, v: str) -> str:
        unit = (v or "").strip().lower()
        if unit not in (TRASH_UNIT_KG, TRASH_UNIT_GRAMS):
            raise ValueError(f"trash_input_unit must be '{TRASH_UNIT_KG}' or '{TRASH_UNIT_GRAMS}'")
        return unit

    @property
    def firestore_root(self) -> str:
        """Resource name prefix for documents: projects/{p}/databases/(default)/documents."""
        return f"projects/{self.firebase_project_id}/databases/(default)/documents"

    def is_configured(self) -> bool:
        return bool(
            self.firebase_project_id
            and self.firebase_database_url
            and self.sa_client_email
            and self.sa_private_key
        )


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings for entry points (main.py, scripts)."""
    return Settings()
