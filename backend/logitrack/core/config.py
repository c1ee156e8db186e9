"""Application configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict

from logitrack.core.logging import logger


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[3] / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "LogiTrack Fleet API"
    log_level: str = "INFO"
    log_json: bool = False
    timezone: str = "America/Santo_Domingo"

    # Storage: "json" keeps everything in one local JSON document,
    # "sqlite" uses the relational backend.
    storage_backend: str = "json"
    json_db_path: str = "./data/db.json"
    sqlite_db_path: str = "./data/logitrack.db"

    # Auth
    auth_enabled: bool = False
    api_tokens: str = ""
    default_actor: str = "system"

    # Dispatch & gamification
    default_star_rating: int = 3
    max_stops_per_route: int = 10
    vehicle_code_prefix: str = "ARJ"

    # Alert windows (days)
    license_warning_days: int = 7
    insurance_warning_days: int = 30
    insurance_critical_days: int = 7
    maintenance_warning_days: int = 7
    birthday_window_days: int = 7
    document_expiry_warning_days: int = 14

    # Media uploads arrive as data URLs
    max_media_size: int = 10485760  # 10MB

    def token_users(self) -> Dict[str, str]:
        """Map bearer tokens to usernames from `API_TOKENS` (`token:username,...`)."""
        users: Dict[str, str] = {}
        for entry in filter(None, (item.strip() for item in self.api_tokens.split(","))):
            token, _, username = entry.partition(":")
            if token.strip() and username.strip():
                users[token.strip()] = username.strip()
            else:
                logger.warning("Ignoring malformed API token entry", entry=entry)
        return users

    def normalized_storage_backend(self) -> str:
        backend = (self.storage_backend or "").strip().lower()
        return backend if backend in {"json", "sqlite"} else "json"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
