"""Configuration settings loaded from .env file."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Credentials are static tokens. The Patreon refresh token and client
    credentials are stored for reference only; nothing refreshes the access
    token automatically.
    """

    # Gemini (command interpretation)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"

    # Patreon
    patreon_access_token: str = ""
    patreon_refresh_token: str = ""
    patreon_client_id: str = ""
    patreon_client_secret: str = ""
    patreon_paid_tier_id: str = ""  # Tier required for advance episodes
    patreon_api_base: str = "https://www.patreon.com/api/oauth2/v2"

    # Field names in the content store
    episode_number_field: str = "episode_number"
    patreon_post_field: str = "patreon_post_id"
    access_type_field: str = "section"
    access_taxonomy: str = "chapter-categories"

    # Remote calls
    http_timeout: float = 30.0

    # Scheduling
    lock_stale_after_seconds: int = 3600

    # Database
    sqlite_db_path: Path = Path("./data/novelgate.db")

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("http_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout must be > 0")
        return v

    @field_validator("lock_stale_after_seconds")
    @classmethod
    def validate_lock_stale(cls, v: int) -> int:
        if v < 1:
            raise ValueError("lock_stale_after_seconds must be >= 1")
        return v

    @field_validator(
        "episode_number_field", "patreon_post_field", "access_type_field", "access_taxonomy",
    )
    @classmethod
    def validate_field_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field name must not be blank")
        return v

    @field_validator("sqlite_db_path", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_patreon_token(self) -> bool:
        return bool(self.patreon_access_token)

    @property
    def has_paid_tier(self) -> bool:
        return bool(self.patreon_paid_tier_id)


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
