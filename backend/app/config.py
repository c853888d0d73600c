"""Application configuration with environment variable support.

All settings can be overridden via environment variables prefixed with ``CITYSENSE_``,
or via a ``.env`` file in the project root.

Examples::

    CITYSENSE_PORT=9000 citysense start
    CITYSENSE_DATA_DIR=/var/data/citysense citysense start
    CITYSENSE_CLOUDINARY_CLOUD_NAME=mycloud citysense start
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: two levels up from this file (backend/app/config.py -> citysense/)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """CitySense configuration, every value overridable via env vars."""

    model_config = SettingsConfigDict(
        env_prefix="CITYSENSE_",
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Paths
    data_dir: Path = _BASE_DIR / "data"

    # Logging
    log_level: str = "INFO"

    # Image CDN
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_upload_preset: str = "citysense_images"
    cloudinary_folder: str = "citysense/issues"
    upload_timeout_seconds: float = 30.0
    max_upload_bytes: int = 10 * 1024 * 1024
    compress_above_bytes: int = 2 * 1024 * 1024

    # Issue listing
    default_list_limit: int = 50
    cache_ttl_seconds: float = 300.0

    # Escalation heuristic
    escalation_threshold: int = 5
    escalation_min_recent: int = 3
    escalation_window_hours: int = 24

    @property
    def db_path(self) -> Path:
        return self.data_dir / "citysense.db"

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.db_path}"

    @property
    def cloudinary_upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloudinary_cloud_name}/image/upload"

    @property
    def cloudinary_destroy_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloudinary_cloud_name}/image/destroy"


# Singleton instance, import this everywhere
settings = Settings()

DATA_DIR = settings.data_dir
DB_PATH = settings.db_path
DATABASE_URL = settings.database_url
