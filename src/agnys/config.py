from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    session_ttl_days: int = 30
    session_refresh_interval_minutes: int = 60  # Rotate session token after this age
    cookie_secure: bool = False  # Set to True in production with HTTPS
    # Blob storage for uploads; uploads fail (not startup) when unset
    blob_storage_path: str | None = None
    blob_base_url: str = "http://localhost:8000"
    # Web Push VAPID key pair; push operations fail (not startup) when unset
    vapid_public_key: str | None = None
    vapid_private_key: str | None = None
    vapid_subject: str = "mailto:admin@agnys.app"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "AGNYS_",
        "extra": "ignore",
    }
