import json
import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Gift Tracker API"
    frontend_url: str = "http://localhost:3000"
    environment: str = "local"
    backend_cors_origins_raw: str = ""  # Comma-separated or JSON array

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "allow",
    }

    @property
    def backend_cors_origins(self) -> list[str]:
        """Parse CORS origins from raw string."""
        raw = os.getenv("BACKEND_CORS_ORIGINS", self.backend_cors_origins_raw).strip()
        if not raw:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in raw.split(",") if item.strip()]

    # Database: sqlite+aiosqlite:///./gifttracker.db (dev) | postgresql+asyncpg://... (prod)
    database_dsn: str = "sqlite+aiosqlite:///./gifttracker.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_recycle: int = 1800
    db_pool_timeout: int = 30

    # Gift creation writes the gift, its recipients and its tags as separate commits
    # unless this is enabled.
    atomic_gift_writes: bool = False
    max_bulk_gifts: int = 500

    ws_ping_interval_seconds: int = 30
    ws_ping_timeout_seconds: int = 60

    log_level: str = "INFO"
    log_file: str = ""


settings = Settings()
