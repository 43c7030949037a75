import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    app_env: str = "development"
    log_level: str = "info"
    host: str = "0.0.0.0"
    port: int = 3000
    # Empty list disables origin checking
    allowed_origins: List[str] = []
    rate_limit_max_messages: int = 30
    rate_limit_window_ms: int = 5000
    ping_interval_ms: int = 30000


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    # Load .env if present (noop if already loaded)
    load_dotenv()
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "info"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        allowed_origins=_split_csv(os.getenv("ALLOWED_ORIGINS", "")),
        rate_limit_max_messages=int(os.getenv("RATE_LIMIT_MAX_MESSAGES", "30")),
        rate_limit_window_ms=int(os.getenv("RATE_LIMIT_WINDOW_MS", "5000")),
        ping_interval_ms=int(os.getenv("PING_INTERVAL_MS", "30000")),
    )
