from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Database
        self.database_url: str = os.getenv("DATABASE_URL", "")
        # Auth (token decode only)
        self.jwt_secret: str = os.getenv("JWT_SECRET", "")
        self.jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
        # App meta
        self.app_name: str = "LMS Progress Backend"
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        # Level / grading rules
        self.default_level: str = os.getenv("DEFAULT_LEVEL", "1").strip() or "1"
        self.default_pass_percentage: int = _env_int("DEFAULT_PASS_PERCENTAGE", 70)  # type: ignore[assignment]
        self.certificate_threshold: int = _env_int("CERTIFICATE_THRESHOLD", 80)  # type: ignore[assignment]
        self.random_question_limit: int = _env_int("RANDOM_QUESTION_LIMIT", 25)  # type: ignore[assignment]
        # Attempt policy; unset max attempts means unlimited
        self.quiz_max_attempts: Optional[int] = _env_int("QUIZ_MAX_ATTEMPTS", None)
        self.quiz_attempt_cooldown_seconds: int = _env_int("QUIZ_ATTEMPT_COOLDOWN_SECONDS", 0)  # type: ignore[assignment]
        self.quiz_xp_on_pass: int = _env_int("QUIZ_XP_ON_PASS", 10)  # type: ignore[assignment]
        self.quiz_xp_on_fail: int = _env_int("QUIZ_XP_ON_FAIL", 0)  # type: ignore[assignment]
        # Dashboards
        self.active_window_hours: int = _env_int("ACTIVE_WINDOW_HOURS", 24)  # type: ignore[assignment]
        self.upcoming_event_days: int = _env_int("UPCOMING_EVENT_DAYS", 45)  # type: ignore[assignment]
        # HTTP
        self.allow_origins: list[str] = [
            o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()
        ]
        self.read_cache_seconds: int = _env_int("READ_CACHE_SECONDS", 60)  # type: ignore[assignment]
        # Server
        self.env: str = os.getenv("ENV", "dev").strip().lower() or "dev"
        self.host: str = os.getenv("HOST") or ("127.0.0.1" if self.env == "dev" else "0.0.0.0")
        self.port: int = _env_int("PORT", 8000)  # type: ignore[assignment]

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
