"""Configuration management for hrdesk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    host: str
    port: int
    debug: bool
    log_level: str
    jwt_secret: str
    jwt_algorithm: str
    client_url: str

    # Attendance rules
    workday_start: time
    standard_work_hours: int

    # Salary runs
    salary_run_concurrency: int
    employee_timeout_seconds: float
    max_recompute_attempts: int
    salary_run_stale_seconds: float

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./hrdesk.db",
            ),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            jwt_secret=os.getenv("JWT_SECRET", "change-me"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            client_url=os.getenv("CLIENT_URL", "http://localhost:3000"),
            workday_start=time.fromisoformat(os.getenv("WORKDAY_START", "09:00")),
            standard_work_hours=int(os.getenv("STANDARD_WORK_HOURS", "8")),
            salary_run_concurrency=int(os.getenv("SALARY_RUN_CONCURRENCY", "5")),
            employee_timeout_seconds=float(os.getenv("EMPLOYEE_TIMEOUT_SECONDS", "30")),
            max_recompute_attempts=int(os.getenv("MAX_RECOMPUTE_ATTEMPTS", "2")),
            salary_run_stale_seconds=float(os.getenv("SALARY_RUN_STALE_SECONDS", "3600")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
