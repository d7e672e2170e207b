"""Configuration management for the check-in eligibility engine."""

import os
from dataclasses import dataclass
from typing import List
from dotenv import load_dotenv

load_dotenv()


@dataclass
class AgentConfig:
    """Main service configuration."""

    log_level: str = "INFO"
    database_url: str = "sqlite:///database/eligibility.db"


@dataclass
class EligibilityConfig:
    """Fallback values used when neither person nor team provide a schedule."""

    default_timezone: str = "Asia/Manila"
    default_check_in_start: str = "06:00"
    default_check_in_end: str = "10:00"
    default_work_days: List[str] = None

    def __post_init__(self):
        if self.default_work_days is None:
            self.default_work_days = ["1", "2", "3", "4", "5"]


@dataclass
class HolidayCacheConfig:
    """Holiday lookup cache settings."""

    backend: str = "memory"  # "memory" or "redis"
    ttl_seconds: int = 300
    redis_url: str = "redis://localhost:6379/0"


@dataclass
class SweepConfig:
    """Missed check-in sweep settings."""

    interval_minutes: int = 15
    # Grace period after the window closes so in-flight submissions are not flagged
    window_buffer_minutes: int = 2
    lookback_days: int = 90
    frequency_window_days: int = 30
    readiness_window_days: int = 7


@dataclass
class CeleryConfig:
    """Celery broker and result backend."""

    broker_url: str = "redis://localhost:6379/1"
    result_backend: str = "redis://localhost:6379/2"


@dataclass
class WebConfig:
    """Web interface configuration."""

    port: int = 3030
    host: str = "127.0.0.1"
    debug: bool = False


class Settings:
    """Main settings manager."""

    def __init__(self):
        self.agent = self._load_agent_config()
        self.eligibility = self._load_eligibility_config()
        self.holiday_cache = self._load_holiday_cache_config()
        self.sweep = self._load_sweep_config()
        self.celery = self._load_celery_config()
        self.web = self._load_web_config()

    @staticmethod
    def _load_agent_config() -> AgentConfig:
        return AgentConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            database_url=os.getenv(
                "DATABASE_URL", "sqlite:///database/eligibility.db"
            ),
        )

    @staticmethod
    def _load_eligibility_config() -> EligibilityConfig:
        work_days_str = os.getenv("DEFAULT_WORK_DAYS", "1,2,3,4,5")
        work_days = [d.strip() for d in work_days_str.split(",") if d.strip()]

        return EligibilityConfig(
            default_timezone=os.getenv("DEFAULT_TIMEZONE") or "Asia/Manila",
            default_check_in_start=os.getenv("DEFAULT_CHECK_IN_START") or "06:00",
            default_check_in_end=os.getenv("DEFAULT_CHECK_IN_END") or "10:00",
            default_work_days=work_days or None,
        )

    @staticmethod
    def _load_holiday_cache_config() -> HolidayCacheConfig:
        backend = (os.getenv("HOLIDAY_CACHE_BACKEND") or "memory").lower()
        if backend not in ("memory", "redis"):
            import warnings

            warnings.warn(
                f"Unsupported HOLIDAY_CACHE_BACKEND: {backend}. Falling back to in-memory cache."
            )
            backend = "memory"

        return HolidayCacheConfig(
            backend=backend,
            ttl_seconds=int(os.getenv("HOLIDAY_CACHE_TTL_SECONDS", "300")),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        )

    @staticmethod
    def _load_sweep_config() -> SweepConfig:
        return SweepConfig(
            interval_minutes=int(os.getenv("SWEEP_INTERVAL_MINUTES", "15")),
            window_buffer_minutes=int(os.getenv("SWEEP_WINDOW_BUFFER_MINUTES", "2")),
            lookback_days=int(os.getenv("SWEEP_LOOKBACK_DAYS", "90")),
            frequency_window_days=int(
                os.getenv("SWEEP_FREQUENCY_WINDOW_DAYS", "30")
            ),
            readiness_window_days=int(
                os.getenv("SWEEP_READINESS_WINDOW_DAYS", "7")
            ),
        )

    @staticmethod
    def _load_celery_config() -> CeleryConfig:
        return CeleryConfig(
            broker_url=os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1"),
            result_backend=os.getenv(
                "CELERY_RESULT_BACKEND", "redis://localhost:6379/2"
            ),
        )

    @staticmethod
    def _load_web_config() -> WebConfig:
        return WebConfig(
            port=int(os.getenv("WEB_PORT", "3030")),
            host=os.getenv("WEB_HOST", "127.0.0.1"),
            debug=os.getenv("WEB_DEBUG", "false").lower() == "true",
        )


settings = Settings()
