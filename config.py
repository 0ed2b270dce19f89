import re
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)(s|m|h)$")
_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600}


def parse_duration(value: str) -> float:
    """Parse a duration string such as "30s", "15m" or "1h" into seconds."""
    match = _DURATION_RE.match(value.strip())
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit]


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/catalog"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    FRONTEND_ORIGINS: str = "*"

    # Connection pool
    DB_MAX_OPEN_CONNS: int = 25
    DB_MAX_IDLE_CONNS: int = 25
    DB_MAX_IDLE_TIME: str = "15m"
    DB_POOL_TIMEOUT_SECONDS: int = 5
    DB_CONNECT_TIMEOUT_SECONDS: int = 5

    # Deadlines
    DB_QUERY_TIMEOUT_SECONDS: float = 3.0
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    @field_validator("DB_MAX_IDLE_TIME")
    @classmethod
    def _check_idle_time(cls, value: str) -> str:
        parse_duration(value)
        return value

    @property
    def allow_origins(self) -> List[str]:
        return [origin.strip() for origin in self.FRONTEND_ORIGINS.split(",") if origin.strip()]

    @property
    def max_idle_seconds(self) -> float:
        return parse_duration(self.DB_MAX_IDLE_TIME)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
