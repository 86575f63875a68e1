"""
Runtime settings.

Everything is read by pydantic-settings from the process environment, with
a ``.env`` file in the working directory as fallback.  Two database modes
exist: PostgreSQL through asyncpg (the default, needs the ``POSTGRES_*``
variables) and an in-memory SQLite database (``USE_SQLITE=true``) for demos
and the test-suite.
"""

from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PG_REQUIRED = ("POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_SERVER", "POSTGRES_DB")

_PG_HELP = """\
Either put them in .env / the environment, for example

    POSTGRES_USER=agrofund
    POSTGRES_PASSWORD=agrofund
    POSTGRES_SERVER=127.0.0.1
    POSTGRES_DB=agrofund

or run against in-memory SQLite:

    USE_SQLITE=true uvicorn agrofund.main:app"""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "AgroFund Crowdfunding API"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False

    # ── Database ──
    USE_SQLITE: bool = False
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = ""
    POSTGRES_DB: str = ""
    POSTGRES_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Table creation at startup: attempts, first back-off (doubles each time)
    DB_STARTUP_ATTEMPTS: int = 5
    DB_STARTUP_BACKOFF: float = 2.0

    # ── Authentication ──
    TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    BCRYPT_ROUNDS: int = 12

    # Account created by ``python -m agrofund.seed``
    ADMIN_NAME: str = "Platform Admin"
    ADMIN_EMAIL: str = "admin@agrofund.local"
    ADMIN_PASSWORD: str = "change-me-now"
    ADMIN_PHONE: str = "0000000000"

    # ── Circuit breaker ──
    CB_FAILURE_THRESHOLD: int = 5
    CB_RECOVERY_TIMEOUT: float = 30.0

    # ── Logging ──
    LOG_LEVEL: str = "INFO"
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5

    # Comma-separated; "*" allows any origin
    CORS_ORIGINS: str = "*"

    @model_validator(mode="after")
    def _check_postgres(self) -> "Settings":
        if self.USE_SQLITE:
            return self
        missing = [name for name in _PG_REQUIRED if not getattr(self, name)]
        if missing:
            raise ValueError(f"Missing PostgreSQL settings: {', '.join(missing)}.\n{_PG_HELP}")
        return self

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def DATABASE_URL(self) -> str:
        """Async SQLAlchemy URL for the selected database mode."""
        if self.USE_SQLITE:
            return "sqlite+aiosqlite://"
        return "postgresql+asyncpg://{}:{}@{}:{}/{}".format(
            self.POSTGRES_USER,
            self.POSTGRES_PASSWORD,
            self.POSTGRES_SERVER,
            self.POSTGRES_PORT,
            self.POSTGRES_DB,
        )


settings = Settings()
