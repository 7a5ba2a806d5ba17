# backend/app/core/config.py

from __future__ import annotations

from decimal import Decimal
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_asyncpg_unsupported_params(url: str) -> str:
    """
    asyncpg does NOT accept sslmode or channel_binding as connect kwargs.
    If these appear in the URL query, SQLAlchemy can end up passing them to
    asyncpg.connect(), causing:
      TypeError: connect() got an unexpected keyword argument 'sslmode'
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    filtered = [(k, v) for (k, v) in params if k not in {"sslmode", "channel_binding"}]
    new_query = urlencode(filtered, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -----------------------------
    # Environment
    # -----------------------------
    # Use: development | staging | production
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # DB
    # -----------------------------
    # Local default is a SQLite file; production points these at PostgreSQL.
    DATABASE_URL_ASYNC: str = "sqlite+aiosqlite:///./cruise_affiliate.db"
    DATABASE_URL_SYNC: str = "sqlite:///./cruise_affiliate.db"

    # -----------------------------
    # JWT
    # -----------------------------
    # Keep a dev default, but enforce stronger requirements outside dev.
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # -----------------------------
    # Commission policy
    # -----------------------------
    COMMISSION_RATE: Decimal = Decimal("0.033")
    WITHHOLDING_RATE: Decimal = Decimal("0.033")
    COMMISSION_CURRENCY: str = "KRW"
    GRACE_PERIOD_DAYS: int = 7
    # Grace periods end at midnight of the business day (KST has no DST).
    BUSINESS_UTC_OFFSET_HOURS: int = 9

    # -----------------------------
    # HQ bootstrap
    # -----------------------------
    HQ_BOOTSTRAP_EMAIL: str = "hq@cruiseguide.kr"
    HQ_DISPLAY_NAME: str = "Head Office"
    BOOTSTRAP_HQ_ON_STARTUP: bool = False

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return _strip_asyncpg_unsupported_params(self.DATABASE_URL_ASYNC)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL_ASYNC.startswith("sqlite")

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        env = (self.ENVIRONMENT or "").strip().lower()

        # Enforce that we never run staging/production with a placeholder secret.
        if env in {"staging", "production"}:
            if not self.JWT_SECRET or self.JWT_SECRET.strip() == "dev-secret-change-me":
                raise ValueError("JWT_SECRET must be set to a strong value in staging/production.")
            if len(self.JWT_SECRET.strip()) < 32:
                raise ValueError("JWT_SECRET is too short; use at least 32 characters in staging/production.")

        # Light sanity checks (all envs)
        if self.JWT_ALGORITHM not in {"HS256"}:
            raise ValueError(f"Unsupported JWT_ALGORITHM={self.JWT_ALGORITHM!r}. Allowed: HS256")
        if not (Decimal("0") < self.COMMISSION_RATE < Decimal("1")):
            raise ValueError("COMMISSION_RATE must be between 0 and 1.")
        if not (Decimal("0") <= self.WITHHOLDING_RATE < Decimal("1")):
            raise ValueError("WITHHOLDING_RATE must be between 0 and 1.")
        if self.GRACE_PERIOD_DAYS < 0:
            raise ValueError("GRACE_PERIOD_DAYS cannot be negative.")


# this must exist for: `from app.core.config import settings`
settings = Settings()
