"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import re

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ledger.config.business_constants import (
    CODE_GENERATION_MAX_ATTEMPTS,
    COMMISSION_RATE_AGENT,
    COMMISSION_RATE_ALUMNI,
    MIN_WITHDRAWAL_AMOUNT,
    RECONCILIATION_BATCH_SIZE,
    REFERRAL_CODE_PREFIX,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/ledger.log"

    # Referral codes
    referral_code_prefix: str = Field(
        default=REFERRAL_CODE_PREFIX,
        description="Brand prefix of every issued referral code",
    )
    code_generation_max_attempts: int = Field(
        default=CODE_GENERATION_MAX_ATTEMPTS,
        ge=1,
        le=20,
        description="Random suffix draws before the timestamp fallback",
    )

    # Commission rates (integer Rupiah)
    commission_rate_alumni: int = Field(
        default=COMMISSION_RATE_ALUMNI,
        gt=0,
        description="Commission per converted referral for alumni owners",
    )
    commission_rate_agent: int = Field(
        default=COMMISSION_RATE_AGENT,
        gt=0,
        description="Commission per converted referral for agent owners",
    )

    # Withdrawals
    min_withdrawal_amount: int = Field(
        default=MIN_WITHDRAWAL_AMOUNT,
        gt=0,
        description="Minimum amount of a single withdrawal request",
    )

    # Reconciliation job
    reconciliation_batch_size: int = Field(
        default=RECONCILIATION_BATCH_SIZE,
        gt=0,
        description="Owners audited per batch by the reconciliation job",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "or sqlite+aiosqlite://"
            )
        return v

    @field_validator("referral_code_prefix")
    @classmethod
    def validate_code_prefix(cls, v: str) -> str:
        """Validate referral code brand prefix."""
        v = v.strip().upper()
        if not re.match(r"^[A-Z0-9]{2,16}$", v):
            raise ValueError(
                "REFERRAL_CODE_PREFIX must be 2-16 letters or digits"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        v = v.strip().upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if v not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(sorted(allowed))}")
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "SQLite is only supported outside production. "
                    "Set DATABASE_URL to a postgresql+asyncpg:// URL."
                )
        return self

    @model_validator(mode="after")
    def validate_rates(self) -> "Settings":
        """Warn about rate configurations that look like typos."""
        if self.commission_rate_agent < self.commission_rate_alumni:
            logger.warning(
                "Agent commission rate is lower than alumni rate "
                "(agent={agent}, alumni={alumni})",
                agent=self.commission_rate_agent,
                alumni=self.commission_rate_alumni,
            )
        if self.min_withdrawal_amount > self.commission_rate_alumni:
            logger.warning(
                "Minimum withdrawal exceeds a single alumni commission; "
                "alumni need several conversions before their first withdrawal"
            )
        return self


# Global settings instance for entrypoints (jobs, scripts)
settings = Settings()
