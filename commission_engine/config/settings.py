"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from commission_engine.models.enums import OrderStatus


SUPPORTED_DATABASE_SCHEMES = (
    "postgresql://",
    "postgresql+asyncpg://",
    "sqlite+aiosqlite://",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(
        default=5, ge=1, description="Connection pool size (PostgreSQL only)"
    )

    # Runtime
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Commission behaviour
    commission_qualifying_status: OrderStatus = Field(
        default=OrderStatus.PROCESSING,
        description="Order status whose entry triggers commission generation",
    )
    commission_pay_inactive_sponsors: bool = Field(
        default=True,
        description="Whether inactive sponsors still earn commissions",
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
        """Validate database URL format."""
        if not v.startswith(SUPPORTED_DATABASE_SCHEMES):
            raise ValueError(
                "DATABASE_URL must start with one of: "
                + ", ".join(SUPPORTED_DATABASE_SCHEMES)
            )
        # asyncio engine needs an async driver
        if v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("commission_qualifying_status")
    @classmethod
    def validate_qualifying_status(cls, v: OrderStatus) -> OrderStatus:
        """Only payment confirmation may trigger generation."""
        if v != OrderStatus.PROCESSING:
            raise ValueError(
                "COMMISSION_QUALIFYING_STATUS must be 'processing' "
                "(payment confirmed)"
            )
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG must be False in production environment. "
                "Set DEBUG=false in your .env file."
            )
        return self

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


# Global settings instance
settings = Settings()
