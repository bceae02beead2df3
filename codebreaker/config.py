"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Annotated, Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./codebreaker.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    frontend_url: str = "http://localhost:5173"
    environment: str = "development"
    secret_key: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"  # Use HS256 for symmetric signing
    access_token_exp_minutes: int = 120  # Access tokens valid for 2 hours

    # Admin access
    admin_emails: Annotated[set[str], NoDecode] = set()  # Comma-separated in the environment

    # Payment webhook (shared secret sent by the payment processor, empty disables the check)
    payment_webhook_secret: str = ""

    # Game Constants
    code_length: int = 7
    max_winners_per_round: int = 10
    max_hints_per_round: int = 3
    hint_price: float = 0.5
    hint_currency: str = "USDT"

    # Anti-cheat
    guess_rate_limit_window_seconds: int = 60
    guess_rate_limit_max_attempts: int = 10
    hint_cooldown_seconds: int = 10
    hint_payment_ttl_seconds: int = 900  # Unpaid hint requests stop holding quota and positions after this

    # Code generation
    code_generation_max_attempts: int = 1000  # Draws before falling back to a fixed pattern
    code_assignment_max_attempts: int = 100  # Candidates tried before giving up on a collision-free code

    # Transaction tuning
    transaction_max_attempts: int = 8  # Whole-operation retries on write conflicts

    @field_validator("admin_emails", mode="before")
    @classmethod
    def parse_admin_emails(cls, value):
        """Parse comma-separated admin emails from environment variables."""
        if value is None:
            return set()
        if isinstance(value, str):
            items = [item.strip().lower() for item in value.split(",") if item.strip()]
        elif isinstance(value, (list, tuple, set)):
            items = [str(item).strip().lower() for item in value if str(item).strip()]
        else:
            raise TypeError("admin_emails must be provided as a string or sequence")
        return set(items)

    def is_admin_email(self, email: str | None) -> bool:
        """Determine if the provided email belongs to an administrator."""
        if not email:
            return False
        normalized = email.strip().lower()
        return normalized in self.admin_emails

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate security and game configuration and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        # Security validation
        if self.environment == "production":
            if self.secret_key == "dev-secret-key-change-in-production":
                raise ValueError("secret_key must be changed from default value in production")
            if not self.payment_webhook_secret:
                raise ValueError("payment_webhook_secret must be set in production")

        # Validate JWT algorithm
        if self.jwt_algorithm not in ["HS256", "HS384", "HS512"]:
            raise ValueError(f"Unsupported JWT algorithm: {self.jwt_algorithm}. Use HS256, HS384, or HS512.")

        if self.access_token_exp_minutes < 1 or self.access_token_exp_minutes > 1440:  # 1 min to 24 hours
            raise ValueError("access_token_exp_minutes must be between 1 and 1440 (24 hours)")

        # Game constants
        if self.code_length < 2:
            raise ValueError("code_length must be at least 2")
        if self.max_winners_per_round < 1:
            raise ValueError("max_winners_per_round must be at least 1")
        if not 0 <= self.max_hints_per_round < self.code_length:
            raise ValueError("max_hints_per_round must be between 0 and code_length - 1")
        if self.hint_price <= 0:
            raise ValueError("hint_price must be positive")
        if self.guess_rate_limit_window_seconds < 1 or self.guess_rate_limit_max_attempts < 1:
            raise ValueError("guess rate limit window and max attempts must be positive")
        if self.hint_payment_ttl_seconds < 1:
            raise ValueError("hint_payment_ttl_seconds must be positive")
        if self.transaction_max_attempts < 1:
            raise ValueError("transaction_max_attempts must be at least 1")

        # Database URL normalization
        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:  # pragma: no cover - defensive fallback
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {drivername} -> {parsed.drivername}")
        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
