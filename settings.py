# settings.py
"""
VitaBalance API Settings.

Pydantic settings management with environment variable support.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Store - REQUIRED from environment
    DATABASE_URL: str = Field(default="", description="SQLAlchemy URL of the row store (required)")

    # Auth provider - tokens are issued elsewhere and only verified here
    AUTH_JWT_SECRET: str = Field(default="", description="Secret used to verify user access tokens (required)")
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: Optional[str] = None

    # Environment
    ENV: str = "development"
    DEBUG: bool = True

    # Mercado Pago
    MERCADOPAGO_API_URL: str = "https://api.mercadopago.com"
    MERCADOPAGO_PUBLIC_KEY: str = ""
    MERCADOPAGO_ACCESS_TOKEN: str = ""
    MERCADOPAGO_WEBHOOK_SECRET: str = ""
    MERCADOPAGO_TIMEOUT_SECONDS: float = 10.0

    # Public URLs
    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_URL: str = "http://localhost:8000"

    # Payment confirmation polling (fixed interval, hard cap)
    PAYMENT_POLL_INTERVAL_SECONDS: float = 3.0
    PAYMENT_POLL_MAX_ATTEMPTS: int = 10

    # Retry policy
    STORE_RETRY_ATTEMPTS: int = 3
    STORE_RETRY_BASE_DELAY_SECONDS: float = 0.5
    UPSTREAM_RETRY_ATTEMPTS: int = 3
    UPSTREAM_RETRY_BASE_DELAY_SECONDS: float = 1.0

    # Debounced registration writes
    REGISTRATION_DEBOUNCE_SECONDS: float = 0.5

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: str = "production"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    @property
    def is_sqlite(self) -> bool:
        """Check if the store is backed by SQLite (tests, local runs)."""
        return self.DATABASE_URL.startswith("sqlite")

    def get_cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def validate_required_settings(self) -> None:
        """
        Validate that required settings are configured.

        Called once at startup; a missing value is fatal for the process.

        Raises:
            ValueError: Naming every missing setting.
        """
        required = {
            "DATABASE_URL": self.DATABASE_URL,
            "AUTH_JWT_SECRET": self.AUTH_JWT_SECRET,
            "MERCADOPAGO_PUBLIC_KEY": self.MERCADOPAGO_PUBLIC_KEY,
            "MERCADOPAGO_ACCESS_TOKEN": self.MERCADOPAGO_ACCESS_TOKEN,
            "MERCADOPAGO_WEBHOOK_SECRET": self.MERCADOPAGO_WEBHOOK_SECRET,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
