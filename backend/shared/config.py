"""
Centralized configuration for the Vantage backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., STRIPE_*, SUPABASE_*,
ENTITLEMENT_*).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Vantage API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Stripe (loaded by billing module)
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_id_base: str = ""
    stripe_price_id_pro: str = ""
    stripe_price_id_enterprise: str = ""

    # Redirect target for entitlement denials
    subscription_path: str = "/subscription"

    # Document quotas per tier (negative = unlimited)
    entitlement_quota_free: int = 2
    entitlement_quota_base: int = 5
    entitlement_quota_pro: int = 50
    entitlement_quota_enterprise: int = -1

    # Entitlement refresh lifecycle
    entitlement_request_timeout: float = 10.0  # seconds
    entitlement_stale_after_seconds: int = 300
    entitlement_retry_after_seconds: float = 5.0  # backoff after a failed refresh
    entitlement_evict_after_seconds: int = 3600  # drop users idle this long
    entitlement_sync_interval: float = 60.0  # seconds
    entitlement_sync_jitter: float = 0.1  # fraction of the interval

    # Feature Flags
    enable_billing: bool = True


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
