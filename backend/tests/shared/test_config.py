"""Tests for shared/config.py."""

import os
from unittest.mock import patch

from shared.config import Settings, get_settings


class TestSettings:
    def test_default_values(self):
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.app_name == "Vantage API"
        assert settings.app_version == "0.1.0"
        assert settings.debug is False
        assert settings.port == 8000
        assert settings.log_level == "INFO"
        assert settings.subscription_path == "/subscription"
        assert settings.enable_billing is True

    def test_entitlement_defaults(self):
        """Quota and refresh defaults should match the built-in table."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.entitlement_quota_free == 2
        assert settings.entitlement_quota_base == 5
        assert settings.entitlement_quota_pro == 50
        assert settings.entitlement_quota_enterprise == -1
        assert settings.entitlement_request_timeout == 10.0
        assert settings.entitlement_stale_after_seconds == 300
        assert settings.entitlement_retry_after_seconds == 5.0
        assert settings.entitlement_evict_after_seconds == 3600
        assert settings.entitlement_sync_interval == 60.0

    def test_loads_from_env(self):
        """Settings should load from environment variables."""
        with patch.dict(os.environ, {"DEBUG": "true", "PORT": "9000"}):
            settings = Settings()
            assert settings.debug is True
            assert settings.port == 9000

    def test_loads_entitlement_config_from_env(self):
        """Entitlement settings should load from environment variables."""
        with patch.dict(os.environ, {
            "ENTITLEMENT_QUOTA_PRO": "100",
            "ENTITLEMENT_REQUEST_TIMEOUT": "2.5",
            "ENABLE_BILLING": "false",
        }):
            settings = Settings()
            assert settings.entitlement_quota_pro == 100
            assert settings.entitlement_request_timeout == 2.5
            assert settings.enable_billing is False

    def test_loads_stripe_config_from_env(self):
        """Stripe price IDs should load from environment variables."""
        with patch.dict(os.environ, {
            "STRIPE_SECRET_KEY": "sk_test",
            "STRIPE_PRICE_ID_PRO": "price_pro",
        }):
            settings = Settings()
            assert settings.stripe_secret_key == "sk_test"
            assert settings.stripe_price_id_pro == "price_pro"

    def test_loads_supabase_config_from_env(self):
        """Settings should load Supabase configuration from environment variables."""
        with patch.dict(os.environ, {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "test-service-key",
            "SUPABASE_JWT_SECRET": "test-jwt-secret",
        }):
            settings = Settings()
            assert settings.supabase_url == "https://test.supabase.co"
            assert settings.supabase_service_role_key == "test-service-key"
            assert settings.supabase_jwt_secret == "test-jwt-secret"


class TestGetSettings:
    def test_get_settings_returns_settings_instance(self):
        """get_settings should return a Settings instance."""
        get_settings.cache_clear()
        assert isinstance(get_settings(), Settings)

    def test_get_settings_caches(self):
        """get_settings should return cached instance."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
