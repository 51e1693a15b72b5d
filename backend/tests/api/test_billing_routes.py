"""Tests for billing API endpoints."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from api import app
from api.dependencies import get_billing_service
from modules.billing.models import PriceCatalog
from modules.billing.service import BillingService
from modules.entitlements.models import Tier

from tests.conftest import TEST_JWT_SECRET, FakeProcessor


client = TestClient(app)


@pytest.fixture(autouse=True)
def mock_jwt_secret():
    """Sign and verify tokens with the test secret."""
    with patch("api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        yield


@pytest.fixture(autouse=True)
def billing_service(store, quotas):
    """Billing service with only the pro price configured."""
    service = BillingService(store, FakeProcessor(), PriceCatalog({Tier.PRO: "price_pro"}), quotas)
    app.dependency_overrides[get_billing_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


class TestPlans:
    def test_list_plans(self):
        """Should list every tier without authentication."""
        response = client.get("/api/billing/plans")

        assert response.status_code == 200
        plans = response.json()["plans"]
        assert [p["tier"] for p in plans] == ["free", "base", "pro", "enterprise"]
        assert plans[2]["price_id"] == "price_pro"
        assert plans[3]["available"] is False

    def test_upgrade_price(self, auth_headers):
        """Should return the configured price for a tier."""
        response = client.get("/api/billing/plans/pro/price", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"tier": "pro", "price_id": "price_pro"}

    def test_upgrade_price_not_configured(self, auth_headers):
        """An unconfigured tier should fail visibly."""
        response = client.get("/api/billing/plans/enterprise/price", headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "PRICE_NOT_CONFIGURED"

    def test_upgrade_price_unknown_tier(self, auth_headers):
        """An unknown tier should be rejected by validation."""
        response = client.get("/api/billing/plans/platinum/price", headers=auth_headers)
        assert response.status_code == 422

    def test_upgrade_price_requires_auth(self):
        """Should return 401 without a token."""
        assert client.get("/api/billing/plans/pro/price").status_code == 401
