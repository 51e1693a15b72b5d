"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt

from api.dependencies import reset_container
from modules.billing.models import PriceCatalog, ProcessorSubscription
from modules.entitlements.models import Tier
from modules.entitlements.quotas import TierQuotas
from modules.entitlements.repository import InMemoryRecordStore


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

TEST_PRICES = {
    Tier.BASE: "price_base",
    Tier.PRO: "price_pro",
    Tier.ENTERPRISE: "price_enterprise",
}


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified
        secret: Signing secret

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


class FakeProcessor:
    """Payment processor returning canned subscriptions per customer."""

    def __init__(self, subscriptions: Optional[dict[str, list[ProcessorSubscription]]] = None):
        self.subscriptions = subscriptions or {}
        self.calls: list[str] = []
        self.error: Optional[Exception] = None

    def list_subscriptions(self, customer_id: str) -> list[ProcessorSubscription]:
        self.calls.append(customer_id)
        if self.error is not None:
            raise self.error
        return list(self.subscriptions.get(customer_id, []))


def processor_subscription(
    sub_id: str = "sub_1",
    customer_id: str = "cus_1",
    status: str = "active",
    price_id: Optional[str] = "price_pro",
    created: Optional[datetime] = None,
) -> ProcessorSubscription:
    """Build a processor subscription with sensible defaults."""
    return ProcessorSubscription(
        id=sub_id,
        customer_id=customer_id,
        status=status,
        price_id=price_id,
        created_at=created or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture(autouse=True)
def reset_services():
    """Reset the service container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def quotas() -> TierQuotas:
    """Default quota table."""
    return TierQuotas()


@pytest.fixture
def store(quotas: TierQuotas) -> InMemoryRecordStore:
    """Fresh in-memory record store."""
    return InMemoryRecordStore(quotas)


@pytest.fixture
def prices() -> PriceCatalog:
    """Price catalog with every paid tier configured."""
    return PriceCatalog(dict(TEST_PRICES))


@pytest.fixture
def processor() -> FakeProcessor:
    """Processor with no subscriptions."""
    return FakeProcessor()
