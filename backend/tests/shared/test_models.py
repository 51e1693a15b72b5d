"""
Tests for shared models.
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from shared.models import AuthenticatedUser, TokenPayload


class TestAuthenticatedUser:
    """Tests for the AuthenticatedUser model in shared."""

    def test_create_with_required_fields(self):
        """Should create user with only required fields."""
        user = AuthenticatedUser(id="user-123", email="test@example.com")
        assert user.id == "user-123"
        assert user.email_verified is False
        assert user.created_at is None

    def test_ignores_tier_and_role_claims(self):
        """Tier and role claims should never be trusted from the token."""
        user = AuthenticatedUser(
            id="user-123",
            email="test@example.com",
            role="admin",
            tier="enterprise",
        )
        assert not hasattr(user, "tier")
        assert not hasattr(user, "role")

    def test_email_validation(self):
        """Should validate email format."""
        with pytest.raises(ValidationError):
            AuthenticatedUser(id="user-123", email="not-an-email")

    def test_is_frozen(self):
        """Users should be immutable."""
        user = AuthenticatedUser(
            id="user-123",
            email="test@example.com",
            last_sign_in=datetime.now(timezone.utc),
        )
        with pytest.raises(ValidationError):
            user.id = "other"


class TestTokenPayload:
    def test_optional_confirmation(self):
        """email_confirmed_at should be optional."""
        payload = TokenPayload(
            sub="user-123",
            email="test@example.com",
            aud="authenticated",
            exp=9999999999,
            iat=1704067200,
        )
        assert payload.email_confirmed_at is None
