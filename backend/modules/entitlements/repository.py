"""
Record store for entitlement inputs.

Encapsulates all Supabase queries and data mapping for the tables the
resolver reads:
- user_roles
- profiles (granted_tier, has_free_access, stripe_customer_id)
- user_subscriptions (one row per user, unique on user_id)

Also provides an in-memory store with the same contract for development
and testing.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from .models import (
    AdminGrant,
    BillingSubscription,
    SubscriptionStatus,
    Tier,
)
from .quotas import TierQuotas


SUBSCRIPTIONS_TABLE = "user_subscriptions"
ROLES_TABLE = "user_roles"
PROFILES_TABLE = "profiles"


def default_subscription_row(user_id: str, quotas: TierQuotas) -> dict[str, Any]:
    """The free billing row created for users with no subscription."""
    return {
        "user_id": user_id,
        "tier": Tier.FREE.value,
        "status": SubscriptionStatus.ACTIVE.value,
        "max_documents": quotas.quota_for(Tier.FREE),
    }


class EntitlementRepository(BaseRepository[BillingSubscription]):
    """
    Supabase-backed record store.

    Note: This repository does NOT perform authorization checks and must be
    used with the service-role client.
    """

    def __init__(self, db: Client, quotas: Optional[TierQuotas] = None) -> None:
        super().__init__(db)
        self._quotas = quotas or TierQuotas.from_settings()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_roles(self, user_id: str) -> set[str]:
        result = self._db.table(ROLES_TABLE).select("role").eq("user_id", user_id).execute()
        return {row["role"] for row in result.data or [] if row.get("role")}

    def get_admin_grant(self, user_id: str) -> Optional[AdminGrant]:
        result = (
            self._db.table(PROFILES_TABLE)
            .select("id, granted_tier, has_free_access")
            .eq("id", user_id)
            .execute()
        )
        if not result.data:
            return None
        row = result.data[0]
        return AdminGrant(
            user_id=str(row["id"]),
            granted_tier=row.get("granted_tier"),
            has_free_access=bool(row.get("has_free_access")),
        )

    def get_active_subscription(self, user_id: str) -> Optional[BillingSubscription]:
        result = (
            self._db.table(SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .neq("status", SubscriptionStatus.INACTIVE.value)
            .execute()
        )
        if not result.data:
            return None
        return self._map_to_subscription(result.data[0])

    def get_subscription(self, user_id: str) -> Optional[BillingSubscription]:
        result = (
            self._db.table(SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .execute()
        )
        if not result.data:
            return None
        return self._map_to_subscription(result.data[0])

    def get_stripe_customer_id(self, user_id: str) -> Optional[str]:
        result = (
            self._db.table(PROFILES_TABLE)
            .select("stripe_customer_id")
            .eq("id", user_id)
            .execute()
        )
        if not result.data:
            return None
        return result.data[0].get("stripe_customer_id") or None

    # -------------------------------------------------------------------------
    # Upserts (unique on user_id)
    # -------------------------------------------------------------------------

    def upsert_default_subscription(self, user_id: str) -> BillingSubscription:
        """
        Create the free billing row if the user has none.

        ON CONFLICT DO NOTHING, so an existing paid row is left untouched and
        concurrent callers converge on a single row.
        """
        self._db.table(SUBSCRIPTIONS_TABLE).upsert(
            default_subscription_row(user_id, self._quotas),
            on_conflict="user_id",
            ignore_duplicates=True,
        ).execute()

        subscription = self.get_subscription(user_id)
        if subscription is None:
            # Row vanished between upsert and read; report what was written
            return BillingSubscription(**default_subscription_row(user_id, self._quotas))
        return subscription

    def upsert_subscription(self, data: dict[str, Any]) -> BillingSubscription:
        row = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = (
            self._db.table(SUBSCRIPTIONS_TABLE)
            .upsert(row, on_conflict="user_id")
            .execute()
        )
        if result.data:
            return self._map_to_subscription(result.data[0])
        return BillingSubscription(**data)

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def _map_to_subscription(self, data: dict[str, Any]) -> BillingSubscription:
        """Map database row to BillingSubscription model."""
        return BillingSubscription(
            id=str(data["id"]) if data.get("id") is not None else None,
            user_id=str(data["user_id"]),
            tier=data.get("tier") or Tier.FREE.value,
            status=data.get("status") or SubscriptionStatus.ACTIVE.value,
            max_documents=data.get("max_documents"),
            stripe_customer_id=data.get("stripe_customer_id"),
            stripe_subscription_id=data.get("stripe_subscription_id"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class InMemoryRecordStore:
    """
    Record store with in-memory storage.

    For testing and development. Use EntitlementRepository for production.
    Subscription rows are kept as a list, so the upsert contract is what
    prevents duplicates, as with a real table. A lock makes each upsert
    atomic when called from worker threads.
    """

    def __init__(self, quotas: Optional[TierQuotas] = None):
        self._quotas = quotas or TierQuotas()
        self._lock = threading.Lock()
        self._roles: dict[str, set[str]] = {}
        self._grants: dict[str, AdminGrant] = {}
        self._customers: dict[str, str] = {}
        self.subscription_rows: list[BillingSubscription] = []

    # Seeding helpers

    def set_roles(self, user_id: str, roles: set[str]) -> None:
        self._roles[user_id] = set(roles)

    def set_admin_grant(
        self,
        user_id: str,
        granted_tier: Optional[str] = None,
        has_free_access: bool = False,
    ) -> None:
        self._grants[user_id] = AdminGrant(
            user_id=user_id,
            granted_tier=granted_tier,
            has_free_access=has_free_access,
        )

    def set_stripe_customer_id(self, user_id: str, customer_id: str) -> None:
        self._customers[user_id] = customer_id

    def rows_for(self, user_id: str) -> list[BillingSubscription]:
        return [row for row in self.subscription_rows if row.user_id == user_id]

    # IRecordStore

    def get_roles(self, user_id: str) -> set[str]:
        return set(self._roles.get(user_id, set()))

    def get_admin_grant(self, user_id: str) -> Optional[AdminGrant]:
        return self._grants.get(user_id)

    def get_active_subscription(self, user_id: str) -> Optional[BillingSubscription]:
        subscription = self.get_subscription(user_id)
        if subscription is None or subscription.status == SubscriptionStatus.INACTIVE.value:
            return None
        return subscription

    def get_subscription(self, user_id: str) -> Optional[BillingSubscription]:
        rows = self.rows_for(user_id)
        return rows[0] if rows else None

    def get_stripe_customer_id(self, user_id: str) -> Optional[str]:
        return self._customers.get(user_id)

    def upsert_default_subscription(self, user_id: str) -> BillingSubscription:
        with self._lock:
            existing = self.get_subscription(user_id)
            if existing is not None:
                return existing
            now = datetime.now(timezone.utc)
            row = BillingSubscription(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                **default_subscription_row(user_id, self._quotas),
            )
            self.subscription_rows.append(row)
            return row

    def upsert_subscription(self, data: dict[str, Any]) -> BillingSubscription:
        with self._lock:
            user_id = data["user_id"]
            existing = self.get_subscription(user_id)
            now = datetime.now(timezone.utc)
            row = BillingSubscription(
                **{
                    "id": existing.id if existing else str(uuid.uuid4()),
                    "created_at": existing.created_at if existing else now,
                    **data,
                    "updated_at": now,
                }
            )
            self.subscription_rows = [
                r for r in self.subscription_rows if r.user_id != user_id
            ]
            self.subscription_rows.append(row)
            return row
