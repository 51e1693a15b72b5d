"""
Entitlement service implementation.

Wraps the pure resolver with the refresh lifecycle: reconcile billing,
re-read inputs from the record store, resolve, and hold the result as the
user's last-known-good entitlement.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from shared.config import get_settings
from shared.exceptions import VantageError

from .exceptions import CollaboratorUnavailableError, ConfigurationError
from .interfaces import IBillingReconciler, IEntitlementService, IRecordStore
from .models import (
    AdminGrant,
    BillingSubscription,
    EntitlementRecord,
    EntitlementState,
)
from .quotas import TierQuotas
from .resolver import default_record, resolve

logger = logging.getLogger(__name__)

RECORD_STORE = "record_store"
BILLING = "billing"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntitlementService(IEntitlementService):
    """
    Entitlement service backed by a record store and a billing reconciler.

    Holds one last-known-good record per user. Concurrent refreshes for the
    same user are independent; whichever completes last wins. The record
    store's upserts are what keep concurrent refreshes from duplicating rows.
    """

    def __init__(
        self,
        store: IRecordStore,
        billing: Optional[IBillingReconciler] = None,
        quotas: Optional[TierQuotas] = None,
        request_timeout: Optional[float] = None,
        stale_after: Optional[float] = None,
        retry_after: Optional[float] = None,
        evict_after: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the entitlement service.

        Args:
            store: Record store for roles, grants and billing rows
            billing: Billing reconciler; None skips reconciliation
            quotas: Quota table (defaults to configured quotas)
            request_timeout: Seconds before a collaborator call is abandoned
            stale_after: Seconds after which a cached record is refreshed
            retry_after: Seconds to wait before retrying a failed refresh
            evict_after: Seconds after which an idle user is dropped from memory
            clock: Source of the current time
        """
        settings = get_settings()
        self._store = store
        self._billing = billing
        self._quotas = quotas or TierQuotas.from_settings(settings)
        self._timeout = (
            request_timeout
            if request_timeout is not None
            else settings.entitlement_request_timeout
        )
        self._stale_after = timedelta(
            seconds=stale_after
            if stale_after is not None
            else settings.entitlement_stale_after_seconds
        )
        self._retry_after = timedelta(
            seconds=retry_after
            if retry_after is not None
            else settings.entitlement_retry_after_seconds
        )
        self._evict_after = timedelta(
            seconds=evict_after
            if evict_after is not None
            else settings.entitlement_evict_after_seconds
        )
        self._clock = clock

        self._records: dict[str, EntitlementRecord] = {}
        self._errors: dict[str, dict[str, Any]] = {}
        self._failed_at: dict[str, datetime] = {}
        self._last_seen: dict[str, datetime] = {}
        self._last_sweep = clock()
        self._in_flight: dict[str, int] = {}
        self._invalidated: set[str] = set()

    @property
    def quotas(self) -> TierQuotas:
        return self._quotas

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def refresh(self, user_id: str) -> EntitlementRecord:
        """Reconcile billing, re-read all inputs and resolve."""
        self._last_seen[user_id] = self._clock()
        self._in_flight[user_id] = self._in_flight.get(user_id, 0) + 1
        try:
            return await self._refresh(user_id)
        finally:
            remaining = self._in_flight[user_id] - 1
            if remaining:
                self._in_flight[user_id] = remaining
            else:
                del self._in_flight[user_id]

    async def _refresh(self, user_id: str) -> EntitlementRecord:
        error: Optional[VantageError] = None

        if self._billing is not None:
            try:
                await self._reconcile(self._billing, user_id)
            except (ConfigurationError, CollaboratorUnavailableError) as e:
                logger.warning(
                    "Billing reconciliation failed, resolving from stored inputs",
                    extra={"user_id": user_id, "error": e.code},
                    exc_info=True,
                )
                error = e

        roles, grant, subscription, read_error = await self._read_inputs(user_id)

        if read_error is not None:
            error = read_error
            previous = self._records.get(user_id)
            if previous is not None:
                logger.warning(
                    "Record store unavailable, keeping last-known-good entitlement",
                    extra={"user_id": user_id, "tier": previous.tier.value},
                )
                self._set_error(user_id, error)
                return previous

        record = resolve(
            roles,
            grant,
            subscription,
            quotas=self._quotas,
            now=self._clock(),
            user_id=user_id,
        )

        self._records[user_id] = record
        self._invalidated.discard(user_id)
        if error is not None:
            self._set_error(user_id, error)
        else:
            self._errors.pop(user_id, None)
            self._failed_at.pop(user_id, None)

        logger.info(
            "Refreshed entitlement",
            extra={
                "user_id": user_id,
                "tier": record.tier.value,
                "branch": record.branch.value,
                "payment_required": record.payment_required,
            },
        )
        return record

    def _set_error(self, user_id: str, error: VantageError) -> None:
        self._errors[user_id] = error.to_dict()
        self._failed_at[user_id] = self._clock()

    async def _reconcile(self, billing: IBillingReconciler, user_id: str) -> None:
        try:
            await asyncio.wait_for(
                billing.reconcile_with_processor(user_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise CollaboratorUnavailableError(
                BILLING, f"timed out after {self._timeout}s"
            ) from None
        except (ConfigurationError, CollaboratorUnavailableError):
            raise
        except Exception as e:
            raise CollaboratorUnavailableError(BILLING, str(e)) from e

    async def _call_store(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking record-store call in a worker thread with a timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise CollaboratorUnavailableError(
                RECORD_STORE, f"timed out after {self._timeout}s"
            ) from None
        except Exception as e:
            raise CollaboratorUnavailableError(RECORD_STORE, str(e)) from e

    async def _read_inputs(
        self,
        user_id: str,
    ) -> tuple[
        set[str],
        Optional[AdminGrant],
        Optional[BillingSubscription],
        Optional[CollaboratorUnavailableError],
    ]:
        """
        Read roles, grant and billing row concurrently.

        A failed read counts as absent; the first failure is returned so the
        caller can decide whether to keep the previous record.
        """
        results = await asyncio.gather(
            self._call_store(self._store.get_roles, user_id),
            self._call_store(self._store.get_admin_grant, user_id),
            self._call_store(self._store.get_active_subscription, user_id),
            return_exceptions=True,
        )

        read_error: Optional[CollaboratorUnavailableError] = None
        values: list[Any] = []
        for result in results:
            if isinstance(result, CollaboratorUnavailableError):
                read_error = read_error or result
                values.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                values.append(result)

        roles, grant, subscription = values
        return roles or set(), grant, subscription, read_error

    # -------------------------------------------------------------------------
    # Consumer-facing state
    # -------------------------------------------------------------------------

    def get_entitlement(self, user_id: str) -> EntitlementState:
        """Get the current snapshot; the free default while nothing is resolved."""
        record = self._records.get(user_id)
        error = self._errors.get(user_id)
        if record is None:
            return EntitlementState.from_record(
                user_id,
                default_record(user_id, self._quotas, now=self._clock()),
                loading=True,
                error=error,
            )
        return EntitlementState.from_record(
            user_id,
            record,
            loading=user_id in self._in_flight,
            error=error,
        )

    async def current(self, user_id: str) -> EntitlementState:
        """Refresh when missing, stale, invalidated or failed, then snapshot."""
        self._evict_idle()
        self._last_seen[user_id] = self._clock()
        if self.needs_refresh(user_id):
            await self.refresh(user_id)
        return self.get_entitlement(user_id)

    def needs_refresh(self, user_id: str) -> bool:
        record = self._records.get(user_id)
        now = self._clock()
        if record is None or user_id in self._invalidated:
            return True
        failed_at = self._failed_at.get(user_id)
        if failed_at is not None and now - failed_at >= self._retry_after:
            return True
        return now - record.computed_at > self._stale_after

    def invalidate(self, user_id: str) -> None:
        """Mark the user's record stale (e.g., after checkout or a grant change)."""
        self._invalidated.add(user_id)
        logger.debug("Invalidated entitlement", extra={"user_id": user_id})

    def is_degraded(self, user_id: str) -> bool:
        """
        True if the last refresh failed and the held record is stale.

        Security-relevant gates deny access in this state.
        """
        if user_id not in self._errors:
            return False
        record = self._records.get(user_id)
        if record is None:
            return True
        return self._clock() - record.computed_at > self._stale_after

    def forget(self, user_id: str) -> None:
        """Drop everything held for a user (e.g., on sign-out)."""
        self._records.pop(user_id, None)
        self._errors.pop(user_id, None)
        self._failed_at.pop(user_id, None)
        self._last_seen.pop(user_id, None)
        self._invalidated.discard(user_id)

    def _evict_idle(self) -> None:
        """Forget users not seen within the eviction window."""
        now = self._clock()
        if now - self._last_sweep < self._stale_after:
            return
        self._last_sweep = now

        idle = [
            user_id
            for user_id, seen in self._last_seen.items()
            if now - seen > self._evict_after and user_id not in self._in_flight
        ]
        for user_id in idle:
            self.forget(user_id)
        if idle:
            logger.debug("Evicted idle entitlements", extra={"count": len(idle)})
