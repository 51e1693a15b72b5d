"""
Entitlement sync trigger.

Keeps one viewer's entitlement fresh: refresh on start, then periodically
with jitter so many sessions don't poll in lockstep. Replaces per-view
polling timers with a single owned lifecycle.

Usage:
    sync = EntitlementSync(service, user.id)
    await sync.start()
    ...
    await sync.trigger()   # e.g. after checkout completes
    ...
    await sync.stop()      # view torn down

The API holds one process-wide EntitlementService; a session owner such as
a websocket handler constructs one EntitlementSync per connection, with a
listener that pushes each changed state to the client. The handler calls
`stop()` when the connection closes. Request handlers read through
`EntitlementService.current()` instead.
"""

import asyncio
import logging
import random
from typing import Callable, Optional

from shared.config import get_settings

from .interfaces import IEntitlementService
from .models import EntitlementState

logger = logging.getLogger(__name__)


class EntitlementSync:
    """
    Owns the entitlement state for one session.

    Results of refreshes that finish after `stop()` are discarded: the
    refresh itself is allowed to complete, but this sync's state and
    listener are never touched again.
    """

    def __init__(
        self,
        service: IEntitlementService,
        user_id: str,
        interval: Optional[float] = None,
        jitter: Optional[float] = None,
        on_change: Optional[Callable[[EntitlementState], None]] = None,
    ):
        settings = get_settings()
        self._service = service
        self._user_id = user_id
        self._interval = interval if interval is not None else settings.entitlement_sync_interval
        self._jitter = jitter if jitter is not None else settings.entitlement_sync_jitter
        self._on_change = on_change

        self._state: Optional[EntitlementState] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def state(self) -> EntitlementState:
        """Latest state seen by this session (service snapshot until first sync)."""
        if self._state is None:
            return self._service.get_entitlement(self._user_id)
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def next_delay(self) -> float:
        """Seconds until the next periodic refresh."""
        spread = self._interval * self._jitter
        return max(0.0, self._interval + random.uniform(-spread, spread))

    async def start(self) -> EntitlementState:
        """Refresh once, then start the periodic background refresh."""
        if self._closed:
            raise RuntimeError("EntitlementSync has been stopped")
        state = await self.trigger()
        if self._task is None and self._interval > 0:
            self._task = asyncio.create_task(self._run())
        return state

    async def trigger(self) -> EntitlementState:
        """Refresh now and publish the result unless the session has stopped."""
        refresh = asyncio.ensure_future(self._service.refresh(self._user_id))
        refresh.add_done_callback(self._collect)
        await asyncio.shield(refresh)
        state = self._service.get_entitlement(self._user_id)
        if self._closed:
            logger.debug(
                "Discarding entitlement refresh for stopped session",
                extra={"user_id": self._user_id},
            )
            return state
        self._publish(state)
        return state

    async def stop(self) -> None:
        """Stop periodic refresh; in-flight results will be discarded."""
        self._closed = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while not self._closed:
            await asyncio.sleep(self.next_delay())
            if self._closed:
                break
            try:
                await self.trigger()
            except Exception:
                logger.exception(
                    "Periodic entitlement refresh failed",
                    extra={"user_id": self._user_id},
                )

    def _collect(self, refresh: asyncio.Future) -> None:
        """Retrieve the outcome of a refresh whose awaiter may have gone."""
        if refresh.cancelled():
            return
        error = refresh.exception()
        if error is not None and self._closed:
            logger.warning(
                "Entitlement refresh failed after session stopped",
                extra={"user_id": self._user_id},
                exc_info=error,
            )

    def _publish(self, state: EntitlementState) -> None:
        previous = self._state
        self._state = state
        if self._on_change is not None and (
            previous is None
            or previous.model_dump(exclude={"computed_at", "loading"})
            != state.model_dump(exclude={"computed_at", "loading"})
        ):
            self._on_change(state)
