"""
Request Lifecycle Management.

Owns the single cancellation token of a controller mount.  The token is
created on ``start()`` and cancelled on ``stop()`` with a fixed reason,
so nothing issued during a mount can outlive it.  The manager is usable
as a (sync or async) context manager::

    async with RequestLifecycleManager(logger) as lifecycle:
        tag = lifecycle.begin_scope(AuthMode.LOGIN)
        async with lifecycle.track(tag) as token:
            body = await token.run(transport.post(url, json=payload))
        if lifecycle.is_current(tag):
            ...  # safe to apply the result

Requests are tagged with the mode and generation they were issued
under; a response whose tag is no longer current is stale and must be
discarded.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, NamedTuple, Optional, TypeVar

from authflow.errors import RequestCancelled, RequestInFlightError
from authflow.logger import StructuredLogger
from authflow.models.enums import AuthMode

T = TypeVar("T")

UNMOUNT_REASON: str = "Component unmounted"


class CancellationToken:
    """Handle used to abort in-flight requests.

    Awaitables run through :meth:`run` are wrapped in tasks; cancelling the
    token cancels those tasks and makes :meth:`run` raise
    :class:`RequestCancelled`.  A cancelled token stays cancelled.
    """

    def __init__(self) -> None:
        self._reason: Optional[str] = None
        self._tasks: set[asyncio.Future[object]] = set()

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str) -> None:
        """Cancel every tracked awaitable.  Later calls are no-ops."""
        if self._reason is not None:
            return
        self._reason = reason
        for task in list(self._tasks):
            task.cancel(reason)

    def raise_if_cancelled(self) -> None:
        if self._reason is not None:
            raise RequestCancelled(self._reason)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless (or until) the token is cancelled.

        Raises
        ------
        RequestCancelled
            If the token was cancelled before or during the await.
        """
        if self._reason is not None:
            # Close un-awaited coroutines so they do not warn.
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelled(self._reason)

        task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            # Only translate cancellations issued through this token;
            # cancellation of the caller itself keeps propagating.
            if self._reason is not None and task.cancelled():
                raise RequestCancelled(self._reason) from None
            raise
        finally:
            self._tasks.discard(task)


class RequestTag(NamedTuple):
    """Identifies the mode scope a request was issued under."""

    mode: AuthMode
    generation: int


class RequestLifecycleManager:
    """Explicitly owned create-on-start / cancel-on-stop token lifecycle.

    Parameters
    ----------
    logger:
        Structured logger for lifecycle events.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger
        self._token: Optional[CancellationToken] = None
        self._mode: Optional[AuthMode] = None
        self._generation: int = 0
        # (token, tag) of the outstanding tracked request, if any.
        self._slot_owner: Optional[tuple[CancellationToken, RequestTag]] = None

    # ------------------------------------------------------------------
    # Scoped acquisition
    # ------------------------------------------------------------------

    def start(self) -> CancellationToken:
        """Create the mount's token.  Starting twice without a stop is an error."""
        if self.active:
            raise RuntimeError("Request lifecycle already started.")
        self._token = CancellationToken()
        self._slot_owner = None
        self._logger.debug("Request lifecycle started.")
        return self._token

    def stop(self) -> None:
        """Cancel in-flight work with the fixed unmount reason."""
        if self._token is None:
            return
        self.cancel(UNMOUNT_REASON)
        self._logger.debug("Request lifecycle stopped.")

    def cancel(self, reason: str) -> None:
        if self._token is not None and not self._token.cancelled:
            self._logger.info(
                "Cancelling tracked request: %s", reason,
                extra={"event": "REQUEST_CANCELLED", "in_flight": self.in_flight},
            )
            self._token.cancel(reason)

    def __enter__(self) -> "RequestLifecycleManager":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    async def __aenter__(self) -> "RequestLifecycleManager":
        return self.__enter__()

    async def __aexit__(self, *exc_info: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Token access & request tagging
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        """``True`` between ``start()`` and ``stop()``."""
        return self._token is not None and not self._token.cancelled

    @property
    def token(self) -> CancellationToken:
        if self._token is None:
            raise RuntimeError("Request lifecycle has not been started.")
        return self._token

    @property
    def in_flight(self) -> bool:
        """``True`` while a request of the current mount and scope is outstanding.

        A request left over from a previous scope or a previous mount no
        longer occupies the slot; its response is discarded as stale.
        """
        if self._slot_owner is None:
            return False
        token, tag = self._slot_owner
        return token is self._token and self.is_current(tag)

    def begin_scope(self, mode: AuthMode) -> RequestTag:
        """Enter a new mode scope; requests tagged earlier become stale."""
        self._mode = mode
        self._generation += 1
        return RequestTag(mode=mode, generation=self._generation)

    def current_tag(self) -> Optional[RequestTag]:
        if self._mode is None:
            return None
        return RequestTag(mode=self._mode, generation=self._generation)

    def is_current(self, tag: RequestTag) -> bool:
        """``True`` when results issued under *tag* may still be applied."""
        return self.active and tag == self.current_tag()

    @asynccontextmanager
    async def track(self, tag: RequestTag) -> AsyncIterator[CancellationToken]:
        """Mark a request as outstanding for the duration of the block.

        Only the request that took the slot releases it.

        Raises
        ------
        RequestInFlightError
            If a request of the current scope is still outstanding.
        """
        token = self.token
        if self.in_flight:
            _, owner_tag = self._slot_owner
            raise RequestInFlightError(
                f"A {owner_tag.mode} request is already in flight."
            )
        owner = (token, tag)
        self._slot_owner = owner
        self._logger.debug(
            "Tracked request issued.",
            extra={"mode": str(tag.mode), "generation": tag.generation},
        )
        try:
            yield token
        finally:
            if self._slot_owner is owner:
                self._slot_owner = None
