"""
Auth Controller.

The mounted orchestrator of the authentication screen.  It resolves the
active mode, owns the form state and the submitting flag, evaluates the
pre-render guard, and hands submits to the ``SubmitDispatcher``.

Usage::

    controller = AuthController(registry, lifecycle, dispatcher, redirect_policy, logger)
    async with controller.mounted("login", search="?redirectTo=%2Fsettings"):
        if controller.guard() is None:
            controller.change_field("email", "admin@example.com")
            controller.change_field("password", "Secret123")
            await controller.submit()
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping, Optional

from authflow.errors import RequestInFlightError, UnknownModeError
from authflow.flow_registry import FlowRegistry
from authflow.lifecycle import RequestLifecycleManager
from authflow.logger import StructuredLogger
from authflow.models.auth_models import FlowDescriptor, NavigationTarget, SubmitOutcome
from authflow.models.enums import AuthMode, SubmitStatus
from authflow.services.redirect_policy import RedirectPolicy, parse_query
from authflow.services.submit_dispatcher import SubmitContext, SubmitDispatcher
from authflow.state import Action, AuthState, SetField, init_state, reduce


class AuthController:
    """Drives one authentication screen between ``mount`` and ``unmount``.

    Parameters
    ----------
    registry:
        Mode -> descriptor lookup.
    lifecycle:
        Cancellation-token owner for this controller.
    dispatcher:
        Submit handlers.
    redirect_policy:
        Pre-render guard.
    logger:
        Structured logger.
    admin_exists:
        Whether an admin user already exists on the identity service.
    """

    def __init__(
        self,
        registry: FlowRegistry,
        lifecycle: RequestLifecycleManager,
        dispatcher: SubmitDispatcher,
        redirect_policy: RedirectPolicy,
        logger: StructuredLogger,
        admin_exists: bool = False,
    ) -> None:
        self._registry = registry
        self._lifecycle = lifecycle
        self._dispatcher = dispatcher
        self._redirect_policy = redirect_policy
        self._logger = logger

        self.admin_exists: bool = admin_exists
        self._raw_mode: Optional[str] = None
        self._descriptor: Optional[FlowDescriptor] = None
        self._search: str = ""
        self._state: AuthState = AuthState()
        self._submitting: bool = False
        self._status: SubmitStatus = SubmitStatus.IDLE

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def status(self) -> SubmitStatus:
        return self._status

    @property
    def mode(self) -> Optional[AuthMode]:
        return self._descriptor.mode if self._descriptor is not None else None

    @property
    def descriptor(self) -> Optional[FlowDescriptor]:
        return self._descriptor

    @property
    def search(self) -> str:
        return self._search

    @property
    def query(self) -> dict[str, str]:
        return parse_query(self._search)

    @property
    def is_mounted(self) -> bool:
        return self._lifecycle.active

    # ------------------------------------------------------------------
    # Mount / unmount / mode changes
    # ------------------------------------------------------------------

    def mount(
        self,
        mode: Optional[str],
        search: str = "",
        initial_data: Optional[Mapping[str, object]] = None,
    ) -> None:
        """Start the request lifecycle and initialise state for *mode*."""
        self._lifecycle.start()
        self._logger.info("Auth screen mounted: %s", mode, extra={"event": "MOUNT"})
        self.set_mode(mode, search=search, initial_data=initial_data)

    def unmount(self) -> None:
        """Cancel any in-flight request and drop the form state."""
        self._lifecycle.stop()
        self._state = AuthState()
        self._submitting = False
        self._status = SubmitStatus.IDLE
        self._logger.info("Auth screen unmounted: %s", self._raw_mode, extra={"event": "UNMOUNT"})

    @asynccontextmanager
    async def mounted(
        self,
        mode: Optional[str],
        search: str = "",
        initial_data: Optional[Mapping[str, object]] = None,
    ) -> AsyncIterator["AuthController"]:
        self.mount(mode, search=search, initial_data=initial_data)
        try:
            yield self
        finally:
            self.unmount()

    def set_mode(
        self,
        mode: Optional[str],
        search: Optional[str] = None,
        initial_data: Optional[Mapping[str, object]] = None,
    ) -> None:
        """Switch to *mode*, discarding all state of the previous mode.

        Requests issued under the previous mode become stale: their
        responses are dropped on arrival.
        """
        self._raw_mode = mode
        if search is not None:
            self._search = search
        self._descriptor = self._registry.resolve(mode)
        self._state = init_state(self._descriptor, initial_data)
        self._submitting = False
        self._status = SubmitStatus.IDLE
        if self._descriptor is not None:
            self._lifecycle.begin_scope(self._descriptor.mode)
        else:
            self._logger.warning("Unknown auth mode %r.", mode, extra={"event": "UNKNOWN_MODE"})

    # ------------------------------------------------------------------
    # Guard
    # ------------------------------------------------------------------

    def guard(self) -> Optional[NavigationTarget]:
        """Where to redirect instead of rendering the current mode, if anywhere."""
        return self._redirect_policy.guard(self._raw_mode, self.admin_exists, self._search)

    # ------------------------------------------------------------------
    # Form events
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> None:
        self._state = reduce(self._state, action)

    def change_field(self, name: str, value: object) -> None:
        self.dispatch(SetField(name=name, value=value))

    def validate(self, payload: Optional[Mapping[str, object]] = None) -> dict[str, str]:
        """Client-side validation of *payload* (default: current form data)."""
        if self._descriptor is None:
            return {}
        data = payload if payload is not None else self._state.modified_data
        return self._registry.validate(self._descriptor.mode, data)

    def _set_submitting(self, submitting: bool) -> None:
        self._submitting = submitting

    def _set_admin_exists(self, admin_exists: bool) -> None:
        self.admin_exists = admin_exists

    async def submit(self, payload: Optional[Mapping[str, object]] = None) -> SubmitOutcome:
        """Submit *payload* (default: current form data) for the current mode.

        Raises
        ------
        UnknownModeError
            When no mounted, resolvable mode is active.
        RequestInFlightError
            When the previous submit is still awaiting its response.
        """
        if self._descriptor is None or not self._lifecycle.active:
            raise UnknownModeError(f"Cannot submit: no mounted auth mode ({self._raw_mode!r}).")
        if self._lifecycle.in_flight:
            raise RequestInFlightError(f"A {self._descriptor.mode} request is already in flight.")

        tag = self._lifecycle.current_tag()
        assert tag is not None
        ctx = SubmitContext(
            descriptor=self._descriptor,
            tag=tag,
            query=self.query,
            admin_exists=self.admin_exists,
            dispatch=self.dispatch,
            set_submitting=self._set_submitting,
            set_admin_exists=self._set_admin_exists,
        )
        data = payload if payload is not None else self._state.modified_data

        self._status = SubmitStatus.SUBMITTING
        outcome = await self._dispatcher.submit(ctx, data)
        if not outcome.discarded:
            self._status = SubmitStatus.SUCCEEDED if outcome.succeeded else SubmitStatus.FAILED
        return outcome
