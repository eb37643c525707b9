"""
Submit Dispatcher.

Routes a form submit to exactly one of four mode handlers (login,
registration, forgot-password, reset-password), issues the tracked
request, and applies the outcome: form errors through the state
reducer, a session through the session store, a target through the
navigator.

Every ``TransportError`` is caught at the handler boundary; nothing
from the transport reaches the redirect policy or the registry.  A
response that arrives after the mode changed, or after unmount, is
discarded without touching state or navigation.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Optional

from pydantic import ValidationError

from authflow.collaborators import GuidedTour, LocaleChanger, Navigator, Transport, UsageTracker
from authflow.errors import TransportError
from authflow.lifecycle import RequestLifecycleManager, RequestTag
from authflow.logger import StructuredLogger
from authflow.models.auth_models import (
    FieldErrors,
    FlowDescriptor,
    GenericMessage,
    InactiveAccount,
    NavigationTarget,
    RequestFailure,
    Session,
    SubmitOutcome,
)
from authflow.models.enums import AuthMode
from authflow.models.user import AuthUser
from authflow.services.base_service import BaseService
from authflow.services.error_classifier import ErrorClassifier
from authflow.services.redirect_policy import (
    FORGOT_PASSWORD_SUCCESS_ROUTE,
    INACTIVE_ACCOUNT_ROUTE,
    ROOT_ROUTE,
    RedirectPolicy,
)
from authflow.session import GUIDED_TOUR_SKIPPED_KEY, SessionStore
from authflow.state import Action, Reset, SetFormErrors, SetRequestError
from authflow.utils.string_helpers import get_path, omit_paths

# Usage-tracking event names
EVENT_WILL_CREATE_FIRST_ADMIN: str = "willCreateFirstAdmin"
EVENT_DID_NOT_CREATE_FIRST_ADMIN: str = "didNotCreateFirstAdmin"
EVENT_DID_LAUNCH_GUIDED_TOUR: str = "didLaunchGuidedtour"


class SubmitContext:
    """Everything a handler needs from the mounted controller.

    Attributes
    ----------
    descriptor:
        Descriptor of the mode the submit was issued under.
    tag:
        Request tag; results are applied only while it is current.
    query:
        Parsed query parameters of the current location.
    admin_exists:
        Whether an admin user existed when the submit started.
    dispatch:
        Applies a reducer action to the controller's state.
    set_submitting:
        Raises or lowers the externally observable submitting flag.
    set_admin_exists:
        Records that an admin now exists.
    """

    __slots__ = (
        "descriptor",
        "tag",
        "query",
        "admin_exists",
        "dispatch",
        "set_submitting",
        "set_admin_exists",
    )

    def __init__(
        self,
        descriptor: FlowDescriptor,
        tag: RequestTag,
        query: Mapping[str, str],
        admin_exists: bool,
        dispatch: Callable[[Action], None],
        set_submitting: Callable[[bool], None],
        set_admin_exists: Callable[[bool], None],
    ) -> None:
        self.descriptor = descriptor
        self.tag = tag
        self.query = query
        self.admin_exists = admin_exists
        self.dispatch = dispatch
        self.set_submitting = set_submitting
        self.set_admin_exists = set_admin_exists

    @property
    def mode(self) -> AuthMode:
        return self.descriptor.mode


Handler = Callable[[SubmitContext, Mapping[str, object], str], Awaitable[SubmitOutcome]]


class SubmitDispatcher(BaseService):
    """Owns the four request handlers.

    Parameters
    ----------
    transport:
        Async JSON POST client.
    lifecycle:
        Provides the mount's cancellation token and request tags.
    classifier:
        Maps transport errors onto the error taxonomy.
    redirect_policy:
        Post-success navigation targets.
    session_store:
        Receives the session on success (the only writer).
    navigator, locale, tracker, guided_tour:
        External collaborators.
    logger:
        Structured logger.
    admin_prefix:
        Path prefix for every endpoint (``/admin``).
    super_admin_role_code:
        Role code that launches the guided tour after registration.
    reset_submitting_on_all_branches:
        ``False`` keeps the submitting flag raised after an inactive-account
        redirect and after a failed registration, matching the admin
        panel; ``True`` lowers it on every terminal branch.
    """

    def __init__(
        self,
        transport: Transport,
        lifecycle: RequestLifecycleManager,
        classifier: ErrorClassifier,
        redirect_policy: RedirectPolicy,
        session_store: SessionStore,
        navigator: Navigator,
        locale: LocaleChanger,
        tracker: UsageTracker,
        guided_tour: GuidedTour,
        logger: StructuredLogger,
        admin_prefix: str = "/admin",
        super_admin_role_code: str = "strapi-super-admin",
        reset_submitting_on_all_branches: bool = False,
    ) -> None:
        super().__init__(logger)
        self._transport = transport
        self._lifecycle = lifecycle
        self._classifier = classifier
        self._redirect_policy = redirect_policy
        self._session_store = session_store
        self._navigator = navigator
        self._locale = locale
        self._tracker = tracker
        self._guided_tour = guided_tour
        self._admin_prefix = admin_prefix.rstrip("/")
        self._super_admin_role_code = super_admin_role_code
        self._reset_submitting_on_all_branches = reset_submitting_on_all_branches

        self._handlers: dict[AuthMode, Handler] = {
            AuthMode.LOGIN: self._login,
            AuthMode.REGISTER: self._register,
            AuthMode.REGISTER_ADMIN: self._register,
            AuthMode.FORGOT_PASSWORD: self._forgot_password,
            AuthMode.RESET_PASSWORD: self._reset_password,
        }

    # ==================================================================
    # Entry point
    # ==================================================================

    def request_url(self, descriptor: FlowDescriptor) -> str:
        return f"{self._admin_prefix}/{descriptor.endpoint}"

    async def submit(self, ctx: SubmitContext, payload: Mapping[str, object]) -> SubmitOutcome:
        """Run the handler for ``ctx.mode`` against the raw *payload*."""
        ctx.set_submitting(True)
        url = self.request_url(ctx.descriptor)
        self._logger.info(
            "Submitting %s to %s", ctx.mode, url,
            extra={"event": "SUBMIT", "mode": str(ctx.mode)},
        )
        return await self._handlers[ctx.mode](ctx, payload, url)

    # ==================================================================
    # Shared helpers
    # ==================================================================

    async def _post(self, ctx: SubmitContext, url: str, body: Mapping[str, object]) -> Mapping[str, object]:
        async with self._lifecycle.track(ctx.tag) as token:
            return await token.run(self._transport.post(url, json=body))

    def _is_stale(self, ctx: SubmitContext) -> bool:
        if self._lifecycle.is_current(ctx.tag):
            return False
        self._logger.debug(
            "Discarding stale %s response.", ctx.mode,
            extra={"event": "STALE_RESPONSE", "generation": ctx.tag.generation},
        )
        return True

    def _discarded(self, ctx: SubmitContext, succeeded: bool) -> SubmitOutcome:
        return SubmitOutcome(mode=ctx.mode, succeeded=succeeded, discarded=True)

    @staticmethod
    def _parse_session(body: Mapping[str, object], remember_me: bool) -> Session:
        """Read ``{"data": {"token", "user"}}``.

        Raises
        ------
        TransportError
            When the success body does not carry a token and user.
        """
        data = body.get("data")
        try:
            if not isinstance(data, Mapping):
                raise ValueError("missing 'data'")
            return Session(
                token=data["token"],
                user=AuthUser.model_validate(data["user"]),
                remember_me=remember_me,
            )
        except (KeyError, ValueError, ValidationError) as exc:
            raise TransportError(f"Malformed authentication response: {exc}") from exc

    def _persist(self, session: Session) -> None:
        self._session_store.set_token(session.token, session.remember_me)
        self._session_store.set_user_info(session.user, session.remember_me)

    def _navigate(self, target: NavigationTarget) -> NavigationTarget:
        self._navigator.navigate(target)
        return target

    def _set_form_errors(self, ctx: SubmitContext, errors: dict[str, object]) -> None:
        ctx.dispatch(SetFormErrors(errors=errors))

    # ==================================================================
    # Login
    # ==================================================================

    async def _login(self, ctx: SubmitContext, payload: Mapping[str, object], url: str) -> SubmitOutcome:
        remember_me = bool(payload.get("rememberMe"))
        body = omit_paths(payload, ctx.descriptor.fields_to_omit)
        try:
            session = self._parse_session(await self._post(ctx, url, body), remember_me)
        except TransportError as exc:
            if self._is_stale(ctx):
                return self._discarded(ctx, succeeded=False)

            result = self._classifier.classify(ctx.mode, exc)
            if isinstance(result, InactiveAccount):
                self._logger.warning(
                    "Login refused: account inactive.",
                    extra={"event": "LOGIN_INACTIVE"},
                )
                target = self._navigate(INACTIVE_ACCOUNT_ROUTE)
                ctx.dispatch(Reset())
                if self._reset_submitting_on_all_branches:
                    ctx.set_submitting(False)
                return SubmitOutcome(
                    mode=ctx.mode, succeeded=False, classification=result, navigated_to=target,
                )

            if isinstance(result, GenericMessage):
                self._logger.warning(
                    "Login failed: %s", result.message,
                    extra={"event": "LOGIN_FAILED"},
                )
                self._set_form_errors(ctx, {"errorMessage": result.message})
            ctx.set_submitting(False)
            return SubmitOutcome(mode=ctx.mode, succeeded=False, classification=result)

        if self._is_stale(ctx):
            return self._discarded(ctx, succeeded=True)

        if session.user.prefered_language:
            self._locale.change_locale(session.user.prefered_language)
        self._persist(session)
        self._logger.info(
            "User authenticated: %s", session.user.email,
            extra={"event": "LOGIN", "remember_me": remember_me},
        )

        target = self._navigate(self._redirect_policy.post_success_target(ctx.query))
        ctx.set_submitting(False)
        return SubmitOutcome(mode=ctx.mode, succeeded=True, navigated_to=target)

    # ==================================================================
    # Registration (invited user and first admin)
    # ==================================================================

    def _opted_in(self, mode: AuthMode, payload: Mapping[str, object]) -> bool:
        path = "userInfo.news" if mode == AuthMode.REGISTER else "news"
        return get_path(payload, path) is True

    async def _register(self, ctx: SubmitContext, payload: Mapping[str, object], url: str) -> SubmitOutcome:
        admin_existed = ctx.admin_exists
        try:
            self._tracker.track(EVENT_WILL_CREATE_FIRST_ADMIN)
            body = omit_paths(payload, ctx.descriptor.fields_to_omit)
            session = self._parse_session(await self._post(ctx, url, body), remember_me=False)
        except TransportError as exc:
            if self._is_stale(ctx):
                return self._discarded(ctx, succeeded=False)

            self._tracker.track(EVENT_DID_NOT_CREATE_FIRST_ADMIN)
            result = self._classifier.classify(ctx.mode, exc)
            if isinstance(result, FieldErrors):
                self._logger.warning(
                    "Registration rejected: %s", ", ".join(result.errors) or "no field errors",
                    extra={"event": "REGISTER_FAILED"},
                )
                self._set_form_errors(ctx, {"apiErrors": dict(result.errors)})
            if self._reset_submitting_on_all_branches:
                ctx.set_submitting(False)
            return SubmitOutcome(mode=ctx.mode, succeeded=False, classification=result)

        if self._is_stale(ctx):
            return self._discarded(ctx, succeeded=True)

        self._persist(session)
        ctx.set_submitting(False)
        ctx.set_admin_exists(True)
        self._logger.info(
            "User registered: %s", session.user.email,
            extra={"event": "REGISTER", "mode": str(ctx.mode)},
        )

        if session.user.has_role(self._super_admin_role_code):
            self._session_store.set(False, GUIDED_TOUR_SKIPPED_KEY, True)
            self._guided_tour.set_skipped(False)
            self._tracker.track(EVENT_DID_LAUNCH_GUIDED_TOUR)

        if self._opted_in(ctx.mode, payload):
            target = self._navigate(self._redirect_policy.usecase_target(admin_existed))
            return SubmitOutcome(mode=ctx.mode, succeeded=True, navigated_to=target)

        target = self._navigate(self._redirect_policy.post_success_target(ctx.query))
        return SubmitOutcome(mode=ctx.mode, succeeded=True, navigated_to=target)

    # ==================================================================
    # Forgot password
    # ==================================================================

    async def _forgot_password(self, ctx: SubmitContext, payload: Mapping[str, object], url: str) -> SubmitOutcome:
        body = omit_paths(payload, ctx.descriptor.fields_to_omit)
        outcome: Optional[SubmitOutcome] = None
        try:
            await self._post(ctx, url, body)
            if self._is_stale(ctx):
                outcome = self._discarded(ctx, succeeded=True)
                return outcome
            target = self._navigate(FORGOT_PASSWORD_SUCCESS_ROUTE)
            outcome = SubmitOutcome(mode=ctx.mode, succeeded=True, navigated_to=target)
            return outcome
        except TransportError as exc:
            if self._is_stale(ctx):
                outcome = self._discarded(ctx, succeeded=False)
                return outcome
            # Every failure gets feedback here, including no-response ones.
            result = self._classifier.classify(ctx.mode, exc)
            self._logger.warning(
                "Password reset request failed: %s", exc,
                extra={"event": "FORGOT_PASSWORD_FAILED"},
            )
            if isinstance(result, GenericMessage):
                self._set_form_errors(ctx, {"errorMessage": result.message})
            outcome = SubmitOutcome(mode=ctx.mode, succeeded=False, classification=result)
            return outcome
        finally:
            if outcome is None or not outcome.discarded:
                ctx.set_submitting(False)

    # ==================================================================
    # Reset password
    # ==================================================================

    async def _reset_password(self, ctx: SubmitContext, payload: Mapping[str, object], url: str) -> SubmitOutcome:
        body = {
            **omit_paths(payload, ctx.descriptor.fields_to_omit),
            "resetPasswordToken": ctx.query.get("code"),
        }
        outcome: Optional[SubmitOutcome] = None
        try:
            session = self._parse_session(await self._post(ctx, url, body), remember_me=False)
            if self._is_stale(ctx):
                outcome = self._discarded(ctx, succeeded=True)
                return outcome
            self._persist(session)
            self._logger.info(
                "Password reset completed for %s", session.user.email,
                extra={"event": "PASSWORD_RESET"},
            )
            target = self._navigate(ROOT_ROUTE)
            outcome = SubmitOutcome(mode=ctx.mode, succeeded=True, navigated_to=target)
            return outcome
        except TransportError as exc:
            if self._is_stale(ctx):
                outcome = self._discarded(ctx, succeeded=False)
                return outcome
            result = self._classifier.classify(ctx.mode, exc)
            if isinstance(result, RequestFailure):
                self._logger.warning(
                    "Password reset failed (%d): %s", result.status, result.message,
                    extra={"event": "PASSWORD_RESET_FAILED"},
                )
                ctx.dispatch(SetRequestError(message=result.message, status=result.status))
                self._set_form_errors(ctx, {"errorMessage": result.message})
            outcome = SubmitOutcome(mode=ctx.mode, succeeded=False, classification=result)
            return outcome
        finally:
            if outcome is None or not outcome.discarded:
                ctx.set_submitting(False)
