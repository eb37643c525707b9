"""
Composition Root.

The ``create_services()`` factory wires every collaborator and service
together, returning a typed dict that the entry point (or an embedding
host UI) can consume without knowing the internal dependency graph.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, TypedDict

from authflow.collaborators import (
    GuidedTour,
    GuidedTourState,
    HistoryNavigator,
    LocaleChanger,
    LocaleState,
    LoggingUsageTracker,
    Navigator,
    Transport,
    UsageTracker,
)
from authflow.config import AppConfig
from authflow.controller import AuthController
from authflow.flow_registry import FlowRegistry
from authflow.lifecycle import RequestLifecycleManager
from authflow.logger import get_logger
from authflow.models.auth_models import FlowDescriptor
from authflow.models.enums import AuthMode
from authflow.services.error_classifier import ErrorClassifier
from authflow.services.redirect_policy import RedirectPolicy
from authflow.services.submit_dispatcher import SubmitDispatcher
from authflow.services.transport import HttpTransport
from authflow.session import SessionStore


class ServiceContainer(TypedDict):
    """Typed container for the wired controller and its collaborators."""

    controller: AuthController
    registry: FlowRegistry
    lifecycle: RequestLifecycleManager
    classifier: ErrorClassifier
    redirect_policy: RedirectPolicy
    dispatcher: SubmitDispatcher
    session_store: SessionStore
    transport: Transport
    navigator: Navigator
    locale: LocaleChanger
    tracker: UsageTracker
    guided_tour: GuidedTour


def create_services(
    config: AppConfig,
    admin_exists: bool = False,
    transport: Optional[Transport] = None,
    session_store: Optional[SessionStore] = None,
    navigator: Optional[Navigator] = None,
    locale: Optional[LocaleChanger] = None,
    tracker: Optional[UsageTracker] = None,
    guided_tour: Optional[GuidedTour] = None,
    extension_flows: Optional[Mapping[AuthMode, FlowDescriptor]] = None,
) -> ServiceContainer:
    """
    Wire the controller and its services together.

    This is the single composition root.  Any collaborator left as
    ``None`` is replaced by its default in-process implementation (and
    ``HttpTransport`` for the transport).

    Args:
        config: Application configuration.
        admin_exists: Whether the identity service already has an admin.

    Returns:
        ServiceContainer mapping names to fully-wired instances.
    """
    logger = get_logger("authflow.services")

    # ------------------------------------------------------------------
    # 1. Collaborators
    # ------------------------------------------------------------------
    if transport is None:
        transport = HttpTransport(
            base_url=config.API_BASE_URL,
            logger=get_logger("authflow.transport"),
            timeout=config.REQUEST_TIMEOUT_S,
        )
    if session_store is None:
        session_store = SessionStore(
            logger=get_logger("authflow.session"),
            session_file=Path(config.SESSION_FILE) if config.SESSION_FILE else None,
        )
    if navigator is None:
        navigator = HistoryNavigator(logger=get_logger("authflow.navigation"))
    if locale is None:
        locale = LocaleState(logger=logger, default_locale=config.DEFAULT_LOCALE)
    if tracker is None:
        tracker = LoggingUsageTracker(logger=get_logger("authflow.usage"))
    if guided_tour is None:
        guided_tour = GuidedTourState()

    # ------------------------------------------------------------------
    # 2. Leaf services
    # ------------------------------------------------------------------
    registry = FlowRegistry(logger=logger, extension=extension_flows)
    lifecycle = RequestLifecycleManager(logger=get_logger("authflow.lifecycle"))
    classifier = ErrorClassifier(logger=logger)
    redirect_policy = RedirectPolicy(
        registry=registry,
        session_store=session_store,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 3. Orchestration
    # ------------------------------------------------------------------
    dispatcher = SubmitDispatcher(
        transport=transport,
        lifecycle=lifecycle,
        classifier=classifier,
        redirect_policy=redirect_policy,
        session_store=session_store,
        navigator=navigator,
        locale=locale,
        tracker=tracker,
        guided_tour=guided_tour,
        logger=get_logger("authflow.dispatcher"),
        admin_prefix=config.ADMIN_PREFIX,
        super_admin_role_code=config.SUPER_ADMIN_ROLE_CODE,
        reset_submitting_on_all_branches=config.RESET_SUBMITTING_ON_ALL_BRANCHES,
    )
    controller = AuthController(
        registry=registry,
        lifecycle=lifecycle,
        dispatcher=dispatcher,
        redirect_policy=redirect_policy,
        logger=get_logger("authflow.controller"),
        admin_exists=admin_exists,
    )

    return ServiceContainer(
        controller=controller,
        registry=registry,
        lifecycle=lifecycle,
        classifier=classifier,
        redirect_policy=redirect_policy,
        dispatcher=dispatcher,
        session_store=session_store,
        transport=transport,
        navigator=navigator,
        locale=locale,
        tracker=tracker,
        guided_tour=guided_tour,
    )
