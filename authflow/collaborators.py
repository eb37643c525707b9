"""
External Collaborator Interfaces.

Narrow protocols for everything the controller drives but does not own:
HTTP transport, navigation, locale, usage tracking and the guided tour.
Default in-process implementations are provided for the command-line
entry point and for embedding the controller without a host UI.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from authflow.logger import StructuredLogger
from authflow.models.auth_models import NavigationTarget
from authflow.utils.audit import log_usage_event


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Transport(Protocol):
    """POSTs a JSON body and returns the decoded JSON response body.

    Failures raise ``authflow.errors.TransportError``.
    """

    async def post(self, url: str, json: Mapping[str, object]) -> Mapping[str, object]: ...  # noqa: E704


@runtime_checkable
class Navigator(Protocol):
    def navigate(self, target: NavigationTarget) -> None: ...  # noqa: E704


@runtime_checkable
class LocaleChanger(Protocol):
    def change_locale(self, code: str) -> None: ...  # noqa: E704


@runtime_checkable
class UsageTracker(Protocol):
    def track(self, event_name: str) -> None: ...  # noqa: E704


@runtime_checkable
class GuidedTour(Protocol):
    def set_skipped(self, skipped: bool) -> None: ...  # noqa: E704


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


class HistoryNavigator:
    """Records navigation targets in order, like a router history stack."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger = logger
        self.history: list[NavigationTarget] = []

    def navigate(self, target: NavigationTarget) -> None:
        self.history.append(target)
        self._logger.info("Navigate -> %s", target, extra={"event": "NAVIGATE"})

    @property
    def current(self) -> Optional[NavigationTarget]:
        return self.history[-1] if self.history else None


class LocaleState:
    """Holds the active UI locale."""

    def __init__(self, logger: StructuredLogger, default_locale: str = "en") -> None:
        self._logger = logger
        self.locale: str = default_locale

    def change_locale(self, code: str) -> None:
        if code != self.locale:
            self._logger.info("Locale changed: %s -> %s", self.locale, code)
        self.locale = code


class LoggingUsageTracker:
    """Emits every usage event as a structured log line and keeps a copy."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger = logger
        self.events: list[str] = []

    def track(self, event_name: str) -> None:
        self.events.append(event_name)
        log_usage_event(self._logger, event_name)


class GuidedTourState:
    """In-process guided-tour flag."""

    def __init__(self) -> None:
        self.skipped: bool = True

    def set_skipped(self, skipped: bool) -> None:
        self.skipped = skipped
