"""
Shared fixtures for the AuthFlow test suite.

Collaborators are replaced by in-process fakes: a scripted transport and
the default navigator / tracker / locale / guided-tour implementations,
which record what the controller asked of them.
"""

import asyncio
import os
from typing import Mapping, Optional

import pytest

# Console-only logging during tests; must be set before the config is cached.
os.environ.setdefault("LOG_FILE", "")

from authflow.collaborators import (  # noqa: E402
    GuidedTourState,
    HistoryNavigator,
    LocaleState,
    LoggingUsageTracker,
)
from authflow.config import AppConfig  # noqa: E402
from authflow.container import create_services  # noqa: E402
from authflow.errors import TransportError, TransportResponse  # noqa: E402
from authflow.logger import get_logger  # noqa: E402
from authflow.session import SessionStore  # noqa: E402


class FakeTransport:
    """Scripted transport.

    Each call pops the next scripted reply: a mapping is returned as the
    response body, an exception is raised.  When ``gate`` is set the call
    blocks until the event fires, which lets tests interleave mode changes
    and unmounts with an in-flight request.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.replies: list[object] = []
        self.gate: Optional[asyncio.Event] = None
        self.started: asyncio.Event = asyncio.Event()

    def reply(self, body_or_exc: object) -> "FakeTransport":
        self.replies.append(body_or_exc)
        return self

    async def post(self, url: str, json: Mapping[str, object]) -> Mapping[str, object]:
        self.calls.append((url, dict(json)))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        reply = self.replies.pop(0) if self.replies else {}
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def last_body(self) -> dict:
        return self.calls[-1][1]


def http_error(status: int, body: Mapping[str, object]) -> TransportError:
    return TransportError(f"HTTP {status}", response=TransportResponse(status, dict(body)))


def auth_body(token: str = "jwt-token", **user: object) -> dict:
    user_data: dict = {"id": 1, "email": "admin@example.com", "firstname": "Ada"}
    user_data.update(user)
    return {"data": {"token": token, "user": user_data}}


@pytest.fixture
def logger():
    return get_logger("authflow.tests")


@pytest.fixture
def config():
    return AppConfig(API_BASE_URL="http://identity.test", SESSION_FILE="")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def session_store(logger):
    return SessionStore(logger=logger)


@pytest.fixture
def navigator(logger):
    return HistoryNavigator(logger=logger)


@pytest.fixture
def tracker(logger):
    return LoggingUsageTracker(logger=logger)


@pytest.fixture
def locale(logger):
    return LocaleState(logger=logger, default_locale="en")


@pytest.fixture
def guided_tour():
    return GuidedTourState()


@pytest.fixture
def make_services(config, transport, session_store, navigator, tracker, locale, guided_tour):
    def _make(admin_exists: bool = True, config_override: Optional[AppConfig] = None):
        return create_services(
            config=config_override or config,
            admin_exists=admin_exists,
            transport=transport,
            session_store=session_store,
            navigator=navigator,
            locale=locale,
            tracker=tracker,
            guided_tour=guided_tour,
        )

    return _make


@pytest.fixture
def services(make_services):
    return make_services()


@pytest.fixture
def controller(services):
    return services["controller"]
