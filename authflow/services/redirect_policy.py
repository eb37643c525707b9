"""
Redirect Policy.

Computes navigation targets at two moments:

- **before rendering** (``guard``): an unknown mode, a second first-admin
  registration, or an already logged-in user go home; without an admin,
  every other mode is sent to first-admin registration with the original
  query string forwarded untouched;
- **after success** (``post_success_target``): the URL-decoded
  ``redirectTo`` query parameter, else home.
"""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import parse_qsl, unquote

from authflow.flow_registry import FlowRegistry
from authflow.logger import StructuredLogger
from authflow.models.auth_models import Location, NavigationTarget
from authflow.models.enums import AuthMode
from authflow.services.base_service import BaseService
from authflow.session import SessionStore

ROOT_ROUTE: str = "/"
REGISTER_ADMIN_ROUTE: str = "/auth/register-admin"
INACTIVE_ACCOUNT_ROUTE: str = "/auth/oops"
FORGOT_PASSWORD_SUCCESS_ROUTE: str = "/auth/forgot-password-success"
USECASE_ROUTE: str = "/usecase"


def parse_query(search: str) -> dict[str, str]:
    """Parse a ``?a=1&b=2`` query string; the first value of a key wins."""
    params: dict[str, str] = {}
    for key, value in parse_qsl(search.lstrip("?"), keep_blank_values=True):
        params.setdefault(key, value)
    return params


class RedirectPolicy(BaseService):
    """Pre-render guards and post-success targets.

    Parameters
    ----------
    registry:
        Used to decide whether a mode resolves at all.
    session_store:
        Read-only here: an existing token means "already logged in".
    logger:
        Structured logger for redirect decisions.
    """

    def __init__(
        self,
        registry: FlowRegistry,
        session_store: SessionStore,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._registry: FlowRegistry = registry
        self._session_store: SessionStore = session_store

    def guard(
        self,
        mode: Optional[str],
        admin_exists: bool,
        search: str = "",
    ) -> Optional[NavigationTarget]:
        """Return where to go instead of rendering *mode*, or ``None``."""
        parsed = AuthMode.parse(mode)
        if (
            self._registry.resolve(parsed) is None
            or (admin_exists and parsed is AuthMode.REGISTER_ADMIN)
            or self._session_store.get_token()
        ):
            self._logger.debug("Guard redirect home for mode %r.", mode)
            return ROOT_ROUTE

        if not admin_exists and parsed is not AuthMode.REGISTER_ADMIN:
            self._logger.debug("No admin yet; forwarding %r to first-admin registration.", mode)
            return Location(pathname=REGISTER_ADMIN_ROUTE, search=search)

        return None

    @staticmethod
    def post_success_target(query: Mapping[str, str]) -> str:
        """The decoded ``redirectTo`` parameter, or the root route."""
        redirect_to = query.get("redirectTo")
        return unquote(redirect_to) if redirect_to else ROOT_ROUTE

    @staticmethod
    def usecase_target(admin_existed: bool) -> Location:
        """Use-case selection page for users who opted into communications."""
        return Location(
            pathname=USECASE_ROUTE,
            search=f"?hasAdmin={str(admin_existed).lower()}",
        )
