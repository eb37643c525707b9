"""
Shared Enumerations for AuthFlow Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so code like ``if mode == "login"`` continues to work.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional


class AuthMode(StrEnum):
    """The five mutually-exclusive authentication operations.

    Values are the route segments used by the admin panel
    (``/auth/<mode>``).
    """

    LOGIN = "login"
    REGISTER = "register"
    REGISTER_ADMIN = "register-admin"
    FORGOT_PASSWORD = "forgot-password"
    RESET_PASSWORD = "reset-password"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["AuthMode"]:
        """Validate a route segment; ``None`` when it is not a known mode."""
        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class ErrorKind(StrEnum):
    """Categories produced by the error classifier."""

    IGNORED = "ignored"
    FIELD_ERRORS = "field_errors"
    GENERIC_MESSAGE = "generic_message"
    INACTIVE_ACCOUNT = "inactive_account"
    REQUEST_ERROR = "request_error"


class SubmitStatus(StrEnum):
    """Submit lifecycle states of the dispatcher."""

    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
