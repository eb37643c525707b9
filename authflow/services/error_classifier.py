"""
Error Classifier.

Maps the inconsistently-shaped error bodies of the identity service onto
a small taxonomy (``authflow.models.auth_models.Classification``).  Each
mode reads a different part of the body:

- login            ``error.message``              -> GenericMessage / InactiveAccount
- register(-admin) ``data.errors`` or
                   ``error.details.errors``       -> FieldErrors
- forgot-password  (body ignored)                 -> GenericMessage (always)
- reset-password   ``message`` / ``statusCode``   -> RequestFailure

A failure that carried no response is ``Ignored`` everywhere except
forgot-password, where the user always gets feedback.
"""

from __future__ import annotations

from typing import Mapping, Optional

from authflow.errors import TransportResponse
from authflow.models.auth_models import (
    Classification,
    FieldErrors,
    GenericMessage,
    Ignored,
    InactiveAccount,
    RequestFailure,
)
from authflow.models.enums import AuthMode
from authflow.services.base_service import BaseService
from authflow.utils.string_helpers import get_path, normalize_message

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_ERROR_MESSAGE: str = "Something went wrong"
FORGOT_PASSWORD_ERROR_MESSAGE: str = "notification.error"
DEFAULT_ERROR_STATUS: int = 400

_INACTIVE_ACCOUNT_KEY: str = normalize_message("user not active")


def _response_of(exc: BaseException) -> Optional[TransportResponse]:
    response = getattr(exc, "response", None)
    return response if isinstance(response, TransportResponse) else None


def format_api_errors(body: Mapping[str, object]) -> dict[str, str]:
    """Turn a registration error body into ``field -> first message``.

    Understands the legacy ``{"data": {"errors": {field: [msg, ...]}}}``
    shape and the newer ``{"error": {"details": {"errors": [{"path":
    [...], "message": ...}]}}}`` shape.  Anything else yields ``{}``.
    """
    formatted: dict[str, str] = {}

    legacy = get_path(body, "data.errors")
    if isinstance(legacy, Mapping):
        for field, messages in legacy.items():
            if isinstance(messages, (list, tuple)):
                if messages:
                    formatted[str(field)] = str(messages[0])
            elif messages is not None:
                formatted[str(field)] = str(messages)
        return formatted

    details = get_path(body, "error.details.errors")
    if isinstance(details, list):
        for item in details:
            if not isinstance(item, Mapping):
                continue
            path = item.get("path")
            message = item.get("message")
            if not path or message is None:
                continue
            key = ".".join(str(p) for p in path) if isinstance(path, list) else str(path)
            formatted.setdefault(key, str(message))

    return formatted


class ErrorClassifier(BaseService):
    """Classifies transport errors per authentication mode."""

    def classify(self, mode: AuthMode, exc: BaseException) -> Classification:
        """Dispatch to the mode-specific rule."""
        if mode == AuthMode.LOGIN:
            result = self.classify_login(exc)
        elif mode in (AuthMode.REGISTER, AuthMode.REGISTER_ADMIN):
            result = self.classify_registration(exc)
        elif mode == AuthMode.FORGOT_PASSWORD:
            result = self.classify_forgot_password(exc)
        else:
            result = self.classify_reset_password(exc)

        self._logger.debug(
            "Classified %s failure as %s", mode, result.kind,
            extra={"event": "ERROR_CLASSIFIED", "mode": str(mode)},
        )
        return result

    @staticmethod
    def classify_login(exc: BaseException) -> Classification:
        response = _response_of(exc)
        if response is None:
            return Ignored()

        message = get_path(response.data, "error.message", DEFAULT_ERROR_MESSAGE)
        if not isinstance(message, str):
            message = DEFAULT_ERROR_MESSAGE

        if normalize_message(message) == _INACTIVE_ACCOUNT_KEY:
            return InactiveAccount()
        return GenericMessage(message=message)

    @staticmethod
    def classify_registration(exc: BaseException) -> Classification:
        response = _response_of(exc)
        if response is None:
            return Ignored()
        return FieldErrors(errors=format_api_errors(response.data))

    @staticmethod
    def classify_forgot_password(exc: BaseException) -> Classification:
        return GenericMessage(message=FORGOT_PASSWORD_ERROR_MESSAGE)

    @staticmethod
    def classify_reset_password(exc: BaseException) -> Classification:
        response = _response_of(exc)
        if response is None:
            return Ignored()

        message = response.data.get("message", DEFAULT_ERROR_MESSAGE)
        status = response.data.get("statusCode", DEFAULT_ERROR_STATUS)
        if not isinstance(message, str):
            message = DEFAULT_ERROR_MESSAGE
        if not isinstance(status, int) or isinstance(status, bool):
            status = DEFAULT_ERROR_STATUS
        return RequestFailure(message=message, status=status)
