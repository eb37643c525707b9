"""
Exception Hierarchy.

``TransportError`` is the only exception the submit handlers catch: the
transport raises it for every failed request, with ``response`` set when
the server answered and ``None`` when nothing came back (network failure
or cancellation).
"""

from __future__ import annotations

from typing import Mapping, Optional


class AuthFlowError(Exception):
    """Base class for every error raised by the ``authflow`` package."""


class TransportResponse:
    """The part of an HTTP error response the classifier looks at.

    Parameters
    ----------
    status_code:
        HTTP status of the response.
    data:
        Decoded JSON body (an empty dict when the body was not JSON).
    """

    __slots__ = ("status_code", "data")

    def __init__(self, status_code: int, data: Optional[Mapping[str, object]] = None) -> None:
        self.status_code = status_code
        self.data: Mapping[str, object] = data if data is not None else {}

    def __repr__(self) -> str:
        return f"TransportResponse(status_code={self.status_code!r}, data={self.data!r})"


class TransportError(AuthFlowError):
    """A POST to the identity service did not succeed."""

    def __init__(self, message: str, response: Optional[TransportResponse] = None) -> None:
        super().__init__(message)
        self.response: Optional[TransportResponse] = response


class RequestCancelled(TransportError):
    """The request was aborted through its cancellation token."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason, response=None)
        self.reason: str = reason


class UnknownModeError(AuthFlowError):
    """An operation needed a mounted, resolvable mode and there was none."""


class RequestInFlightError(AuthFlowError):
    """A submit was attempted while the mount's tracked request is outstanding."""
