"""
Authentication Flow Models.

Pydantic models for the typed boundary between the controller, its
services, and the external collaborators: flow descriptors, sessions,
navigation targets, and the classified outcome of a failed request.

Every model here is frozen.  State changes produce new instances, never
in-place edits.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from authflow.models.enums import AuthMode, ErrorKind
from authflow.models.user import AuthUser

# ---------------------------------------------------------------------------
# Flow configuration
# ---------------------------------------------------------------------------


class FlowDescriptor(BaseModel):
    """Static configuration record for one authentication mode.

    Attributes
    ----------
    mode:
        The mode this descriptor configures.
    endpoint:
        Path relative to the admin prefix (``/admin/<endpoint>``).
    fields_to_omit:
        Dotted field paths stripped from the payload before transport.
    fields_to_disable:
        Field names the form renders read-only.
    inputs_prefix:
        Namespace prepended to nested input names (``"userInfo."``).
    form_schema:
        Pydantic model describing the form.  The core reads its declared
        fields and defaults only.
    """

    mode: AuthMode
    endpoint: str = Field(min_length=1)
    fields_to_omit: frozenset[str] = frozenset()
    fields_to_disable: frozenset[str] = frozenset()
    inputs_prefix: str = ""
    form_schema: type[BaseModel]

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Session & navigation
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """Authenticated session written to the external session store."""

    token: str
    user: AuthUser
    remember_me: bool = False

    model_config = {"frozen": True}


class Location(BaseModel):
    """A navigation target carrying an explicit query string.

    ``search`` is kept verbatim (including the leading ``?``) so that a
    forwarded query string is never re-encoded.
    """

    pathname: str
    search: str = ""

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.pathname}{self.search}"


NavigationTarget = Union[str, Location]


class RequestError(BaseModel):
    """Structured error of a failed password reset."""

    message: str
    status: int

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


class Ignored(BaseModel):
    """No response was received (network failure or cancellation)."""

    kind: Literal[ErrorKind.IGNORED] = ErrorKind.IGNORED

    model_config = {"frozen": True}


class FieldErrors(BaseModel):
    """Per-field messages extracted from a registration failure."""

    kind: Literal[ErrorKind.FIELD_ERRORS] = ErrorKind.FIELD_ERRORS
    errors: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class GenericMessage(BaseModel):
    """A single banner-level message."""

    kind: Literal[ErrorKind.GENERIC_MESSAGE] = ErrorKind.GENERIC_MESSAGE
    message: str

    model_config = {"frozen": True}


class InactiveAccount(BaseModel):
    """The account exists but is deactivated; a redirect signal, not a message."""

    kind: Literal[ErrorKind.INACTIVE_ACCOUNT] = ErrorKind.INACTIVE_ACCOUNT

    model_config = {"frozen": True}


class RequestFailure(BaseModel):
    """Structured message + status, produced by the reset-password path."""

    kind: Literal[ErrorKind.REQUEST_ERROR] = ErrorKind.REQUEST_ERROR
    message: str
    status: int

    model_config = {"frozen": True}


Classification = Union[Ignored, FieldErrors, GenericMessage, InactiveAccount, RequestFailure]


class SubmitOutcome(BaseModel):
    """What a single submit did, returned to the caller for inspection.

    Attributes
    ----------
    mode:
        Mode the request was issued under.
    succeeded:
        ``True`` when the transport call returned without error.
    classification:
        The classified failure, ``None`` on success.
    navigated_to:
        The navigation target applied, if any.
    discarded:
        ``True`` when the response arrived after the mode changed or the
        controller unmounted and was therefore not applied.
    """

    mode: AuthMode
    succeeded: bool
    classification: Optional[Classification] = None
    navigated_to: Optional[NavigationTarget] = None
    discarded: bool = False

    model_config = {"frozen": True}
