"""
Auth Form State.

Reducer-style state machine holding the form data and error state of the
currently mounted mode.  ``reduce`` is a pure, total transition function:
it never mutates its input and every action kind yields a new state.

Usage::

    state = init_state(registry.resolve("login"))
    state = reduce(state, SetField(name="email", value="a@b.co"))
    state = reduce(state, Reset())
"""

from __future__ import annotations

import copy
from typing import Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field

from authflow.flow_registry import schema_defaults
from authflow.models.auth_models import FlowDescriptor, RequestError
from authflow.utils.string_helpers import set_path

FormErrorValue = Union[str, dict[str, str]]


class AuthState(BaseModel):
    """Per-mount form data and error status.

    Attributes
    ----------
    modified_data:
        Field name -> current value (nested dicts for prefixed inputs).
    form_errors:
        Field name -> message.  Handlers also use ``errorMessage``
        (banner) and ``apiErrors`` (mapping of server field errors).
    request_error:
        Set only by a failed password reset.
    """

    modified_data: dict[str, object] = Field(default_factory=dict)
    form_errors: dict[str, FormErrorValue] = Field(default_factory=dict)
    request_error: Optional[RequestError] = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class Reset(BaseModel):
    type: Literal["RESET"] = "RESET"

    model_config = {"frozen": True}


class SetField(BaseModel):
    type: Literal["SET_FIELD"] = "SET_FIELD"
    name: str
    value: object = None

    model_config = {"frozen": True}


class SetRequestError(BaseModel):
    type: Literal["SET_REQUEST_ERROR"] = "SET_REQUEST_ERROR"
    message: str
    status: int

    model_config = {"frozen": True}


class SetFormErrors(BaseModel):
    """Replace ``form_errors`` wholesale, the way a submit reports errors."""

    type: Literal["SET_FORM_ERRORS"] = "SET_FORM_ERRORS"
    errors: dict[str, FormErrorValue] = Field(default_factory=dict)

    model_config = {"frozen": True}


Action = Union[Reset, SetField, SetRequestError, SetFormErrors]


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def reduce(state: AuthState, action: Action) -> AuthState:
    """Apply *action* to *state* and return the new state."""
    if isinstance(action, Reset):
        return AuthState()

    if isinstance(action, SetField):
        # Existing form_errors[name] are left alone until the next
        # RESET or submit.
        data = copy.deepcopy(state.modified_data)
        set_path(data, action.name, action.value)
        return state.model_copy(update={"modified_data": data})

    if isinstance(action, SetRequestError):
        return state.model_copy(update={
            "request_error": RequestError(message=action.message, status=action.status),
        })

    if isinstance(action, SetFormErrors):
        return state.model_copy(update={"form_errors": dict(action.errors)})

    raise TypeError(f"Unknown action: {action!r}")


def init_state(
    descriptor: Optional[FlowDescriptor],
    initial_data: Optional[Mapping[str, object]] = None,
) -> AuthState:
    """Build the initial state for a mode from its schema defaults.

    *initial_data* (e.g. an invited user's pre-filled email) is layered
    over the defaults.  An unresolved mode yields an empty state.
    """
    if descriptor is None:
        return AuthState()
    data = schema_defaults(descriptor.form_schema)
    for name, value in (initial_data or {}).items():
        set_path(data, name, value)
    return AuthState(modified_data=data)
