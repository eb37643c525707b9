from __future__ import annotations

"""
Data Models Package.

Re-exports the Pydantic models for short imports:
    from authflow.models import AuthMode, FlowDescriptor, Session, AuthUser
"""

from authflow.models.auth_models import (
    Classification,
    FieldErrors,
    FlowDescriptor,
    GenericMessage,
    Ignored,
    InactiveAccount,
    Location,
    NavigationTarget,
    RequestError,
    RequestFailure,
    Session,
    SubmitOutcome,
)
from authflow.models.enums import AuthMode, ErrorKind, SubmitStatus
from authflow.models.user import AuthUser, UserRole

__all__ = [
    "AuthMode",
    "AuthUser",
    "Classification",
    "ErrorKind",
    "FieldErrors",
    "FlowDescriptor",
    "GenericMessage",
    "Ignored",
    "InactiveAccount",
    "Location",
    "NavigationTarget",
    "RequestError",
    "RequestFailure",
    "Session",
    "SubmitOutcome",
    "SubmitStatus",
    "UserRole",
]
