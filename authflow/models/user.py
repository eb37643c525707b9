"""
User Model.

Pydantic model for the admin user record returned by the identity
service on login, registration and password reset.  Field names follow
the wire format (including the service's ``preferedLanguage`` spelling).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class UserRole(BaseModel):
    """A role attached to an admin user."""

    id: Optional[int] = None
    code: str
    name: Optional[str] = None

    model_config = {"extra": "allow"}


class AuthUser(BaseModel):
    """Represents an authenticated admin user.

    Unknown keys sent by the service are kept (``extra="allow"``) so the
    session store writes back exactly what it received.
    """

    id: Optional[int | str] = None
    email: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    username: Optional[str] = None
    prefered_language: Optional[str] = Field(default=None, alias="preferedLanguage")
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    roles: Optional[list[UserRole]] = None

    model_config = {"extra": "allow", "populate_by_name": True}

    def has_role(self, code: str) -> bool:
        """``True`` when one of the user's roles carries *code*."""
        return any(role.code == code for role in self.roles or [])
