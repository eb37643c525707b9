"""
Form Schemas.

One Pydantic model per authentication mode.  The controller core only
reads declared fields and their defaults (to seed form state); the
validation rules are applied on demand by ``FlowRegistry.validate``.

Field names follow the wire format expected by the identity service.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, ValidationInfo, field_validator

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

_PASSWORD_MIN_LENGTH: int = 8


def check_email(value: str) -> str:
    """Reject blank or malformed email addresses."""
    if not value or not value.strip():
        raise ValueError("Email address is required.")
    if not _EMAIL_RE.match(value.strip()):
        raise ValueError("Please enter a valid email address.")
    return value


def check_password(value: str) -> str:
    """Same policy as the admin panel: 8+ chars, upper, lower and a digit."""
    if len(value) < _PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {_PASSWORD_MIN_LENGTH} characters."
        )
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter.")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter.")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one digit.")
    return value


class LoginForm(BaseModel):
    email: str = ""
    password: str = Field(default="", min_length=1)
    rememberMe: bool = False

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return check_email(value)


class PasswordPair(BaseModel):
    """Password + confirmation, shared by registration and reset forms."""

    password: str = ""
    confirmPassword: str = ""

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password(value)

    @field_validator("confirmPassword")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Passwords do not match.")
        return value


class RegisterUserInfo(PasswordPair):
    """Nested ``userInfo`` block of an invited user's registration."""

    firstname: str = Field(default="", min_length=1)
    lastname: str = ""
    email: str = ""
    news: bool = False


class RegisterForm(BaseModel):
    userInfo: RegisterUserInfo = Field(default_factory=RegisterUserInfo)
    registrationToken: str = ""


class RegisterAdminForm(PasswordPair):
    firstname: str = Field(default="", min_length=1)
    lastname: str = ""
    email: str = ""
    news: bool = False

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return check_email(value)


class ForgotPasswordForm(BaseModel):
    email: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return check_email(value)


class ResetPasswordForm(PasswordPair):
    pass
