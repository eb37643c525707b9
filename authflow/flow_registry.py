"""Flow Registry.

Static lookup from authentication mode to its ``FlowDescriptor``.  The
controller queries the registry on every mount and mode change; a mode
the registry cannot resolve is treated as "redirect home".

An optional extension table (e.g. an enterprise edition's forms) may be
layered over the base table.  Extension entries replace base entries
wholesale on key collision.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ValidationError

from authflow.logger import StructuredLogger
from authflow.models.auth_models import FlowDescriptor
from authflow.models.enums import AuthMode
from authflow.models.forms import (
    ForgotPasswordForm,
    LoginForm,
    RegisterAdminForm,
    RegisterForm,
    ResetPasswordForm,
)

BASE_FLOWS: Mapping[AuthMode, FlowDescriptor] = MappingProxyType({
    AuthMode.LOGIN: FlowDescriptor(
        mode=AuthMode.LOGIN,
        endpoint="login",
        fields_to_omit=frozenset({"rememberMe"}),
        form_schema=LoginForm,
    ),
    AuthMode.REGISTER: FlowDescriptor(
        mode=AuthMode.REGISTER,
        endpoint="register",
        fields_to_omit=frozenset({
            "userInfo.confirmPassword",
            "userInfo.news",
            "userInfo.email",
        }),
        fields_to_disable=frozenset({"email"}),
        inputs_prefix="userInfo.",
        form_schema=RegisterForm,
    ),
    AuthMode.REGISTER_ADMIN: FlowDescriptor(
        mode=AuthMode.REGISTER_ADMIN,
        endpoint="register-admin",
        fields_to_omit=frozenset({"confirmPassword", "news"}),
        form_schema=RegisterAdminForm,
    ),
    AuthMode.FORGOT_PASSWORD: FlowDescriptor(
        mode=AuthMode.FORGOT_PASSWORD,
        endpoint="forgot-password",
        form_schema=ForgotPasswordForm,
    ),
    AuthMode.RESET_PASSWORD: FlowDescriptor(
        mode=AuthMode.RESET_PASSWORD,
        endpoint="reset-password",
        fields_to_omit=frozenset({"confirmPassword"}),
        form_schema=ResetPasswordForm,
    ),
})


def merge_flows(
    base: Mapping[AuthMode, FlowDescriptor],
    extension: Optional[Mapping[AuthMode, FlowDescriptor]] = None,
) -> dict[AuthMode, FlowDescriptor]:
    """Override-priority merge: *extension* entries replace *base* entries.

    Key order follows *base*, then any keys only *extension* declares.
    """
    merged: dict[AuthMode, FlowDescriptor] = dict(base)
    if extension:
        merged.update(extension)
    return merged


class FlowRegistry:
    """Resolves modes to descriptors.

    Parameters
    ----------
    logger:
        Structured logger for override events.
    extension:
        Optional descriptors overriding the base table.
    base:
        Base table; defaults to ``BASE_FLOWS``.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        extension: Optional[Mapping[AuthMode, FlowDescriptor]] = None,
        base: Mapping[AuthMode, FlowDescriptor] = BASE_FLOWS,
    ) -> None:
        self._logger = logger
        for mode, descriptor in (extension or {}).items():
            if descriptor.mode != mode:
                raise ValueError(
                    f"Descriptor for '{mode}' declares mode '{descriptor.mode}'."
                )
            if mode in base:
                self._logger.info("Flow '%s' overridden by extension.", mode)
        self._flows: Mapping[AuthMode, FlowDescriptor] = MappingProxyType(
            merge_flows(base, extension)
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, mode: Optional[str]) -> Optional[FlowDescriptor]:
        """Return the descriptor for *mode*, or ``None`` when unresolvable.

        Accepts raw route segments; anything outside the five known modes
        resolves to ``None``.
        """
        parsed = AuthMode.parse(mode)
        if parsed is None:
            return None
        return self._flows.get(parsed)

    def modes(self) -> list[AuthMode]:
        """Resolvable modes, in table order."""
        return list(self._flows)

    def validate(self, mode: AuthMode, payload: Mapping[str, object]) -> dict[str, str]:
        """Validate *payload* against the mode's schema.

        Returns
        -------
        dict[str, str]
            Dotted field path -> first error message.  Empty when valid
            or when the mode has no descriptor.
        """
        descriptor = self.resolve(mode)
        if descriptor is None:
            return {}
        try:
            descriptor.form_schema.model_validate(dict(payload))
        except ValidationError as exc:
            errors: dict[str, str] = {}
            for err in exc.errors():
                path = ".".join(str(part) for part in err["loc"]) or "errorMessage"
                message = err["msg"].removeprefix("Value error, ")
                errors.setdefault(path, message)
            return errors
        return {}


def schema_defaults(schema: type[BaseModel]) -> dict[str, object]:
    """One default entry per declared field; nested models expand to dicts."""
    return schema().model_dump()
