"""
Tests for the FlowRegistry.

Mode resolution, extension overrides, schema defaults and on-demand
validation.
"""

import pytest

from authflow.flow_registry import BASE_FLOWS, FlowRegistry, merge_flows, schema_defaults
from authflow.models.auth_models import FlowDescriptor
from authflow.models.enums import AuthMode
from authflow.models.forms import LoginForm, RegisterForm


@pytest.fixture
def registry(logger):
    return FlowRegistry(logger=logger)


class TestResolve:
    """Tests for FlowRegistry.resolve."""

    @pytest.mark.parametrize("mode", list(AuthMode))
    def test_every_mode_has_endpoint(self, registry, mode):
        descriptor = registry.resolve(mode)

        assert descriptor is not None
        assert descriptor.mode == mode
        assert descriptor.endpoint

    def test_resolves_raw_route_segment(self, registry):
        assert registry.resolve("register-admin").endpoint == "register-admin"

    @pytest.mark.parametrize("raw", ["oops", "forgot-password-success", "", None, "LOGIN"])
    def test_unknown_mode_is_absent(self, registry, raw):
        assert registry.resolve(raw) is None

    def test_login_omits_remember_me(self, registry):
        assert registry.resolve(AuthMode.LOGIN).fields_to_omit == frozenset({"rememberMe"})

    def test_register_uses_user_info_prefix(self, registry):
        descriptor = registry.resolve(AuthMode.REGISTER)

        assert descriptor.inputs_prefix == "userInfo."
        assert "userInfo.news" in descriptor.fields_to_omit
        assert descriptor.fields_to_disable == frozenset({"email"})

    def test_modes_lists_all_five(self, registry):
        assert set(registry.modes()) == set(AuthMode)

    def test_descriptor_is_frozen(self, registry):
        descriptor = registry.resolve(AuthMode.LOGIN)

        with pytest.raises(Exception):
            descriptor.endpoint = "other"


class TestExtension:
    """Tests for override-priority merging of extension descriptors."""

    def test_extension_replaces_base_entry_wholesale(self, logger):
        override = FlowDescriptor(
            mode=AuthMode.LOGIN,
            endpoint="sso/login",
            form_schema=LoginForm,
        )
        registry = FlowRegistry(logger=logger, extension={AuthMode.LOGIN: override})

        resolved = registry.resolve(AuthMode.LOGIN)
        assert resolved.endpoint == "sso/login"
        # No field-level merge with the base descriptor.
        assert resolved.fields_to_omit == frozenset()

    def test_other_modes_keep_base_entries(self, logger):
        override = FlowDescriptor(mode=AuthMode.LOGIN, endpoint="sso/login", form_schema=LoginForm)
        registry = FlowRegistry(logger=logger, extension={AuthMode.LOGIN: override})

        assert registry.resolve(AuthMode.REGISTER) is BASE_FLOWS[AuthMode.REGISTER]

    def test_merge_does_not_mutate_base(self):
        override = FlowDescriptor(mode=AuthMode.LOGIN, endpoint="x", form_schema=LoginForm)

        merged = merge_flows(BASE_FLOWS, {AuthMode.LOGIN: override})

        assert merged[AuthMode.LOGIN] is override
        assert BASE_FLOWS[AuthMode.LOGIN].endpoint == "login"

    def test_mismatched_extension_key_rejected(self, logger):
        wrong = FlowDescriptor(mode=AuthMode.REGISTER, endpoint="x", form_schema=RegisterForm)

        with pytest.raises(ValueError):
            FlowRegistry(logger=logger, extension={AuthMode.LOGIN: wrong})


class TestSchemaDefaults:
    """Tests for schema_defaults."""

    def test_login_defaults(self):
        assert schema_defaults(LoginForm) == {"email": "", "password": "", "rememberMe": False}

    def test_nested_model_expands_to_dict(self):
        defaults = schema_defaults(RegisterForm)

        assert defaults["userInfo"]["news"] is False
        assert defaults["userInfo"]["firstname"] == ""


class TestValidate:
    """Tests for FlowRegistry.validate."""

    def test_valid_login(self, registry):
        errors = registry.validate(AuthMode.LOGIN, {"email": "a@b.co", "password": "x"})

        assert errors == {}

    def test_invalid_email_reported_by_field(self, registry):
        errors = registry.validate(AuthMode.FORGOT_PASSWORD, {"email": "not-an-email"})

        assert errors == {"email": "Please enter a valid email address."}

    def test_password_mismatch(self, registry):
        errors = registry.validate(
            AuthMode.RESET_PASSWORD,
            {"password": "Secret123", "confirmPassword": "Secret124"},
        )

        assert errors == {"confirmPassword": "Passwords do not match."}

    def test_nested_errors_use_dotted_paths(self, registry):
        errors = registry.validate(
            AuthMode.REGISTER,
            {"userInfo": {"firstname": "", "password": "short", "confirmPassword": "short"}},
        )

        assert "userInfo.firstname" in errors
        assert errors["userInfo.password"].startswith("Password must be at least")
