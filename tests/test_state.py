"""
Tests for the auth form state reducer.
"""

import pytest

from authflow.flow_registry import BASE_FLOWS
from authflow.models.auth_models import RequestError
from authflow.models.enums import AuthMode
from authflow.state import (
    AuthState,
    Reset,
    SetField,
    SetFormErrors,
    SetRequestError,
    init_state,
    reduce,
)


@pytest.fixture
def dirty_state():
    return AuthState(
        modified_data={"email": "a@b.co", "password": "x"},
        form_errors={"email": "Invalid", "errorMessage": "Something went wrong"},
        request_error=RequestError(message="Expired", status=400),
    )


class TestReset:
    def test_reset_clears_everything(self, dirty_state):
        state = reduce(dirty_state, Reset())

        assert state.modified_data == {}
        assert state.form_errors == {}
        assert state.request_error is None

    def test_reset_of_empty_state(self):
        assert reduce(AuthState(), Reset()) == AuthState()


class TestSetField:
    def test_sets_value(self):
        state = reduce(AuthState(), SetField(name="email", value="a@b.co"))

        assert state.modified_data == {"email": "a@b.co"}

    def test_does_not_clear_existing_field_error(self, dirty_state):
        state = reduce(dirty_state, SetField(name="email", value="fixed@b.co"))

        assert state.modified_data["email"] == "fixed@b.co"
        assert state.form_errors["email"] == "Invalid"

    def test_dotted_name_sets_nested_value(self):
        state = AuthState(modified_data={"userInfo": {"firstname": "", "news": False}})

        state = reduce(state, SetField(name="userInfo.news", value=True))

        assert state.modified_data == {"userInfo": {"firstname": "", "news": True}}

    def test_input_state_is_not_mutated(self, dirty_state):
        before = dirty_state.model_dump()

        reduce(dirty_state, SetField(name="password", value="y"))

        assert dirty_state.model_dump() == before


class TestRequestAndFormErrors:
    def test_set_request_error(self):
        state = reduce(AuthState(), SetRequestError(message="Expired", status=410))

        assert state.request_error == RequestError(message="Expired", status=410)
        assert state.form_errors == {}

    def test_set_form_errors_replaces(self, dirty_state):
        state = reduce(dirty_state, SetFormErrors(errors={"errorMessage": "Nope"}))

        assert state.form_errors == {"errorMessage": "Nope"}
        assert state.modified_data == dirty_state.modified_data

    def test_unknown_action_rejected(self):
        with pytest.raises(TypeError):
            reduce(AuthState(), object())


class TestInitState:
    def test_seeds_schema_defaults(self):
        state = init_state(BASE_FLOWS[AuthMode.LOGIN])

        assert state.modified_data == {"email": "", "password": "", "rememberMe": False}
        assert state.form_errors == {}
        assert state.request_error is None

    def test_initial_data_layered_over_defaults(self):
        state = init_state(
            BASE_FLOWS[AuthMode.REGISTER],
            initial_data={"userInfo.email": "invited@example.com"},
        )

        assert state.modified_data["userInfo"]["email"] == "invited@example.com"
        assert state.modified_data["userInfo"]["news"] is False

    def test_unresolved_mode_gives_empty_state(self):
        assert init_state(None) == AuthState()
