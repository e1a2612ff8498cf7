"""Tests for the hexstate exception hierarchy."""

from __future__ import annotations

import pytest

from hexstate.kernel.exceptions import (
    AbortTransition,
    ConfigurationError,
    HexStateError,
    InvalidTransition,
    ResolveError,
    StateAccessError,
    TransitionConsistencyError,
    TransitionError,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("transitions", "bad"),
            ValidationError("state_key", "must be a non-empty string"),
            ResolveError("x.y", "missing"),
            StateAccessError("status", {}),
            InvalidTransition(),
            AbortTransition(),
            TransitionConsistencyError(),
        ],
    )
    def test_all_inherit_from_base(self, error: HexStateError) -> None:
        assert isinstance(error, HexStateError)

    def test_transition_signals_share_base(self) -> None:
        assert issubclass(InvalidTransition, TransitionError)
        assert issubclass(AbortTransition, TransitionError)
        assert issubclass(TransitionConsistencyError, TransitionError)


class TestMessages:
    def test_configuration_error(self) -> None:
        error = ConfigurationError("global_hooks", "unknown hooks ['on_done']")
        assert str(error) == "Configuration error in 'global_hooks': unknown hooks ['on_done']"
        assert error.component == "global_hooks"
        assert error.reason == "unknown hooks ['on_done']"

    def test_validation_error_with_value(self) -> None:
        error = ValidationError("rollback_scope", "must be one of: state, entity", "all")
        assert str(error) == (
            "Validation failed for 'rollback_scope': must be one of: state, entity (got 'all')"
        )

    def test_validation_error_without_value(self) -> None:
        assert str(ValidationError("state_key", "required")) == (
            "Validation failed for 'state_key': required"
        )

    def test_state_access_error(self) -> None:
        error = StateAccessError("status", {"id": 1})
        assert error.entity_type == "dict"
        assert "'status'" in str(error)

    def test_default_messages(self) -> None:
        assert InvalidTransition().message == "Invalid transition"
        assert AbortTransition().message == "Aborting transition"
        assert TransitionConsistencyError().message == "Transition failed or had inconsistencies"

    def test_custom_message(self) -> None:
        error = AbortTransition("Payment not received")
        assert str(error) == "Payment not received"


class TestTransitionErrorDetails:
    def test_details(self) -> None:
        error = InvalidTransition(
            "Invalid transition from 'idle' to 'done'",
            from_state="idle",
            to_state="done",
            meta={"actor": "ops"},
            timestamp=1700000000.0,
        )
        assert error.details == {
            "from_state": "idle",
            "to_state": "done",
            "message": "Invalid transition from 'idle' to 'done'",
            "timestamp": 1700000000.0,
            "meta": {"actor": "ops"},
        }

    def test_timestamp_defaults_to_now(self) -> None:
        error = AbortTransition()
        assert error.timestamp > 0
        assert error.from_state is None
        assert error.meta is None
