"""Core exception hierarchy for hexstate.

All hexstate exceptions inherit from HexStateError for easy exception handling.
Transition signals (``InvalidTransition``, ``AbortTransition``) are raised
inside the engine's failure boundary and never escape
:meth:`~hexstate.kernel.machine.StateMachine.atransition`; they reach callers
only through the configured hooks.
"""

from __future__ import annotations

import time
from typing import Any

# ============================================================================
# Base Exception
# ============================================================================


class HexStateError(Exception):
    """Base exception for all hexstate errors.

    Catch this to handle all hexstate errors.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(HexStateError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("transitions", "edge 'idle'->'running' must be a mapping")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(HexStateError):
    """Raised when data validation fails.

    Examples
    --------
    Example usage::

        raise ValidationError("rollback_scope", "must be 'state' or 'entity'", value="all")
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


class ResolveError(HexStateError):
    """Raised when a module path cannot be resolved."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Cannot resolve '{kind}': {reason}")


# ============================================================================
# Entity Errors
# ============================================================================


class StateAccessError(HexStateError):
    """Raised when an entity's state field cannot be read."""

    def __init__(self, state_key: str, entity: object) -> None:
        self.state_key = state_key
        self.entity_type = type(entity).__name__
        super().__init__(f"Entity of type {self.entity_type!r} has no state field {state_key!r}")


# ============================================================================
# Transition Signals
# ============================================================================


class TransitionError(HexStateError):
    """Base class for signals raised while a transition is in flight.

    Attributes
    ----------
    details : dict[str, Any]
        ``from_state``, ``to_state``, ``message``, ``timestamp`` and ``meta``
    """

    default_message = "Transition failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        from_state: str | None = None,
        to_state: str | None = None,
        meta: Any = None,
        timestamp: float | None = None,
    ) -> None:
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.from_state = from_state
        self.to_state = to_state
        self.meta = meta
        self.timestamp = timestamp if timestamp is not None else time.time()

    @property
    def details(self) -> dict[str, Any]:
        return {
            "from_state": self.from_state,
            "to_state": self.to_state,
            "message": self.message,
            "timestamp": self.timestamp,
            "meta": self.meta,
        }


class InvalidTransition(TransitionError):
    """Raised when the requested target is not a declared edge from the current state."""

    default_message = "Invalid transition"


class AbortTransition(TransitionError):
    """Voluntary veto raised from an edge's ``on_before`` hook.

    Honored (rollback + ``on_abort``) only on edges declared with
    ``is_abortable=True``.

    Examples
    --------
    Example usage::

        async def require_payment(order):
            if not order["paid"]:
                raise AbortTransition("Payment not received", meta={"order": order["id"]})
    """

    default_message = "Aborting transition"


class TransitionConsistencyError(TransitionError):
    """Raised when the state field does not hold the target right after commit."""

    default_message = "Transition failed or had inconsistencies"


__all__ = [
    # Base
    "HexStateError",
    # Configuration & Validation
    "ConfigurationError",
    "ValidationError",
    "ResolveError",
    # Entity
    "StateAccessError",
    # Transitions
    "TransitionError",
    "InvalidTransition",
    "AbortTransition",
    "TransitionConsistencyError",
]
