"""Domain models for declarative entity transition tables.

Used by :class:`~hexstate.kernel.machine.StateMachine` to validate and
drive state transitions on caller-owned entities (orders, tickets, jobs, etc.).

Example::

    config = MachineConfig(
        initial_state="idle",
        transitions={
            "idle": {
                "running": TransitionDefinition(
                    is_abortable=True,
                    on_before=require_payment,
                ),
            },
            "running": {"completed": TransitionDefinition()},
        },
        global_hooks=GlobalHooks(after_transition=[audit]),
    )
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from hexstate.kernel.exceptions import ConfigurationError

DEFAULT_STATE_KEY = "status"

# Hooks may be plain functions or coroutine functions; results are awaited when awaitable
EntityHook = Callable[[Any], Awaitable[None] | None]
TransitionHook = Callable[["TransitionPayload"], Awaitable[None] | None]
AbortHandler = Callable[["AbortTransitionErrorPayload"], Awaitable[None] | None]
InvalidTransitionHandler = Callable[["InvalidTransitionErrorPayload"], Awaitable[None] | None]
ErrorHandler = Callable[[BaseException, "TransitionErrorPayload"], Awaitable[None] | None]


class RollbackScope(StrEnum):
    """What an abort snapshot covers.

    Attributes
    ----------
    STATE : str
        Only the state field is captured and restored
    ENTITY : str
        Every field of the entity is deep-copied and restored, undoing side
        mutations made by before-hooks
    """

    STATE = "state"
    ENTITY = "entity"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransitionContext:
    """Caller-supplied context for one ``atransition`` call."""

    actor: str | None = None
    meta: Any = None

    @classmethod
    def coerce(cls, value: TransitionContext | Mapping[str, Any] | None) -> TransitionContext:
        """Build a context from ``None``, a mapping, or an existing context."""
        if value is None:
            return cls()
        if isinstance(value, TransitionContext):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"actor", "meta"}
            if unknown:
                raise ConfigurationError("context", f"unknown keys {sorted(unknown)}")
            return cls(actor=value.get("actor"), meta=value.get("meta"))
        raise ConfigurationError(
            "context", f"expected mapping or TransitionContext, got {type(value).__name__}"
        )


@dataclass(frozen=True, slots=True)
class TransitionPayload:
    """Passed to global ``before_transition`` / ``after_transition`` hooks."""

    from_state: str
    to_state: str
    actor: str | None = None
    meta: Any = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class TransitionErrorPayload:
    """Describes a failed transition; ``meta`` is the call's context."""

    from_state: str | None
    to_state: str
    message: str
    meta: TransitionContext | None = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class AbortTransitionErrorPayload(TransitionErrorPayload):
    """Passed to an edge's ``on_abort`` handler."""


@dataclass(frozen=True, slots=True)
class InvalidTransitionErrorPayload(TransitionErrorPayload):
    """Passed to the global ``on_invalid_transition`` handler."""


# ---------------------------------------------------------------------------
# Table entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransitionDetails:
    """Descriptive metadata for an edge. Never read by the engine."""

    label: str | None = None
    description: str | None = None
    allowed_actors: frozenset[str] = frozenset()

    @classmethod
    def coerce(
        cls, value: TransitionDetails | Mapping[str, Any] | None
    ) -> TransitionDetails | None:
        if value is None or isinstance(value, TransitionDetails):
            return value
        if not isinstance(value, Mapping):
            raise ConfigurationError("details", f"expected mapping, got {type(value).__name__}")
        actors = value.get("allowed_actors") or ()
        if isinstance(actors, str):
            actors = (actors,)
        return cls(
            label=value.get("label"),
            description=value.get("description"),
            allowed_actors=frozenset(actors),
        )


@dataclass(frozen=True, slots=True)
class TransitionDefinition:
    """One legal edge ``A -> B`` and the hooks bound to it.

    Attributes
    ----------
    is_abortable : bool
        Whether an ``AbortTransition`` raised by ``on_before`` is honored
    on_before : EntityHook | None
        Called with the entity before the state field is written
    on_after : EntityHook | None
        Called with the entity after the state field is written
    on_abort : AbortHandler | None
        Called with an :class:`AbortTransitionErrorPayload` after rollback
    details : TransitionDetails | None
        Informational label/description/allowed actors
    """

    is_abortable: bool = False
    on_before: EntityHook | None = None
    on_after: EntityHook | None = None
    on_abort: AbortHandler | None = None
    details: TransitionDetails | None = None

    @classmethod
    def coerce(
        cls, value: TransitionDefinition | Mapping[str, Any], edge: str
    ) -> TransitionDefinition:
        """Build a definition from a mapping of its fields."""
        if isinstance(value, TransitionDefinition):
            return value
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                "transitions",
                f"edge {edge} must be a TransitionDefinition or mapping, "
                f"got {type(value).__name__}",
            )
        unknown = set(value) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(
                "transitions", f"edge {edge} has unknown fields {sorted(unknown)}"
            )
        for hook_name in ("on_before", "on_after", "on_abort"):
            hook = value.get(hook_name)
            if hook is not None and not callable(hook):
                raise ConfigurationError("transitions", f"edge {edge} {hook_name} is not callable")
        return cls(
            is_abortable=bool(value.get("is_abortable", False)),
            on_before=value.get("on_before"),
            on_after=value.get("on_after"),
            on_abort=value.get("on_abort"),
            details=TransitionDetails.coerce(value.get("details")),
        )


@dataclass(frozen=True, slots=True)
class GlobalHooks:
    """Engine-wide hooks, independent of which edge fired."""

    before_transition: tuple[TransitionHook, ...] = ()
    after_transition: tuple[TransitionHook, ...] = ()
    on_invalid_transition: InvalidTransitionHandler | None = None
    on_error: ErrorHandler | None = None

    def __post_init__(self) -> None:
        # Accept lists at the call site; store tuples
        object.__setattr__(self, "before_transition", tuple(self.before_transition))
        object.__setattr__(self, "after_transition", tuple(self.after_transition))

    @classmethod
    def coerce(cls, value: GlobalHooks | Mapping[str, Any] | None) -> GlobalHooks:
        if value is None:
            return cls()
        if isinstance(value, GlobalHooks):
            return value
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                "global_hooks", f"expected mapping or GlobalHooks, got {type(value).__name__}"
            )
        unknown = set(value) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError("global_hooks", f"unknown hooks {sorted(unknown)}")
        return cls(
            before_transition=_hook_sequence(value.get("before_transition"), "before_transition"),
            after_transition=_hook_sequence(value.get("after_transition"), "after_transition"),
            on_invalid_transition=value.get("on_invalid_transition"),
            on_error=value.get("on_error"),
        )


def _hook_sequence(value: Any, name: str) -> tuple[TransitionHook, ...]:
    if value is None:
        return ()
    if callable(value):
        return (value,)
    if not isinstance(value, Sequence) or not all(callable(hook) for hook in value):
        raise ConfigurationError("global_hooks", f"{name} must be a sequence of callables")
    return tuple(value)


@dataclass(frozen=True, slots=True)
class MachineConfig:
    """Construction input for :class:`~hexstate.kernel.machine.StateMachine`.

    Attributes
    ----------
    initial_state : str
        Documentation value; not enforced against entities at call time
    transitions : Mapping[str, Mapping[str, TransitionDefinition | Mapping]]
        ``state -> next state -> definition``
    state_key : str | None
        Field read and written on every entity; ``None`` uses the engine default
    global_hooks : GlobalHooks | Mapping | None
        Cross-cutting hooks
    rollback_scope : RollbackScope | None
        Abort snapshot scope; ``None`` uses the engine default
    """

    initial_state: str
    transitions: Mapping[str, Mapping[str, Any]]
    state_key: str | None = None
    global_hooks: GlobalHooks | Mapping[str, Any] | None = None
    rollback_scope: RollbackScope | None = None

    @classmethod
    def coerce(cls, value: MachineConfig | Mapping[str, Any]) -> MachineConfig:
        if isinstance(value, MachineConfig):
            return value
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                "machine", f"expected mapping or MachineConfig, got {type(value).__name__}"
            )
        unknown = set(value) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError("machine", f"unknown options {sorted(unknown)}")
        if "initial_state" not in value or "transitions" not in value:
            raise ConfigurationError("machine", "'initial_state' and 'transitions' are required")
        return cls(**value)
