"""StateMachine - the transition engine.

One ``atransition`` call walks a single path::

    validate -> on_before -> before_transition hooks (concurrent)
             -> commit state field
             -> consistency check -> on_after -> after_transition hooks (concurrent)

wrapped in one failure boundary. Failures are classified there and reported
only through hooks; nothing escapes to the caller.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from hexstate.kernel.config.models import EngineConfig
from hexstate.kernel.domain.transition import (
    AbortTransitionErrorPayload,
    GlobalHooks,
    InvalidTransitionErrorPayload,
    MachineConfig,
    RollbackScope,
    TransitionContext,
    TransitionDefinition,
    TransitionErrorPayload,
    TransitionHook,
    TransitionPayload,
)
from hexstate.kernel.exceptions import (
    AbortTransition,
    ConfigurationError,
    InvalidTransition,
    TransitionConsistencyError,
    TransitionError,
)
from hexstate.kernel.logging import get_logger
from hexstate.kernel.state_access import FieldAccessor, StateAccessor

logger = get_logger(__name__)

TransitionTable = Mapping[str, Mapping[str, TransitionDefinition]]


async def _acall(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async hook and await its result when needed."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass(frozen=True, slots=True)
class DefaultAbortHandler:
    """``on_abort`` installed on abortable edges declared without one."""

    from_state: str
    to_state: str

    def __call__(self, payload: AbortTransitionErrorPayload) -> None:
        logger.info(
            "Aborting transition from {from_state} to {to_state}",
            from_state=self.from_state,
            to_state=self.to_state,
        )


def normalize_transitions(transitions: Mapping[str, Mapping[str, Any]]) -> TransitionTable:
    """Coerce every edge to a :class:`TransitionDefinition` and freeze the table.

    Abortable edges without an ``on_abort`` get a :class:`DefaultAbortHandler`.
    Reachability is not checked: unreachable states and dangling targets are
    accepted.

    Raises
    ------
    ConfigurationError
        If the table or one of its edges is malformed
    """
    if not isinstance(transitions, Mapping):
        raise ConfigurationError(
            "transitions", f"expected mapping, got {type(transitions).__name__}"
        )

    table: dict[str, Mapping[str, TransitionDefinition]] = {}
    for from_state, edges in transitions.items():
        if not isinstance(from_state, str):
            raise ConfigurationError("transitions", f"state name {from_state!r} is not a string")
        if not isinstance(edges, Mapping):
            raise ConfigurationError(
                "transitions",
                f"next states of {from_state!r} must be a mapping, got {type(edges).__name__}",
            )
        row: dict[str, TransitionDefinition] = {}
        for to_state, value in edges.items():
            if not isinstance(to_state, str):
                raise ConfigurationError(
                    "transitions", f"state name {to_state!r} is not a string"
                )
            definition = TransitionDefinition.coerce(value, f"{from_state!r}->{to_state!r}")
            if definition.is_abortable and definition.on_abort is None:
                definition = replace(definition, on_abort=DefaultAbortHandler(from_state, to_state))
            row[to_state] = definition
        table[from_state] = MappingProxyType(row)
    return MappingProxyType(table)


class StateMachine:
    """Declarative transition engine for caller-owned entities.

    The engine reads and writes one field of each entity (``state_key``) and
    passes the entity by reference to edge hooks. It holds no per-entity
    state, so one machine can drive any number of entities concurrently.
    Calls racing on the *same* entity are not serialized.

    Parameters
    ----------
    config : MachineConfig | Mapping[str, Any]
        Transition table, hooks and options
    settings : EngineConfig | None
        Defaults for ``state_key`` and ``rollback_scope`` when the config
        leaves them unset
    accessor : StateAccessor | None
        How to read/write the state field; defaults to :class:`FieldAccessor`

    Examples
    --------
    Example usage::

        machine = StateMachine(
            MachineConfig(
                initial_state="idle",
                transitions={"idle": {"running": {}}, "running": {"completed": {}}},
            )
        )
        job = {"id": 1, "status": "idle"}
        await machine.atransition(job, "running", {"actor": "scheduler"})
    """

    def __init__(
        self,
        config: MachineConfig | Mapping[str, Any],
        *,
        settings: EngineConfig | None = None,
        accessor: StateAccessor | None = None,
    ) -> None:
        config = MachineConfig.coerce(config)
        settings = settings or EngineConfig()

        self._initial_state = config.initial_state
        if config.state_key is not None and (
            not isinstance(config.state_key, str) or not config.state_key
        ):
            raise ConfigurationError(
                "state_key", f"must be a non-empty string, got {config.state_key!r}"
            )
        self._state_key = config.state_key or settings.state_key
        scope = config.rollback_scope
        if scope is None:
            scope = settings.rollback_scope
        try:
            self._rollback_scope = RollbackScope(scope)
        except ValueError as e:
            raise ConfigurationError("rollback_scope", f"unknown scope {scope!r}") from e
        self._accessor: StateAccessor = accessor or FieldAccessor(self._state_key)
        self._global_hooks = GlobalHooks.coerce(config.global_hooks)
        self._transitions = normalize_transitions(config.transitions)
        self._handlers: dict[str, list[Callable[..., Any]]] = {}

        logger.debug(
            "StateMachine built with {states} source states, state_key={state_key!r}",
            states=len(self._transitions),
            state_key=self._state_key,
        )

    def __repr__(self) -> str:
        return (
            f"StateMachine(initial_state={self._initial_state!r}, "
            f"state_key={self._state_key!r}, states={list(self._transitions)})"
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def initial_state(self) -> str:
        return self._initial_state

    @property
    def state_key(self) -> str:
        return self._state_key

    @property
    def rollback_scope(self) -> RollbackScope:
        return self._rollback_scope

    @property
    def transitions(self) -> TransitionTable:
        """Normalized, read-only transition table."""
        return self._transitions

    @property
    def global_hooks(self) -> GlobalHooks:
        return self._global_hooks

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    async def atransition(
        self,
        entity: Any,
        target_state: str,
        context: TransitionContext | Mapping[str, Any] | None = None,
    ) -> None:
        """Move ``entity`` to ``target_state``.

        Never raises for transition failures: invalid targets, aborts and
        hook errors are reported through ``on_invalid_transition``,
        ``on_abort`` and ``on_error``.

        Args
        ----
            entity: Caller-owned record carrying the state field.
            target_state: Requested next state.
            context: Optional ``actor`` and ``meta`` forwarded to hooks.
        """
        ctx = TransitionContext()
        from_state: str | None = None
        definition: TransitionDefinition | None = None
        snapshot: Any = None
        committed = False
        try:
            ctx = TransitionContext.coerce(context)
            from_state = self._accessor.get(entity)
            logger.debug(
                "Transition {from_state} -> {to_state} requested",
                from_state=from_state,
                to_state=target_state,
            )
            snapshot = self._take_snapshot(entity, from_state)
            definition = self._lookup(from_state, target_state, ctx)

            await self._apre_transition(entity, from_state, target_state, definition, ctx)
            self._accessor.set(entity, target_state)
            committed = True
            await self._apost_transition(entity, from_state, target_state, definition, ctx)
        except Exception as e:
            await self._ahandle_failure(
                e, entity, from_state, target_state, definition, snapshot, ctx, committed
            )
        else:
            logger.debug(
                "Transition {from_state} -> {to_state} committed",
                from_state=from_state,
                to_state=target_state,
            )

    def _lookup(
        self, from_state: str, to_state: str, ctx: TransitionContext
    ) -> TransitionDefinition:
        allowed = self._transitions.get(from_state)
        if allowed is None:
            raise InvalidTransition(
                f"No transitions declared from state {from_state!r}",
                from_state=from_state,
                to_state=to_state,
                meta=ctx,
            )
        definition = allowed.get(to_state)
        if definition is None:
            raise InvalidTransition(
                f"Invalid transition from {from_state!r} to {to_state!r}",
                from_state=from_state,
                to_state=to_state,
                meta=ctx,
            )
        return definition

    async def _apre_transition(
        self,
        entity: Any,
        from_state: str,
        to_state: str,
        definition: TransitionDefinition,
        ctx: TransitionContext,
    ) -> None:
        if definition.on_before is not None:
            await _acall(definition.on_before, entity)
        await self._afan_out(self._global_hooks.before_transition, from_state, to_state, ctx)

    async def _apost_transition(
        self,
        entity: Any,
        from_state: str,
        to_state: str,
        definition: TransitionDefinition,
        ctx: TransitionContext,
    ) -> None:
        if self._accessor.get(entity) != to_state:
            raise TransitionConsistencyError(from_state=from_state, to_state=to_state, meta=ctx)
        if definition.on_after is not None:
            await _acall(definition.on_after, entity)
        await self._afan_out(self._global_hooks.after_transition, from_state, to_state, ctx)

    @staticmethod
    async def _afan_out(
        hooks: Sequence[TransitionHook], from_state: str, to_state: str, ctx: TransitionContext
    ) -> None:
        """Run global hooks concurrently; the first failure propagates."""
        if not hooks:
            return
        payload = TransitionPayload(
            from_state=from_state, to_state=to_state, actor=ctx.actor, meta=ctx.meta
        )
        await asyncio.gather(*(_acall(hook, payload) for hook in hooks))

    # ------------------------------------------------------------------
    # Failure boundary
    # ------------------------------------------------------------------

    def _take_snapshot(self, entity: Any, from_state: str) -> Any:
        if self._rollback_scope is RollbackScope.ENTITY:
            return self._accessor.snapshot(entity)
        return from_state

    def _rollback(self, entity: Any, snapshot: Any) -> None:
        try:
            if self._rollback_scope is RollbackScope.ENTITY:
                self._accessor.restore(entity, snapshot)
            else:
                self._accessor.set(entity, snapshot)
        except Exception:
            logger.exception("Rollback after abort failed")

    async def _ahandle_failure(
        self,
        error: Exception,
        entity: Any,
        from_state: str | None,
        to_state: str,
        definition: TransitionDefinition | None,
        snapshot: Any,
        ctx: TransitionContext,
        committed: bool,
    ) -> None:
        message = error.message if isinstance(error, TransitionError) else str(error)
        message = message or type(error).__name__

        if isinstance(error, InvalidTransition):
            logger.debug("{message}", message=message)
            await self._areport(
                "on_invalid_transition",
                self._global_hooks.on_invalid_transition,
                InvalidTransitionErrorPayload(
                    from_state=from_state, to_state=to_state, message=message, meta=ctx
                ),
            )
        elif committed:
            # Aborts are vetoes only before the commit; afterwards they are plain failures
            logger.opt(exception=error).error(
                "Transition {from_state} -> {to_state} failed after commit: {message}",
                from_state=from_state,
                to_state=to_state,
                message=message,
            )
        elif isinstance(error, AbortTransition) and definition and definition.is_abortable:
            self._rollback(entity, snapshot)
            await self._areport(
                "on_abort",
                definition.on_abort,
                AbortTransitionErrorPayload(
                    from_state=from_state, to_state=to_state, message=message, meta=ctx
                ),
            )
        elif isinstance(error, AbortTransition):
            logger.warning(
                "Abort requested on non-abortable transition {from_state} -> {to_state}, "
                "ignoring veto: {message}",
                from_state=from_state,
                to_state=to_state,
                message=message,
            )
        else:
            logger.opt(exception=error).error(
                "Transition {from_state} -> {to_state} failed: {message}",
                from_state=from_state,
                to_state=to_state,
                message=message,
            )

        await self._areport(
            "on_error",
            self._global_hooks.on_error,
            error,
            TransitionErrorPayload(
                from_state=from_state, to_state=to_state, message=message, meta=ctx
            ),
        )

    @staticmethod
    async def _areport(name: str, handler: Callable[..., Any] | None, *args: Any) -> None:
        if handler is None:
            return
        try:
            await _acall(handler, *args)
        except Exception:
            logger.exception("{hook} handler failed", hook=name)

    # ------------------------------------------------------------------
    # Named events (not used by the transition path)
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        """Register ``handler`` for ``event``."""
        self._handlers.setdefault(event, []).append(handler)

    async def aemit(self, event: str, *args: Any) -> None:
        """Call every handler registered for ``event`` in registration order."""
        for handler in self._handlers.get(event, ()):
            await _acall(handler, *args)


__all__ = ["DefaultAbortHandler", "StateMachine", "normalize_transitions"]
