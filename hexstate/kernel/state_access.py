"""Access to the one field of an entity the engine owns.

The engine never reflects over entities directly; it goes through a
:class:`StateAccessor`. :class:`FieldAccessor` covers the two common entity
shapes: mappings (``entity["status"]``) and plain objects (``entity.status``).
Supply a custom accessor for anything else (ORM rows with setters, proxies).
"""

from __future__ import annotations

import copy
from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

from hexstate.kernel.exceptions import StateAccessError


@runtime_checkable
class StateAccessor(Protocol):
    """Read/write the state field and capture/restore entity snapshots."""

    def get(self, entity: Any) -> str:
        """Return the entity's current state."""
        ...

    def set(self, entity: Any, state: str) -> None:
        """Write ``state`` into the entity's state field."""
        ...

    def snapshot(self, entity: Any) -> Any:
        """Return a deep copy of every field the accessor can restore."""
        ...

    def restore(self, entity: Any, snapshot: Any) -> None:
        """Put the entity back to the values captured by :meth:`snapshot`."""
        ...


class FieldAccessor:
    """Accessor for mapping entities and attribute-bearing objects.

    Examples
    --------
    >>> accessor = FieldAccessor("status")
    >>> order = {"id": 1, "status": "new"}
    >>> accessor.get(order)
    'new'
    >>> accessor.set(order, "paid")
    >>> order["status"]
    'paid'
    """

    __slots__ = ("state_key",)

    def __init__(self, state_key: str) -> None:
        self.state_key = state_key

    def __repr__(self) -> str:
        return f"FieldAccessor({self.state_key!r})"

    def get(self, entity: Any) -> str:
        try:
            if isinstance(entity, MutableMapping):
                return entity[self.state_key]
            return getattr(entity, self.state_key)
        except (KeyError, AttributeError) as e:
            raise StateAccessError(self.state_key, entity) from e

    def set(self, entity: Any, state: str) -> None:
        if isinstance(entity, MutableMapping):
            entity[self.state_key] = state
        else:
            setattr(entity, self.state_key, state)

    def snapshot(self, entity: Any) -> dict[str, Any]:
        if isinstance(entity, MutableMapping):
            return copy.deepcopy(dict(entity))
        if hasattr(entity, "__dict__"):
            return copy.deepcopy(vars(entity))
        # __slots__ objects: only the state field is recoverable
        return {self.state_key: self.get(entity)}

    def restore(self, entity: Any, snapshot: dict[str, Any]) -> None:
        if isinstance(entity, MutableMapping):
            entity.clear()
            entity.update(snapshot)
        elif hasattr(entity, "__dict__"):
            fields = vars(entity)
            fields.clear()
            fields.update(snapshot)
        else:
            for name, value in snapshot.items():
                setattr(entity, name, value)


__all__ = ["FieldAccessor", "StateAccessor"]
