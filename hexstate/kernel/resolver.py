"""Resolve dotted module paths to hook callables.

Examples
--------
>>> from hexstate.kernel.resolver import resolve_function
>>> loads = resolve_function("json.loads")
"""

from __future__ import annotations

import importlib
from typing import Any

from hexstate.kernel.exceptions import ResolveError


def resolve_function(path: str) -> Any:
    """Resolve a dotted path to a function or callable.

    Parameters
    ----------
    path : str
        Full module path to the function (e.g., "myapp.hooks.require_payment")

    Returns
    -------
    Callable
        The resolved function

    Raises
    ------
    ResolveError
        If the module or function cannot be found
    """
    if "." not in path:
        raise ResolveError(
            path,
            "Must be a full module path (e.g., 'myapp.hooks.audit')",
        )

    module_path, func_name = path.rsplit(".", 1)

    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as e:
        raise ResolveError(path, f"Module '{module_path}' not found: {e}") from e
    except ImportError as e:
        raise ResolveError(path, f"Failed to import '{module_path}': {e}") from e

    try:
        func = getattr(module, func_name)
    except AttributeError as e:
        available = [name for name in dir(module) if not name.startswith("_")]
        raise ResolveError(
            path,
            f"'{func_name}' not found in '{module_path}'. Available: {', '.join(available[:10])}",
        ) from e

    if not callable(func):
        raise ResolveError(path, f"'{func_name}' is not callable (got {type(func).__name__})")

    return func


__all__ = ["resolve_function"]
