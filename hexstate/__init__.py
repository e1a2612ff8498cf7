"""hexstate: declarative finite-state transitions for arbitrary entities.

Declare which states exist, which transitions between them are legal, and
which hooks run before and after each transition, including rollback when a
transition is aborted mid-flight.
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("hexstate")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from hexstate.compiler import build_machine, load_config, load_machine_config
from hexstate.kernel import (
    AbortTransition,
    AbortTransitionErrorPayload,
    ConfigurationError,
    EngineConfig,
    GlobalHooks,
    HexStateError,
    InvalidTransition,
    InvalidTransitionErrorPayload,
    MachineConfig,
    RollbackScope,
    StateAccessor,
    StateMachine,
    TransitionContext,
    TransitionDefinition,
    TransitionDetails,
    TransitionErrorPayload,
    TransitionPayload,
    configure_logging,
    get_logger,
)

__all__ = [
    "__version__",
    "AbortTransition",
    "AbortTransitionErrorPayload",
    "ConfigurationError",
    "EngineConfig",
    "GlobalHooks",
    "HexStateError",
    "InvalidTransition",
    "InvalidTransitionErrorPayload",
    "MachineConfig",
    "RollbackScope",
    "StateAccessor",
    "StateMachine",
    "TransitionContext",
    "TransitionDefinition",
    "TransitionDetails",
    "TransitionErrorPayload",
    "TransitionPayload",
    "build_machine",
    "configure_logging",
    "get_logger",
    "load_config",
    "load_machine_config",
]
