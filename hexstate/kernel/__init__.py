"""hexstate kernel: the transition engine and its building blocks.

User code should import from ``hexstate`` or ``hexstate.kernel``, never from
kernel submodules. The exports are grouped by category:
- Engine
- Domain types
- Entity access
- Exceptions
- Configuration
- Logging
"""

# ============================================================================
# Configuration
# ============================================================================
from hexstate.kernel.config import EngineConfig, HexStateConfig, LoggingConfig

# ============================================================================
# Domain types
# ============================================================================
from hexstate.kernel.domain import (
    DEFAULT_STATE_KEY,
    AbortTransitionErrorPayload,
    GlobalHooks,
    InvalidTransitionErrorPayload,
    MachineConfig,
    MachineSpec,
    RollbackScope,
    TransitionContext,
    TransitionDefinition,
    TransitionDetails,
    TransitionErrorPayload,
    TransitionPayload,
)

# ============================================================================
# Exceptions
# ============================================================================
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

# ============================================================================
# Logging
# ============================================================================
from hexstate.kernel.logging import configure_logging, get_logger

# ============================================================================
# Engine
# ============================================================================
from hexstate.kernel.machine import DefaultAbortHandler, StateMachine

# ============================================================================
# Entity access
# ============================================================================
from hexstate.kernel.state_access import FieldAccessor, StateAccessor

__all__ = [
    # Engine
    "StateMachine",
    "DefaultAbortHandler",
    # Domain types
    "DEFAULT_STATE_KEY",
    "AbortTransitionErrorPayload",
    "GlobalHooks",
    "InvalidTransitionErrorPayload",
    "MachineConfig",
    "MachineSpec",
    "RollbackScope",
    "TransitionContext",
    "TransitionDefinition",
    "TransitionDetails",
    "TransitionErrorPayload",
    "TransitionPayload",
    # Entity access
    "FieldAccessor",
    "StateAccessor",
    # Exceptions
    "AbortTransition",
    "ConfigurationError",
    "HexStateError",
    "InvalidTransition",
    "ResolveError",
    "StateAccessError",
    "TransitionConsistencyError",
    "TransitionError",
    "ValidationError",
    # Configuration
    "EngineConfig",
    "HexStateConfig",
    "LoggingConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
