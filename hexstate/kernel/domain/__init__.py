"""Domain models: transition tables, hooks, payloads and manifests."""

from hexstate.kernel.domain.machine_spec import (
    GlobalHooksSpec,
    MachineSpec,
    TransitionDetailsSpec,
    TransitionSpec,
)
from hexstate.kernel.domain.transition import (
    DEFAULT_STATE_KEY,
    AbortTransitionErrorPayload,
    GlobalHooks,
    InvalidTransitionErrorPayload,
    MachineConfig,
    RollbackScope,
    TransitionContext,
    TransitionDefinition,
    TransitionDetails,
    TransitionErrorPayload,
    TransitionPayload,
)

__all__ = [
    "DEFAULT_STATE_KEY",
    "AbortTransitionErrorPayload",
    "GlobalHooks",
    "GlobalHooksSpec",
    "InvalidTransitionErrorPayload",
    "MachineConfig",
    "MachineSpec",
    "RollbackScope",
    "TransitionContext",
    "TransitionDefinition",
    "TransitionDetails",
    "TransitionDetailsSpec",
    "TransitionErrorPayload",
    "TransitionPayload",
    "TransitionSpec",
]
