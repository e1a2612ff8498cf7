"""Build state machines from ``kind: StateMachine`` YAML manifests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from hexstate.kernel.config.models import EngineConfig
from hexstate.kernel.domain.machine_spec import MachineSpec
from hexstate.kernel.domain.transition import MachineConfig
from hexstate.kernel.exceptions import ConfigurationError
from hexstate.kernel.logging import get_logger
from hexstate.kernel.machine import StateMachine

logger = get_logger(__name__)

MANIFEST_KIND = "StateMachine"


def parse_machine_manifest(data: Any, source: str = "<manifest>") -> MachineSpec:
    """Validate a parsed manifest mapping into a :class:`MachineSpec`.

    Raises
    ------
    ConfigurationError
        If the manifest has the wrong kind or an invalid spec
    """
    if not isinstance(data, dict):
        raise ConfigurationError(source, f"expected a mapping, got {type(data).__name__}")

    kind = data.get("kind")
    if kind != MANIFEST_KIND:
        raise ConfigurationError(source, f"expected 'kind: {MANIFEST_KIND}', got 'kind: {kind}'")

    try:
        return MachineSpec.model_validate(data.get("spec", {}))
    except PydanticValidationError as e:
        raise ConfigurationError(source, f"invalid spec: {e}") from e


def load_machine_config(path: str | Path) -> MachineConfig:
    """Read a manifest file and resolve its hooks into a :class:`MachineConfig`.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    ConfigurationError
        If the manifest is malformed
    ResolveError
        If a hook path cannot be imported
    """
    manifest_path = Path(path)
    with manifest_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    spec = parse_machine_manifest(data, source=manifest_path.name)
    name = (data.get("metadata") or {}).get("name", manifest_path.stem)
    logger.debug("Loaded state machine manifest {name} from {path}", name=name, path=manifest_path)
    return spec.to_domain()


def build_machine(path: str | Path, *, settings: EngineConfig | None = None) -> StateMachine:
    """Load a manifest and construct the :class:`StateMachine` it describes."""
    return StateMachine(load_machine_config(path), settings=settings)


__all__ = ["build_machine", "load_machine_config", "parse_machine_manifest"]
