"""Userspace loaders: configuration files and state machine manifests."""

from hexstate.compiler.config_loader import (
    ConfigLoader,
    clear_config_cache,
    configure_logging_from,
    get_default_config,
    load_config,
)
from hexstate.compiler.machine_loader import (
    build_machine,
    load_machine_config,
    parse_machine_manifest,
)

__all__ = [
    "ConfigLoader",
    "build_machine",
    "clear_config_cache",
    "configure_logging_from",
    "get_default_config",
    "load_config",
    "load_machine_config",
    "parse_machine_manifest",
]
