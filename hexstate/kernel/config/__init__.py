"""Configuration models for hexstate."""

from hexstate.kernel.config.models import EngineConfig, HexStateConfig, LoggingConfig

__all__ = [
    "EngineConfig",
    "HexStateConfig",
    "LoggingConfig",
]
