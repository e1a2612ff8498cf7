"""Configuration data models for hexstate."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from hexstate.kernel.domain.transition import DEFAULT_STATE_KEY, RollbackScope
from hexstate.kernel.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for hexstate.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, dual, rich)
    output_file : str | None, default=None
        Optional file path to write logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    backtrace : bool, default=True
        Enable extended backtraces
    diagnose : bool, default=True
        Enable diagnose mode with variable values (disable in production)

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.hexstate.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export HEXSTATE_LOG_LEVEL=DEBUG
    export HEXSTATE_LOG_FORMAT=json
    export HEXSTATE_LOG_FILE=/var/log/hexstate/app.log
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "dual", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    backtrace: bool = True
    diagnose: bool = True


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Defaults applied to machines that leave the option unset.

    Attributes
    ----------
    state_key : str, default="status"
        Entity field holding the state
    rollback_scope : RollbackScope, default=RollbackScope.STATE
        What an abort snapshot covers
    """

    state_key: str = DEFAULT_STATE_KEY
    rollback_scope: RollbackScope = RollbackScope.STATE

    def __post_init__(self) -> None:
        """Validate engine defaults.

        Raises
        ------
        ValidationError
            If state_key is empty or rollback_scope is unknown
        """
        if not self.state_key or not isinstance(self.state_key, str):
            raise ValidationError("state_key", "must be a non-empty string", self.state_key)
        try:
            object.__setattr__(self, "rollback_scope", RollbackScope(self.rollback_scope))
        except ValueError as e:
            allowed = ", ".join(scope.value for scope in RollbackScope)
            raise ValidationError(
                "rollback_scope", f"must be one of: {allowed}", self.rollback_scope
            ) from e


@dataclass(slots=True)
class HexStateConfig:
    """Complete hexstate configuration.

    Attributes
    ----------
    logging : LoggingConfig
        Logging configuration
    engine : EngineConfig
        Engine defaults
    settings : dict[str, Any]
        Additional custom settings

    Examples
    --------
    TOML configuration in pyproject.toml:

    ```toml
    [tool.hexstate.engine]
    state_key = "status"
    rollback_scope = "entity"

    [tool.hexstate.logging]
    level = "DEBUG"
    ```
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    settings: dict[str, Any] = field(default_factory=dict)
