"""Configuration loader for hexstate.

Parses configuration into kernel config models. Supports two config sources:

1. **kind: Config YAML**: canonical format, loaded via explicit path or the
   ``HEXSTATE_CONFIG_PATH`` env var.
2. **pyproject.toml [tool.hexstate]**: auto-discovery fallback.
"""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Callable
from dataclasses import asdict, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from hexstate.kernel.config.models import EngineConfig, HexStateConfig, LoggingConfig
from hexstate.kernel.domain.transition import DEFAULT_STATE_KEY, RollbackScope
from hexstate.kernel.logging import configure_logging, get_logger

_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

logger = get_logger(__name__)

_LOG_STRING_ENV: tuple[tuple[str, str, Callable[[str], str]], ...] = (
    ("level", "HEXSTATE_LOG_LEVEL", str.upper),
    ("format", "HEXSTATE_LOG_FORMAT", str.lower),
    ("output_file", "HEXSTATE_LOG_FILE", str),
)
_LOG_BOOL_ENV = (
    ("use_color", "HEXSTATE_LOG_COLOR"),
    ("include_timestamp", "HEXSTATE_LOG_TIMESTAMP"),
    ("backtrace", "HEXSTATE_LOG_BACKTRACE"),
    ("diagnose", "HEXSTATE_LOG_DIAGNOSE"),
)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = _TRUTHY_VALUES | _FALSY_VALUES
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> HexStateConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and processes hexstate configuration files.

    Supports two config sources:

    1. ``kind: Config`` YAML manifests (explicit path or env var)
    2. ``pyproject.toml [tool.hexstate]`` (auto-discovery)
    """

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_config_file(self, path: str | Path | None = None) -> HexStateConfig:
        """Load configuration from YAML or pyproject.toml.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        HexStateConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> HexStateConfig:
        logger.info("Loading configuration from {path}", path=config_path)

        if config_path.suffix in (".yaml", ".yml"):
            return self._load_yaml_config(config_path)
        return self._load_toml_config(config_path)

    def _load_yaml_config(self, config_path: Path) -> HexStateConfig:
        """Load and parse a kind: Config YAML file.

        Raises
        ------
        ValueError
            If the YAML file is not a valid kind: Config manifest
        """
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid YAML config file: expected a mapping, got {type(data).__name__}"
            )

        kind = data.get("kind")
        if kind != "Config":
            raise ValueError(
                f"YAML config file must use 'kind: Config' manifest format. "
                f"Got 'kind: {kind}' in {config_path.name}."
            )

        spec = data.get("spec", {})
        if not isinstance(spec, dict):
            raise ValueError("'spec' field in kind: Config must be a mapping")

        spec = self._substitute_env_vars(spec)
        return self._parse_config(spec)

    def _load_toml_config(self, config_path: Path) -> HexStateConfig:
        with config_path.open("rb") as f:
            data = tomllib.load(f)

        if config_path.name == "pyproject.toml":
            hexstate_data = data.get("tool", {}).get("hexstate", {})
            if not hexstate_data:
                logger.warning("No [tool.hexstate] section found in pyproject.toml, using defaults")
                return get_default_config()
        elif "tool" in data and "hexstate" in data.get("tool", {}):
            hexstate_data = data["tool"]["hexstate"]
        else:
            hexstate_data = data

        hexstate_data = self._substitute_env_vars(hexstate_data)
        return self._parse_config(hexstate_data)

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``HEXSTATE_CONFIG_PATH`` env var
        3. ``pyproject.toml`` in CWD
        4. ``pyproject.toml`` in parent directories (with ``[tool.hexstate]``)

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("HEXSTATE_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug("Using config from HEXSTATE_CONFIG_PATH: {}", config_path)
                return config_path
            logger.warning("HEXSTATE_CONFIG_PATH set but file not found: {}", config_path)

        if Path("pyproject.toml").exists():
            return Path("pyproject.toml")

        current = Path.cwd()
        while current != current.parent:
            pyproject = current / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                    if "tool" in data and "hexstate" in data["tool"]:
                        return pyproject
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Provide a kind: Config YAML path, "
            "set HEXSTATE_CONFIG_PATH, or add [tool.hexstate] to pyproject.toml"
        )

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders; unknown variables are kept."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    logger.debug(
                        "Environment variable ${{{var_name}}} not found, keeping placeholder",
                        var_name=var_name,
                    )
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> HexStateConfig:
        config = HexStateConfig()
        config.logging = self._parse_logging_config(data.get("logging", {}))
        config.engine = self._parse_engine_config(data.get("engine", {}))

        if "settings" in data:
            config.settings = data["settings"]
            logger.debug("Loaded {count} settings", count=len(config.settings))

        return config

    def _parse_engine_config(self, engine_data: dict[str, Any]) -> EngineConfig:
        """Parse engine defaults with environment variable overrides.

        - HEXSTATE_STATE_KEY: Default entity state field
        - HEXSTATE_ROLLBACK_SCOPE: ``state`` or ``entity``
        """
        state_key = engine_data.get("state_key", DEFAULT_STATE_KEY)
        rollback_scope = engine_data.get("rollback_scope", RollbackScope.STATE)

        if env_key := os.getenv("HEXSTATE_STATE_KEY"):
            state_key = env_key
            logger.debug("Overriding state_key from env: {}", state_key)

        if env_scope := os.getenv("HEXSTATE_ROLLBACK_SCOPE"):
            rollback_scope = env_scope.lower()
            logger.debug("Overriding rollback_scope from env: {}", rollback_scope)

        return EngineConfig(state_key=state_key, rollback_scope=rollback_scope)

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Build :class:`LoggingConfig`, letting ``HEXSTATE_LOG_*`` variables win.

        ``HEXSTATE_LOG_LEVEL``, ``HEXSTATE_LOG_FORMAT`` and ``HEXSTATE_LOG_FILE``
        take strings; ``HEXSTATE_LOG_COLOR``, ``HEXSTATE_LOG_TIMESTAMP``,
        ``HEXSTATE_LOG_BACKTRACE`` and ``HEXSTATE_LOG_DIAGNOSE`` take booleans.
        """
        known = {f.name for f in fields(LoggingConfig)}
        unknown = set(logging_data) - known
        if unknown:
            logger.warning("Ignoring unknown logging options: {}", sorted(unknown))
        values = {key: value for key, value in logging_data.items() if key in known}

        for option, env_name, normalize in _LOG_STRING_ENV:
            if env_value := os.getenv(env_name):
                values[option] = normalize(env_value)
                logger.debug("{} overridden by {}", option, env_name)

        for option, env_name in _LOG_BOOL_ENV:
            if env_value := os.getenv(env_name):
                try:
                    values[option] = _parse_bool_env(env_value)
                except ValueError as e:
                    logger.warning("Ignoring {}: {}", env_name, e)

        return LoggingConfig(**values)


def load_config(path: str | Path | None = None) -> HexStateConfig:
    """Load configuration from file or return defaults.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search

    Returns
    -------
    HexStateConfig
        Loaded configuration or defaults if no file found
    """
    try:
        loader = ConfigLoader()
        return loader.load_config_file(path)
    except FileNotFoundError:
        logger.info("No configuration file found, using defaults")
        return get_default_config()


def clear_config_cache() -> None:
    """Clear configuration caches so modified files are re-read."""
    _load_and_parse_cached.cache_clear()


def get_default_config() -> HexStateConfig:
    """Get default configuration."""
    return HexStateConfig()


def configure_logging_from(config: HexStateConfig | LoggingConfig) -> None:
    """Apply a loaded logging configuration to the global Loguru logger."""
    logging_config = config.logging if isinstance(config, HexStateConfig) else config
    configure_logging(**asdict(logging_config))


__all__ = [
    "ConfigLoader",
    "clear_config_cache",
    "configure_logging_from",
    "get_default_config",
    "load_config",
]
