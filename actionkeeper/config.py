"""Configuration file loader for actionkeeper.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``actionkeeper.toml``: settings under the ``[actionkeeper]`` table
- ``pyproject.toml``: settings under the ``[tool.actionkeeper]`` table

Discovery order:

1. Explicit path from ``--config`` or ``ACTIONKEEPER_CONFIG``
2. ``actionkeeper.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.actionkeeper]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``actionkeeper.toml``)::

    [actionkeeper]
    raise_on_ignored = false
    allow_clone = true

    [actionkeeper.ignore]
    "actions/checkout" = [">= 5"]
    "actions/setup-node" = ["> 3, < 4"]
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from dataclasses import dataclass, field

from actionkeeper.exceptions import ConfigError, InvalidConstraintError
from actionkeeper.utils.logger import get_logger
from actionkeeper.utils.version_utils import parse_ignore_constraints
from actionkeeper.constants import (
    DEFAULT_ALLOW_CLONE,
    DEFAULT_RAISE_ON_IGNORED,
)

logger = get_logger("config")

_SECTION = "actionkeeper"
_CONFIG_FILENAME = "actionkeeper.toml"
_KNOWN_KEYS = frozenset({"raise_on_ignored", "allow_clone", "ignore"})


@dataclass
class ActionKeeperConfig:
    """Parsed and validated actionkeeper configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        raise_on_ignored: Report "every candidate ignored" as an error
            instead of "no update".
        allow_clone: Permit cloning a repository to find which branch a
            commit pin lives on.
        ignore: Ignore constraints per action name (``owner/repo``).
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    raise_on_ignored: bool = DEFAULT_RAISE_ON_IGNORED
    allow_clone: bool = DEFAULT_ALLOW_CLONE
    ignore: Dict[str, List[str]] = field(default_factory=dict)

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def ignored_versions_for(self, dependency_name: str) -> List[str]:
        """Ignore constraints configured for *dependency_name*."""
        return list(self.ignore.get(dependency_name, ()))

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "raise_on_ignored": self.raise_on_ignored,
            "allow_clone": self.allow_clone,
            "ignore": dict(self.ignore),
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    candidate = cwd / _CONFIG_FILENAME
    if candidate.is_file():
        logger.debug("Found %s: %s", _CONFIG_FILENAME, candidate)
        return candidate

    pyproject = cwd / "pyproject.toml"
    if pyproject.is_file() and _pyproject_has_section(pyproject):
        logger.debug("Found [tool.%s] in pyproject.toml: %s", _SECTION, pyproject)
        return pyproject

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Check whether pyproject.toml has a ``[tool.actionkeeper]`` table.

    An unreadable or invalid pyproject.toml simply does not count.
    """
    try:
        raw = _read_toml(path)
    except ConfigError as exc:
        logger.debug("Ignoring unreadable %s: %s", path, exc)
        return False
    return _SECTION in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> ActionKeeperConfig:
    """Load and validate actionkeeper configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`ActionKeeperConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return ActionKeeperConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get(_SECTION, {})
    else:
        section = raw.get(_SECTION, {})

    if not section:
        logger.debug("Config file found but has no %s section; using defaults", _SECTION)
        return ActionKeeperConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _expect_bool(section: Mapping[str, Any], key: str, config_path: str) -> bool:
    value = section[key]
    if not isinstance(value, bool):
        raise ConfigError(
            f"{key} must be a boolean, got {type(value).__name__}",
            config_path=config_path,
            option=key,
        )
    return value


def _parse_ignore(value: Any, config_path: str) -> Dict[str, List[str]]:
    if not isinstance(value, dict):
        raise ConfigError(
            f"ignore must be a table, got {type(value).__name__}",
            config_path=config_path,
            option="ignore",
        )

    ignore: Dict[str, List[str]] = {}
    for name, constraints in value.items():
        option = f"ignore.{name}"
        if isinstance(constraints, str):
            constraints = [constraints]
        if not isinstance(constraints, list) or not all(
            isinstance(c, str) for c in constraints
        ):
            raise ConfigError(
                f"{option} must be a string or a list of strings",
                config_path=config_path,
                option=option,
            )
        try:
            parse_ignore_constraints(constraints)
        except InvalidConstraintError as exc:
            raise ConfigError(
                f"{option}: {exc.message}",
                config_path=config_path,
                option=option,
            ) from exc
        ignore[name] = list(constraints)

    return ignore


def _parse_section(section: Dict[str, Any], *, config_path: str) -> ActionKeeperConfig:
    """Validate the ``[actionkeeper]`` table.

    Raises:
        ConfigError: Unknown keys or values of the wrong type.
    """
    unknown = set(section) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = ActionKeeperConfig()

    if "raise_on_ignored" in section:
        config.raise_on_ignored = _expect_bool(section, "raise_on_ignored", config_path)

    if "allow_clone" in section:
        config.allow_clone = _expect_bool(section, "allow_clone", config_path)

    if "ignore" in section:
        config.ignore = _parse_ignore(section["ignore"], config_path)

    return config
