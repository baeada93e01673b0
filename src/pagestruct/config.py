#  Copyright (c) 2025 Tom Villani, Ph.D.

"""Configuration file discovery and loading for pagestruct.

Layout options can be kept in a ``.pagestruct.toml``, ``.pagestruct.yaml``,
``.pagestruct.yml`` or ``.pagestruct.json`` file, or in the
``[tool.pagestruct]`` table of ``pyproject.toml``. Keys are the field names of
:class:`~pagestruct.options.LayoutOptions`.

Examples
--------
A ``.pagestruct.toml`` file::

    min_lines_per_column = 4
    detect_columns = true

"""

import json
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]

import yaml

from pagestruct.constants import CONFIG_ENV_VAR, CONFIG_FILENAMES, CONFIG_TOOL_NAME
from pagestruct.exceptions import ConfigurationError
from pagestruct.options import LayoutOptions

logger = logging.getLogger(__name__)

__all__ = [
    "discover_config_file",
    "find_config_in_parents",
    "load_config_file",
    "load_config_with_priority",
    "load_options",
    "options_from_config",
]


def _load_pyproject_section(pyproject_path: Path) -> dict[str, Any]:
    """Load the [tool.pagestruct] section from pyproject.toml.

    Returns
    -------
    dict
        Configuration dictionary from the section, or empty dict if not found

    Raises
    ------
    ConfigurationError
        If pyproject.toml cannot be read or parsed, or the section is not a table

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in pyproject.toml {pyproject_path}: {e}", str(pyproject_path), e) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading pyproject.toml {pyproject_path}: {e}", str(pyproject_path), e) from e

    tool = data.get("tool")
    if not isinstance(tool, dict) or CONFIG_TOOL_NAME not in tool:
        return {}
    config = tool[CONFIG_TOOL_NAME]
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"[tool.{CONFIG_TOOL_NAME}] section in {pyproject_path} must be a table, got {type(config).__name__}",
            str(pyproject_path),
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching parent directories.

    Walks up from ``start_dir`` to the filesystem root. In each directory the
    dedicated config files are checked first, in the order of
    ``CONFIG_FILENAMES``, then ``pyproject.toml`` if it has a
    ``[tool.pagestruct]`` section.

    Parameters
    ----------
    start_dir : Path, optional
        Starting directory for search, defaults to current working directory

    Returns
    -------
    Path or None
        Path to first config file found, or None if not found

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ConfigurationError as e:
                # Unusable pyproject.toml, keep searching upwards
                logger.debug("Skipping %s: %s", pyproject_path, e.message)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def discover_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Discover a configuration file in standard locations.

    Searches ``start_dir`` and its parents first (see
    :func:`find_config_in_parents`), then the dedicated config files in the
    user's home directory.

    Returns
    -------
    Path or None
        Path to discovered config file, or None if not found

    """
    config_in_parents = find_config_in_parents(start_dir)
    if config_in_parents:
        return config_in_parents

    home = Path.home()
    for filename in CONFIG_FILENAMES:
        config_path = home / filename
        if config_path.is_file():
            return config_path

    return None


def _load_toml_config(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading TOML config {config_path}: {e}", str(config_path), e) from e
    return config


def _load_json_config(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading JSON config {config_path}: {e}", str(config_path), e) from e

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"JSON config file must contain an object, got {type(config).__name__}", str(config_path)
        )
    return config


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading YAML config {config_path}: {e}", str(config_path), e) from e

    # An empty YAML document loads as None
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"YAML config file must contain a mapping, got {type(config).__name__}", str(config_path)
        )
    return config


def load_config_file(config_path: Path | str) -> dict[str, Any]:
    """Load configuration from a TOML, YAML, JSON or pyproject.toml file.

    The format is chosen from the file name: ``pyproject.toml`` yields its
    ``[tool.pagestruct]`` section, other files are read by extension.

    Parameters
    ----------
    config_path : Path or str
        Path to the configuration file

    Returns
    -------
    dict
        Configuration dictionary loaded from file

    Raises
    ------
    ConfigurationError
        If the file does not exist, cannot be read or parsed, or has an
        unsupported extension

    Examples
    --------
    >>> config = load_config_file(".pagestruct.toml")
    >>> print(config.get("min_lines_per_column"))
    4

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file does not exist: {config_path}", str(config_path))

    if not config_path.is_file():
        raise ConfigurationError(f"Configuration path is not a file: {config_path}", str(config_path))

    filename = config_path.name.lower()
    ext = config_path.suffix.lower()

    if filename == "pyproject.toml":
        config = _load_pyproject_section(config_path)
    elif ext == ".toml":
        config = _load_toml_config(config_path)
    elif ext in (".yaml", ".yml"):
        config = _load_yaml_config(config_path)
    elif ext == ".json":
        config = _load_json_config(config_path)
    else:
        raise ConfigurationError(
            f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml", str(config_path)
        )

    logger.debug("Loaded %d option(s) from %s", len(config), config_path)
    return config


def load_config_with_priority(
    explicit_path: Optional[str | Path] = None, env_var_path: Optional[str] = None
) -> dict[str, Any]:
    """Load configuration with priority handling.

    Priority order (highest to lowest):
    1. Explicit config file path
    2. Path named by the ``PAGESTRUCT_CONFIG`` environment variable
    3. Auto-discovered config file

    Parameters
    ----------
    explicit_path : str or Path, optional
        Explicit config file path
    env_var_path : str, optional
        Config file path from the environment; read from
        ``PAGESTRUCT_CONFIG`` when omitted

    Returns
    -------
    dict
        Loaded configuration dictionary (empty dict if no config found)

    Raises
    ------
    ConfigurationError
        If a config file is specified but cannot be loaded

    """
    if explicit_path:
        return load_config_file(explicit_path)

    if env_var_path is None:
        env_var_path = os.environ.get(CONFIG_ENV_VAR)
    if env_var_path:
        return load_config_file(env_var_path)

    discovered_path = discover_config_file()
    if discovered_path:
        return load_config_file(discovered_path)

    return {}


def options_from_config(
    config: Mapping[str, Any], base: Optional[LayoutOptions] = None, config_path: Optional[str] = None
) -> LayoutOptions:
    """Build layout options from a configuration mapping.

    Parameters
    ----------
    config : Mapping[str, Any]
        Option values keyed by :class:`LayoutOptions` field name
    base : LayoutOptions, optional
        Options to update; defaults to ``LayoutOptions()``
    config_path : str, optional
        Source file, reported in errors

    Returns
    -------
    LayoutOptions
        Options with the configured values applied

    Raises
    ------
    ConfigurationError
        If the mapping carries unknown keys or out-of-range values

    Examples
    --------
    >>> options_from_config({"min_lines_per_column": 4}).min_lines_per_column
    4

    """
    base = base or LayoutOptions()
    known = set(base.field_names())
    unknown = sorted(key for key in config if key not in known)
    if unknown:
        raise ConfigurationError(
            f"Unknown option(s) in configuration: {', '.join(unknown)}. Valid options: {', '.join(sorted(known))}",
            config_path,
        )
    try:
        return base.create_updated(**config)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}", config_path, e) from e


def load_options(config_path: Optional[str | Path] = None) -> LayoutOptions:
    """Load :class:`LayoutOptions` from an explicit, environment or discovered config file.

    Returns default options when no configuration file is found.
    """
    config = load_config_with_priority(config_path)
    return options_from_config(config, config_path=str(config_path) if config_path else None)
