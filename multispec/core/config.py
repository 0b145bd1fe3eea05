"""
Global configuration dataclasses for MultiSpec.

This module defines the configuration objects used by the merge engine and the
I/O layer, and the loader for the optional user YAML file.
Configuration is intended to be immutable and provided as Python objects.
"""

import dataclasses
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

import yaml

from multispec.constants.constants import (DEFAULT_OUTPUT_EXTENSION, DEFAULT_ROWS_PER_TASK,
                                           DEFAULT_SHIFT, ENV_CONFIG_FILE, ENV_NUM_WORKERS)
from multispec.core.exceptions import ConfigurationError
from multispec.core.xdg_paths import get_multispec_config_dir

logger = logging.getLogger(__name__)


def _default_num_workers() -> int:
    env_value = os.getenv(ENV_NUM_WORKERS)
    if env_value:
        try:
            return max(1, int(env_value))
        except ValueError:
            logger.warning(f"Ignoring non-integer {ENV_NUM_WORKERS}={env_value!r}")
    return os.cpu_count() or 1


@dataclass(frozen=True)
class MergeConfig:
    """Configuration for the parallel merge engine."""
    num_workers: int = field(default_factory=_default_num_workers)
    """Number of worker threads used for a single merge. Reads MULTISPEC_NUM_WORKERS when set."""

    rows_per_task: int = DEFAULT_ROWS_PER_TASK
    """Height of each row band handed to a worker. Bands never overlap."""

    def __post_init__(self):
        for name in ("num_workers", "rows_per_task"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {value}")


@dataclass(frozen=True)
class IOConfig:
    """Configuration for reading source captures and writing composites."""
    output_extension: str = DEFAULT_OUTPUT_EXTENSION
    """Extension used when the output path has none."""

    overwrite: bool = False
    """Replace an existing output file instead of failing."""


@dataclass(frozen=True)
class GlobalMergeConfig:
    """
    Root configuration object for a MultiSpec session.
    This object is intended to be instantiated at application startup and treated as immutable.
    """
    merge: MergeConfig = field(default_factory=MergeConfig)
    """Configuration for the merge engine."""

    io: IOConfig = field(default_factory=IOConfig)
    """Configuration for image I/O."""

    default_shift: int = DEFAULT_SHIFT
    """Row shift applied when the caller does not pass one (sensor calibration)."""


# Generic thread-local storage for any global config type
_global_config_contexts: Dict[Type, threading.local] = {}

def set_current_global_config(config_type: Type, config_instance: Any) -> None:
    """Set current global config for any dataclass type."""
    if config_type not in _global_config_contexts:
        _global_config_contexts[config_type] = threading.local()
    _global_config_contexts[config_type].value = config_instance

def get_current_global_config(config_type: Type) -> Optional[Any]:
    """Get current global config for any dataclass type."""
    context = _global_config_contexts.get(config_type)
    return getattr(context, 'value', None) if context else None


def get_default_global_config() -> GlobalMergeConfig:
    """
    Provides a default instance of GlobalMergeConfig.

    Used whenever no configuration was set for the current thread or loaded
    from disk, so the engine always runs with sensible defaults.
    """
    logger.debug("Initializing with default GlobalMergeConfig.")
    return GlobalMergeConfig()


def get_default_config_path() -> Path:
    """Location of the user config file; MULTISPEC_CONFIG overrides it."""
    env_path = os.getenv(ENV_CONFIG_FILE)
    if env_path:
        return Path(env_path)
    return get_multispec_config_dir() / "global_config.yaml"


def load_global_config(config_file: Optional[Union[str, Path]] = None) -> GlobalMergeConfig:
    """
    Load configuration from a YAML file, merged over the defaults.

    A missing, unreadable, empty or malformed file is not fatal: a warning is logged and
    the defaults are returned.

    Args:
        config_file: Path to the YAML file. Defaults to get_default_config_path().

    Returns:
        The resulting GlobalMergeConfig
    """
    config_path = Path(config_file) if config_file is not None else get_default_config_path()

    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return get_default_global_config()

    logger.info(f"Attempting to load user-defined GlobalMergeConfig from {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning(f"Error parsing YAML from {config_path}: {e}. Using default config.")
        return get_default_global_config()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Error reading config file {config_path}: {e}. Using default config.")
        return get_default_global_config()

    if not loaded_data or not isinstance(loaded_data, dict):
        logger.warning(f"Config file {config_path} is empty or not a mapping. Using default config.")
        return get_default_global_config()

    try:
        config = _construct_config_from_data(loaded_data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Error constructing GlobalMergeConfig from {config_path}: {e}. Using default config.")
        return get_default_global_config()

    logger.info("Successfully loaded user-defined GlobalMergeConfig.")
    return config


def _construct_config_from_data(loaded_data: Dict[str, Any]) -> GlobalMergeConfig:
    """Construct configuration from loaded data."""
    data = dict(loaded_data)
    merge_data = data.pop('merge', None) or {}
    io_data = data.pop('io', None) or {}

    # Only apply keys the user actually set so default factories still run
    merge_config = MergeConfig(**merge_data)
    io_config = dataclasses.replace(IOConfig(), **io_data)

    default_shift = data.pop('default_shift', DEFAULT_SHIFT)
    if not isinstance(default_shift, int) or isinstance(default_shift, bool):
        raise TypeError(f"default_shift must be an integer, got {default_shift!r}")

    if data:
        raise TypeError(f"Unknown configuration keys: {sorted(data)}")

    return GlobalMergeConfig(merge=merge_config, io=io_config, default_shift=default_shift)
