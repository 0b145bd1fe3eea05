"""
XDG Base Directory Specification utilities for MultiSpec.

Provides standardized paths:
- Data: ~/.local/share/multispec/
- Logs: ~/.local/share/multispec/logs/
- Config: ~/.config/multispec/
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def get_multispec_data_dir() -> Path:
    """
    Get the MultiSpec data directory.

    Returns:
        Path to ~/.local/share/multispec/
    """
    data_dir = Path.home() / ".local" / "share" / "multispec"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_multispec_log_dir() -> Path:
    """
    Get the MultiSpec log directory.

    Returns:
        Path to ~/.local/share/multispec/logs/
    """
    log_dir = get_multispec_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_multispec_config_dir() -> Path:
    """
    Get the MultiSpec config directory. Not created; the config file is optional.

    Returns:
        Path to ~/.config/multispec/
    """
    return Path.home() / ".config" / "multispec"
