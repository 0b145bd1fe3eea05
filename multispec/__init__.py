"""
MultiSpec: white-light / ultraviolet composite imaging.

This module provides the public API for MultiSpec. It re-exports the merge
entry points and buffer type and does NOT import the I/O layer, so that
callers who only need the merge engine do not pull in OpenCV or tifffile.
"""

import logging

__version__ = "0.1.0"

# Monkey patch logging.FileHandler to default to UTF-8 encoding
_original_file_handler_init = logging.FileHandler.__init__

def _utf8_file_handler_init(self, filename, mode='a', encoding='utf-8', delay=False, errors=None):
    """FileHandler.__init__ with UTF-8 encoding as default."""
    return _original_file_handler_init(self, filename, mode, encoding, delay, errors)

logging.FileHandler.__init__ = _utf8_file_handler_init

# Set up basic logging configuration if none exists
def _ensure_basic_logging():
    """Ensure basic logging is configured if no configuration exists."""
    root_logger = logging.getLogger()

    # Only configure if no handlers exist and level is too high
    if not root_logger.handlers and root_logger.level > logging.INFO:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

# Configure basic logging on import
_ensure_basic_logging()

from multispec.core.buffer import ImageBuffer, Pixel  # noqa: E402
from multispec.core.merge import MergeEngine, merge, merge_arrays  # noqa: E402

__all__ = [
    # Core functions
    "merge",
    "merge_arrays",

    # Key types
    "ImageBuffer",
    "MergeEngine",
    "Pixel",
]
