"""
Consolidated constants for MultiSpec.

This module defines the pixel layout, merge defaults and I/O constants shared
by the core and the I/O layer.
"""

from enum import Enum
from typing import Set


class Channel(Enum):
    """Byte position of each channel inside a 24-bit pixel."""
    BLUE = 0
    GREEN = 1
    RED = 2


# Pixel layout
BYTES_PER_PIXEL = 3

# Merge defaults
DEFAULT_SHIFT = 0
DEFAULT_ROWS_PER_TASK = 64

# I/O-related constants
DEFAULT_OUTPUT_EXTENSION = ".png"
OPENCV_EXTENSIONS: Set[str] = {".png", ".bmp", ".jpg", ".jpeg"}
TIFF_EXTENSIONS: Set[str] = {".tif", ".tiff"}

# Environment variables read by the configuration layer
ENV_NUM_WORKERS = "MULTISPEC_NUM_WORKERS"
ENV_CONFIG_FILE = "MULTISPEC_CONFIG"
