# multispec/io/disk.py
"""
Disk-based image backend.

Reads source captures into ImageBuffers and writes composites back to disk.
Every buffer produced here is 8-bit, 3 channels, in (blue, green, red) byte
order, which is the layout the merge engine expects.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Union

import cv2
import numpy as np
import tifffile

from multispec.constants.constants import BYTES_PER_PIXEL, OPENCV_EXTENSIONS, TIFF_EXTENSIONS
from multispec.core.buffer import ImageBuffer
from multispec.io.exceptions import ImageLoadError, ImageSaveError, UnsupportedFormatError

logger = logging.getLogger(__name__)


class FileFormatRegistry:
    def __init__(self):
        self._writers: Dict[str, Callable[[Path, np.ndarray], None]] = {}
        self._readers: Dict[str, Callable[[Path], np.ndarray]] = {}

    def register(self, ext: str, writer: Callable, reader: Callable):
        ext = ext.lower()
        self._writers[ext] = writer
        self._readers[ext] = reader

    def get_writer(self, ext: str) -> Callable:
        return self._writers[ext.lower()]

    def get_reader(self, ext: str) -> Callable:
        return self._readers[ext.lower()]

    def is_registered(self, ext: str) -> bool:
        return ext.lower() in self._writers and ext.lower() in self._readers


def to_bgr24(array: np.ndarray, rgb_order: bool = False) -> np.ndarray:
    """
    Normalise decoded pixel data to a (H, W, 3) uint8 array in BGR order.

    Grayscale is replicated into all three channels and a fourth (alpha)
    channel is dropped.

    Args:
        array: Decoded pixels, (H, W), (H, W, 1), (H, W, 3) or (H, W, 4)
        rgb_order: True if the colour channels are stored as R, G, B

    Raises:
        UnsupportedFormatError: For non-uint8 data or unexpected shapes
    """
    if array.dtype != np.uint8:
        raise UnsupportedFormatError(f"Only 8-bit images are supported, got {array.dtype}")

    if array.ndim == 2:
        return np.repeat(array[:, :, np.newaxis], BYTES_PER_PIXEL, axis=2)
    if array.ndim != 3:
        raise UnsupportedFormatError(f"Unsupported image shape {array.shape}")

    channels = array.shape[2]
    if channels == 1:
        return np.repeat(array, BYTES_PER_PIXEL, axis=2)
    if channels == 4:
        array = array[:, :, :3]
    elif channels != 3:
        raise UnsupportedFormatError(f"Unsupported channel count {channels}")

    if rgb_order:
        array = array[:, :, ::-1]
    return np.ascontiguousarray(array)


class DiskImageBackend:
    def __init__(self):
        self.format_registry = FileFormatRegistry()
        self._register_formats()

    def _register_formats(self):
        formats = [
            (OPENCV_EXTENSIONS, self._opencv_writer, self._opencv_reader),
            (TIFF_EXTENSIONS, self._tiff_writer, self._tiff_reader),
        ]

        for extensions, writer, reader in formats:
            for ext in extensions:
                self.format_registry.register(ext, writer, reader)

    # Format-specific writer/reader functions
    def _opencv_reader(self, path: Path) -> np.ndarray:
        # IMREAD_UNCHANGED keeps the bit depth so 16-bit files are rejected, not silently rescaled
        data = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if data is None:
            raise ImageLoadError(f"OpenCV could not decode {path}")
        return to_bgr24(data)

    def _opencv_writer(self, path: Path, data: np.ndarray) -> None:
        if not cv2.imwrite(str(path), np.ascontiguousarray(data)):
            raise ImageSaveError(f"OpenCV could not encode {path}")

    def _tiff_reader(self, path: Path) -> np.ndarray:
        return to_bgr24(tifffile.imread(path), rgb_order=True)

    def _tiff_writer(self, path: Path, data: np.ndarray) -> None:
        tifffile.imwrite(path, np.ascontiguousarray(data[:, :, ::-1]), photometric="rgb")

    def load(self, file_path: Union[str, Path]) -> ImageBuffer:
        """
        Load an image from disk as a tightly packed BGR ImageBuffer.

        Raises:
            UnsupportedFormatError: If the extension or pixel format is not handled
            ImageLoadError: If the file is missing or cannot be decoded
        """
        disk_path = Path(file_path)
        ext = disk_path.suffix.lower()
        if not self.format_registry.is_registered(ext):
            raise UnsupportedFormatError(f"No reader registered for extension '{ext}'")
        if not disk_path.is_file():
            raise ImageLoadError(f"Image file not found: {disk_path}")

        reader = self.format_registry.get_reader(ext)
        try:
            array = reader(disk_path)
        except (ImageLoadError, UnsupportedFormatError):
            raise
        except Exception as e:
            raise ImageLoadError(f"Error loading image from {disk_path}: {e}") from e

        logger.debug(f"Loaded {disk_path} as {array.shape[1]}x{array.shape[0]}")
        return ImageBuffer.from_array(array)

    def save(self, image: ImageBuffer, output_path: Union[str, Path], overwrite: bool = False) -> Path:
        """
        Write an ImageBuffer to disk; the format follows the file extension.

        Raises:
            UnsupportedFormatError: If no writer is registered for the extension
            ImageSaveError: If the file exists and overwrite is False, or encoding fails
        """
        disk_output_path = Path(output_path)
        ext = disk_output_path.suffix.lower()
        if not self.format_registry.is_registered(ext):
            raise UnsupportedFormatError(f"No writer registered for extension '{ext}'")
        if disk_output_path.exists() and not overwrite:
            raise ImageSaveError(f"Refusing to overwrite existing file {disk_output_path}")

        disk_output_path.parent.mkdir(parents=True, exist_ok=True)
        writer = self.format_registry.get_writer(ext)
        try:
            writer(disk_output_path, image.as_array())
        except ImageSaveError:
            raise
        except Exception as e:
            raise ImageSaveError(f"Error saving image to {disk_output_path}: {e}") from e

        logger.info(f"Saved {image.width}x{image.height} image to {disk_output_path}")
        return disk_output_path


_default_backend = None

def _get_backend() -> DiskImageBackend:
    global _default_backend
    if _default_backend is None:
        _default_backend = DiskImageBackend()
    return _default_backend


def load_image(file_path: Union[str, Path]) -> ImageBuffer:
    """Load an image file into a BGR ImageBuffer using the shared backend."""
    return _get_backend().load(file_path)


def save_image(image: ImageBuffer, output_path: Union[str, Path], overwrite: bool = False) -> Path:
    """Save an ImageBuffer using the shared backend."""
    return _get_backend().save(image, output_path, overwrite=overwrite)
