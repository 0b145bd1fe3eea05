"""
Image buffer abstraction for 24-bit (blue, green, red) rasters.

An ImageBuffer owns or borrows a byte sequence together with its width,
height and row stride. All pixel access goes through explicit (row, column)
coordinates: pixel (x, y) lives at byte offset ``y * stride + x * 3``, so
row-alignment padding never leaks into pixel data.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from multispec.constants.constants import BYTES_PER_PIXEL, Channel
from multispec.core.exceptions import InvalidBufferError

logger = logging.getLogger(__name__)

BufferSource = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class Pixel:
    """A single 24-bit pixel."""
    blue: int
    green: int
    red: int


class ImageBuffer:
    """
    Bounds-checked view over a 3-byte-per-pixel raster.

    Args:
        data: Raw bytes, at least ``(height - 1) * stride + width * 3`` long
        width: Pixels per row
        height: Number of rows
        stride: Bytes per row. Defaults to ``width * 3`` (tightly packed)

    Raises:
        InvalidBufferError: If the dimensions, stride or data length are inconsistent
    """

    def __init__(self, data: BufferSource, width: int, height: int, stride: Optional[int] = None):
        if data is None:
            raise InvalidBufferError("Image data must not be None")
        _check_dimension("width", width)
        _check_dimension("height", height)

        row_bytes = width * BYTES_PER_PIXEL
        if stride is None:
            stride = row_bytes
        if not isinstance(stride, (int, np.integer)) or isinstance(stride, bool):
            raise InvalidBufferError(f"stride must be an integer, got {type(stride).__name__}")
        if stride < row_bytes:
            raise InvalidBufferError(
                f"stride {stride} is smaller than one row of pixels ({width} * {BYTES_PER_PIXEL} = {row_bytes})"
            )

        try:
            raw = memoryview(data).cast("B")
        except TypeError as e:
            raise InvalidBufferError(f"Image data must be a contiguous byte buffer: {e}") from e
        # The last row only needs its pixel bytes, not its padding
        required = (height - 1) * stride + row_bytes
        if raw.nbytes < required:
            raise InvalidBufferError(
                f"Buffer holds {raw.nbytes} bytes but {width}x{height} with stride {stride} needs {required}"
            )

        self._width = int(width)
        self._height = int(height)
        self._stride = int(stride)
        self._array = np.ndarray(
            shape=(self._height, self._width, BYTES_PER_PIXEL),
            dtype=np.uint8,
            buffer=raw,
            strides=(self._stride, BYTES_PER_PIXEL, 1),
        )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "ImageBuffer":
        """
        Wrap a (height, width, 3) uint8 array without copying when possible.

        Arrays whose pixels are not stored as consecutive (blue, green, red)
        bytes, or whose rows run backwards, are copied into packed form first.
        """
        if array is None:
            raise InvalidBufferError("Image array must not be None")
        if not isinstance(array, np.ndarray):
            raise InvalidBufferError(f"Expected a NumPy array, got {type(array).__name__}")
        if array.ndim != 3 or array.shape[2] != BYTES_PER_PIXEL:
            raise InvalidBufferError(
                f"Expected an array of shape (height, width, {BYTES_PER_PIXEL}), got {array.shape}"
            )
        if array.dtype != np.uint8:
            raise InvalidBufferError(f"Expected uint8 pixel data, got {array.dtype}")
        height, width = array.shape[:2]
        _check_dimension("width", width)
        _check_dimension("height", height)

        if array.strides[1:] != (BYTES_PER_PIXEL, 1) or array.strides[0] < width * BYTES_PER_PIXEL:
            array = np.ascontiguousarray(array)

        buffer = cls.__new__(cls)
        buffer._width = int(width)
        buffer._height = int(height)
        buffer._stride = int(array.strides[0])
        buffer._array = array
        return buffer

    @classmethod
    def zeros(cls, width: int, height: int) -> "ImageBuffer":
        """Allocate a tightly packed, all-black buffer."""
        _check_dimension("width", width)
        _check_dimension("height", height)
        return cls(bytearray(width * height * BYTES_PER_PIXEL), width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def stride(self) -> int:
        return self._stride

    @property
    def shape(self) -> tuple:
        return (self._height, self._width, BYTES_PER_PIXEL)

    @property
    def writable(self) -> bool:
        return bool(self._array.flags.writeable)

    def as_array(self, readonly: bool = False) -> np.ndarray:
        """
        Return a zero-copy (height, width, 3) view honouring the stride.

        Args:
            readonly: Return a view that cannot be written through, even when
                the underlying memory is writable.
        """
        view = self._array.view()
        if readonly:
            view.flags.writeable = False
        return view

    def channel(self, channel: Channel, readonly: bool = True) -> np.ndarray:
        """Zero-copy (height, width) view of a single channel."""
        return self.as_array(readonly=readonly)[:, :, channel.value]

    def pixel_at(self, x: int, y: int) -> Pixel:
        """
        Return the pixel at column x, row y.

        Raises:
            IndexError: If (x, y) lies outside the image
        """
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(f"Pixel ({x}, {y}) is outside a {self._width}x{self._height} image")
        blue, green, red = self._array[y, x]
        return Pixel(blue=int(blue), green=int(green), red=int(red))

    def tobytes(self) -> bytes:
        """Pixel data as tightly packed bytes (row padding removed)."""
        return self._array.tobytes()

    def copy(self) -> "ImageBuffer":
        """Deep, tightly packed copy."""
        return ImageBuffer.from_array(np.array(self._array, copy=True))

    def __repr__(self) -> str:
        return f"ImageBuffer(width={self._width}, height={self._height}, stride={self._stride})"


def _check_dimension(name: str, value) -> None:
    if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
        raise InvalidBufferError(f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise InvalidBufferError(f"{name} must be positive, got {value}")
