"""
Merge engine: white-light + ultraviolet composite.

The white-light capture supplies the composite's blue channel and the UV
capture supplies its green channel; red is always 0. Because the two sensors
are physically offset, one capture is read ``shift`` rows earlier than the
other:

- ``shift >= 0``: green = uv[r].blue, blue = white[r - shift].blue (0 for r < shift)
- ``shift < 0``:  blue = white[r].blue, green = uv[r - |shift|].blue (0 for r < |shift|)

The composite is ``min(width) x min(height)`` of the two inputs; both inputs
are read from their top-left corner.

Parallel execution
------------------
The composite rows are split into disjoint bands and each band is filled by
one worker of a ThreadPoolExecutor. A worker reads only from the two input
views, which are read-only for the duration of the call, and writes only
rows inside its own band. No two bands share an output row and there is no
shared accumulator, so the workers need no locking.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
from typing import List, Optional, Tuple, Union

import numpy as np

from multispec.constants.constants import Channel
from multispec.core.buffer import ImageBuffer
from multispec.core.config import (GlobalMergeConfig, MergeConfig,
                                   get_current_global_config, get_default_global_config)
from multispec.core.exceptions import (InvalidBufferError, InvalidShiftError,
                                       MergeCancelledError, MergeExecutionError)

logger = logging.getLogger(__name__)

BLUE = Channel.BLUE.value
GREEN = Channel.GREEN.value
RED = Channel.RED.value

ImageLike = Union[ImageBuffer, np.ndarray]


def _as_buffer(image: ImageLike, name: str) -> ImageBuffer:
    """Accept an ImageBuffer or a (H, W, 3) uint8 array; reject anything else."""
    if image is None:
        raise InvalidBufferError(f"{name} image must not be None")
    if isinstance(image, ImageBuffer):
        return image
    if isinstance(image, np.ndarray):
        try:
            return ImageBuffer.from_array(image)
        except InvalidBufferError as e:
            raise InvalidBufferError(f"{name} image: {e}") from e
    raise InvalidBufferError(f"{name} image must be an ImageBuffer or NumPy array, got {type(image).__name__}")


def _validate_shift(shift, height: int) -> int:
    if isinstance(shift, bool) or not isinstance(shift, (int, np.integer)):
        raise InvalidShiftError(shift, height, "shift must be an integer number of rows")
    shift = int(shift)
    if abs(shift) >= height:
        raise InvalidShiftError(shift, height, "|shift| must be smaller than the composite height")
    return shift


def partition_rows(height: int, rows_per_task: int) -> List[Tuple[int, int]]:
    """
    Split ``[0, height)`` into consecutive half-open row bands.

    Bands are disjoint and cover every row exactly once.
    """
    if rows_per_task < 1:
        raise ValueError(f"rows_per_task must be >= 1, got {rows_per_task}")
    return [(start, min(start + rows_per_task, height)) for start in range(0, height, rows_per_task)]


def _merge_band(
    white_blue: np.ndarray,
    uv_blue: np.ndarray,
    out: np.ndarray,
    shift: int,
    row_start: int,
    row_stop: int,
    cancel_event: Optional[threading.Event] = None,
) -> int:
    """
    Fill composite rows ``[row_start, row_stop)``.

    Args:
        white_blue: (H, W) read-only view of the white capture's blue channel
        uv_blue: (H, W) read-only view of the UV capture's blue channel
        out: (H, W, 3) composite; only rows inside the band are written
        shift: Validated row shift, ``|shift| < H``
        row_start: First row of the band
        row_stop: One past the last row of the band
        cancel_event: Checked once before the band is written

    Returns:
        Number of rows written
    """
    if cancel_event is not None and cancel_event.is_set():
        raise MergeCancelledError(f"Merge cancelled before rows [{row_start}, {row_stop})")

    band = out[row_start:row_stop]
    offset = abs(shift)
    # Rows of this band still inside the zero-filled top margin
    split = min(max(offset, row_start), row_stop)

    if shift >= 0:
        band[:, :, GREEN] = uv_blue[row_start:row_stop]
        out[row_start:split, :, BLUE] = 0
        out[split:row_stop, :, BLUE] = white_blue[split - offset:row_stop - offset]
    else:
        band[:, :, BLUE] = white_blue[row_start:row_stop]
        out[row_start:split, :, GREEN] = 0
        out[split:row_stop, :, GREEN] = uv_blue[split - offset:row_stop - offset]

    band[:, :, RED] = 0
    return row_stop - row_start


class MergeEngine:
    """
    Reusable merge engine bound to a MergeConfig.

    Args:
        config: Worker count and band height. Defaults to the current global config.
        cancel_event: Optional event; when set, pending bands abort the merge
            with MergeCancelledError.
    """

    def __init__(self, config: Optional[MergeConfig] = None,
                 cancel_event: Optional[threading.Event] = None):
        self.config = config if config is not None else _current_config().merge
        self.cancel_event = cancel_event

    def merge(self, white: ImageLike, uv: ImageLike, shift: int) -> ImageBuffer:
        """
        Compose the white-light and UV captures into a new composite buffer.

        Args:
            white: White-light capture
            uv: Ultraviolet capture
            shift: Signed row shift between the two sensors

        Returns:
            A new, fully written ImageBuffer of size min(width) x min(height)

        Raises:
            InvalidBufferError: If either input is missing or malformed
            InvalidShiftError: If |shift| is not smaller than the composite height
            MergeCancelledError: If the cancel event was set during the merge
            MergeExecutionError: If any band failed; no composite is returned
        """
        white_buf = _as_buffer(white, "white")
        uv_buf = _as_buffer(uv, "uv")

        width = min(white_buf.width, uv_buf.width)
        height = min(white_buf.height, uv_buf.height)
        if (white_buf.width, white_buf.height) != (uv_buf.width, uv_buf.height):
            logger.debug(
                f"Dimension mismatch: white {white_buf.width}x{white_buf.height}, "
                f"uv {uv_buf.width}x{uv_buf.height}; clipping to {width}x{height}"
            )
        shift = _validate_shift(shift, height)

        white_blue = white_buf.channel(Channel.BLUE)[:height, :width]
        uv_blue = uv_buf.channel(Channel.BLUE)[:height, :width]

        composite = ImageBuffer.zeros(width, height)
        out = composite.as_array()

        bands = partition_rows(height, self.config.rows_per_task)
        max_workers = min(self.config.num_workers, len(bands))
        logger.info(
            f"Merging {width}x{height} composite with shift={shift}: "
            f"{len(bands)} bands on {max_workers} workers"
        )

        self._run_bands(white_blue, uv_blue, out, shift, bands, max_workers)
        return composite

    def _run_bands(self, white_blue, uv_blue, out, shift, bands, max_workers) -> None:
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="multispec-merge"
        )
        with executor:
            future_to_band = {
                executor.submit(_merge_band, white_blue, uv_blue, out, shift,
                                row_start, row_stop, self.cancel_event): (row_start, row_stop)
                for row_start, row_stop in bands
            }

            for future in concurrent.futures.as_completed(future_to_band):
                row_start, row_stop = future_to_band[future]
                try:
                    future.result()
                    logger.debug(f"Band [{row_start}, {row_stop}) done")
                except MergeCancelledError:
                    logger.warning("Merge cancelled, discarding composite")
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise
                except Exception as exc:
                    logger.error(f"Band [{row_start}, {row_stop}) failed: {exc}", exc_info=True)
                    # FAIL-FAST: drop queued bands, the composite is never returned
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise MergeExecutionError(row_start, row_stop, str(exc)) from exc


def _current_config() -> GlobalMergeConfig:
    return get_current_global_config(GlobalMergeConfig) or get_default_global_config()


def merge(white: ImageLike, uv: ImageLike, shift: Optional[int] = None,
          config: Optional[MergeConfig] = None) -> ImageBuffer:
    """
    Compose a white-light and a UV capture into one (blue, green, red) buffer.

    ``shift`` defaults to the ``default_shift`` of the current global config.
    See MergeEngine.merge for the full contract.
    """
    if shift is None:
        shift = _current_config().default_shift
    return MergeEngine(config).merge(white, uv, shift)


def merge_arrays(white: np.ndarray, uv: np.ndarray, shift: Optional[int] = None,
                 config: Optional[MergeConfig] = None) -> np.ndarray:
    """Array-in, array-out variant of merge; returns a (H, W, 3) uint8 array."""
    return merge(white, uv, shift, config).as_array()
