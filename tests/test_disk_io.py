"""
Tests for loading source captures and saving composites on disk.
"""
import cv2
import numpy as np
import pytest
import tifffile

from multispec.core.buffer import ImageBuffer, Pixel
from multispec.io.disk import DiskImageBackend, load_image, save_image, to_bgr24
from multispec.io.exceptions import ImageLoadError, ImageSaveError, UnsupportedFormatError


@pytest.fixture
def backend():
    return DiskImageBackend()


def test_png_is_loaded_in_bgr_order(tmp_path, backend):
    image = np.zeros((2, 3, 3), dtype=np.uint8)
    image[:, :, 0] = 200  # blue in OpenCV order
    path = tmp_path / "white.png"
    cv2.imwrite(str(path), image)

    buffer = backend.load(path)

    assert (buffer.width, buffer.height) == (3, 2)
    assert buffer.pixel_at(1, 1) == Pixel(blue=200, green=0, red=0)


def test_tiff_is_reordered_to_bgr(tmp_path, backend):
    rgb = np.zeros((2, 2, 3), dtype=np.uint8)
    rgb[:, :, 2] = 50  # blue in RGB order
    path = tmp_path / "uv.tif"
    tifffile.imwrite(path, rgb, photometric="rgb")

    buffer = backend.load(path)

    assert buffer.pixel_at(0, 0) == Pixel(blue=50, green=0, red=0)


def test_tiff_written_as_rgb(tmp_path, backend):
    composite = ImageBuffer.from_array(np.full((2, 2, 3), (10, 20, 0), dtype=np.uint8))
    path = backend.save(composite, tmp_path / "composite.tiff")

    rgb = tifffile.imread(path)

    np.testing.assert_array_equal(rgb[0, 0], [0, 20, 10])


def test_saved_png_reloads_identically(tmp_path):
    rng = np.random.default_rng(3)
    composite = ImageBuffer.from_array(rng.integers(0, 256, size=(5, 4, 3), dtype=np.uint8))

    path = save_image(composite, tmp_path / "out" / "composite.png")

    assert path.exists()
    np.testing.assert_array_equal(load_image(path).as_array(), composite.as_array())


def test_save_padded_buffer(tmp_path, backend):
    raw = bytes([1, 2, 3, 0, 4, 5, 6, 0])
    padded = ImageBuffer(raw, width=1, height=2, stride=4)

    path = backend.save(padded, tmp_path / "padded.png")

    np.testing.assert_array_equal(cv2.imread(str(path)).reshape(-1), [1, 2, 3, 4, 5, 6])


def test_grayscale_is_replicated(tmp_path, backend):
    path = tmp_path / "gray.png"
    cv2.imwrite(str(path), np.full((3, 3), 77, dtype=np.uint8))

    assert backend.load(path).pixel_at(2, 2) == Pixel(blue=77, green=77, red=77)


def test_to_bgr24_drops_alpha():
    bgra = np.zeros((1, 1, 4), dtype=np.uint8)
    bgra[0, 0] = (1, 2, 3, 255)

    np.testing.assert_array_equal(to_bgr24(bgra)[0, 0], [1, 2, 3])


@pytest.mark.parametrize("array", [
    np.zeros((2, 2, 3), dtype=np.uint16),
    np.zeros((2, 2, 2), dtype=np.uint8),
    np.zeros((2, 2, 3, 1), dtype=np.uint8),
])
def test_to_bgr24_rejects_unsupported_pixels(array):
    with pytest.raises(UnsupportedFormatError):
        to_bgr24(array)


def test_sixteen_bit_file_rejected(tmp_path, backend):
    path = tmp_path / "deep.png"
    cv2.imwrite(str(path), np.zeros((2, 2, 3), dtype=np.uint16))

    with pytest.raises(UnsupportedFormatError):
        backend.load(path)


def test_missing_file(tmp_path, backend):
    with pytest.raises(ImageLoadError, match="not found"):
        backend.load(tmp_path / "absent.png")


def test_undecodable_file(tmp_path, backend):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not a png")

    with pytest.raises(ImageLoadError):
        backend.load(path)


@pytest.mark.parametrize("name", ["capture.gif", "capture"])
def test_unknown_extension(tmp_path, backend, name):
    with pytest.raises(UnsupportedFormatError):
        backend.load(tmp_path / name)
    with pytest.raises(UnsupportedFormatError):
        backend.save(ImageBuffer.zeros(1, 1), tmp_path / name)


def test_existing_output_needs_overwrite(tmp_path, backend):
    path = tmp_path / "composite.png"
    backend.save(ImageBuffer.zeros(2, 2), path)

    with pytest.raises(ImageSaveError, match="overwrite"):
        backend.save(ImageBuffer.zeros(2, 2), path)

    backend.save(ImageBuffer.from_array(np.full((2, 2, 3), 9, dtype=np.uint8)), path, overwrite=True)
    assert backend.load(path).pixel_at(0, 0).blue == 9
