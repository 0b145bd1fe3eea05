"""Shared pytest fixtures for the MultiSpec test suite."""
import logging

import numpy as np
import pytest

from multispec.core.config import GlobalMergeConfig, set_current_global_config


@pytest.fixture(autouse=True)
def reset_global_config():
    """Each test starts without a thread-local global config."""
    set_current_global_config(GlobalMergeConfig, None)
    yield
    set_current_global_config(GlobalMergeConfig, None)


@pytest.fixture
def make_image():
    """Factory for (H, W, 3) uint8 BGR images."""

    def _make(width, height, blue=0, green=0, red=0):
        image = np.empty((height, width, 3), dtype=np.uint8)
        image[:, :, 0] = blue
        image[:, :, 1] = green
        image[:, :, 2] = red
        return image

    return _make


@pytest.fixture
def random_image():
    """Factory for reproducible random (H, W, 3) uint8 images."""
    rng = np.random.default_rng(1234)

    def _make(width, height):
        return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)

    return _make


@pytest.fixture
def quiet_logging():
    """Silence library logging for tests that exercise error paths."""
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)
