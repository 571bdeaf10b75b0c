import logging
import random

import numpy as np
import pytest

from textrain.config import AppConfig
from textrain.imageutils import from_array


@pytest.fixture(autouse=True)
def _reset_warning_capture():
    # setup_logging() turns on logging.captureWarnings; undo it after each test
    # so pytest's per-test warning capture cannot leave the hook stale.
    yield
    logging.captureWarnings(False)


@pytest.fixture(scope="module")
def ctx():
    moderngl = pytest.importorskip("moderngl")
    try:
        return moderngl.create_standalone_context()
    except Exception as e:
        pytest.skip(f"Could not create headless GL context: {e}")


@pytest.fixture
def small_cfg():
    # small, deterministic config for tests
    return AppConfig(
        width=200,
        height=200,
        max_raindrops=20,
        spawn_interval=2,
        words="rain",
    )


@pytest.fixture
def rng():
    return random.Random(1234)


def solid_mask(width, height, value=255):
    """RGBA buffer where every pixel is (value, value, value, 255)."""
    data = np.full((height, width, 4), value, dtype=np.uint8)
    data[..., 3] = 255
    return from_array(data)


def band_mask(width, height, top, bottom):
    """White mask with a black band over rows top..bottom inclusive."""
    mask = solid_mask(width, height)
    mask.data[top : bottom + 1, :, :3] = 0
    return mask
