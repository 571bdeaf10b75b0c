"""
RGBA pixel buffers and the per-frame image pipeline.

Buffers are ``(height, width, 4)`` uint8 arrays, which is the same memory
layout as an interleaved RGBA byte array with row 0 at the top. Every
transform writes into a caller-owned destination so the app can reuse its
display and mask buffers from one frame to the next.
"""
from __future__ import annotations
from dataclasses import dataclass

import cv2
import numpy as np

RED, GREEN, BLUE, ALPHA = 0, 1, 2, 3

# What an out-of-range read reports: a white, fully transparent pixel.
BACKGROUND = (255, 255, 255, 0)


@dataclass
class PixelBuffer:
    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        if self.data.shape != (self.height, self.width, 4):
            raise ValueError(
                f"Pixel data has shape {self.data.shape}, "
                f"expected {(self.height, self.width, 4)}"
            )
        if self.data.dtype != np.uint8:
            raise ValueError(f"Pixel data must be uint8, got {self.data.dtype}")

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def pixel(self, col: int, row: int) -> tuple[int, int, int, int]:
        if not self.contains(col, row):
            return BACKGROUND
        r, g, b, a = self.data[row, col]
        return int(r), int(g), int(b), int(a)

    def contains(self, col: int, row: int) -> bool:
        return 0 <= col < self.width and 0 <= row < self.height

    def tobytes(self) -> bytes:
        return self.data.tobytes()


def create_blank(width: int, height: int) -> PixelBuffer:
    """New buffer with every byte set to 0 (black, fully transparent)."""
    return PixelBuffer(width, height, np.zeros((height, width, 4), dtype=np.uint8))


def create_or_resize_if_needed(
    image: PixelBuffer | None, width: int, height: int
) -> PixelBuffer:
    """Return ``image`` if it already is width x height, else a new blank buffer."""
    if image is None or image.width != width or image.height != height:
        return create_blank(width, height)
    return image


def from_array(array: np.ndarray) -> PixelBuffer:
    """Wrap an (H, W, 4) or (H, W, 3) uint8 array; RGB input gets opaque alpha."""
    if array.ndim != 3 or array.shape[2] not in (3, 4):
        raise ValueError(f"Expected an (H, W, 3|4) array, got shape {array.shape}")
    if array.shape[2] == 3:
        array = cv2.cvtColor(np.ascontiguousarray(array, dtype=np.uint8), cv2.COLOR_RGB2RGBA)
    data = np.ascontiguousarray(array, dtype=np.uint8)
    h, w = data.shape[:2]
    return PixelBuffer(w, h, data)


def clone(source: PixelBuffer) -> PixelBuffer:
    return PixelBuffer(source.width, source.height, source.data.copy())


def copy_pixels(source: PixelBuffer, dest: PixelBuffer):
    _check_same_size(source, dest)
    np.copyto(dest.data, source.data)


def _check_same_size(source: PixelBuffer, dest: PixelBuffer):
    if source.size != dest.size:
        raise ValueError(
            f"Size mismatch: source is {source.width}x{source.height}, "
            f"destination is {dest.width}x{dest.height}"
        )


# --- channel accessors ---


def _channel(image: PixelBuffer, col: int, row: int, channel: int) -> int:
    if not image.contains(col, row):
        return BACKGROUND[channel]
    return int(image.data[row, col, channel])


def get_red(image: PixelBuffer, col: int, row: int) -> int:
    return _channel(image, col, row, RED)


def get_green(image: PixelBuffer, col: int, row: int) -> int:
    return _channel(image, col, row, GREEN)


def get_blue(image: PixelBuffer, col: int, row: int) -> int:
    return _channel(image, col, row, BLUE)


def get_alpha(image: PixelBuffer, col: int, row: int) -> int:
    return _channel(image, col, row, ALPHA)


def is_obstacle(mask: PixelBuffer, col: int, row: int) -> bool:
    """True when the mask pixel is dark; pixels outside the mask never are."""
    return get_red(mask, col, row) == 0


# --- pipeline ---


def mirror(source: PixelBuffer, dest: PixelBuffer):
    """Flip left to right. ``source`` and ``dest`` may be the same buffer."""
    _check_same_size(source, dest)
    np.copyto(dest.data, cv2.flip(source.data, 1))


def convert_to_grayscale(source: PixelBuffer, dest: PixelBuffer):
    """Unweighted mean of R, G and B, rounded; alpha is passed through."""
    _check_same_size(source, dest)
    rgb = source.data[..., :3].astype(np.uint16)
    gray = np.clip(np.rint(rgb.sum(axis=2) / 3.0), 0, 255).astype(np.uint8)
    alpha = source.data[..., ALPHA].copy()
    dest.data[..., RED] = gray
    dest.data[..., GREEN] = gray
    dest.data[..., BLUE] = gray
    dest.data[..., ALPHA] = alpha


def convert_to_grayscale_in_place(image: PixelBuffer):
    convert_to_grayscale(image, image)


def threshold(source: PixelBuffer, dest: PixelBuffer, threshold: float):
    """
    Binarise a grayscale image on its red channel.

    Pixels with ``red >= threshold * 255`` become white, the rest black.
    The threshold is clamped into [0, 1]; alpha is passed through.
    """
    _check_same_size(source, dest)
    t = max(0.0, min(1.0, float(threshold)))
    light = source.data[..., RED] >= t * 255.0
    value = np.where(light, 255, 0).astype(np.uint8)
    alpha = source.data[..., ALPHA].copy()
    dest.data[..., RED] = value
    dest.data[..., GREEN] = value
    dest.data[..., BLUE] = value
    dest.data[..., ALPHA] = alpha


def process_frame(
    frame: PixelBuffer, display: PixelBuffer, mask: PixelBuffer, t: float
):
    """
    Mirror ``frame`` into ``display``, turn ``display`` gray in place and
    threshold it into ``mask``. ``display`` keeps the grayscale image.
    """
    mirror(frame, display)
    convert_to_grayscale_in_place(display)
    threshold(display, mask, t)
