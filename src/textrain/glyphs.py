from __future__ import annotations
import os

import freetype
import numpy as np

from .logging import get_logger

FONT_CANDIDATES = [
    "fonts/FiraCode-SemiBold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono-Bold.ttf",
    "/Library/Fonts/Courier New Bold.ttf",
    "C:/Windows/Fonts/courbd.ttf",
]


class GlyphAtlas:
    """
    Rasterises single characters with FreeType, centred in a square
    ``px`` x ``px`` coverage bitmap, and caches them per character.
    Without a usable font every glyph is a solid block.
    """

    def __init__(self, font_path: str | None = None, px: int = 64):
        self.px = px
        self.logger = get_logger(__name__)
        self._cache: dict[str, np.ndarray] = {}
        self.face = None

        path = self._find_font_path(font_path)
        if path:
            try:
                self.face = freetype.Face(path)
                self.face.set_pixel_sizes(0, int(px * 0.8))
                self.logger.info(f"Loaded font: {path}")
            except Exception as e:
                self.logger.warning(f"Failed to load font '{path}': {e}")
                self.face = None
        else:
            self.logger.warning("No font found; raindrops will be drawn as blocks")

    def _find_font_path(self, font_path: str | None) -> str | None:
        candidates = [font_path] if font_path else FONT_CANDIDATES
        for path in candidates:
            if os.path.exists(path):
                return path
            self.logger.debug(f"Font not found at: {path}")
        return None

    def get(self, char: str) -> np.ndarray:
        bitmap = self._cache.get(char)
        if bitmap is None:
            bitmap = self._rasterise(char)
            self._cache[char] = bitmap
        return bitmap

    def _rasterise(self, char: str) -> np.ndarray:
        out = np.zeros((self.px, self.px), dtype=np.uint8)
        if self.face is None:
            out[:] = 255
            return out

        self.face.load_char(char, freetype.FT_LOAD_RENDER)
        bitmap = self.face.glyph.bitmap
        w, h = bitmap.width, bitmap.rows
        if w == 0 or h == 0:
            return out

        glyph = np.array(bitmap.buffer, dtype=np.uint8).reshape((h, bitmap.pitch))[:, :w]
        w, h = min(w, self.px), min(h, self.px)
        x0 = (self.px - w) // 2
        y0 = (self.px - h) // 2
        out[y0 : y0 + h, x0 : x0 + w] = glyph[:h, :w]
        return out
