from __future__ import annotations
import random
from dataclasses import dataclass

from .config import AppConfig
from .imageutils import PixelBuffer, create_or_resize_if_needed, process_frame
from .logging import get_logger
from .physics import RainPhysics
from .profiler import get_profiler
from .raindrops import Raindrop, RaindropSpawner, RaindropStore


@dataclass
class RainFrame:
    """What the renderer needs for one frame."""

    image: PixelBuffer  # the mask in debug mode, the grayscale camera image otherwise
    raindrops: list[Raindrop]
    width: int
    height: int


class TextRain:
    """
    Owns the raindrops and the per-frame buffers, and runs one update per
    video frame: image pipeline, spawning, then physics against the new mask.
    """

    def __init__(
        self,
        cfg: AppConfig,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self.cfg = cfg
        self.rng = rng if rng is not None else random.Random(seed)
        self.logger = get_logger(__name__)
        self.profiler = get_profiler()
        self.store = RaindropStore()
        self.spawner = RaindropSpawner(cfg, self.rng)
        self.physics = RainPhysics(cfg, self.rng)
        self.display_image: PixelBuffer | None = None
        self.obstacle_image: PixelBuffer | None = None
        self.frames = 0

    def reset(self):
        """Remove every raindrop and restart the spawn clock."""
        self.store.clear()
        self.spawner.reset()
        self.logger.info("Raindrops cleared")

    def _ensure_buffers(self, width: int, height: int):
        old = self.display_image
        self.display_image = create_or_resize_if_needed(self.display_image, width, height)
        self.obstacle_image = create_or_resize_if_needed(self.obstacle_image, width, height)
        if self.display_image is not old:
            self.logger.info(f"Allocated {width}x{height} display and obstacle buffers")

    def update(self, frame: PixelBuffer | None, dt: float) -> RainFrame | None:
        """Advance one frame. Without a video frame nothing changes and None is returned."""
        if frame is None:
            self.logger.debug("No video frame yet; skipping update")
            return None

        self._ensure_buffers(frame.width, frame.height)

        with self.profiler.record("pipeline"):
            process_frame(frame, self.display_image, self.obstacle_image, self.cfg.threshold)

        with self.profiler.record("spawn"):
            self.spawner.step(self.store)

        with self.profiler.record("physics"):
            self.physics.step(self.store, self.obstacle_image, dt)

        self.frames += 1
        image = self.obstacle_image if self.cfg.debug else self.display_image
        return RainFrame(image, list(self.store), frame.width, frame.height)
