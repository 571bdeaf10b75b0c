"""
Per-frame raindrop update: gravity, mask collisions, climbing out of
obstacles and sliding off their edges.

Gravity, damping and the escape kick are applied once per frame; only the
position deltas that come from speeds in scene units per second are scaled
by ``dt``. The feel of the rain therefore depends on the frame rate.
"""
from __future__ import annotations
import math
import random

import numpy as np

from .config import AppConfig
from .coords import in_visible_rect, scene_to_pixel, scene_y_to_row
from .imageutils import RED, PixelBuffer, is_obstacle
from .raindrops import FLOOR_Y, SPAWN_Y, RaindropStore, Raindrop, recycle

# Below this magnitude a velocity component counts as at rest.
REST_EPS = 0.001


class RainPhysics:
    def __init__(self, cfg: AppConfig, rng: random.Random | None = None):
        self.cfg = cfg
        self.rng = rng if rng is not None else random.Random()

    def step(self, store: RaindropStore, mask: PixelBuffer, dt: float):
        for drop in store:
            if not drop.blocked:
                self.fall(drop, dt)

        # Cells are looked up once, after the fall; the later passes all use them.
        cells = [scene_to_pixel(d.x, d.y, mask.width, mask.height) for d in store]

        for drop, cell in zip(store, cells):
            self.collide(drop, mask, cell)

        for drop, cell in zip(store, cells):
            if drop.blocked:
                self.escape(drop, mask, cell, dt)
                self.deflect(drop, mask, cell, dt)

    def fall(self, drop: Raindrop, dt: float):
        if drop.vy > -self.cfg.terminal_velocity:
            drop.vy -= self.cfg.gravity
        drop.scale_y = -drop.vy + 0.9 if drop.vy > -REST_EPS else 1.0
        drop.x += drop.vx
        drop.y = min(drop.y + drop.vy * dt, SPAWN_Y)
        if drop.y < FLOOR_Y:
            recycle(drop, self.rng)

    def collide(self, drop: Raindrop, mask: PixelBuffer, cell: tuple[int, int]):
        if in_visible_rect(drop.x, drop.y):
            if is_obstacle(mask, *cell):
                if drop.vy < -REST_EPS:
                    drop.vy = -drop.vy / 4.0
                if abs(drop.vx) > REST_EPS:
                    drop.vx = -drop.vx / 100.0
                drop.blocked = True
            else:
                drop.blocked = False
        if drop.y > 1.0:
            drop.blocked = False

    def escape(self, drop: Raindrop, mask: PixelBuffer, cell: tuple[int, int], dt: float):
        """
        Climb until the cell under the raindrop is clear or it reaches the top.

        The climb is a series of ``rise`` steps, each adding
        ``escape_vy_increment`` to ``vy``. Runs of dark rows are crossed in
        one jump by counting the steps needed to reach the next clear row.
        """
        cfg = self.cfg
        rise = cfg.rise_speed * dt
        drop.y = min(drop.y + rise, SPAWN_Y)
        col, row = cell
        steps = 0
        while (
            is_obstacle(mask, col, row)
            and drop.y < SPAWN_Y
            and steps < cfg.max_escape_steps
        ):
            n = cfg.max_escape_steps - steps
            if rise > 0.0:
                n = min(
                    n,
                    self._steps_to_clear_row(mask, col, row, drop.y, rise),
                    math.ceil((SPAWN_Y - drop.y) / rise),
                )
            drop.y = min(drop.y + n * rise, SPAWN_Y)
            drop.vy += n * cfg.escape_vy_increment
            row = scene_y_to_row(drop.y, mask.height)
            steps += n

    @staticmethod
    def _steps_to_clear_row(mask: PixelBuffer, col: int, row: int, y: float, rise: float) -> int:
        """Rise steps from ``y`` until the raindrop maps to the first clear row above ``row``."""
        above = mask.data[:row, col, RED]
        clear = np.flatnonzero(above != 0)
        # everything above the image counts as clear
        target = int(clear[-1]) if clear.size else -1
        clear_y = 2.0 * (mask.height - target) / mask.height - 1.0
        n = max(1, math.ceil((clear_y - y) / rise))
        if scene_y_to_row(y + n * rise, mask.height) > target:
            n += 1
        return n

    def deflect(self, drop: Raindrop, mask: PixelBuffer, cell: tuple[int, int], dt: float):
        """Colour a newly landed raindrop and nudge it away from obstacles below it."""
        cfg = self.cfg
        if not drop.color_assigned:
            drop.color = tuple(self.rng.choice(cfg.palette))
            drop.color_assigned = True

        col, row = cell
        shift = cfg.slide_speed * dt
        for j in range(cfg.probe_width):
            if col > 0 and is_obstacle(mask, col - j, row + 1):
                drop.x += shift
                drop.rotation -= cfg.spin_step
                drop.vx += cfg.drift_step
            if col < mask.width and is_obstacle(mask, col + j, row + 1):
                drop.x -= shift
                drop.rotation += cfg.spin_step
                drop.vx -= cfg.drift_step
