from __future__ import annotations
import random
from dataclasses import dataclass

from .config import AppConfig
from .logging import get_logger

SPAWN_Y = 1.2  # Just above the top of the visible scene
FLOOR_Y = -1.2  # Raindrops below this are recycled
BLACK = (0.0, 0.0, 0.0)


@dataclass
class Raindrop:
    """One falling character and its simulation state."""

    glyph: str
    x: float = 0.0
    y: float = SPAWN_Y
    vx: float = 0.0
    vy: float = 0.0
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    blocked: bool = False
    color_assigned: bool = False
    color: tuple = BLACK


class RaindropStore:
    """
    Every raindrop spawned so far, in spawn order.

    Raindrops are never removed; recycling rewrites a record in place, so an
    index identifies the same raindrop for the whole run.
    """

    def __init__(self):
        self._drops: list[Raindrop] = []

    def add(self, drop: Raindrop) -> int:
        self._drops.append(drop)
        return len(self._drops) - 1

    def clear(self):
        self._drops.clear()

    def __len__(self):
        return len(self._drops)

    def __iter__(self):
        return iter(self._drops)

    def __getitem__(self, index: int) -> Raindrop:
        return self._drops[index]


def split_words(text: str) -> list[str]:
    """Split on single spaces the way the lyric is laid out; blanks are kept."""
    return [w.strip() for w in text.split(" ")]


def random_scene_x(rng: random.Random) -> float:
    return rng.randint(-100, 100) / 100.0


def recycle(drop: Raindrop, rng: random.Random):
    """Send a raindrop that fell off the bottom back to the top."""
    drop.y = SPAWN_Y
    drop.x = random_scene_x(rng)
    drop.color_assigned = False
    drop.color = BLACK


class RaindropSpawner:
    def __init__(self, cfg: AppConfig, rng: random.Random | None = None):
        self.cfg = cfg
        self.rng = rng if rng is not None else random.Random()
        self.words = split_words(cfg.words)
        if not any(self.words):
            raise ValueError("Word list has no non-empty words")
        self.frame_counter = 0
        self.logger = get_logger(__name__)

    def reset(self):
        self.frame_counter = 0

    def pick_word(self) -> str:
        word = ""
        while not word:
            word = self.words[self.rng.randint(0, len(self.words) - 1)]
        return word

    def spawn_word(self, store: RaindropStore) -> list[Raindrop]:
        """Drop one random word, one raindrop per character, left to right."""
        word = self.pick_word()
        base_x = random_scene_x(self.rng)
        drops = []
        for i, ch in enumerate(word):
            drop = Raindrop(glyph=ch, x=base_x + i * self.cfg.glyph_stride)
            store.add(drop)
            drops.append(drop)
        self.logger.debug(f"Spawned '{word}' at x={base_x:.2f} ({len(store)} raindrops)")
        return drops

    def step(self, store: RaindropStore) -> list[Raindrop]:
        """Advance the spawn clock by one frame; returns the raindrops created."""
        if len(store) >= self.cfg.max_raindrops:
            return []
        if self.frame_counter >= self.cfg.spawn_interval:
            self.frame_counter = 0
            return self.spawn_word(store)
        self.frame_counter += 1
        return []
