from __future__ import annotations
from typing import Callable

import cv2

from .config import AppConfig
from .imageutils import PixelBuffer, from_array
from .logging import get_logger
from .profiler import get_profiler

DevicesChanged = Callable[[dict], None]


class VideoSource:
    """
    Camera or fallback video file, read one RGBA frame at a time.

    Source ids are camera indices (int) or the fallback video path (str).
    Listeners added with ``on_devices_changed`` receive a ``{label: id}``
    dictionary whenever ``list_devices`` finds a different set of sources.
    """

    def __init__(self, cfg: AppConfig):
        self.cfg = cfg
        self.logger = get_logger(__name__)
        self.profiler = get_profiler()
        self.cap = None
        self.current_source = None
        self.devices: dict = {}
        self._listeners: list[DevicesChanged] = []

        if not self.select(cfg.camera_index):
            if cfg.fallback_video is None or not self.select(cfg.fallback_video):
                raise RuntimeError("Cannot open video source")

    def on_devices_changed(self, callback: DevicesChanged):
        self._listeners.append(callback)

    def _open(self, source_id):
        cap = cv2.VideoCapture(source_id)
        if not cap.isOpened():
            cap.release()
            return None
        if isinstance(source_id, int):
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.camera_width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.camera_height)
        return cap

    def select(self, source_id) -> bool:
        """Switch to another camera index or video file; keeps the old one on failure."""
        cap = self._open(source_id)
        if cap is None:
            self.logger.warning(f"Could not open video source {source_id!r}")
            return False
        if self.cap is not None:
            self.cap.release()
        self.cap = cap
        self.current_source = source_id
        self.logger.info(f"Using video source {source_id!r}")
        return True

    def list_devices(self) -> dict:
        """Probe camera indices and notify listeners if the set of sources changed."""
        found = {}
        for index in range(self.cfg.max_probe_devices):
            if index == self.current_source:
                found[f"Camera {index}"] = index
                continue
            cap = cv2.VideoCapture(index)
            if cap.isOpened():
                found[f"Camera {index}"] = index
            cap.release()
        if self.cfg.fallback_video is not None:
            found[self.cfg.fallback_video] = self.cfg.fallback_video

        if found != self.devices:
            self.devices = found
            self.logger.info(f"Video sources: {', '.join(found) or 'none'}")
            for callback in self._listeners:
                callback(dict(found))
        return found

    def next_source(self) -> bool:
        """Cycle to the next listed source."""
        ids = list(self.list_devices().values())
        if not ids:
            return False
        if self.current_source in ids:
            nxt = ids[(ids.index(self.current_source) + 1) % len(ids)]
        else:
            nxt = ids[0]
        if nxt == self.current_source:
            return False
        return self.select(nxt)

    def get_current_frame(self) -> PixelBuffer | None:
        """Latest frame as RGBA, or None if the source has nothing to give yet."""
        if self.cap is None:
            return None
        with self.profiler.record("camera"):
            ok, frame = self.cap.read()
            if not ok and isinstance(self.current_source, str):
                # loop the fallback video
                self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
                ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        return from_array(cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA))

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
