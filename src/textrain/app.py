from __future__ import annotations
import argparse
import shutil
import sys
import time

import glfw
import moderngl

from .config import AppConfig
from .logging import get_logger, log_settings, setup_logging
from .profiler import get_profiler
from .rain import TextRain
from .render import RainRenderer
from .video import VideoSource

THRESHOLD_STEP = 0.05


def build_config(args) -> AppConfig:
    cfg = AppConfig()
    if args.threshold is not None:
        cfg.set_threshold(args.threshold)
    if args.debug:
        cfg.debug = True
    if args.camera is not None:
        cfg.camera_index = args.camera
    if args.video is not None:
        cfg.fallback_video = args.video
    if args.max_raindrops is not None:
        cfg.max_raindrops = max(0, args.max_raindrops)
    if args.font is not None:
        cfg.font_path = args.font
    if args.log_file is not None:
        cfg.log_file = args.log_file
    if args.log_level is not None:
        cfg.log_level = args.log_level
    return cfg


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Text Rain")
    p.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Obstacle threshold (0-1); darker pixels block the rain. Default: from config.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Show the obstacle mask instead of the camera image.",
    )
    p.add_argument(
        "--camera",
        type=int,
        default=None,
        help="Camera index to open. Default: from config.",
    )
    p.add_argument(
        "--video",
        type=str,
        default=None,
        help="Fallback video file used when no camera can be opened.",
    )
    p.add_argument(
        "--max-raindrops",
        type=int,
        default=None,
        help="Stop spawning words once this many raindrops exist. Default: from config.",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for word, position and colour choices.",
    )
    p.add_argument(
        "--font",
        type=str,
        default=None,
        help="TrueType font used to draw the raindrops.",
    )
    p.add_argument(
        "--fullscreen",
        action="store_true",
        help="Open in fullscreen on the primary monitor.",
    )
    p.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log to a file instead of the console.",
    )
    p.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Minimum log level. Default: from config.",
    )
    p.set_defaults(debug=False)
    return p.parse_args(argv)


def _linux_gl_hint():
    if sys.platform.startswith("linux") and shutil.which("glxinfo") is None:
        return (
            "Linux OpenGL loaders not found.\n"
            "Install the dev libraries:\n"
            "  sudo apt install -y libgl1-mesa-dev libegl1-mesa-dev libglvnd-dev mesa-utils\n"
        )
    return None


def main(argv=None):
    args = parse_args(argv)
    cfg = build_config(args)

    setup_logging(cfg.log_level, cfg.log_file)
    logger = get_logger(__name__)
    log_settings(logger, cfg)

    video = VideoSource(cfg)
    video.on_devices_changed(
        lambda devices: logger.info(f"{len(devices)} video source(s) available")
    )
    video.list_devices()

    if not glfw.init():
        video.release()
        raise RuntimeError("GLFW init failed")
    glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
    glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
    glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
    glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)

    monitor = None
    if args.fullscreen:
        monitor = glfw.get_primary_monitor()
        mode = glfw.get_video_mode(monitor)
        cfg.width, cfg.height = mode.size.width, mode.size.height

    win = glfw.create_window(cfg.width, cfg.height, "Text Rain", monitor, None)
    glfw.make_context_current(win)

    try:
        ctx = moderngl.create_context()
    except Exception:
        logger.error(_linux_gl_hint() or "Failed to create ModernGL context.")
        video.release()
        glfw.terminate()
        raise

    rain = TextRain(cfg, seed=args.seed)
    renderer = RainRenderer(ctx, cfg)
    profiler = get_profiler()

    running = True
    prev_t = time.time()
    frame_count = 0
    log_interval = 1.0  # seconds
    time_since_log = 0.0

    logger.info(
        "SPACE pause  C clear  D toggle debug  UP/DOWN threshold  N next source  ESC quit"
    )

    try:
        while not glfw.window_should_close(win):
            with profiler.record("frame"):
                # --- Event handling ---
                glfw.poll_events()
                if glfw.get_key(win, glfw.KEY_ESCAPE) == glfw.PRESS:
                    break
                if glfw.get_key(win, glfw.KEY_SPACE) == glfw.PRESS:
                    running = not running
                    time.sleep(0.12)
                if glfw.get_key(win, glfw.KEY_C) == glfw.PRESS:
                    rain.reset()
                    time.sleep(0.12)
                if glfw.get_key(win, glfw.KEY_D) == glfw.PRESS:
                    cfg.debug = not cfg.debug
                    time.sleep(0.12)
                if glfw.get_key(win, glfw.KEY_UP) == glfw.PRESS:
                    cfg.set_threshold(cfg.threshold + THRESHOLD_STEP)
                    logger.info(f"Threshold: {cfg.threshold:.2f}")
                    time.sleep(0.12)
                if glfw.get_key(win, glfw.KEY_DOWN) == glfw.PRESS:
                    cfg.set_threshold(cfg.threshold - THRESHOLD_STEP)
                    logger.info(f"Threshold: {cfg.threshold:.2f}")
                    time.sleep(0.12)
                if glfw.get_key(win, glfw.KEY_N) == glfw.PRESS:
                    video.next_source()
                    time.sleep(0.12)

                # --- Time delta ---
                now = time.time()
                actual_dt = now - prev_t
                sim_dt = min(cfg.dt_clamp, actual_dt)
                prev_t = now

                if running:
                    frame = video.get_current_frame()
                    result = rain.update(frame, sim_dt)

                    if result is not None:
                        with profiler.record("render"):
                            ctx.screen.use()
                            renderer.clear()
                            renderer.render(result)

            # --- Performance logging ---
            frame_count += 1
            time_since_log += actual_dt
            if time_since_log >= log_interval:
                fps = frame_count / time_since_log
                frame_t_ms = (time_since_log / frame_count) * 1000.0
                logger.info(
                    f"FPS: {fps:.2f} | frame_t: {frame_t_ms:.2f}ms | raindrops: {len(rain.store)}"
                )
                profiler.log_stats()
                frame_count = 0
                time_since_log = 0.0

            glfw.swap_buffers(win)

    finally:
        video.release()
        glfw.terminate()
