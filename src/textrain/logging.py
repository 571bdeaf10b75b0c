import logging
import sys

ROOT_LOGGER = "textrain"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(log_level: str = "INFO", log_file: str | None = None):
    """
    Configures the root logger for Text Rain.

    Timestamps carry milliseconds so per-frame messages can be told apart.
    Python warnings (numpy, OpenCV bindings) are routed through logging too.

    Args:
        log_level: The minimum log level to output (e.g., "INFO", "DEBUG").
            Unknown names fall back to INFO.
        log_file: If provided, logs will be appended to this file. Otherwise,
            logs will be written to stdout.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Drop handlers from a previous call so reconfiguring never duplicates output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if log_file:
        handler = logging.FileHandler(log_file, mode="a")
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(handler)
    logging.captureWarnings(True)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Returns a logger under the ``textrain`` hierarchy.

    Args:
        name: Module name (typically __name__). Names outside the package are
            nested under ``textrain``; None gives the package logger itself.
    """
    if not name or name == "__main__":
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_settings(logger: logging.Logger, cfg) -> None:
    """Logs the settings a session starts with."""
    source = f"camera {cfg.camera_index}"
    if cfg.fallback_video:
        source += f" (fallback {cfg.fallback_video})"
    logger.info(
        f"Source: {source} at {cfg.camera_width}x{cfg.camera_height}, "
        f"threshold {cfg.threshold:.2f}, max raindrops {cfg.max_raindrops}"
    )
    logger.debug(
        f"Physics: gravity {cfg.gravity}, terminal {cfg.terminal_velocity}, "
        f"rise {cfg.rise_speed}, escape cap {cfg.max_escape_steps}"
    )
