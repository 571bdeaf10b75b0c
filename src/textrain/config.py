from dataclasses import dataclass, field

LYRIC = """I never meant to cause you any sorrow
         I never meant to cause you any pain
         I only wanted one time to see you laughing
         I only wanted to see you
         Laughing in the purple rain
         Purple rain, purple rain
         I only want to see you
         Laughing in the purple rain"""


def _default_palette():
    # red, blue, green, yellow, cyan, purple
    return [
        (1.0, 0.0, 0.0),
        (0.0, 0.0, 1.0),
        (0.0, 1.0, 0.0),
        (1.0, 1.0, 0.0),
        (0.0, 1.0, 1.0),
        (1.0, 0.0, 1.0),
    ]


@dataclass
class AppConfig:
    # --- Debugging ---
    debug: bool = False  # Show the obstacle mask instead of the camera image

    # --- Logging ---
    log_level: str = "INFO"  # Minimum log level to output
    log_file: str | None = None  # Redirect logs to a file instead of the console

    # --- Window ---
    width: int = 1280  # Initial window width
    height: int = 720  # Initial window height
    dt_clamp: float = 0.05  # Maximum time delta fed to the simulation (in seconds)

    # --- Camera ---
    camera_index: int = 0  # Index of the camera to use (e.g., 0 for /dev/video0)
    camera_width: int = 640  # Requested capture width
    camera_height: int = 480  # Requested capture height
    fallback_video: str | None = None  # Video file used when no camera opens
    max_probe_devices: int = 4  # Camera indices probed when listing devices

    # --- Image ---
    threshold: float = 0.5  # Grayscale cut-off (0 to 1); darker pixels are obstacles

    # --- Spawning ---
    max_raindrops: int = 100  # Stop spawning words once this many raindrops exist
    spawn_interval: int = 5  # Frames counted between word spawns
    glyph_stride: float = 1.0 / 30.0  # Horizontal gap between letters of a word
    glyph_size: float = 0.08  # Side of a raindrop quad (in scene units)
    words: str = LYRIC  # Text the falling words are drawn from

    # --- Physics ---
    gravity: float = 0.01  # Added to the fall speed once per frame
    terminal_velocity: float = 1.0  # Fall speed at which gravity stops accumulating
    rise_speed: float = 0.01  # Upward speed of a blocked raindrop (scene units/s)
    escape_vy_increment: float = 0.0003  # Upward kick per escape step
    max_escape_steps: int = 10000  # Upper bound on escape steps per raindrop per frame
    probe_width: int = 10  # Pixels probed to each side below a blocked raindrop
    slide_speed: float = 0.07  # Sideways speed when sliding off an edge (scene units/s)
    spin_step: float = 0.1  # Rotation added per probe hit (radians)
    drift_step: float = 0.0001  # Horizontal velocity added per probe hit

    # --- Palette ---
    palette: list = field(default_factory=_default_palette)  # Colours for landed raindrops

    # --- Fonts ---
    font_path: str | None = None  # TrueType font for glyphs; searched for when unset
    font_px: int = 64  # Glyph raster size in pixels

    def set_threshold(self, value: float):
        """Set the threshold, clamping it into [0, 1]."""
        self.threshold = clamp_threshold(value)


def clamp_threshold(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
