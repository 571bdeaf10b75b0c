import pytest

from textrain.config import AppConfig, clamp_threshold


def test_app_config_defaults():
    """Verify that AppConfig default values are set as expected."""
    cfg = AppConfig()

    assert cfg.width > 0 and cfg.height > 0
    assert cfg.dt_clamp > 0.0
    assert cfg.camera_index >= 0
    assert 0.0 <= cfg.threshold <= 1.0
    assert cfg.debug is False

    assert cfg.max_raindrops > 0
    assert cfg.spawn_interval >= 0
    assert cfg.words.strip()

    assert cfg.gravity > 0.0
    assert cfg.terminal_velocity > 0.0
    assert cfg.max_escape_steps > 0
    assert cfg.probe_width > 0
    assert len(cfg.palette) == 6
    assert all(len(c) == 3 for c in cfg.palette)


def test_palette_is_not_shared_between_configs():
    a, b = AppConfig(), AppConfig()
    a.palette.append((0.1, 0.2, 0.3))
    assert len(b.palette) == 6


@pytest.mark.parametrize("value,expected", [(-0.2, 0.0), (0.0, 0.0), (0.3, 0.3), (1.0, 1.0), (4.0, 1.0)])
def test_set_threshold_clamps(value, expected):
    cfg = AppConfig()
    cfg.set_threshold(value)
    assert cfg.threshold == expected
    assert clamp_threshold(value) == expected
