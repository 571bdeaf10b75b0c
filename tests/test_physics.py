import random
from unittest.mock import patch

import pytest

from textrain.config import AppConfig
from textrain.coords import scene_y_to_row
from textrain.physics import RainPhysics
from textrain.raindrops import SPAWN_Y, Raindrop, RaindropStore

from conftest import band_mask, solid_mask

DT = 1.0 / 60.0


@pytest.fixture
def physics():
    return RainPhysics(AppConfig(), random.Random(5))


def store_with(*drops):
    store = RaindropStore()
    for d in drops:
        store.add(d)
    return store


def test_fall_applies_gravity_once_per_frame(physics):
    drop = Raindrop(glyph="a", x=0.1, y=0.5, vx=0.002)
    physics.fall(drop, DT)
    assert drop.vy == pytest.approx(-0.01)
    assert drop.y == pytest.approx(0.5 - 0.01 * DT)
    # horizontal drift is not scaled by dt
    assert drop.x == pytest.approx(0.102)
    assert drop.scale_y == 1.0


def test_fall_stretches_rising_raindrops(physics):
    drop = Raindrop(glyph="a", y=0.0, vy=0.2)
    physics.fall(drop, DT)
    assert drop.vy == pytest.approx(0.19)
    assert drop.scale_y == pytest.approx(-0.19 + 0.9)


def test_fall_stops_accelerating_at_terminal_velocity(physics):
    drop = Raindrop(glyph="a", y=1.0)
    for _ in range(500):
        before = drop.vy
        physics.fall(drop, 0.0)
        assert drop.vy <= before
    assert -1.0 - 0.01 - 1e-9 <= drop.vy <= -1.0 + 1e-9


def test_fall_recycles_below_the_floor(physics):
    drop = Raindrop(glyph="a", x=0.4, y=-1.19, vy=-1.0)
    drop.color = (0.0, 1.0, 0.0)
    drop.color_assigned = True
    physics.fall(drop, 0.1)
    assert drop.y == SPAWN_Y
    assert not drop.color_assigned
    assert drop.vy == pytest.approx(-1.0)


def test_collide_blocks_on_dark_pixel_and_bounces(physics):
    mask = solid_mask(10, 10, value=0)
    drop = Raindrop(glyph="a", x=0.0, y=0.0, vx=0.05, vy=-0.8)
    physics.collide(drop, mask, (5, 5))
    assert drop.blocked
    assert drop.vy == pytest.approx(0.2)
    assert drop.vx == pytest.approx(-0.0005)


def test_collide_leaves_slow_raindrops_alone(physics):
    mask = solid_mask(10, 10, value=0)
    drop = Raindrop(glyph="a", x=0.0, y=0.0, vx=0.0005, vy=-0.0005)
    physics.collide(drop, mask, (5, 5))
    assert drop.blocked
    assert drop.vy == -0.0005
    assert drop.vx == 0.0005


def test_collide_unblocks_on_light_pixel(physics):
    mask = solid_mask(10, 10)
    drop = Raindrop(glyph="a", x=0.0, y=0.0, blocked=True)
    physics.collide(drop, mask, (5, 5))
    assert not drop.blocked


def test_collide_ignores_raindrops_outside_the_screen(physics):
    mask = solid_mask(10, 10, value=0)
    drop = Raindrop(glyph="a", x=1.0, y=0.0)
    physics.collide(drop, mask, (10, 5))
    assert not drop.blocked

    above = Raindrop(glyph="a", x=0.0, y=1.1, blocked=True)
    physics.collide(above, mask, (5, -1))
    assert not above.blocked


def test_escape_climbs_out_of_the_obstacle(physics):
    mask = band_mask(100, 100, 40, 60)
    drop = Raindrop(glyph="a", x=0.0, y=0.0, vy=0.0, blocked=True)
    cell = (50, scene_y_to_row(drop.y, 100))
    physics.escape(drop, mask, cell, DT)
    assert scene_y_to_row(drop.y, 100) == 39
    assert drop.vy > 0.0


def climb_one_step_at_a_time(cfg, drop, mask, cell, dt):
    """Reference climb: one rise step per iteration."""
    rise = cfg.rise_speed * dt
    drop.y = min(drop.y + rise, SPAWN_Y)
    col, row = cell
    steps = 0
    while (
        0 <= row < mask.height
        and 0 <= col < mask.width
        and mask.data[row, col, 0] == 0
        and drop.y < SPAWN_Y
        and steps < cfg.max_escape_steps
    ):
        drop.y = min(drop.y + rise, SPAWN_Y)
        drop.vy += cfg.escape_vy_increment
        row = scene_y_to_row(drop.y, mask.height)
        steps += 1


def test_escape_lands_on_top_of_band_with_counted_kick(physics):
    cfg = physics.cfg
    rise = cfg.rise_speed * DT
    mask = band_mask(100, 100, 40, 60)
    drop = Raindrop(glyph="a", x=0.0, y=0.0, vy=0.0, blocked=True)
    physics.escape(drop, mask, (50, 50), DT)

    # row 39 starts at y = 0.22; the climb stops on the first step past it
    assert scene_y_to_row(drop.y, 100) == 39
    assert drop.y == pytest.approx(0.22, abs=2 * rise)
    steps = round((drop.y - rise) / rise)
    assert steps in (1319, 1320, 1321)
    assert drop.vy == pytest.approx(steps * cfg.escape_vy_increment)


@pytest.mark.parametrize(
    "bands,start_y,dt",
    [
        ([(40, 60)], 0.0, DT),
        ([(10, 20), (22, 60)], -0.05, DT),
        ([(0, 99)], -0.5, DT),
        ([(30, 35), (37, 70)], -0.213, 3.0),  # steps bigger than a pixel row
    ],
)
def test_escape_matches_single_step_climb(physics, bands, start_y, dt):
    mask = solid_mask(100, 100)
    for top, bottom in bands:
        mask.data[top : bottom + 1, :, :3] = 0
    cell = (50, scene_y_to_row(start_y, 100))

    fast = Raindrop(glyph="a", x=0.0, y=start_y, blocked=True)
    slow = Raindrop(glyph="a", x=0.0, y=start_y, blocked=True)
    physics.escape(fast, mask, cell, dt)
    climb_one_step_at_a_time(physics.cfg, slow, mask, cell, dt)

    rise = physics.cfg.rise_speed * dt
    assert fast.y == pytest.approx(slow.y, abs=rise * 1.01)
    assert fast.vy == pytest.approx(slow.vy, abs=physics.cfg.escape_vy_increment * 1.01)
    assert scene_y_to_row(fast.y, 100) == scene_y_to_row(slow.y, 100)


def test_dark_mask_escape_needs_few_lookups():
    physics = RainPhysics(AppConfig(), random.Random(4))
    mask = solid_mask(640, 480, value=0)
    store = store_with(*[Raindrop(glyph="a", x=-0.9 + i * 0.018, y=-0.5, vy=-0.5) for i in range(100)])

    with patch("textrain.physics.scene_y_to_row", wraps=scene_y_to_row) as to_row:
        physics.step(store, mask, DT)
    assert all(d.blocked for d in store)
    assert to_row.call_count < 10 * len(store)
    # every raindrop climbed clear of the image in the same frame
    for d in store:
        assert scene_y_to_row(d.y, 480) == -1
        assert d.vy > 2.0

def test_escape_is_bounded():
    cfg = AppConfig(max_escape_steps=5)
    physics = RainPhysics(cfg, random.Random(0))
    mask = solid_mask(100, 100, value=0)
    drop = Raindrop(glyph="a", x=0.0, y=0.0, blocked=True)
    physics.escape(drop, mask, (50, 50), DT)
    assert drop.y == pytest.approx(6 * cfg.rise_speed * DT)
    assert drop.vy == pytest.approx(5 * cfg.escape_vy_increment)

    # no time passing means no progress, but the loop still ends
    stuck = Raindrop(glyph="a", x=0.0, y=0.0, blocked=True)
    physics.escape(stuck, mask, (50, 50), 0.0)
    assert stuck.y == 0.0


def test_escape_stops_at_the_top():
    physics = RainPhysics(AppConfig(rise_speed=30.0), random.Random(0))
    mask = solid_mask(100, 100, value=0)
    drop = Raindrop(glyph="a", x=0.0, y=0.99, blocked=True)
    physics.escape(drop, mask, (50, 1), DT)
    assert drop.y <= SPAWN_Y


def _dark_columns_mask(cols):
    mask = solid_mask(100, 100)
    for c in cols:
        mask.data[51, c, :3] = 0
    return mask


def test_deflect_slides_away_from_obstacle_on_the_left(physics):
    cfg = physics.cfg
    mask = _dark_columns_mask(range(40, 50))
    drop = Raindrop(glyph="a", x=0.0, y=0.0, blocked=True)
    physics.deflect(drop, mask, (50, 50), DT)
    hits = 9  # columns 49 down to 41
    assert drop.x == pytest.approx(hits * cfg.slide_speed * DT)
    assert drop.rotation == pytest.approx(-hits * cfg.spin_step)
    assert drop.vx == pytest.approx(hits * cfg.drift_step)


def test_deflect_slides_away_from_obstacle_on_the_right(physics):
    cfg = physics.cfg
    mask = _dark_columns_mask(range(51, 61))
    drop = Raindrop(glyph="a", x=0.0, y=0.0, blocked=True)
    physics.deflect(drop, mask, (50, 50), DT)
    hits = 9  # columns 51 to 59
    assert drop.x == pytest.approx(-hits * cfg.slide_speed * DT)
    assert drop.rotation == pytest.approx(hits * cfg.spin_step)
    assert drop.vx == pytest.approx(-hits * cfg.drift_step)


def test_deflect_assigns_a_palette_color_once(physics):
    mask = solid_mask(100, 100)
    drop = Raindrop(glyph="a", blocked=True)
    physics.deflect(drop, mask, (50, 50), DT)
    assert drop.color_assigned
    assert drop.color in [tuple(c) for c in physics.cfg.palette]
    drop.color = (0.5, 0.5, 0.5)
    physics.deflect(drop, mask, (50, 50), DT)
    assert drop.color == (0.5, 0.5, 0.5)


@pytest.mark.parametrize("col", [0, 1, 98, 99, 100, -3, 140])
def test_deflect_near_the_edges_is_safe(physics, col):
    mask = solid_mask(100, 100, value=0)
    drop = Raindrop(glyph="a", blocked=True)
    physics.deflect(drop, mask, (col, 99), DT)  # row 100 is off the image
    assert drop.x == 0.0
    physics.deflect(drop, mask, (col, 50), DT)


def test_raindrop_over_white_mask_never_blocks_and_recycles():
    physics = RainPhysics(AppConfig(), random.Random(11))
    mask = solid_mask(100, 100)
    drop = Raindrop(glyph="a", x=0.0, y=SPAWN_Y)
    store = store_with(drop)

    recycled = False
    for _ in range(1000):
        prev_y = drop.y
        physics.step(store, mask, DT)
        assert not drop.blocked
        if prev_y < -1.0 and drop.y == SPAWN_Y:
            recycled = True
            break
    assert recycled
    assert -1.0 <= drop.x <= 1.0
    assert drop.x * 100 == pytest.approx(round(drop.x * 100))


def test_blocked_raindrop_never_speeds_up_downward():
    physics = RainPhysics(AppConfig(), random.Random(2))
    mask = solid_mask(100, 100, value=0)
    drop = Raindrop(glyph="a", x=0.0, y=0.5, vy=-0.5)
    store = store_with(drop)

    physics.step(store, mask, DT)
    assert drop.blocked
    assert drop.vy > 0.0

    for _ in range(50):
        was_blocked = drop.blocked
        before = drop.vy
        physics.step(store, mask, DT)
        if was_blocked:
            assert drop.vy >= before


def test_raindrop_lands_on_top_of_a_band():
    physics = RainPhysics(AppConfig(), random.Random(3))
    mask = band_mask(100, 100, 40, 60)
    drop = Raindrop(glyph="a", x=0.0, y=SPAWN_Y)
    store = store_with(drop)

    landed_row = None
    with patch.object(physics, "collide", wraps=physics.collide) as collide:
        for _ in range(400):
            physics.step(store, mask, DT)
            if drop.blocked:
                landed_row = collide.call_args.args[2][1]
                break
    assert landed_row == 40

    for _ in range(600):
        physics.step(store, mask, DT)
        assert scene_y_to_row(drop.y, 100) <= 40
        assert drop.y < SPAWN_Y
    assert drop.x == pytest.approx(0.0, abs=1e-6)
