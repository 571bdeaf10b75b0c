"""
Scene <-> image coordinate conversion.

Scene space spans [-1, 1] on both axes with the origin at the centre and
+y pointing up. Image space has its origin at the top-left pixel and rows
growing downward. The conversions floor to whole pixels, so a round trip
can be off by up to one pixel (2/W or 2/H in scene units).
"""
import math


def scene_x_to_column(x: float, width: int) -> int:
    return math.floor((x + 1.0) * (width / 2.0))


def column_to_scene_x(col: int, width: int) -> float:
    return col / (width / 2.0) - 1.0


def scene_y_to_row(y: float, height: int) -> int:
    return height - math.floor((y + 1.0) * (height / 2.0))


def row_to_scene_y(row: int, height: int) -> float:
    return 1.0 - row / (height / 2.0)


def scene_to_pixel(x: float, y: float, width: int, height: int) -> tuple[int, int]:
    """(col, row) of the pixel under a scene position."""
    return scene_x_to_column(x, width), scene_y_to_row(y, height)


def in_visible_rect(x: float, y: float) -> bool:
    """Strictly inside the on-screen part of the scene."""
    return -1.0 < x < 1.0 and -1.0 < y < 1.0
