"""
Geometry helpers for schematic placement.

This module contains no Qt dependencies. Orientation is a discrete
rotation in 45 degree steps (0..7) plus independent X/Y flips, applied
flip-then-rotate. All functions are pure.
"""

import math
from typing import Iterable, NamedTuple

ROTATION_STEPS = 8
STEP_DEGREES = 45.0

# Decimal places kept in coincidence keys
KEY_PRECISION = 6


def _clean(value: float) -> float:
    """Snap values that are numerically 0 or +/-1 to the exact constant."""
    if abs(value) < 1e-12:
        return 0.0
    if abs(abs(value) - 1.0) < 1e-12:
        return math.copysign(1.0, value)
    return value


# (cos, sin) per 45 degree step; axis-aligned steps are exact
_UNIT_VECTORS = tuple(
    (_clean(math.cos(math.radians(step * STEP_DEGREES))),
     _clean(math.sin(math.radians(step * STEP_DEGREES))))
    for step in range(ROTATION_STEPS)
)


class Bounds(NamedTuple):
    """Axis-aligned rectangle in world coordinates."""

    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2.0, self.y + self.h / 2.0)

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def intersects(self, other: "Bounds") -> bool:
        return (self.x <= other.right and self.right >= other.x
                and self.y <= other.bottom and self.bottom >= other.y)

    def inflate(self, amount: float) -> "Bounds":
        return Bounds(self.x - amount, self.y - amount, self.w + 2 * amount, self.h + 2 * amount)

    def union(self, other: "Bounds") -> "Bounds":
        min_x = min(self.x, other.x)
        min_y = min(self.y, other.y)
        return Bounds(min_x, min_y, max(self.right, other.right) - min_x, max(self.bottom, other.bottom) - min_y)

    @classmethod
    def from_points(cls, points: Iterable[tuple[float, float]], padding: float = 0.0) -> "Bounds":
        """
        Build the padded envelope of a set of points.

        Raises:
            ValueError: If no points are given.
        """
        points = list(points)
        if not points:
            raise ValueError("Cannot build bounds from an empty point set.")
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        min_x = min(xs) - padding
        min_y = min(ys) - padding
        return cls(min_x, min_y, max(xs) + padding - min_x, max(ys) + padding - min_y)


def normalize_rotation(rotation: int) -> int:
    """Wrap a rotation step count into 0..7 (negative values wrap)."""
    return rotation % ROTATION_STEPS


def transform(offset_x: float, offset_y: float, rotation: int = 0,
              flipped_x: bool = False, flipped_y: bool = False) -> tuple[float, float]:
    """
    Map a local offset to a world-space offset.

    Flips are applied first (negate x and/or y), then the point is rotated
    by ``rotation * 45`` degrees with the standard 2D rotation matrix.
    In screen coordinates (y grows downwards) positive steps turn clockwise.

    Args:
        offset_x: Local x offset.
        offset_y: Local y offset.
        rotation: Rotation in 45 degree steps (any integer, wrapped).
        flipped_x: Mirror across the local y axis.
        flipped_y: Mirror across the local x axis.

    Returns:
        (x, y) offset in world orientation.
    """
    if flipped_x:
        offset_x = -offset_x
    if flipped_y:
        offset_y = -offset_y

    cos_a, sin_a = _UNIT_VECTORS[normalize_rotation(rotation)]
    new_x = offset_x * cos_a - offset_y * sin_a
    new_y = offset_x * sin_a + offset_y * cos_a
    return (new_x + 0.0, new_y + 0.0)  # + 0.0 folds -0.0 into 0.0


def rotate_about(x: float, y: float, cx: float, cy: float, steps: int) -> tuple[float, float]:
    """Rotate the point (x, y) around the pivot (cx, cy) by ``steps`` * 45 degrees."""
    dx, dy = transform(x - cx, y - cy, steps)
    return (cx + dx, cy + dy)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards positive infinity."""
    return math.floor(value + 0.5)


def rot_from_pins(first: tuple[float, float], second: tuple[float, float]) -> int:
    """
    Infer a placement rotation from two pin coordinates.

    The base orientation of every two-pin part runs along +y (first pin
    above the second), so the angle of the pin vector is measured relative
    to 90 degrees and quantized to the nearest 45 degree step.
    """
    dx = second[0] - first[0]
    dy = second[1] - first[1]
    angle = math.degrees(math.atan2(dy, dx)) - 90.0
    return normalize_rotation(round_half_up(angle / STEP_DEGREES))


def snap(value: float, step: float) -> float:
    """Snap a coordinate to the nearest grid line (no-op for step <= 0)."""
    if step <= 0:
        return value
    return round_half_up(value / step) * step


def snap_point(x: float, y: float, step: float) -> tuple[float, float]:
    return (snap(x, step), snap(y, step))


def position_key(x: float, y: float) -> tuple[float, float]:
    """Return the coincidence-index key for a world position."""
    return (round(x, KEY_PRECISION) + 0.0, round(y, KEY_PRECISION) + 0.0)


def point_to_segment_distance(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> float:
    """Distance from the point P to the segment AB."""
    vx, vy = bx - ax, by - ay
    wx, wy = px - ax, py - ay
    c1 = vx * wx + vy * wy
    if c1 <= 0:
        return math.hypot(px - ax, py - ay)
    c2 = vx * vx + vy * vy
    if c2 <= c1:
        return math.hypot(px - bx, py - by)
    t = c1 / c2
    return math.hypot(px - (ax + t * vx), py - (ay + t * vy))


def plain_number(value: float):
    """Return integral floats as int so serialized coordinates stay tidy."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
