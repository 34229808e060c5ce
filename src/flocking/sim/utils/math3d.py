from __future__ import annotations

import math
from typing import Iterable

from pygame.math import Vector3


def _safe_normalize(vector: Vector3) -> Vector3:
    magnitude_sq = vector.length_squared()
    if magnitude_sq == 0.0:
        return Vector3()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector3(vector.x * inv, vector.y * inv, vector.z * inv)


def _unit_normal(vector: Vector3) -> Vector3:
    """Normalized copy of a plane normal; a zero vector defines no plane."""
    normal = _safe_normalize(vector)
    if normal.length_squared() == 0.0:
        raise ValueError("motion_normal must be a non-zero vector")
    return normal


def _clamp_length(vector: Vector3, max_length: float) -> Vector3:
    """Cap the magnitude at `max_length`, keeping the direction. Never amplifies."""
    if max_length <= 0:
        return Vector3()
    magnitude_sq = vector.length_squared()
    if magnitude_sq <= max_length * max_length:
        return Vector3(vector)
    inv = max_length / math.sqrt(magnitude_sq)
    return Vector3(vector.x * inv, vector.y * inv, vector.z * inv)


def _same_point(a: Vector3, b: Vector3) -> bool:
    return a.x == b.x and a.y == b.y and a.z == b.z


def _as_vector(value: Iterable[float]) -> Vector3:
    items = [float(v) for v in value]
    if len(items) != 3:
        raise ValueError(f"Expected 3 components, got {len(items)}")
    return Vector3(items[0], items[1], items[2])
