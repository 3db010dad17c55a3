"""
Ray geometry for creature vision.

Pure functions over (2,) float64 arrays; no world state is read, so the
same inputs always give the same ray readings.
"""
from __future__ import annotations

from typing import Optional

import numpy as np


def closest_point_on_segment(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Project P onto segment AB, clamped to the segment ends.

    A zero-length segment (A == B) projects everything onto A.

    Parameters
    - p: (2,) point
    - a: (2,) segment start
    - b: (2,) segment end

    Returns
    - (2,) point on AB nearest to P
    """
    start = np.asarray(a, dtype=np.float64)
    span = np.asarray(b, dtype=np.float64) - start
    length_sq = float(span @ span)
    if length_sq == 0.0:
        return start.copy()

    t = float((np.asarray(p, dtype=np.float64) - start) @ span) / length_sq
    return start + min(1.0, max(0.0, t)) * span


def ray_hit_distance(origin: np.ndarray, direction: np.ndarray, length: float,
                     center: np.ndarray, radius: float) -> Optional[float]:
    """
    Distance along a vision ray to its closest approach to a circular obstacle.

    Parameters
    - origin: (2,) ray start
    - direction: (2,) unit direction
    - length: ray length
    - center: (2,) obstacle center
    - radius: obstacle radius

    Returns
    - distance from origin in [0, length], or None when the ray stays clear
    """
    origin = np.asarray(origin, dtype=np.float64)
    end = origin + np.asarray(direction, dtype=np.float64) * length
    nearest = closest_point_on_segment(center, origin, end)
    if float(np.linalg.norm(np.asarray(center, dtype=np.float64) - nearest)) > radius:
        return None
    return float(np.linalg.norm(nearest - origin))
