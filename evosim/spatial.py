"""
Plane helpers for creature movement.

Distances, wall reflection, and speed limiting on (2,) numpy vectors.
"""

import math
import numpy as np
from typing import Tuple


def distance_2d(pos_a: np.ndarray, pos_b: np.ndarray) -> float:
    """
    Euclidean distance between two world positions.

    Args:
        pos_a: Position [x, y]
        pos_b: Position [x, y]

    Returns:
        Distance in world units
    """
    return math.hypot(float(pos_a[0]) - float(pos_b[0]), float(pos_a[1]) - float(pos_b[1]))


def reflect_velocity(velocity: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """
    Bounce a velocity off a wall: v' = v - 2 (v . n) n

    Args:
        velocity: Incoming velocity [vx, vy]
        normal: Unit wall normal

    Returns:
        Outgoing velocity
    """
    return velocity - 2.0 * np.dot(velocity, normal) * normal


def normalize(vec: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Split a vector into direction and magnitude.

    Returns:
        (unit direction, length); a zero vector gives (+x, 0.0)
    """
    length = math.hypot(float(vec[0]), float(vec[1]))
    if length < 1e-9:
        return np.array([1.0, 0.0], dtype=np.float64), 0.0
    return vec / length, length


def clamp_speed(velocity: np.ndarray, max_speed: float) -> np.ndarray:
    """Scale velocity down so its magnitude does not exceed max_speed."""
    speed = math.hypot(float(velocity[0]), float(velocity[1]))
    if speed > max_speed:
        return velocity * (max_speed / speed)
    return velocity


def clamp(value: float, low: float, high: float) -> float:
    return low if value < low else (high if value > high else value)
