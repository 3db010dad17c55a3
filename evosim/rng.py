"""
Deterministic RNG utilities for evosim.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(world_seed, purpose, index). All randomness flows through an explicit
numpy.random.Generator(PCG64) so a seeded run is reproducible.
"""

import hashlib
import numpy as np
from typing import Any, Optional


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Uses SHA256 to hash components into stable seed value.

    Args:
        *components: Seed components (world_seed, purpose, index, etc.)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        env_seed = make_seed(world_seed, "environment")
        brain_seed = make_seed(env_seed, "founder", 12)
    """
    hash_input = ":".join(str(c) for c in components)

    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    seed = int.from_bytes(hash_bytes[:8], byteorder='big')

    return seed


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create a PCG64 generator.

    Args:
        seed: Integer seed, or None for OS entropy (non-reproducible run)

    Returns:
        numpy Generator
    """
    return np.random.Generator(np.random.PCG64(seed))


def random_unit_vector(rng: np.random.Generator) -> np.ndarray:
    """Random 2D unit vector (uniform heading)."""
    angle = rng.uniform(0.0, 2.0 * np.pi)
    return np.array([np.cos(angle), np.sin(angle)], dtype=np.float64)


def random_position_in_circle(rng: np.random.Generator, center: np.ndarray, radius: float) -> np.ndarray:
    """
    Generate random position uniformly distributed within a circle.

    Uses rejection sampling in the bounding square.

    Args:
        rng: Generator to draw from
        center: Circle center [x, y]
        radius: Circle radius

    Returns:
        Random position within circle as numpy array [x, y]
    """
    while True:
        offset = rng.uniform(-radius, radius, size=2)

        if np.dot(offset, offset) <= radius * radius:
            return np.asarray(center, dtype=np.float64) + offset


def random_position_in_rect(rng: np.random.Generator, width: float, height: float) -> np.ndarray:
    """Random position uniformly distributed in [0, width] x [0, height]."""
    return np.array([rng.uniform(0.0, width), rng.uniform(0.0, height)], dtype=np.float64)
