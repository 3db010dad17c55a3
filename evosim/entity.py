"""
Non-creature world entities.

Food, Carrion, and Feature form a tagged union over EntityType. Each class
fixes its kind set at construction, so the spatial grid and queries read
`entity.type` instead of probing attributes. Each entity has an arena
handle (id), a 2D position, and an is_active flag.
"""

import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .arena import Handle
from .constants import (
    CARRION_FRESH_STAGE,
    CARRION_ROTTING_STAGE,
    CARRION_RESIDUAL_FRACTION,
)


class EntityType(Enum):
    PLANT_FOOD = "plant_food"
    MUSHROOM_FOOD = "mushroom_food"
    SMALL_PREY = "small_prey"
    CARRION = "carrion"
    OBSTACLE = "obstacle"
    WATER_SOURCE = "water_source"
    SHELTER = "shelter"
    CREATURE = "creature"


FOOD_TYPES = frozenset({EntityType.PLANT_FOOD, EntityType.MUSHROOM_FOOD, EntityType.SMALL_PREY})
CONSUMABLE_TYPES = FOOD_TYPES | {EntityType.CARRION}
FEATURE_TYPES = frozenset({EntityType.OBSTACLE, EntityType.WATER_SOURCE, EntityType.SHELTER})


def _as_vec(value) -> np.ndarray:
    if not isinstance(value, np.ndarray):
        return np.array(value, dtype=np.float64)
    return value.astype(np.float64, copy=False)


@dataclass
class Food:
    """
    Edible entity (plant, mushroom, or small prey).

    Attributes:
        type: PLANT_FOOD, MUSHROOM_FOOD, or SMALL_PREY
        position: [x, y]
        energy: Base energy value
        size: Radius used for feeding reach
        velocity: [vx, vy] (prey only; zero otherwise)
        max_speed: Prey wander speed (0 for static food)
        id: Arena handle, assigned by the Environment
    """
    type: EntityType
    position: np.ndarray
    energy: float
    size: float
    velocity: np.ndarray = None
    max_speed: float = 0.0
    id: Optional[Handle] = None
    is_active: bool = True

    def __post_init__(self):
        if self.type not in FOOD_TYPES:
            raise ValueError(f"Food cannot have type {self.type}")
        self.position = _as_vec(self.position)
        self.velocity = np.zeros(2, dtype=np.float64) if self.velocity is None else _as_vec(self.velocity)

    @property
    def energy_value(self) -> float:
        return self.energy

    @property
    def is_mobile(self) -> bool:
        return self.max_speed > 0.0

    def to_dict(self) -> dict:
        return {
            'id': str(self.id) if self.id is not None else None,
            'type': self.type.value,
            'position': self.position.tolist(),
            'energy': float(self.energy),
            'size': float(self.size),
            'velocity': self.velocity.tolist(),
            'max_speed': float(self.max_speed),
            'is_active': self.is_active,
        }


@dataclass
class Carrion:
    """
    Decaying remains of a dead creature.

    Decay stage rises from 0 to 1 over max_decay_time ticks; scent and
    energy fall with it. Stage never decreases and energy never increases.
    """
    position: np.ndarray
    original_creature_id: Optional[Handle]
    time_of_death: int
    size: float
    max_decay_time: int
    original_energy_value: float
    current_energy_value: float = None
    current_decay_stage: float = 0.0
    scent: float = 1.0
    subtype: str = "fresh"  # fresh | aged | rotting
    id: Optional[Handle] = None
    is_active: bool = True
    type: EntityType = field(default=EntityType.CARRION, init=False)

    def __post_init__(self):
        self.position = _as_vec(self.position)
        if self.current_energy_value is None:
            self.current_energy_value = self.original_energy_value

    @property
    def energy_value(self) -> float:
        return self.current_energy_value

    @property
    def freshness(self) -> float:
        return 1.0 - self.current_decay_stage

    def advance_decay(self, tick: int) -> bool:
        """
        Recompute decay state for the given tick.

        Args:
            tick: Current environment tick

        Returns:
            True once fully decayed (stage >= 1)
        """
        age = max(0, tick - self.time_of_death)
        stage = min(1.0, age / self.max_decay_time)
        stage = max(stage, self.current_decay_stage)
        self.current_decay_stage = stage

        if stage < CARRION_FRESH_STAGE:
            self.subtype = "fresh"
            scent = 1.0 - stage * 0.5
        elif stage < CARRION_ROTTING_STAGE:
            self.subtype = "aged"
            scent = 0.8 - stage * 0.3
        else:
            self.subtype = "rotting"
            scent = 0.3 - stage * 0.2
        self.scent = max(0.0, min(self.scent, scent))

        energy = self.original_energy_value * (1.0 - (1.0 - CARRION_RESIDUAL_FRACTION) * stage)
        self.current_energy_value = min(self.current_energy_value, energy)

        return stage >= 1.0

    def to_dict(self) -> dict:
        return {
            'id': str(self.id) if self.id is not None else None,
            'type': self.type.value,
            'position': self.position.tolist(),
            'original_creature_id': str(self.original_creature_id) if self.original_creature_id else None,
            'time_of_death': self.time_of_death,
            'decay_stage': float(self.current_decay_stage),
            'energy': float(self.current_energy_value),
            'scent': float(self.scent),
            'subtype': self.subtype,
        }


@dataclass(frozen=True)
class FeatureEffect:
    """Per-tick modifiers applied to creatures inside a feature's radius"""
    energy_modifier: float = 0.0
    health_modifier: float = 0.0


@dataclass
class Feature:
    """Static environmental feature (obstacle, water source, shelter)"""
    type: EntityType
    position: np.ndarray
    size: float
    effect: FeatureEffect = field(default_factory=FeatureEffect)
    id: Optional[Handle] = None
    is_active: bool = True

    def __post_init__(self):
        if self.type not in FEATURE_TYPES:
            raise ValueError(f"Feature cannot have type {self.type}")
        self.position = _as_vec(self.position)

    def to_dict(self) -> dict:
        return {
            'id': str(self.id) if self.id is not None else None,
            'type': self.type.value,
            'position': self.position.tolist(),
            'size': float(self.size),
            'energy_modifier': self.effect.energy_modifier,
            'health_modifier': self.effect.health_modifier,
        }
