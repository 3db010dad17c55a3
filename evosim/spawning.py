"""
Entity spawning.

Places food, prey, environmental features, and founder creatures inside
world bounds. All draws come from the caller's Generator, so spawning is
reproducible for a seeded environment.
"""

import math
import numpy as np
from typing import List, Optional

from .creature import Creature
from .data_types import Biome, EnvironmentConfig, WorldBounds
from .entity import EntityType, Food, Feature, FeatureEffect
from .rng import random_position_in_circle, random_position_in_rect, random_unit_vector
from .constants import (
    PLANT_ENERGY,
    PLANT_SIZE,
    MUSHROOM_ENERGY,
    MUSHROOM_SIZE,
    PREY_ENERGY,
    PREY_SIZE,
    PREY_MAX_SPEED,
    INITIAL_PLANT_FRACTION,
    INITIAL_PREY_FRACTION,
    CIRCULAR_SPAWN_FRACTION,
    OBSTACLE_SIZE_RANGE,
    WATER_SIZE_RANGE,
    SHELTER_SIZE_RANGE,
    WATER_SOURCES_PER_AVAILABILITY,
    SHELTERS_PER_AVAILABILITY,
    WATER_HEALTH_BONUS,
    WATER_ENERGY_BONUS,
    SHELTER_HEALTH_BONUS,
)


def random_position(bounds: WorldBounds, rng: np.random.Generator) -> np.ndarray:
    """Uniform position inside bounds (circular worlds stay within 0.9R of center)."""
    if bounds.is_circular:
        return random_position_in_circle(rng, np.array(bounds.center, dtype=np.float64),
                                         bounds.radius * CIRCULAR_SPAWN_FRACTION)
    return random_position_in_rect(rng, bounds.width, bounds.height)


def spawn_plant(bounds: WorldBounds, rng: np.random.Generator) -> Food:
    return Food(EntityType.PLANT_FOOD, random_position(bounds, rng), PLANT_ENERGY, PLANT_SIZE)


def spawn_mushroom(bounds: WorldBounds, rng: np.random.Generator) -> Food:
    return Food(EntityType.MUSHROOM_FOOD, random_position(bounds, rng), MUSHROOM_ENERGY, MUSHROOM_SIZE)


def spawn_prey(bounds: WorldBounds, rng: np.random.Generator) -> Food:
    return Food(
        EntityType.SMALL_PREY,
        random_position(bounds, rng),
        PREY_ENERGY,
        PREY_SIZE,
        velocity=random_unit_vector(rng) * PREY_MAX_SPEED,
        max_speed=PREY_MAX_SPEED
    )


def spawn_initial_food(config: EnvironmentConfig, biome: Biome, rng: np.random.Generator) -> List[Food]:
    """
    Initial stock: floor(max_food * plant_density * 0.3) plants and
    floor(max_food * prey_density * 0.1) prey.
    """
    c = biome.characteristics
    plant_count = int(math.floor(config.max_food * c.plant_density * INITIAL_PLANT_FRACTION))
    prey_count = int(math.floor(config.max_food * c.prey_density * INITIAL_PREY_FRACTION))

    food = [spawn_plant(config.bounds, rng) for _ in range(plant_count)]
    food.extend(spawn_prey(config.bounds, rng) for _ in range(prey_count))
    return food


def _spawn_feature(entity_type: EntityType, size_range, effect: FeatureEffect,
                   bounds: WorldBounds, rng: np.random.Generator) -> Feature:
    return Feature(entity_type, random_position(bounds, rng), float(rng.uniform(*size_range)), effect)


def spawn_features(config: EnvironmentConfig, biome: Biome, rng: np.random.Generator) -> List[Feature]:
    """
    Obstacles (config.obstacle_count), plus water sources and shelters in
    proportion to the biome's water and shelter availability.
    """
    c = biome.characteristics
    water_count = int(round(c.water_availability * WATER_SOURCES_PER_AVAILABILITY))
    shelter_count = int(round(c.shelter_availability * SHELTERS_PER_AVAILABILITY))

    water_effect = FeatureEffect(energy_modifier=WATER_ENERGY_BONUS, health_modifier=WATER_HEALTH_BONUS)
    shelter_effect = FeatureEffect(health_modifier=SHELTER_HEALTH_BONUS)

    features = [_spawn_feature(EntityType.OBSTACLE, OBSTACLE_SIZE_RANGE, FeatureEffect(), config.bounds, rng)
                for _ in range(config.obstacle_count)]
    features.extend(_spawn_feature(EntityType.WATER_SOURCE, WATER_SIZE_RANGE, water_effect, config.bounds, rng)
                    for _ in range(water_count))
    features.extend(_spawn_feature(EntityType.SHELTER, SHELTER_SIZE_RANGE, shelter_effect, config.bounds, rng)
                    for _ in range(shelter_count))
    return features


def spawn_founders(
    count: int,
    bounds: WorldBounds,
    rng: np.random.Generator,
    center: Optional[np.ndarray] = None,
    spread: Optional[float] = None
) -> List[Creature]:
    """
    Create generation-0 creatures.

    Args:
        count: Number of founders
        bounds: World bounds (used when no cluster is given)
        rng: Generator for positions, genetics, and brains
        center: Optional cluster center [x, y]
        spread: Cluster radius (required with center)

    Returns:
        Unregistered creatures (caller adds them to an Environment)
    """
    creatures = []
    for _ in range(count):
        if center is not None and spread is not None:
            position = random_position_in_circle(rng, np.asarray(center, dtype=np.float64), spread)
        else:
            position = random_position(bounds, rng)
        creatures.append(Creature.spawn_founder(position, rng))
    return creatures
