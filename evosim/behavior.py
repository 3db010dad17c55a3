"""
Creature perception and thought annotation.

build_sensor_vector turns a creature's surroundings into the 14 inputs its
brain expects (all normalised to [0, 1]):

    0  nearest food distance        (0 = adjacent, 1 = nothing in vision range)
    1  nearest food type             (diet preference for that food; 0.5 if none)
    2  nearest carrion distance      (only carrion whose scent reaches us)
    3  nearest carrion freshness     (1 - decay stage; 0 if none)
    4  nearest threat distance
    5  nearest mate distance         (same species)
    6  energy / 100
    7  health / 100
    8  age / lifespan                (capped at 1)
    9  local density                 (0.1 per nearby creature, capped at 1)
    10-13 vision rays                (ahead, left, right, behind; distance to first obstacle)

generate_thought picks a short text annotation from the creature's state
and latest decisions; it feeds CreatureStats.current_thought.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .entity import EntityType, CONSUMABLE_TYPES
from .geometry import ray_hit_distance
from .spatial_queries import SpatialQuery
from .constants import (
    SENSOR_COUNT,
    VISION_RANGE_UNITS,
    VISION_RAY_FRACTION,
    VISION_PROBE_RADIUS,
    DENSITY_PER_NEIGHBOUR,
    THREAT_SCORE_THRESHOLD,
    OUT_MOVE_X,
    OUT_MOVE_Y,
    OUT_EAT,
    OUT_ATTACK,
    OUT_REPRODUCE,
)


SENSE_TYPES = frozenset(CONSUMABLE_TYPES | {EntityType.CREATURE})
OBSTACLE_TYPES = frozenset({EntityType.OBSTACLE})

# Ray headings relative to current rotation: ahead, left, right, behind
RAY_ANGLES = (0.0, -math.pi / 2.0, math.pi / 2.0, math.pi)

SENSOR_NAMES = [
    'food_distance', 'food_type', 'carrion_distance', 'carrion_freshness',
    'threat_distance', 'mate_distance', 'energy', 'health', 'age',
    'population_density', 'vision_ahead', 'vision_left', 'vision_right', 'vision_behind',
]


def vision_distance(creature) -> float:
    return creature.genetics.vision_range * VISION_RANGE_UNITS


def threat_score(creature, other) -> float:
    """How much bigger and more aggressive `other` is than `creature`."""
    return ((other.genetics.size - creature.genetics.size)
            + (other.genetics.aggression - creature.genetics.aggression))


def build_sensor_vector(creature, environment) -> np.ndarray:
    """
    Sample the environment around a creature.

    Args:
        creature: Sensing creature
        environment: Environment providing query_nearby_entities()

    Returns:
        (SENSOR_COUNT,) float64 array in [0, 1]
    """
    sensors = np.ones(SENSOR_COUNT, dtype=np.float64)
    sensors[1] = 0.5
    sensors[3] = 0.0
    sensors[9] = 0.0

    vision = vision_distance(creature)
    genetics = creature.genetics

    nearby = environment.query_nearby_entities(SpatialQuery(
        position=creature.position,
        radius=vision,
        entity_types=SENSE_TYPES,
        exclude=creature,
        sort_by_distance=True
    ))

    food_found = False
    carrion_found = False
    for entity, d in nearby.food_hits:
        if entity.type is EntityType.CARRION:
            if not carrion_found and d <= vision * entity.scent:
                sensors[2] = d / vision
                sensors[3] = entity.freshness
                carrion_found = True
        elif not food_found:
            sensors[0] = d / vision
            if entity.type is EntityType.PLANT_FOOD:
                sensors[1] = genetics.plant_preference
            else:
                sensors[1] = genetics.meat_preference
            food_found = True
        if food_found and carrion_found:
            break

    threat_found = False
    mate_found = False
    for other, d in nearby.creature_hits:
        if creature.is_same_species(other):
            if not mate_found:
                sensors[5] = d / vision
                mate_found = True
        elif not threat_found and threat_score(creature, other) > THREAT_SCORE_THRESHOLD:
            sensors[4] = d / vision
            threat_found = True
        if threat_found and mate_found:
            break

    sensors[6] = creature.energy / 100.0
    sensors[7] = creature.health / 100.0
    sensors[8] = min(creature.age / genetics.lifespan, 1.0)
    sensors[9] = min(len(nearby.creature_hits) * DENSITY_PER_NEIGHBOUR, 1.0)

    sensors[10:14] = sample_vision_rays(creature, environment, vision * VISION_RAY_FRACTION)

    return np.clip(sensors, 0.0, 1.0)


def sample_vision_rays(creature, environment, ray_length: float) -> List[float]:
    """
    Normalised distance to the first obstacle along each of the four rays.

    Returns 1.0 for a clear ray. Skips the query entirely when the world has no obstacles.
    """
    if ray_length <= 0 or not environment.has_obstacles:
        return [1.0, 1.0, 1.0, 1.0]

    reach = ray_length + environment.max_obstacle_size + VISION_PROBE_RADIUS
    obstacles = environment.query_nearby_entities(SpatialQuery(
        position=creature.position,
        radius=reach,
        entity_types=OBSTACLE_TYPES
    )).environmental
    if not obstacles:
        return [1.0, 1.0, 1.0, 1.0]

    readings = []
    for offset in RAY_ANGLES:
        angle = creature.rotation + offset
        direction = np.array([math.cos(angle), math.sin(angle)])
        best = 1.0
        for obstacle in obstacles:
            hit = ray_hit_distance(creature.position, direction, ray_length,
                                   obstacle.position, obstacle.size + VISION_PROBE_RADIUS)
            if hit is not None:
                best = min(best, hit / ray_length)
        readings.append(best)
    return readings


# ============================================================================
# Thoughts
# ============================================================================

@dataclass
class Thought:
    text: str
    priority: int
    duration: int
    remaining: int = 0

    def __post_init__(self):
        if self.remaining == 0:
            self.remaining = self.duration


def _candidate_thoughts(creature, sensors: np.ndarray, outputs: np.ndarray) -> List[Tuple[str, int, int]]:
    energy = creature.energy
    eat = outputs[OUT_EAT]
    attack = outputs[OUT_ATTACK]
    reproduce = outputs[OUT_REPRODUCE]
    movement = abs(outputs[OUT_MOVE_X]) + abs(outputs[OUT_MOVE_Y])
    candidates = []

    if energy < 20 and eat > 0.8:
        candidates.append(("MUST FIND FOOD NOW!", 15, 40))
    if energy < 30:
        candidates.append(("I'm starving!", 10, 30))
    elif energy < 50:
        candidates.append(("Getting hungry...", 5, 20))

    if eat > 0.7:
        candidates.append(("Food detected!", 8, 25))
    elif eat > 0.5:
        candidates.append(("Searching for food...", 6, 20))

    if reproduce > 0.8 and creature.can_reproduce():
        candidates.append(("Looking for a mate!", 9, 40))
    elif reproduce > 0.6:
        candidates.append(("Feeling romantic...", 7, 30))

    if attack > 0.8:
        candidates.append(("FIGHT!", 12, 20))
    elif attack > 0.5:
        candidates.append(("Feeling aggressive...", 6, 15))

    if movement > 1.5:
        candidates.append(("Running fast!", 4, 10))
    elif movement > 0.8:
        candidates.append(("Exploring...", 3, 15))

    if creature.age > creature.genetics.lifespan * 0.8:
        candidates.append(("I'm getting old...", 3, 60))
    elif creature.age == int(creature.genetics.maturity_age):
        candidates.append(("I'm mature now!", 5, 100))

    if creature.health < 50:
        candidates.append(("I'm hurt...", 8, 50))
    if sensors[4] < 0.3:
        candidates.append(("Danger nearby!", 11, 20))
    if sensors[9] > 0.3:
        candidates.append(("Crowded here!", 4, 20))
    if sensors[0] >= 1.0 and energy < 60:
        candidates.append(("No food around...", 6, 30))
    if creature.can_reproduce() and sensors[5] < 0.5 and energy > 70:
        candidates.append(("Ready to start a family!", 11, 50))

    if not candidates and movement > 0.2:
        candidates.append(("Wandering around...", 1, 20))
    return candidates


def generate_thought(creature, sensors: np.ndarray, outputs: np.ndarray,
                     current: Optional[Thought]) -> Optional[Thought]:
    """
    Choose the thought to display this tick.

    The current thought is kept while it has time remaining, unless a
    higher-priority candidate appears.

    Returns:
        Thought to display, or None
    """
    if current is not None:
        current.remaining -= 1
        if current.remaining <= 0:
            current = None

    candidates = _candidate_thoughts(creature, sensors, outputs)
    if not candidates:
        return current

    text, priority, duration = max(candidates, key=lambda c: c[1])
    if current is not None and current.priority >= priority:
        return current
    return Thought(text, priority, duration)
