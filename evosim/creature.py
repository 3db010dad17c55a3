"""
Creature agent.

A creature couples a genome, a neural controller, physics state, and
behavioural statistics. Each tick the Environment calls update(), which
runs sense -> think -> act -> physics -> internal state -> survival check.

State machine: ALIVE -> DEAD (health <= 0, energy <= 0, or age >= lifespan).
DEAD is terminal; the Environment reaps dead creatures into carrion.
"""

import math
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .arena import Handle
from .behavior import build_sensor_vector, generate_thought, Thought
from .brains import create_founder_brain, create_offspring_brain
from .entity import EntityType, CONSUMABLE_TYPES
from .events import EventCategory, EventLevel
from .genetics import Genetics
from .neural import NeuralNetwork
from .spatial import clamp_speed
from .spatial_queries import SpatialQuery
from .constants import (
    SENSOR_COUNT,
    MAX_ENERGY,
    MAX_HEALTH,
    INITIAL_ENERGY,
    INITIAL_HEALTH,
    COLLISION_RADIUS_PER_SIZE,
    MAX_SPEED_PER_SPEED,
    BASE_METABOLIC_COST,
    MOVEMENT_COST_FACTOR,
    OUT_MOVE_X,
    OUT_MOVE_Y,
    OUT_EAT,
    OUT_ATTACK,
    OUT_REPRODUCE,
    EAT_THRESHOLD,
    ATTACK_THRESHOLD,
    REPRODUCE_THRESHOLD,
    FEEDING_MARGIN,
    ATTACK_SEARCH_RANGE,
    MATE_SEARCH_RANGE,
    MATE_SEARCH_LIMIT,
    FOOD_FEEDING_POWER,
    CARRION_FEEDING_FACTOR,
    REPRODUCTION_MIN_ENERGY,
    REPRODUCTION_COOLDOWN_BASE,
    REPRODUCTION_RESERVE_ENERGY,
    OFFSPRING_SCATTER,
    FITNESS_OFFSPRING_WEIGHT,
    FITNESS_DISTANCE_WEIGHT,
    FITNESS_FOOD_WEIGHT,
    THOUGHT_HISTORY_LIMIT,
)


class CreatureState(Enum):
    ALIVE = "alive"
    DEAD = "dead"


class DeathCause:
    STARVATION = "starvation"
    INJURY = "injury"
    OLD_AGE = "old_age"
    PREDATION = "predation"
    POPULATION_PRESSURE = "population_pressure"


@dataclass
class CreatureStats:
    """Behavioural statistics (fitness recomputed every tick)"""
    food_eaten: int = 0
    attacks_given: int = 0
    attacks_received: int = 0
    reproduction_attempts: int = 0
    offspring_count: int = 0
    distance_traveled: float = 0.0
    ticks_alive: int = 0
    fitness: float = 0.0
    current_thought: Optional[str] = None
    thought_history: List[str] = field(default_factory=list)


def parental_care_profile(care: float) -> Tuple[float, float, float, int]:
    """
    Offspring quality and parental cost for a (mean) parental-care trait.

    Returns:
        (offspring_energy, offspring_health, cost_multiplier, cooldown_ticks)
    """
    offspring_energy = min(80.0, 25.0 + 35.0 * care)
    offspring_health = min(MAX_HEALTH, 70.0 + 25.0 * care)
    cost_multiplier = 0.5 + care
    cooldown = int(round(REPRODUCTION_COOLDOWN_BASE * (0.7 + 0.8 * care)))
    return offspring_energy, offspring_health, cost_multiplier, cooldown


class Creature:
    """
    Simulated organism.

    Args:
        genetics: Heritable traits
        brain: Neural controller (owned exclusively by this creature)
        position: Initial [x, y]
        generation: 0 for founders
        parent_ids: Handles of 0-2 parents
        energy: Starting energy (0-100)
        health: Starting health (0-100)
        rotation: Initial heading in radians
    """

    type = EntityType.CREATURE

    def __init__(
        self,
        genetics: Genetics,
        brain: NeuralNetwork,
        position,
        generation: int = 0,
        parent_ids: Tuple[Handle, ...] = (),
        energy: float = INITIAL_ENERGY,
        health: float = INITIAL_HEALTH,
        rotation: float = 0.0
    ):
        self.id: Optional[Handle] = None
        self.genetics = genetics
        self.brain = brain
        self.generation = generation
        self.parent_ids = tuple(parent_ids)

        self.position = np.array(position, dtype=np.float64)
        self.velocity = np.zeros(2, dtype=np.float64)
        self.rotation = float(rotation)
        self.age = 0
        self._energy = 0.0
        self._health = 0.0
        self._invalid_vitals: List[str] = []
        self.energy = energy
        self.health = health

        self.state = CreatureState.ALIVE
        self.death_cause: Optional[str] = None
        self.reproduction_cooldown = 0
        self.stats = CreatureStats()
        self.thought: Optional[Thought] = None

        self.last_sensors: Optional[np.ndarray] = None
        self.last_outputs: Optional[np.ndarray] = None

    @classmethod
    def spawn_founder(cls, position, rng: np.random.Generator) -> 'Creature':
        """Generation-0 creature with random genetics and an instinct-wired brain."""
        return cls(
            genetics=Genetics.random(rng),
            brain=create_founder_brain(rng),
            position=position,
            rotation=rng.uniform(0.0, 2.0 * math.pi)
        )

    # ------------------------------------------------------------------
    # Derived physics
    # ------------------------------------------------------------------

    @property
    def collision_radius(self) -> float:
        return self.genetics.size * COLLISION_RADIUS_PER_SIZE

    @property
    def max_speed(self) -> float:
        return self.genetics.speed * MAX_SPEED_PER_SPEED

    @property
    def energy(self) -> float:
        return self._energy

    @energy.setter
    def energy(self, value: float):
        self._energy = self._clamp_vital('energy', value, MAX_ENERGY)

    @property
    def health(self) -> float:
        return self._health

    @health.setter
    def health(self, value: float):
        self._health = self._clamp_vital('health', value, MAX_HEALTH)

    def _clamp_vital(self, name: str, value: float, limit: float) -> float:
        value = float(value)
        if not math.isfinite(value):
            self._invalid_vitals.append(name)
            return 0.0
        return min(limit, max(0.0, value))

    @property
    def is_alive(self) -> bool:
        return self.state is CreatureState.ALIVE

    @property
    def is_active(self) -> bool:
        return self.state is CreatureState.ALIVE

    @property
    def is_mature(self) -> bool:
        return self.age >= self.genetics.maturity_age

    def is_same_species(self, other: 'Creature') -> bool:
        return self.genetics.is_same_species(other.genetics)

    def can_reproduce(self) -> bool:
        return (self.is_alive
                and self.is_mature
                and self.reproduction_cooldown == 0
                and self.energy >= REPRODUCTION_MIN_ENERGY)

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------

    def update(self, environment):
        """
        Run one full tick for this creature.

        Does nothing once DEAD. A creature whose health was zeroed since its
        last update (combat, population pressure) dies here without acting.
        """
        if not self.is_alive:
            return
        if self.check_survival():
            return

        sensors = self.sense(environment)
        outputs = self.think(sensors)
        self.act(outputs, environment)
        self.update_physics(environment)
        self.update_internal_state()
        self._report_invalid_vitals(environment)
        self.check_survival()
        self.update_fitness()

    def sense(self, environment) -> np.ndarray:
        self.last_sensors = build_sensor_vector(self, environment)
        return self.last_sensors

    def think(self, sensors: np.ndarray) -> np.ndarray:
        self.last_outputs = self.brain.evaluate(sensors)
        return self.last_outputs

    def act(self, outputs: np.ndarray, environment):
        """
        Translate brain outputs into movement, feeding, combat, and reproduction.

        Output order: move_x, move_y, eat, attack, reproduce.
        """
        move_x = float(outputs[OUT_MOVE_X])
        move_y = float(outputs[OUT_MOVE_Y])
        self.velocity = clamp_speed(np.array([move_x, move_y]) * self.max_speed, self.max_speed)
        effort = abs(move_x) + abs(move_y)
        if effort > 1e-6:
            self.rotation = math.atan2(move_y, move_x)
        self.energy -= effort * self.genetics.size * MOVEMENT_COST_FACTOR

        self._update_thought(outputs)

        if outputs[OUT_EAT] > EAT_THRESHOLD:
            self._try_eat(environment)

        if self.is_alive and outputs[OUT_ATTACK] > ATTACK_THRESHOLD:
            self._try_attack(environment)

        if outputs[OUT_REPRODUCE] > REPRODUCE_THRESHOLD and self.can_reproduce():
            self._try_reproduce(environment)

    def _try_eat(self, environment):
        reach_margin = self.collision_radius + FEEDING_MARGIN
        nearby = environment.query_nearby_entities(SpatialQuery(
            position=self.position,
            radius=reach_margin + environment.max_consumable_size,
            entity_types=CONSUMABLE_TYPES,
            sort_by_distance=True
        ))
        for food, d in nearby.food_hits:
            if d <= reach_margin + food.size:
                if food.type is EntityType.CARRION:
                    power = self.genetics.meat_preference * CARRION_FEEDING_FACTOR
                else:
                    power = FOOD_FEEDING_POWER
                environment.process_feeding(self, food, power)
                return

    def _try_attack(self, environment):
        nearby = environment.query_nearby_entities(SpatialQuery(
            position=self.position,
            radius=self.collision_radius + ATTACK_SEARCH_RANGE,
            entity_types=frozenset({EntityType.CREATURE}),
            exclude=self,
            max_results=1,
            sort_by_distance=True
        ))
        if nearby.creature_hits:
            target = nearby.creature_hits[0].entity
            environment.process_combat(self, target, self.genetics.aggression)

    def _try_reproduce(self, environment):
        if not environment.can_accept_offspring():
            return
        self.stats.reproduction_attempts += 1

        nearby = environment.query_nearby_entities(SpatialQuery(
            position=self.position,
            radius=self.collision_radius + MATE_SEARCH_RANGE,
            entity_types=frozenset({EntityType.CREATURE}),
            exclude=self,
            max_results=MATE_SEARCH_LIMIT,
            sort_by_distance=True
        ))
        for mate in nearby.creatures:
            if mate.can_reproduce() and self.is_same_species(mate):
                offspring = self.reproduce_with(mate, environment.rng)
                environment.add_creature(offspring)
                environment.record_event(
                    EventCategory.REPRODUCTION,
                    f"{self.id} + {mate.id} -> {offspring.id} (gen {offspring.generation})",
                    level=EventLevel.SUCCESS,
                    data={'parents': [str(self.id), str(mate.id)], 'offspring': str(offspring.id),
                          'generation': offspring.generation}
                )
                return

    def reproduce_with(self, mate: 'Creature', rng: np.random.Generator) -> 'Creature':
        """
        Produce one offspring with `mate` and charge both parents.

        Offspring genetics come from crossover + mutation; its brain from
        create_offspring_brain. Both parents pay reproduction_cost scaled by
        parental care (never dropping below the reserve), start a cooldown,
        and count the offspring.

        Returns:
            Offspring creature (not yet registered with an Environment)
        """
        care = (self.genetics.parental_care + mate.genetics.parental_care) / 2.0
        child_energy, child_health, cost_multiplier, cooldown = parental_care_profile(care)

        genetics = Genetics.crossover(self.genetics, mate.genetics, rng).mutated(rng)
        generation = max(self.generation, mate.generation) + 1
        brain = create_offspring_brain(self.brain, mate.brain, genetics, generation, rng)

        midpoint = (self.position + mate.position) / 2.0
        position = midpoint + rng.uniform(-OFFSPRING_SCATTER, OFFSPRING_SCATTER, size=2)

        offspring = Creature(
            genetics=genetics,
            brain=brain,
            position=position,
            generation=generation,
            parent_ids=(self.id, mate.id),
            energy=child_energy,
            health=child_health,
            rotation=rng.uniform(0.0, 2.0 * math.pi)
        )

        for parent in (self, mate):
            cost = parent.genetics.reproduction_cost * cost_multiplier
            affordable = max(0.0, parent.energy - REPRODUCTION_RESERVE_ENERGY)
            parent.energy -= min(cost, affordable)
            parent.reproduction_cooldown = cooldown
            parent.stats.offspring_count += 1

        return offspring

    def update_physics(self, environment):
        """Integrate velocity, then keep inside world bounds."""
        step = float(np.hypot(self.velocity[0], self.velocity[1]))
        self.position = self.position + self.velocity
        self.stats.distance_traveled += step
        environment.keep_within_bounds(self)

    def update_internal_state(self):
        self.age += 1
        self.stats.ticks_alive += 1
        g = self.genetics
        self.energy -= BASE_METABOLIC_COST * (2.0 - g.efficiency) * (g.size + g.speed) / 2.0

    def advance_cooldown(self):
        """Count down the reproduction cooldown; called once per tick before any creature acts."""
        if self.is_alive and self.reproduction_cooldown > 0:
            self.reproduction_cooldown -= 1

    def check_survival(self) -> bool:
        """
        Transition to DEAD if a death condition holds.

        Returns:
            True if the creature is (now) dead
        """
        if not self.is_alive:
            return True

        cause = None
        if self.health <= 0:
            cause = self.death_cause or DeathCause.INJURY
        elif self.energy <= 0:
            cause = DeathCause.STARVATION
        elif self.age >= self.genetics.lifespan:
            cause = DeathCause.OLD_AGE

        if cause is not None:
            self.die(cause)
            return True
        return False

    def die(self, cause: str):
        if not self.is_alive:
            return
        self.state = CreatureState.DEAD
        self.death_cause = cause
        self.velocity = np.zeros(2, dtype=np.float64)

    def mark_for_death(self, cause: str):
        """Zero health so the creature dies at its next survival check."""
        self.health = 0.0
        self.death_cause = cause

    def update_fitness(self):
        s = self.stats
        s.fitness = (s.ticks_alive
                     + s.offspring_count * FITNESS_OFFSPRING_WEIGHT
                     + s.distance_traveled * FITNESS_DISTANCE_WEIGHT
                     + s.food_eaten * FITNESS_FOOD_WEIGHT)

    def _update_thought(self, outputs: np.ndarray):
        sensors = self.last_sensors if self.last_sensors is not None else np.ones(SENSOR_COUNT)
        previous = self.thought
        self.thought = generate_thought(self, sensors, outputs, self.thought)
        if self.thought is not None and self.thought is not previous:
            history = self.stats.thought_history
            history.append(self.thought.text)
            if len(history) > THOUGHT_HISTORY_LIMIT:
                del history[0]
        self.stats.current_thought = self.thought.text if self.thought else None

    def _report_invalid_vitals(self, environment):
        if not self._invalid_vitals:
            return
        environment.record_event(
            EventCategory.CREATURE_LIFE,
            f"{self.id} had non-finite {', '.join(self._invalid_vitals)}; clamped to 0",
            level=EventLevel.WARNING,
            data={'creature': str(self.id), 'fields': list(self._invalid_vitals)}
        )
        self._invalid_vitals.clear()

    def to_dict(self) -> dict:
        return {
            'id': str(self.id) if self.id is not None else None,
            'generation': self.generation,
            'parent_ids': [str(p) for p in self.parent_ids],
            'state': self.state.value,
            'death_cause': self.death_cause,
            'position': self.position.tolist(),
            'velocity': self.velocity.tolist(),
            'rotation': self.rotation,
            'energy': self.energy,
            'health': self.health,
            'age': self.age,
            'genetics': self.genetics.to_dict(),
            'fitness': self.stats.fitness,
            'thought': self.stats.current_thought,
        }

    def __repr__(self) -> str:
        return (f"Creature(id={self.id}, gen={self.generation}, state={self.state.value}, "
                f"energy={self.energy:.1f}, health={self.health:.1f}, age={self.age})")
