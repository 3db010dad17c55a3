"""
Environment: entity lifecycle manager.

Owns all creatures, food, carrion, and environmental features (in
generational arenas), the spatial grid, and the population-pressure
controller. update() runs the fixed per-tick pipeline:

    (1) move prey
    (2) decay carrion (fully decayed carrion removed)
    (3) population pressure
    (4) feature effects, reproduction cooldowns, then creature.update()
        for each living creature
    (5) spawn food/prey/mushrooms
    (6) cleanup: dead creatures -> carrion
    (7) rebuild spatial grid
    (8) recompute stats

Combat and feeding are resolved here so that two creatures targeting the
same defender or food item within one tick are handled in update order.
"""

import time
import numpy as np
from collections import Counter
from itertools import chain
from typing import List, Optional

from .arena import Arena, Handle
from .creature import Creature, DeathCause
from .data_types import (
    EnvironmentConfig, EnvironmentStats, CombatOutcome, FeedingOutcome, Biome
)
from .entity import EntityType, Food, Carrion, Feature
from .events import EventSink, NullEventSink, SimEvent, EventCategory, EventLevel
from .genetics import TRAIT_BOUNDS
from .loader import get_biome
from .pressure import PopulationPressureController, living
from .rng import make_rng, random_unit_vector
from .spatial import distance_2d, normalize, reflect_velocity, clamp
from .spatial_queries import SpatialGrid, SpatialQuery, QueryResult
from .spawning import (
    spawn_initial_food, spawn_features, spawn_plant, spawn_prey, spawn_mushroom, spawn_founders
)
from .constants import (
    COLLISION_RADIUS_PER_SIZE,
    PLANT_SIZE,
    MUSHROOM_SIZE,
    PREY_SIZE,
    FEEDING_MARGIN,
    BOUNDARY_MARGIN,
    COMBAT_MISS_COST,
    COMBAT_BASE_CHANCE,
    COMBAT_SIZE_WEIGHT,
    COMBAT_AGGRESSION_WEIGHT,
    COMBAT_POWER_WEIGHT,
    COMBAT_SPEED_WEIGHT,
    COMBAT_MIN_CHANCE,
    COMBAT_MAX_CHANCE,
    COMBAT_DAMAGE_PER_SIZE,
    COMBAT_SUCCESS_BASE_COST,
    COMBAT_SUCCESS_POWER_COST,
    COMBAT_FAILURE_BASE_COST,
    COMBAT_FAILURE_POWER_COST,
    PREDATION_ENERGY_PER_SIZE,
    CARRION_MIN_DECAY_TICKS,
    CARRION_MAX_DECAY_TICKS,
    CARRION_DEFAULT_ENERGY,
    PLANT_STOCK_FRACTION,
    PREY_STOCK_FRACTION,
    MUSHROOM_STOCK_FRACTION,
    MUSHROOM_SPAWN_FACTOR,
)


class Environment:
    """
    2D world holding every entity and running the tick pipeline.

    Args:
        config: EnvironmentConfig (validated here; ConfigError on failure)
        sink: Event sink (default: NullEventSink)
        rng: Generator for all randomness (overrides seed)
        seed: Seed for a fresh PCG64 generator (None = unseeded)
        populate_resources: Spawn initial food and features
    """

    def __init__(
        self,
        config: Optional[EnvironmentConfig] = None,
        sink: Optional[EventSink] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        populate_resources: bool = True
    ):
        self.config = config if config is not None else EnvironmentConfig()
        self.config.validate()

        self.biome: Biome = get_biome(self.config.biome)
        self.sink: EventSink = sink if sink is not None else NullEventSink()
        self.rng: np.random.Generator = rng if rng is not None else make_rng(seed)

        self.creatures: Arena[Creature] = Arena('creature')
        self.food: Arena[Food] = Arena('food')
        self.carrion: Arena[Carrion] = Arena('carrion')
        self.features: Arena[Feature] = Arena('feature')

        self.grid = SpatialGrid(self.config.spatial_grid_size)
        cc = self.config.carrying_capacity
        self.pressure = PopulationPressureController(cc) if cc is not None else None

        self.tick = 0
        self.stats = EnvironmentStats()
        self._interaction_checks = 0
        self._population_count = 0
        self.total_births = 0
        self.total_deaths = 0
        self.death_causes: Counter = Counter()
        self._obstacle_count = 0
        self.max_obstacle_size = 0.0
        self.max_consumable_size = max(PLANT_SIZE, MUSHROOM_SIZE, PREY_SIZE,
                                       TRAIT_BOUNDS['size'][1] * COLLISION_RADIUS_PER_SIZE)

        if populate_resources:
            for food in spawn_initial_food(self.config, self.biome, self.rng):
                self.add_food(food)
            for feature in spawn_features(self.config, self.biome, self.rng):
                self.add_feature(feature)

        self.update_spatial_grid()
        self._update_stats(0.0)

        self.record_event(
            EventCategory.ENVIRONMENT,
            f"Environment ready: biome={self.biome.name}, food={len(self.food)}, features={len(self.features)}",
            level=EventLevel.SUCCESS,
            data={'biome': self.biome.name, 'food': len(self.food), 'features': len(self.features)}
        )

    # ========================================================================
    # Events
    # ========================================================================

    def record_event(self, category: EventCategory, message: str,
                     level: EventLevel = EventLevel.INFO, data: Optional[dict] = None):
        self.sink.record(SimEvent(tick=self.tick, category=category, message=message,
                                  level=level, data=data or {}))

    # ========================================================================
    # Entity management
    # ========================================================================

    def add_creature(self, creature: Creature) -> Handle:
        """Register a creature, clamp it inside bounds, and index it immediately."""
        creature.id = self.creatures.insert(creature)
        self.keep_within_bounds(creature)
        self.grid.insert(creature)
        self._population_count += 1
        if creature.generation > 0:
            self.total_births += 1
        self.record_event(
            EventCategory.CREATURE_LIFE,
            f"{creature.id} born (gen {creature.generation})",
            level=EventLevel.DEBUG,
            data={'creature': str(creature.id), 'generation': creature.generation,
                  'parents': [str(p) for p in creature.parent_ids]}
        )
        return creature.id

    def remove_creature(self, creature_id: Handle) -> bool:
        """
        Remove a creature by handle.

        A dead creature leaves carrion at its last position.

        Returns:
            False if the handle does not resolve (unknown or already removed)
        """
        creature = self.creatures.get(creature_id)
        if creature is None:
            return False
        if not creature.is_alive:
            self._create_carrion(creature)
        else:
            self._population_count = max(0, self._population_count - 1)
        self.creatures.remove(creature_id)
        self.grid.remove(creature)
        return True

    def populate(self, count: int, center=None, spread: Optional[float] = None) -> List[Handle]:
        """Spawn `count` founders (optionally clustered around center) and register them."""
        founders = spawn_founders(count, self.config.bounds, self.rng, center=center, spread=spread)
        return [self.add_creature(c) for c in founders]

    def add_food(self, food: Food) -> Handle:
        food.id = self.food.insert(food)
        self.grid.insert(food)
        return food.id

    def add_feature(self, feature: Feature) -> Handle:
        feature.id = self.features.insert(feature)
        self.grid.insert(feature)
        if feature.type is EntityType.OBSTACLE:
            self._obstacle_count += 1
            self.max_obstacle_size = max(self.max_obstacle_size, feature.size)
        return feature.id

    def add_carrion(self, carrion: Carrion) -> Handle:
        carrion.id = self.carrion.insert(carrion)
        self.grid.insert(carrion)
        return carrion.id

    def _create_carrion(self, creature: Creature) -> Carrion:
        energy = creature.energy if creature.energy > 0 else CARRION_DEFAULT_ENERGY
        carrion = Carrion(
            position=creature.position.copy(),
            original_creature_id=creature.id,
            time_of_death=self.tick,
            size=creature.collision_radius,
            max_decay_time=int(self.rng.integers(CARRION_MIN_DECAY_TICKS, CARRION_MAX_DECAY_TICKS + 1)),
            original_energy_value=energy
        )
        self.add_carrion(carrion)
        self.record_event(
            EventCategory.CARRION,
            f"Carrion {carrion.id} from {creature.id} ({energy:.1f} energy)",
            level=EventLevel.DEBUG,
            data={'carrion': str(carrion.id), 'creature': str(creature.id), 'energy': energy}
        )
        return carrion

    # ========================================================================
    # Accessors
    # ========================================================================

    def get_creature(self, creature_id: Handle) -> Optional[Creature]:
        return self.creatures.get(creature_id)

    def get_creatures(self) -> List[Creature]:
        return self.creatures.values()

    def get_living_creatures(self) -> List[Creature]:
        return living(self.creatures.values())

    def get_all_food(self) -> List[Food]:
        return [f for f in self.food if f.is_active]

    def get_carrion(self) -> List[Carrion]:
        return [c for c in self.carrion if c.is_active]

    def get_features(self) -> List[Feature]:
        return self.features.values()

    @property
    def has_obstacles(self) -> bool:
        return self._obstacle_count > 0

    @property
    def living_population(self) -> int:
        return len(self.get_living_creatures())

    def can_accept_offspring(self) -> bool:
        return self._population_count < self.config.population_cap

    def get_stats(self) -> EnvironmentStats:
        return EnvironmentStats(**self.stats.to_dict())

    # ========================================================================
    # Spatial
    # ========================================================================

    def query_nearby_entities(self, query: SpatialQuery) -> QueryResult:
        return self.grid.query(query)

    def update_spatial_grid(self):
        self.grid.rebuild(self.creatures, chain(self.food, self.carrion), self.features)

    def _bound(self, position: np.ndarray, velocity: np.ndarray, margin: float):
        """Clamp a point inside world bounds, reflecting outward velocity."""
        b = self.config.bounds
        if b.is_circular:
            center = np.array(b.center, dtype=np.float64)
            normal, dist = normalize(position - center)
            limit = max(0.0, b.radius - margin)
            if dist > limit:
                position = center + normal * limit
                if np.dot(velocity, normal) > 0:
                    velocity = reflect_velocity(velocity, normal)
            return position, velocity

        margin = min(margin, b.width / 2.0, b.height / 2.0)
        x = float(position[0])
        y = float(position[1])
        vx = float(velocity[0])
        vy = float(velocity[1])
        if x < margin:
            x, vx = margin, abs(vx)
        elif x > b.width - margin:
            x, vx = b.width - margin, -abs(vx)
        if y < margin:
            y, vy = margin, abs(vy)
        elif y > b.height - margin:
            y, vy = b.height - margin, -abs(vy)
        return np.array([x, y]), np.array([vx, vy])

    def keep_within_bounds(self, creature: Creature):
        """Clamp a creature inside the world (never wraps), reflecting its velocity."""
        margin = creature.collision_radius if self.config.bounds.is_circular else BOUNDARY_MARGIN
        creature.position, creature.velocity = self._bound(creature.position, creature.velocity, margin)

    # ========================================================================
    # Interactions
    # ========================================================================

    def process_combat(self, attacker: Creature, defender: Creature, attack_power: float) -> CombatOutcome:
        """
        Resolve one attack (size-scaled predation).

        Out of range (distance > sum of collision radii): fails, costs
        COMBAT_MISS_COST, defender untouched. In range: success chance
        clamp(0.1, 0.9, 0.3 + 0.3*size_a/size_d + 0.4*aggression_a
        + 0.2*power - 0.2*speed_d); damage = power * size_a * 25. A kill
        transfers size_d * PREDATION_ENERGY_PER_SIZE energy to the attacker.

        Returns:
            CombatOutcome (missing/dead participants give a no-cost failure)
        """
        if (defender is None or defender is attacker or not attacker.is_alive
                or not defender.is_alive or defender.id not in self.creatures):
            return CombatOutcome(False, reason='target_missing')

        self._interaction_checks += 1
        reach = attacker.collision_radius + defender.collision_radius
        distance = distance_2d(attacker.position, defender.position)
        if distance > reach:
            attacker.energy -= COMBAT_MISS_COST
            self.record_event(
                EventCategory.COMBAT,
                f"{attacker.id} out of range of {defender.id}",
                level=EventLevel.DEBUG,
                data={'attacker': str(attacker.id), 'defender': str(defender.id),
                      'distance': distance, 'reach': reach}
            )
            return CombatOutcome(False, energy_cost=COMBAT_MISS_COST, reason='out_of_range')

        ga = attacker.genetics
        gd = defender.genetics
        chance = clamp(
            COMBAT_BASE_CHANCE
            + COMBAT_SIZE_WEIGHT * (ga.size / gd.size)
            + COMBAT_AGGRESSION_WEIGHT * ga.aggression
            + COMBAT_POWER_WEIGHT * attack_power
            - COMBAT_SPEED_WEIGHT * gd.speed,
            COMBAT_MIN_CHANCE, COMBAT_MAX_CHANCE
        )

        if self.rng.random() >= chance:
            cost = COMBAT_FAILURE_BASE_COST + COMBAT_FAILURE_POWER_COST * attack_power
            attacker.energy -= cost
            self.record_event(
                EventCategory.COMBAT,
                f"{attacker.id} missed {defender.id}",
                level=EventLevel.DEBUG,
                data={'attacker': str(attacker.id), 'defender': str(defender.id), 'chance': chance}
            )
            return CombatOutcome(False, energy_cost=cost, reason='missed')

        damage = attack_power * ga.size * COMBAT_DAMAGE_PER_SIZE
        cost = COMBAT_SUCCESS_BASE_COST + COMBAT_SUCCESS_POWER_COST * attack_power
        defender.health -= damage
        attacker.energy -= cost
        attacker.stats.attacks_given += 1
        defender.stats.attacks_received += 1

        outcome = CombatOutcome(True, energy_cost=cost, damage=damage)
        if defender.health <= 0:
            defender.die(DeathCause.PREDATION)
            before = attacker.energy
            attacker.energy += gd.size * PREDATION_ENERGY_PER_SIZE
            outcome.defender_killed = True
            outcome.energy_gained = attacker.energy - before

        self.record_event(
            EventCategory.COMBAT,
            f"{attacker.id} hit {defender.id} for {damage:.1f}"
            + (" (killed)" if outcome.defender_killed else ""),
            level=EventLevel.INFO,
            data={'attacker': str(attacker.id), 'defender': str(defender.id), 'damage': damage,
                  'killed': outcome.defender_killed, 'energy_gained': outcome.energy_gained}
        )
        return outcome

    def process_feeding(self, creature: Creature, food, feeding_power: float) -> FeedingOutcome:
        """
        Let a creature consume a food or carrion entity.

        Gain = energy_value * feeding_power * diet, where diet is the
        creature's plant preference for plants and meat preference for
        everything else (mushrooms, prey, carrion). Energy caps at 100.
        The entity is removed on success.

        Returns:
            FeedingOutcome (out_of_range / target_missing on failure)
        """
        arena = self.carrion if food is not None and food.type is EntityType.CARRION else self.food
        if food is None or not food.is_active or food.id not in arena or not creature.is_alive:
            return FeedingOutcome(False, reason='target_missing')

        self._interaction_checks += 1
        reach = creature.collision_radius + food.size + FEEDING_MARGIN
        if distance_2d(creature.position, food.position) > reach:
            return FeedingOutcome(False, reason='out_of_range')

        if food.type is EntityType.PLANT_FOOD:
            diet = creature.genetics.plant_preference
        else:
            diet = creature.genetics.meat_preference

        before = creature.energy
        creature.energy += food.energy_value * feeding_power * diet
        gained = creature.energy - before
        creature.stats.food_eaten += 1

        food.is_active = False
        arena.remove(food.id)

        self.record_event(
            EventCategory.FEEDING,
            f"{creature.id} ate {food.type.value} (+{gained:.2f})",
            level=EventLevel.DEBUG,
            data={'creature': str(creature.id), 'food': str(food.id), 'type': food.type.value,
                  'energy_gained': gained}
        )
        return FeedingOutcome(True, energy_gained=gained)

    # ========================================================================
    # Tick pipeline
    # ========================================================================

    def update(self):
        """Advance the world by one tick."""
        start = time.perf_counter()
        self.tick += 1
        self.grid.reset_counters()
        self._interaction_checks = 0

        self._move_prey()
        self._decay_carrion()

        if self.pressure is not None:
            self.pressure.apply(self, self.creatures.values(), self.rng)

        self._apply_feature_effects()
        self._population_count = len(self.get_living_creatures())
        creatures = self.creatures.values()
        for creature in creatures:
            creature.advance_cooldown()
        for creature in creatures:
            creature.update(self)

        self._spawn_resources()
        self._cleanup()
        self.update_spatial_grid()

        self._update_stats((time.perf_counter() - start) * 1000.0)

    def _move_prey(self):
        for prey in self.food:
            if not prey.is_mobile:
                continue
            prey.velocity = random_unit_vector(self.rng) * prey.max_speed
            prey.position, prey.velocity = self._bound(prey.position + prey.velocity,
                                                       prey.velocity, prey.size)

    def _decay_carrion(self):
        for handle, carrion in list(self.carrion.items()):
            if carrion.advance_decay(self.tick):
                carrion.is_active = False
                self.carrion.remove(handle)

    def _apply_feature_effects(self):
        for feature in self.features:
            effect = feature.effect
            if effect.energy_modifier == 0.0 and effect.health_modifier == 0.0:
                continue
            nearby = self.grid.query(SpatialQuery(
                position=feature.position,
                radius=feature.size,
                entity_types=frozenset({EntityType.CREATURE})
            ))
            for creature in nearby.creatures:
                if creature.health <= 0:
                    continue
                creature.energy += effect.energy_modifier
                creature.health += effect.health_modifier

    def _spawn_resources(self):
        c = self.biome.characteristics
        cfg = self.config
        multiplier = 1.0
        if self.pressure is not None:
            multiplier = self.pressure.resource_multiplier(self.living_population)

        counts = {EntityType.PLANT_FOOD: 0, EntityType.MUSHROOM_FOOD: 0, EntityType.SMALL_PREY: 0}
        for food in self.food:
            counts[food.type] += 1

        # (stock limit, kind, spawn chance, factory); max_food is rechecked before each spawn
        schedule = (
            (cfg.max_food * c.plant_density * PLANT_STOCK_FRACTION, EntityType.PLANT_FOOD,
             cfg.food_spawn_rate * c.plant_density, spawn_plant),
            (cfg.max_food * c.prey_density * PREY_STOCK_FRACTION, EntityType.SMALL_PREY,
             cfg.prey_spawn_rate * c.prey_density, spawn_prey),
            (cfg.max_food * c.humidity * MUSHROOM_STOCK_FRACTION, EntityType.MUSHROOM_FOOD,
             cfg.food_spawn_rate * c.humidity * MUSHROOM_SPAWN_FACTOR, spawn_mushroom),
        )
        for stock_limit, kind, chance, factory in schedule:
            if len(self.food) >= cfg.max_food:
                return
            if counts[kind] < stock_limit and self.rng.random() < chance * multiplier:
                self.add_food(factory(cfg.bounds, self.rng))

    def _cleanup(self):
        for handle, creature in list(self.creatures.items()):
            if not creature.check_survival():
                continue
            self.total_deaths += 1
            self.death_causes[creature.death_cause] += 1
            self.record_event(
                EventCategory.CREATURE_LIFE,
                f"{handle} died ({creature.death_cause}) at age {creature.age}",
                level=EventLevel.INFO,
                data={'creature': str(handle), 'cause': creature.death_cause, 'age': creature.age,
                      'generation': creature.generation, 'fitness': creature.stats.fitness}
            )
            self.remove_creature(handle)
        self._population_count = len(self.get_living_creatures())

    def _update_stats(self, elapsed_ms: float):
        s = self.stats
        s.tick = self.tick
        creatures = self.creatures.values()
        s.total_creatures = len(creatures)
        s.living_creatures = sum(1 for c in creatures if c.is_alive)
        s.dead_creatures = s.total_creatures - s.living_creatures
        s.plant_food = s.mushroom_food = s.prey_food = 0
        for food in self.food:
            if food.type is EntityType.PLANT_FOOD:
                s.plant_food += 1
            elif food.type is EntityType.MUSHROOM_FOOD:
                s.mushroom_food += 1
            else:
                s.prey_food += 1
        s.total_food = s.plant_food + s.mushroom_food + s.prey_food
        s.carrion = len(self.carrion)
        s.features = len(self.features)
        s.spatial_queries = self.grid.query_count
        s.collision_checks = self.grid.check_count + self._interaction_checks
        s.update_time_ms = elapsed_ms
