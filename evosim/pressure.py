"""
Population-pressure controller.

Density-dependent feedback that bounds population growth once the living
population exceeds the carrying-capacity target:

1. Mortality: each creature dies with p = mortality_rate * ratio^2,
   ratio = (population - target) / target
2. Social stress: energy drain = neighbours within stress_radius * density_stress_factor
3. Emergency cap: excess over max_population (not counting creatures stress
   drained to zero energy) is culled, lowest fitness first,
   oldest first among equal fitness

Victims get health = 0 and die at their next survival check; removal happens
in the environment's cleanup phase.
"""

import numpy as np
from dataclasses import dataclass
from typing import List

from .creature import Creature, DeathCause
from .data_types import CarryingCapacityConfig
from .events import EventCategory, EventLevel
from .spatial_queries import count_neighbors_within
from .constants import (
    RESOURCE_SCALING_FLOOR,
    RESOURCE_SCALING_SLOPE,
    UNDERPOPULATED_MULTIPLIER,
    PRESSURE_LOG_INTERVAL,
)


@dataclass
class PressureReport:
    """What one pressure pass did"""
    population: int = 0
    overpopulation_ratio: float = 0.0
    mortality_deaths: int = 0
    stress_drained: float = 0.0
    emergency_culls: int = 0
    active: bool = False


def living(creatures: List[Creature]) -> List[Creature]:
    """Creatures that are alive and not already marked for death."""
    return [c for c in creatures if c.is_alive and c.health > 0]


class PopulationPressureController:
    """Applies carrying-capacity feedback to an environment's creatures."""

    def __init__(self, config: CarryingCapacityConfig):
        self.config = config

    def overpopulation_ratio(self, population: int) -> float:
        target = self.config.target_population
        return (population - target) / target

    def resource_multiplier(self, population: int) -> float:
        """Spawn-rate multiplier: scarce when crowded, generous when sparse."""
        target = self.config.target_population
        if population > target:
            ratio = self.overpopulation_ratio(population)
            return max(RESOURCE_SCALING_FLOOR, self.config.resource_scaling - ratio * RESOURCE_SCALING_SLOPE)
        if population < target * 0.5:
            return UNDERPOPULATED_MULTIPLIER
        return 1.0

    def apply(self, environment, creatures: List[Creature], rng: np.random.Generator) -> PressureReport:
        """
        Run one pressure pass.

        Args:
            environment: Owning environment (for tick and event recording)
            creatures: All creatures currently held by the environment
            rng: Generator for mortality draws

        Returns:
            PressureReport (active=False when population <= target)
        """
        cfg = self.config
        alive = living(creatures)
        population = len(alive)
        report = PressureReport(population=population)

        if population <= cfg.target_population:
            return report

        report.active = True
        ratio = self.overpopulation_ratio(population)
        report.overpopulation_ratio = ratio

        death_chance = cfg.mortality_rate * ratio * ratio
        rolls = rng.random(population)
        for creature, roll in zip(alive, rolls):
            if roll < death_chance:
                creature.mark_for_death(DeathCause.POPULATION_PRESSURE)
                report.mortality_deaths += 1

        survivors = living(alive)
        if survivors and cfg.density_stress_factor > 0:
            positions = np.array([c.position for c in survivors], dtype=np.float64)
            neighbours = count_neighbors_within(positions, cfg.stress_radius)
            for creature, count in zip(survivors, neighbours):
                drain = float(count) * cfg.density_stress_factor
                creature.energy -= drain
                report.stress_drained += drain

        # Stress-starved creatures die at their survival check; they do not count toward the cap
        survivors = [c for c in living(alive) if c.energy > 0]
        excess = len(survivors) - cfg.max_population
        if excess > 0:
            survivors.sort(key=lambda c: (c.stats.fitness, -c.age))
            for creature in survivors[:excess]:
                creature.mark_for_death(DeathCause.POPULATION_PRESSURE)
            report.emergency_culls = excess
            environment.record_event(
                EventCategory.POPULATION,
                f"Emergency cull: {excess} creatures over cap {cfg.max_population}",
                level=EventLevel.WARNING,
                data={'culled': excess, 'population': len(survivors), 'cap': cfg.max_population}
            )

        if environment.tick % PRESSURE_LOG_INTERVAL == 0:
            environment.record_event(
                EventCategory.POPULATION,
                f"Population {population}/{cfg.target_population} (ratio {ratio:.2f}, "
                f"mortality {report.mortality_deaths}, culls {report.emergency_culls})",
                level=EventLevel.INFO,
                data={
                    'population': population,
                    'target': cfg.target_population,
                    'ratio': ratio,
                    'mortality_deaths': report.mortality_deaths,
                    'emergency_culls': report.emergency_culls,
                    'resource_multiplier': self.resource_multiplier(population),
                }
            )

        return report
