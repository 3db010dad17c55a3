"""
Population-pressure controller and the population cap.

Scenario: target 300, carrying max 400, mortality 0.02, 400 founders
clustered in one region. Living population must never exceed 400,
pressure must remove some creatures within 50 ticks, and over 300 ticks
the population settles back toward the 300 target.
"""

import numpy as np
import pytest

from evosim.brains import create_founder_brain
from evosim.creature import Creature, DeathCause
from evosim.data_types import EnvironmentConfig, CarryingCapacityConfig
from evosim.environment import Environment
from evosim.events import MemoryEventSink, EventCategory, EventLevel
from evosim.genetics import Genetics
from evosim.pressure import PopulationPressureController, living
from evosim.rng import make_rng


def _quiet_env(sink=None):
    config = EnvironmentConfig(max_food=0, obstacle_count=0, carrying_capacity=None)
    return Environment(config, sink=sink, seed=1, populate_resources=False)


def _creatures(n, seed=0, position=(500.0, 500.0)):
    rng = make_rng(seed)
    return [Creature(Genetics(), create_founder_brain(rng), list(position)) for _ in range(n)]


def test_population_never_exceeds_cap():
    config = EnvironmentConfig(
        max_creatures=400,
        carrying_capacity=CarryingCapacityConfig(target_population=300, max_population=400,
                                                 mortality_rate=0.02)
    )
    env = Environment(config, seed=2024)
    env.populate(400, center=(500.0, 500.0), spread=150.0)
    assert env.living_population == 400

    history = []
    for _ in range(300):
        env.update()
        population = env.living_population
        history.append(population)
        assert population <= 400, f"Population {population} over cap at tick {env.tick}"
        if env.tick == 50:
            assert population < 400
            assert env.death_causes[DeathCause.POPULATION_PRESSURE] > 0

    early = float(np.mean(history[:10]))
    late = float(np.mean(history[-100:]))
    assert late < 360.0, f"Late mean {late:.1f} not settling toward target 300"
    assert late < early, f"Late mean {late:.1f} not below early mean {early:.1f}"
    print(f"[OK] 300 ticks: peak {max(history)}, early mean {early:.1f}, late mean {late:.1f}, "
          f"pressure deaths {env.death_causes[DeathCause.POPULATION_PRESSURE]}")


def test_resource_multiplier():
    controller = PopulationPressureController(CarryingCapacityConfig(target_population=300,
                                                                     max_population=400))
    assert controller.resource_multiplier(100) == 1.5
    assert controller.resource_multiplier(200) == 1.0
    assert controller.resource_multiplier(300) == 1.0
    assert controller.resource_multiplier(400) == pytest.approx(0.85 - (100 / 300) * 0.3)
    assert controller.resource_multiplier(3000) == 0.2


def test_inactive_below_target():
    env = _quiet_env()
    controller = PopulationPressureController(CarryingCapacityConfig(target_population=10,
                                                                     max_population=20))
    creatures = _creatures(5)
    report = controller.apply(env, creatures, make_rng(1))
    assert not report.active
    assert all(c.energy == 100.0 for c in creatures)


def test_emergency_cull_lowest_fitness_then_oldest():
    sink = MemoryEventSink()
    env = _quiet_env(sink)
    controller = PopulationPressureController(CarryingCapacityConfig(
        target_population=5, max_population=8, mortality_rate=0.0, density_stress_factor=0.0
    ))
    creatures = _creatures(12)
    for i, c in enumerate(creatures):
        c.stats.fitness = float(i)
        c.age = i
    # Tie on lowest fitness: the older one goes first
    creatures[1].stats.fitness = 0.0
    creatures[1].age = 50

    report = controller.apply(env, creatures, make_rng(2))

    assert report.emergency_culls == 4
    culled = [c for c in creatures if c.health == 0.0]
    assert set(map(id, culled)) == set(map(id, creatures[:4]))
    assert all(c.death_cause == DeathCause.POPULATION_PRESSURE for c in culled)
    assert len(living(creatures)) == 8

    culls = sink.get_events(category=EventCategory.POPULATION, level=EventLevel.WARNING)
    assert len(culls) == 1 and culls[0].data['culled'] == 4


def test_cull_order_prefers_older_on_tie():
    env = _quiet_env()
    controller = PopulationPressureController(CarryingCapacityConfig(
        target_population=1, max_population=2, mortality_rate=0.0, density_stress_factor=0.0
    ))
    young, old, fit = _creatures(3)
    young.age, old.age, fit.age = 10, 90, 5
    fit.stats.fitness = 100.0

    controller.apply(env, [young, old, fit], make_rng(3))
    assert old.health == 0.0
    assert young.health > 0.0 and fit.health > 0.0


def test_social_stress_drains_crowded_creatures():
    env = _quiet_env()
    controller = PopulationPressureController(CarryingCapacityConfig(
        target_population=1, max_population=10, mortality_rate=0.0,
        density_stress_factor=0.5, stress_radius=150.0
    ))
    crowd = _creatures(3, position=(500.0, 500.0))
    loner = _creatures(1, seed=1, position=(900.0, 500.0))[0]

    report = controller.apply(env, crowd + [loner], make_rng(4))

    assert report.active
    for c in crowd:
        assert c.energy == pytest.approx(99.0), "Two neighbours at 0.5 each"
    assert loner.energy == 100.0
    assert report.stress_drained == pytest.approx(3.0)


def test_mortality_marks_but_does_not_remove():
    env = _quiet_env()
    controller = PopulationPressureController(CarryingCapacityConfig(
        target_population=1, max_population=100, mortality_rate=1.0, density_stress_factor=0.0
    ))
    creatures = _creatures(3)
    report = controller.apply(env, creatures, make_rng(5))

    # ratio = 2, death chance = 1.0 * 4 -> every roll succeeds
    assert report.mortality_deaths == 3
    assert all(c.is_alive and c.health == 0.0 for c in creatures)
    assert np.all([c.death_cause == DeathCause.POPULATION_PRESSURE for c in creatures])


def test_stress_starved_creatures_do_not_trigger_cull():
    env = _quiet_env()
    controller = PopulationPressureController(CarryingCapacityConfig(
        target_population=1, max_population=2, mortality_rate=0.0,
        density_stress_factor=100.0, stress_radius=150.0
    ))
    crowd = _creatures(3, position=(500.0, 500.0))
    for c in crowd:
        c.stats.fitness = 50.0
    loners = [_creatures(1, seed=1, position=(100.0, 500.0))[0],
              _creatures(1, seed=2, position=(900.0, 500.0))[0]]
    for c in loners:
        c.stats.fitness = 1.0

    report = controller.apply(env, crowd + loners, make_rng(6))

    assert all(c.energy == 0.0 for c in crowd), "Crowd drained by stress"
    assert report.emergency_culls == 0
    assert all(c.health > 0.0 and c.energy == 100.0 for c in loners)

    survivors = [c for c in crowd + loners if not c.check_survival()]
    assert len(survivors) == 2, f"{len(survivors)} survivors instead of cap 2"
    print("[OK] Starved crowd leaves both loners alive at cap 2")
