"""
Creature state machine, vitals clamping, reproduction, sensing, thoughts.
"""

import numpy as np
import pytest

from evosim.behavior import build_sensor_vector, generate_thought, Thought
from evosim.brains import create_founder_brain, OUTPUT_ACTIVATIONS
from evosim.creature import Creature, CreatureState, DeathCause, parental_care_profile
from evosim.data_types import EnvironmentConfig
from evosim.entity import EntityType, Food
from evosim.environment import Environment
from evosim.events import MemoryEventSink, EventLevel, EventCategory
from evosim.genetics import Genetics
from evosim.neural import NeuralNetwork, Layer
from evosim.rng import make_rng
from evosim.constants import SENSOR_COUNT, OUTPUT_COUNT


def _quiet_env(seed=1, sink=None):
    config = EnvironmentConfig(max_food=0, obstacle_count=0, carrying_capacity=None)
    return Environment(config, sink=sink, seed=seed, populate_resources=False)


def _creature(position=(500.0, 500.0), seed=0, **traits):
    return Creature(Genetics(**traits), create_founder_brain(make_rng(seed)), list(position))


class TestVitals:
    def test_setters_clamp(self):
        c = _creature()
        c.energy = 150.0
        c.health = -20.0
        assert c.energy == 100.0
        assert c.health == 0.0

    def test_non_finite_values_become_zero_and_are_reported(self):
        sink = MemoryEventSink()
        env = _quiet_env(sink=sink)
        c = _creature()
        env.add_creature(c)

        c.energy = float('nan')
        assert c.energy == 0.0

        c.energy = 80.0
        c.update(env)
        warnings = sink.get_events(category=EventCategory.CREATURE_LIFE, level=EventLevel.WARNING)
        assert len(warnings) == 1
        assert warnings[0].data['fields'] == ['energy']
        print(f"[OK] Non-finite energy reported: {warnings[0].message}")


class TestSurvival:
    def test_starvation(self):
        c = _creature()
        c.energy = 0.0
        assert c.check_survival()
        assert c.state is CreatureState.DEAD
        assert c.death_cause == DeathCause.STARVATION

    def test_old_age(self):
        c = _creature(lifespan=500.0)
        c.age = 500
        assert c.check_survival()
        assert c.death_cause == DeathCause.OLD_AGE

    def test_marked_creature_dies_before_acting(self):
        env = _quiet_env()
        c = _creature()
        env.add_creature(c)
        c.mark_for_death(DeathCause.POPULATION_PRESSURE)

        c.update(env)
        assert not c.is_alive
        assert c.death_cause == DeathCause.POPULATION_PRESSURE
        assert c.age == 0, "Dead creatures do not age"

    def test_dead_is_terminal(self):
        env = _quiet_env()
        c = _creature()
        env.add_creature(c)
        c.die(DeathCause.INJURY)
        c.health = 100.0
        c.update(env)
        assert c.state is CreatureState.DEAD
        assert c.death_cause == DeathCause.INJURY

    def test_update_ages_and_spends_energy(self):
        env = _quiet_env()
        c = _creature()
        env.add_creature(c)
        c.update(env)
        assert c.age == 1
        assert c.energy < 100.0
        assert c.last_sensors.shape == (SENSOR_COUNT,)
        assert c.last_outputs.shape == (OUTPUT_COUNT,)
        assert c.stats.fitness >= 1.0


class TestReproduction:
    def test_parental_care_profile(self):
        energy, health, cost, cooldown = parental_care_profile(1.0)
        assert energy == pytest.approx(60.0)
        assert health == pytest.approx(95.0)
        assert cost == pytest.approx(1.5)
        assert cooldown == 150

    def test_can_reproduce_requires_maturity_energy_and_cooldown(self):
        c = _creature(maturity_age=100.0)
        assert not c.can_reproduce()
        c.age = 100
        assert c.can_reproduce()
        c.reproduction_cooldown = 5
        assert not c.can_reproduce()
        c.reproduction_cooldown = 0
        c.energy = 40.0
        assert not c.can_reproduce()

    def test_reproduce_with_charges_parents(self):
        env = _quiet_env()
        a = _creature(seed=1, parental_care=0.5, reproduction_cost=40.0)
        b = _creature((510.0, 500.0), seed=2, parental_care=0.5, reproduction_cost=40.0)
        env.add_creature(a)
        env.add_creature(b)

        child = a.reproduce_with(b, make_rng(3))

        assert child.generation == 1
        assert child.parent_ids == (a.id, b.id)
        assert child.energy == pytest.approx(42.5)
        assert child.health == pytest.approx(82.5)
        for parent in (a, b):
            assert parent.energy == pytest.approx(60.0)
            assert parent.reproduction_cooldown == 110
            assert parent.stats.offspring_count == 1
        assert child.brain is not a.brain

    def test_cost_never_drops_parent_below_reserve(self):
        a = _creature(seed=1, parental_care=1.0, reproduction_cost=60.0)
        b = _creature(seed=2, parental_care=1.0, reproduction_cost=60.0)
        a.energy = 55.0
        b.energy = 55.0
        a.reproduce_with(b, make_rng(4))
        assert a.energy == pytest.approx(10.0)
        assert b.energy == pytest.approx(10.0)

    def test_both_parents_share_cooldown_regardless_of_update_order(self):
        def fixed_brain(reproduce_bias):
            # No movement, no eating or attacking, constant reproduce drive
            biases = [0.0, 0.0, -10.0, -10.0, reproduce_bias]
            return NeuralNetwork([Layer(np.zeros((OUTPUT_COUNT, SENSOR_COUNT)), biases, OUTPUT_ACTIVATIONS)])

        env = _quiet_env()
        mate = _creature((505.0, 500.0), seed=1)
        initiator = _creature(seed=2)
        for c, bias in ((mate, -10.0), (initiator, 10.0)):
            c.brain = fixed_brain(bias)
            c.age = 200
        # Mate updates first in the tick, then the initiator reproduces with it
        env.add_creature(mate)
        env.add_creature(initiator)

        env.update()

        assert initiator.stats.offspring_count == 1
        assert mate.stats.offspring_count == 1
        assert initiator.reproduction_cooldown == mate.reproduction_cooldown > 0

        cooldown = mate.reproduction_cooldown
        env.update()
        assert initiator.reproduction_cooldown == mate.reproduction_cooldown == cooldown - 1
        print(f"[OK] Parents share cooldown {cooldown} after the birth tick")


class TestSensing:
    def test_sensor_vector_layout(self):
        env = _quiet_env()
        me = _creature(plant_preference=0.9, vision_range=1.0)
        mate = _creature((530.0, 500.0), seed=5, plant_preference=0.9)
        env.add_creature(me)
        env.add_creature(mate)
        env.add_food(Food(EntityType.PLANT_FOOD, [500.0, 550.0], 5.0, 3.0))
        me.energy = 50.0

        sensors = build_sensor_vector(me, env)

        assert sensors.shape == (SENSOR_COUNT,)
        assert np.all((sensors >= 0.0) & (sensors <= 1.0))
        assert sensors[0] == pytest.approx(0.5), "Plant 50 units away, vision 100"
        assert sensors[1] == pytest.approx(0.9)
        assert sensors[2] == 1.0 and sensors[3] == 0.0, "No carrion"
        assert sensors[4] == 1.0, "No threat"
        assert sensors[5] == pytest.approx(0.3)
        assert sensors[6] == pytest.approx(0.5)
        assert sensors[9] == pytest.approx(0.1)
        assert np.all(sensors[10:14] == 1.0), "No obstacles"


class TestThoughts:
    def test_highest_priority_wins(self):
        c = _creature()
        c.energy = 10.0
        outputs = np.array([0.0, 0.0, 0.9, 0.0, 0.0])
        thought = generate_thought(c, np.ones(SENSOR_COUNT), outputs, None)
        assert thought.text == "MUST FIND FOOD NOW!"
        assert thought.priority == 15

    def test_current_thought_persists_over_lower_priority(self):
        c = _creature()
        c.energy = 45.0
        current = Thought("FIGHT!", 12, 20)
        outputs = np.array([0.0, 0.0, 0.0, 0.0, 0.0])
        kept = generate_thought(c, np.ones(SENSOR_COUNT), outputs, current)
        assert kept is current
        assert kept.remaining == 19
