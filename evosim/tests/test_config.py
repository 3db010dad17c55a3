"""
Configuration validation: nonsensical setups fail fast with ConfigError.
"""

import pytest

from evosim.data_types import (
    ConfigError, WorldBounds, CarryingCapacityConfig, EnvironmentConfig, SimulationConfig
)
from evosim.environment import Environment


def test_defaults_are_valid():
    EnvironmentConfig().validate()
    SimulationConfig().validate()
    assert EnvironmentConfig().population_cap == 400


@pytest.mark.parametrize("config", [
    EnvironmentConfig(bounds=WorldBounds(width=0.0)),
    EnvironmentConfig(bounds=WorldBounds(shape="hexagonal")),
    EnvironmentConfig(bounds=WorldBounds(radius=600.0)),
    EnvironmentConfig(spatial_grid_size=0.0),
    EnvironmentConfig(food_spawn_rate=1.5),
    EnvironmentConfig(prey_spawn_rate=-0.1),
    EnvironmentConfig(carrying_capacity=CarryingCapacityConfig(target_population=500, max_population=400)),
    EnvironmentConfig(max_creatures=300),
    EnvironmentConfig(carrying_capacity=CarryingCapacityConfig(mortality_rate=2.0)),
])
def test_invalid_environment_configs(config):
    with pytest.raises(ConfigError):
        config.validate()


def test_carrying_max_above_max_creatures_message():
    config = EnvironmentConfig(max_creatures=350)
    with pytest.raises(ConfigError, match="max_creatures"):
        config.validate()


def test_population_cap_uses_tighter_limit():
    config = EnvironmentConfig(max_creatures=400,
                               carrying_capacity=CarryingCapacityConfig(target_population=100,
                                                                        max_population=200))
    assert config.population_cap == 200
    assert EnvironmentConfig(carrying_capacity=None, max_creatures=250).population_cap == 250


@pytest.mark.parametrize("config", [
    SimulationConfig(initial_population=500),
    SimulationConfig(max_population=300),
    SimulationConfig(ticks_per_second=0.0),
    SimulationConfig(initial_population=-1),
])
def test_invalid_simulation_configs(config):
    with pytest.raises(ConfigError):
        config.validate()


def test_environment_rejects_unknown_biome():
    with pytest.raises(ConfigError, match="Unknown biome"):
        Environment(EnvironmentConfig(biome="volcano"), seed=1)


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)
