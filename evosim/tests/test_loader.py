"""
Data loading: bundled biome presets and YAML configuration overrides,
validated against the JSON schemas.
"""

import tempfile
from pathlib import Path

import pytest

from evosim.data_types import ConfigError
from evosim.loader import (
    DataLoadError,
    load_yaml,
    load_biome_presets,
    get_biome,
    get_biome_names,
    load_environment_config,
    load_simulation_config,
)


def _write(tmp_dir: str, name: str, text: str) -> Path:
    path = Path(tmp_dir) / name
    path.write_text(text)
    return path


def test_bundled_presets():
    presets = load_biome_presets()
    assert set(presets) == {'grassland', 'desert', 'forest', 'wetland', 'mountain', 'ocean'}

    grassland = presets['grassland'].characteristics
    assert grassland.plant_density == 0.8
    assert grassland.prey_density == 0.4
    print(f"[OK] Loaded {len(presets)} biome presets: {', '.join(sorted(presets))}")


def test_get_biome_is_case_insensitive():
    assert get_biome('Desert').name == 'desert'
    assert 'ocean' in get_biome_names()
    with pytest.raises(ConfigError):
        get_biome('swamp')


def test_missing_file():
    with pytest.raises(DataLoadError, match="File not found"):
        load_yaml(Path("/nonexistent/evosim.yaml"))


def test_empty_and_non_mapping_yaml():
    with tempfile.TemporaryDirectory() as tmp:
        assert load_yaml(_write(tmp, "empty.yaml", "")) == {}
        with pytest.raises(DataLoadError):
            load_yaml(_write(tmp, "list.yaml", "- 1\n- 2\n"))
        with pytest.raises(DataLoadError, match="YAML parse error"):
            load_yaml(_write(tmp, "broken.yaml", "key: [unclosed\n"))


def test_load_environment_config():
    text = """
biome: desert
max_food: 200
bounds:
  width: 800
  height: 800
  center: [400, 400]
  radius: 400
carrying_capacity:
  target_population: 100
  max_population: 150
"""
    with tempfile.TemporaryDirectory() as tmp:
        config = load_environment_config(_write(tmp, "env.yaml", text))

    assert config.biome == 'desert'
    assert config.max_food == 200
    assert config.bounds.center == (400, 400)
    assert config.carrying_capacity.max_population == 150
    assert config.carrying_capacity.mortality_rate == 0.005, "Omitted keys keep defaults"
    assert config.max_creatures == 400


def test_carrying_capacity_can_be_disabled():
    with tempfile.TemporaryDirectory() as tmp:
        config = load_environment_config(_write(tmp, "env.yaml", "carrying_capacity: null\n"))
    assert config.carrying_capacity is None


def test_schema_violation():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(DataLoadError, match="Validation error"):
            load_environment_config(_write(tmp, "env.yaml", "max_food: -5\n"))
        with pytest.raises(DataLoadError, match="Validation error"):
            load_environment_config(_write(tmp, "env.yaml", "unknown_key: 1\n"))


def test_inconsistent_limits_fail_validation():
    text = """
max_creatures: 200
carrying_capacity:
  target_population: 100
  max_population: 300
"""
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(ConfigError):
            load_environment_config(_write(tmp, "env.yaml", text))


def test_load_simulation_config():
    text = """
initial_population: 20
max_population: 400
seed: 7
auto_pause: false
environment:
  biome: forest
  obstacle_count: 3
"""
    with tempfile.TemporaryDirectory() as tmp:
        config = load_simulation_config(_write(tmp, "sim.yaml", text))

    assert config.initial_population == 20
    assert config.seed == 7
    assert config.auto_pause is False
    assert config.environment.biome == 'forest'
    assert config.environment.obstacle_count == 3


def test_simulation_schema_checks_nested_environment():
    text = """
environment:
  spatial_grid_size: 0
"""
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(DataLoadError):
            load_simulation_config(_write(tmp, "sim.yaml", text))
