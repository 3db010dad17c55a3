"""
YAML data loader with schema validation.

Loads biome presets and environment/simulation configuration overrides
from YAML files and validates them against JSON schemas.
"""

import yaml
import json
from pathlib import Path
from typing import Dict, Optional
import jsonschema

from .data_types import (
    Biome, BiomeCharacteristics, WorldBounds, CarryingCapacityConfig,
    EnvironmentConfig, SimulationConfig, ConfigError
)


PACKAGE_ROOT = Path(__file__).parent
DEFAULT_DATA_DIR = PACKAGE_ROOT / "data"
DEFAULT_SCHEMA_DIR = PACKAGE_ROOT / "schemas"

_preset_cache: Optional[Dict[str, Biome]] = None


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    file_path = Path(file_path)
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataLoadError(f"YAML parse error in {file_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DataLoadError(f"Expected a mapping at top level of {file_path}")
    return data


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        return

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise DataLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")


def load_biome_presets(
    file_path: Optional[Path] = None,
    schema_dir: Optional[Path] = DEFAULT_SCHEMA_DIR
) -> Dict[str, Biome]:
    """Load biome presets from YAML, keyed by lower-case name"""
    file_path = Path(file_path) if file_path else DEFAULT_DATA_DIR / "biomes.yaml"
    data = load_yaml(file_path)

    if schema_dir:
        validate_against_schema(data, Path(schema_dir) / "biome.schema.json", file_path)

    presets = {}
    for b_data in data.get('biomes', []):
        biome = Biome(
            name=b_data['name'].lower(),
            characteristics=BiomeCharacteristics(**b_data['characteristics']),
            description=b_data.get('description')
        )
        presets[biome.name] = biome

    if not presets:
        raise DataLoadError(f"No biomes defined in {file_path}")

    return presets


def _bundled_presets() -> Dict[str, Biome]:
    global _preset_cache
    if _preset_cache is None:
        _preset_cache = load_biome_presets()
    return _preset_cache


def get_biome(name: str) -> Biome:
    """
    Look up a bundled biome preset by name.

    Raises:
        ConfigError: If no preset has that name
    """
    presets = _bundled_presets()
    biome = presets.get(name.lower())
    if biome is None:
        raise ConfigError(f"Unknown biome '{name}' (available: {', '.join(sorted(presets))})")
    return biome


def get_biome_names():
    return sorted(_bundled_presets())


def environment_config_from_dict(data: dict) -> EnvironmentConfig:
    """Build EnvironmentConfig from a parsed mapping, keeping defaults for omitted keys"""
    data = dict(data)

    bounds_data = data.pop('bounds', None)
    if bounds_data is not None:
        bounds_data = dict(bounds_data)
        if 'center' in bounds_data:
            bounds_data['center'] = tuple(bounds_data['center'])
        data['bounds'] = WorldBounds(**bounds_data)

    if 'carrying_capacity' in data:
        cc_data = data.pop('carrying_capacity')
        data['carrying_capacity'] = CarryingCapacityConfig(**cc_data) if cc_data is not None else None

    try:
        return EnvironmentConfig(**data)
    except TypeError as e:
        raise DataLoadError(f"Invalid environment config: {e}")


def load_environment_config(
    file_path: Path,
    schema_dir: Optional[Path] = DEFAULT_SCHEMA_DIR
) -> EnvironmentConfig:
    """Load environment configuration from YAML"""
    data = load_yaml(file_path)

    if schema_dir:
        validate_against_schema(data, Path(schema_dir) / "environment.schema.json", file_path)

    config = environment_config_from_dict(data)
    config.validate()
    return config


def load_simulation_config(
    file_path: Path,
    schema_dir: Optional[Path] = DEFAULT_SCHEMA_DIR
) -> SimulationConfig:
    """Load simulation configuration (with nested environment) from YAML"""
    data = load_yaml(file_path)

    if schema_dir:
        validate_against_schema(data, Path(schema_dir) / "simulation.schema.json", file_path)
        if 'environment' in data:
            validate_against_schema(data['environment'], Path(schema_dir) / "environment.schema.json", file_path)

    data = dict(data)
    env_data = data.pop('environment', None)
    environment = environment_config_from_dict(env_data) if env_data else EnvironmentConfig()

    try:
        config = SimulationConfig(environment=environment, **data)
    except TypeError as e:
        raise DataLoadError(f"Invalid simulation config in {file_path}: {e}")

    config.validate()
    return config
