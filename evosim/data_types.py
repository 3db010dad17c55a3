"""
Data types for configuration, biomes, and interaction results.

Configuration dataclasses mirror the YAML schema structures; loader.py
populates them from YAML files. validate() enforces cross-field limits
so that nonsensical setups fail fast instead of silently misbehaving.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Optional, Any, Tuple


class ConfigError(ValueError):
    """Raised when a configuration is invalid or internally inconsistent"""
    pass


# ============================================================================
# Biomes
# ============================================================================

@dataclass(frozen=True)
class BiomeCharacteristics:
    """Environmental parameters of a biome (all normalized 0-1)"""
    temperature: float
    humidity: float
    water_availability: float
    plant_density: float
    prey_density: float
    shelter_availability: float
    predation_pressure: float
    competition_level: float
    seasonal_variation: float


@dataclass(frozen=True)
class Biome:
    """Named biome preset. Immutable for the lifetime of an Environment."""
    name: str
    characteristics: BiomeCharacteristics
    description: Optional[str] = None


# ============================================================================
# Environment Configuration
# ============================================================================

@dataclass
class WorldBounds:
    """World extent. Circular worlds use center/radius inside the width x height box."""
    width: float = 1000.0
    height: float = 1000.0
    shape: str = "circular"  # circular | rectangular
    center: Tuple[float, float] = (500.0, 500.0)
    radius: float = 500.0

    @property
    def is_circular(self) -> bool:
        return self.shape == "circular"


@dataclass
class CarryingCapacityConfig:
    """Population-pressure parameters"""
    target_population: int = 300
    max_population: int = 400
    density_stress_factor: float = 0.0001  # Energy drained per neighbour per tick
    mortality_rate: float = 0.005          # Scaled by overpopulation ratio squared
    resource_scaling: float = 0.85         # Spawn multiplier ceiling when overpopulated
    stress_radius: float = 150.0           # Neighbour radius for social stress


@dataclass
class EnvironmentConfig:
    """Environment configuration with documented defaults"""
    bounds: WorldBounds = field(default_factory=WorldBounds)
    biome: str = "grassland"
    max_creatures: int = 400
    max_food: int = 500
    food_spawn_rate: float = 0.5
    prey_spawn_rate: float = 0.1
    spatial_grid_size: float = 100.0
    obstacle_count: int = 8
    carrying_capacity: Optional[CarryingCapacityConfig] = field(default_factory=CarryingCapacityConfig)

    @property
    def population_cap(self) -> int:
        """Hard ceiling on living creatures (offspring are refused at this size)."""
        if self.carrying_capacity is None:
            return self.max_creatures
        return min(self.max_creatures, self.carrying_capacity.max_population)

    def validate(self):
        """
        Check bounds, rates, and population limits.

        Raises:
            ConfigError: On the first invalid or inconsistent value
        """
        b = self.bounds
        if b.width <= 0 or b.height <= 0:
            raise ConfigError(f"World bounds must be positive, got {b.width}x{b.height}")
        if b.shape not in ("circular", "rectangular"):
            raise ConfigError(f"Unknown bounds shape '{b.shape}'")
        if b.is_circular:
            if b.radius <= 0:
                raise ConfigError(f"Circular bounds need a positive radius, got {b.radius}")
            cx, cy = b.center
            if cx - b.radius < 0 or cy - b.radius < 0 or cx + b.radius > b.width or cy + b.radius > b.height:
                raise ConfigError(
                    f"Circle (center={b.center}, radius={b.radius}) does not fit in {b.width}x{b.height}"
                )

        if self.spatial_grid_size <= 0:
            raise ConfigError(f"spatial_grid_size must be positive, got {self.spatial_grid_size}")
        if self.max_creatures <= 0:
            raise ConfigError(f"max_creatures must be positive, got {self.max_creatures}")
        if self.max_food < 0:
            raise ConfigError(f"max_food must be non-negative, got {self.max_food}")
        if self.obstacle_count < 0:
            raise ConfigError(f"obstacle_count must be non-negative, got {self.obstacle_count}")
        for name in ('food_spawn_rate', 'prey_spawn_rate'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be in [0, 1], got {value}")

        cc = self.carrying_capacity
        if cc is not None:
            if cc.target_population <= 0:
                raise ConfigError(f"target_population must be positive, got {cc.target_population}")
            if cc.target_population > cc.max_population:
                raise ConfigError(
                    f"target_population ({cc.target_population}) exceeds max_population ({cc.max_population})"
                )
            if cc.max_population > self.max_creatures:
                raise ConfigError(
                    f"carrying max_population ({cc.max_population}) exceeds max_creatures "
                    f"({self.max_creatures}); the pressure cap would never engage"
                )
            if not 0.0 <= cc.mortality_rate <= 1.0:
                raise ConfigError(f"mortality_rate must be in [0, 1], got {cc.mortality_rate}")
            if cc.density_stress_factor < 0:
                raise ConfigError(f"density_stress_factor must be non-negative, got {cc.density_stress_factor}")
            if cc.resource_scaling <= 0:
                raise ConfigError(f"resource_scaling must be positive, got {cc.resource_scaling}")
            if cc.stress_radius <= 0:
                raise ConfigError(f"stress_radius must be positive, got {cc.stress_radius}")


# ============================================================================
# Simulation Configuration
# ============================================================================

@dataclass
class SimulationConfig:
    """Driver-level settings plus the environment it runs"""
    initial_population: int = 50
    max_population: int = 400
    ticks_per_second: float = 60.0
    auto_pause: bool = True          # Pause on extinction (False = respawn founders)
    seed: Optional[int] = None       # None = non-reproducible run
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)

    def validate(self):
        """
        Validate driver limits against the environment's limits.

        Enforced ordering: target <= carrying max <= max_creatures <= max_population.

        Raises:
            ConfigError: On the first invalid or inconsistent value
        """
        self.environment.validate()

        if self.initial_population < 0:
            raise ConfigError(f"initial_population must be non-negative, got {self.initial_population}")
        if self.max_population <= 0:
            raise ConfigError(f"max_population must be positive, got {self.max_population}")
        if self.initial_population > self.max_population:
            raise ConfigError(
                f"initial_population ({self.initial_population}) exceeds max_population ({self.max_population})"
            )
        if self.ticks_per_second <= 0:
            raise ConfigError(f"ticks_per_second must be positive, got {self.ticks_per_second}")
        if self.environment.max_creatures > self.max_population:
            raise ConfigError(
                f"environment max_creatures ({self.environment.max_creatures}) exceeds simulation "
                f"max_population ({self.max_population})"
            )
        cc = self.environment.carrying_capacity
        if cc is not None and cc.max_population > self.max_population:
            raise ConfigError(
                f"carrying max_population ({cc.max_population}) exceeds simulation "
                f"max_population ({self.max_population})"
            )


# ============================================================================
# Stats & Interaction Results
# ============================================================================

@dataclass
class EnvironmentStats:
    """Aggregate environment counters (per-tick counters cover the last completed tick)"""
    tick: int = 0
    total_creatures: int = 0
    living_creatures: int = 0
    dead_creatures: int = 0
    total_food: int = 0
    plant_food: int = 0
    mushroom_food: int = 0
    prey_food: int = 0
    carrion: int = 0
    features: int = 0
    spatial_queries: int = 0
    collision_checks: int = 0
    update_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CombatOutcome:
    """Result of process_combat. Failures still carry the attacker's energy cost."""
    success: bool
    energy_cost: float = 0.0
    damage: float = 0.0
    defender_killed: bool = False
    energy_gained: float = 0.0
    reason: Optional[str] = None  # out_of_range | missed | target_missing


@dataclass
class FeedingOutcome:
    """Result of process_feeding"""
    success: bool
    energy_gained: float = 0.0
    reason: Optional[str] = None  # out_of_range | target_missing


@dataclass
class SimulationStats:
    """Driver-level statistics"""
    current_tick: int = 0
    total_creatures: int = 0
    living_creatures: int = 0
    generation_count: int = 0
    average_generation: float = 0.0
    average_fitness: float = 0.0
    extinction_events: int = 0
    total_births: int = 0
    total_deaths: int = 0
    death_causes: Dict[str, int] = field(default_factory=dict)
