"""
Heritable creature traits.

Genetics is a frozen dataclass of 14 bounded traits. New genomes come from
random founders, crossover of two parents, or mutation of an existing
genome; every path clamps traits back into TRAIT_BOUNDS.
"""

import math
import numpy as np
from dataclasses import dataclass, fields, replace, asdict
from typing import Dict, List, Tuple

from .constants import (
    DEFAULT_MUTATION_RATE,
    DEFAULT_MUTATION_STRENGTH,
    SPECIES_DISTANCE_THRESHOLD,
)


# (min, max) per trait
TRAIT_BOUNDS: Dict[str, Tuple[float, float]] = {
    'size': (0.5, 2.0),
    'speed': (0.3, 1.5),
    'efficiency': (0.5, 1.5),
    'aggression': (0.0, 1.0),
    'sociability': (0.0, 1.0),
    'curiosity': (0.0, 1.0),
    'vision_range': (0.5, 2.0),
    'vision_acuity': (0.5, 1.5),
    'plant_preference': (0.0, 1.0),
    'meat_preference': (0.0, 1.0),
    'maturity_age': (50.0, 200.0),
    'lifespan': (500.0, 2000.0),
    'reproduction_cost': (20.0, 60.0),
    'parental_care': (0.0, 1.0),
}

# Traits measured in ticks/energy need larger mutation steps
MUTATION_SCALE: Dict[str, float] = {
    'maturity_age': 20.0,
    'lifespan': 100.0,
    'reproduction_cost': 10.0,
}

# Founder ranges (narrower than TRAIT_BOUNDS so generation 0 is near average)
FOUNDER_RANGES: Dict[str, Tuple[float, float]] = {
    'size': (0.8, 1.2),
    'speed': (0.8, 1.2),
    'efficiency': (0.8, 1.2),
    'aggression': (0.0, 1.0),
    'sociability': (0.0, 1.0),
    'curiosity': (0.0, 1.0),
    'vision_range': (0.8, 1.2),
    'vision_acuity': (0.8, 1.2),
    'plant_preference': (0.3, 0.7),
    'meat_preference': (0.3, 0.7),
    'maturity_age': (80.0, 120.0),
    'lifespan': (800.0, 1200.0),
    'reproduction_cost': (30.0, 50.0),
    'parental_care': (0.0, 1.0),
}

# Normalisers for genetic_distance (ticks/energy traits are on larger scales)
DISTANCE_SCALE: Dict[str, float] = {
    'maturity_age': 100.0,
    'lifespan': 1000.0,
    'reproduction_cost': 30.0,
}


def clamp_trait(name: str, value: float) -> float:
    low, high = TRAIT_BOUNDS[name]
    return float(min(high, max(low, value)))


@dataclass(frozen=True)
class Genetics:
    """Immutable trait vector. Use mutated()/crossover() to derive new genomes."""
    size: float = 1.0
    speed: float = 1.0
    efficiency: float = 1.0
    aggression: float = 0.5
    sociability: float = 0.5
    curiosity: float = 0.5
    vision_range: float = 1.0
    vision_acuity: float = 1.0
    plant_preference: float = 0.5
    meat_preference: float = 0.5
    maturity_age: float = 100.0
    lifespan: float = 1000.0
    reproduction_cost: float = 40.0
    parental_care: float = 0.5

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, clamp_trait(f.name, getattr(self, f.name)))

    @classmethod
    def trait_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def random(cls, rng: np.random.Generator) -> 'Genetics':
        """Founder genome drawn from FOUNDER_RANGES."""
        return cls(**{name: rng.uniform(low, high) for name, (low, high) in FOUNDER_RANGES.items()})

    @classmethod
    def crossover(cls, parent_a: 'Genetics', parent_b: 'Genetics',
                  rng: np.random.Generator) -> 'Genetics':
        """Each trait inherited from either parent with p=0.5."""
        picks = rng.random(len(TRAIT_BOUNDS)) < 0.5
        traits = {}
        for pick, name in zip(picks, cls.trait_names()):
            source = parent_a if pick else parent_b
            traits[name] = getattr(source, name)
        return cls(**traits)

    def mutated(
        self,
        rng: np.random.Generator,
        rate: float = DEFAULT_MUTATION_RATE,
        strength: float = DEFAULT_MUTATION_STRENGTH
    ) -> 'Genetics':
        """
        Return a mutated copy.

        Each trait mutates with probability `rate` by (u - 0.5) * strength,
        where u ~ U[0, 1), scaled up for tick/energy traits, then clamped.
        """
        names = self.trait_names()
        roll = rng.random(len(names))
        delta = rng.random(len(names)) - 0.5
        changes = {}
        for name, r, d in zip(names, roll, delta):
            if r < rate:
                step = d * strength * MUTATION_SCALE.get(name, 1.0)
                changes[name] = getattr(self, name) + step
        return replace(self, **changes) if changes else self

    def genetic_distance(self, other: 'Genetics') -> float:
        """Normalised Euclidean distance over all traits."""
        total = 0.0
        for name in self.trait_names():
            diff = (getattr(self, name) - getattr(other, name)) / DISTANCE_SCALE.get(name, 1.0)
            total += diff * diff
        return math.sqrt(total)

    def species_distance(self, other: 'Genetics') -> float:
        """Distance over diet, aggression, and size (size normalised by its 1.5 span)."""
        d_plant = self.plant_preference - other.plant_preference
        d_meat = self.meat_preference - other.meat_preference
        d_aggr = self.aggression - other.aggression
        d_size = (self.size - other.size) / 1.5
        return math.sqrt(d_plant * d_plant + d_meat * d_meat + d_aggr * d_aggr + d_size * d_size)

    def is_same_species(self, other: 'Genetics', threshold: float = SPECIES_DISTANCE_THRESHOLD) -> bool:
        return self.species_distance(other) < threshold

    def describe(self) -> Dict[str, str]:
        """Short human-readable labels for the dominant traits."""
        if self.meat_preference > 0.7 and self.plant_preference < 0.3:
            diet = "carnivore"
        elif self.plant_preference > 0.7 and self.meat_preference < 0.3:
            diet = "herbivore"
        else:
            diet = "omnivore"

        if self.size > 1.4:
            size = "large"
        elif self.size < 0.8:
            size = "small"
        else:
            size = "medium"

        if self.aggression > 0.7:
            temperament = "aggressive"
        elif self.aggression < 0.3:
            temperament = "peaceful"
        else:
            temperament = "neutral"

        if self.speed > 1.2:
            movement = "fast"
        elif self.speed < 0.6:
            movement = "slow"
        else:
            movement = "average"

        return {'diet': diet, 'size': size, 'temperament': temperament, 'movement': movement}

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> 'Genetics':
        return cls(**{name: data[name] for name in cls.trait_names() if name in data})
