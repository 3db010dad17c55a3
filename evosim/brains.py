"""
Creature brain construction.

Founders get an instinct-wired 14-8-5 network so generation 0 can eat and
breed before evolution has had a chance to work. Offspring inherit their
parents' brains: early generations by mutation of one parent's brain,
later generations by crossover of both, with mutation scaled by the
child's genetic stability.

Sensor indices are documented in behavior.build_sensor_vector.
"""

import numpy as np
from typing import Optional

from .genetics import Genetics
from .neural import NeuralNetwork
from .constants import (
    SENSOR_COUNT,
    OUTPUT_COUNT,
    OUT_MOVE_X,
    OUT_MOVE_Y,
    OUT_EAT,
    OUT_ATTACK,
    OUT_REPRODUCE,
    FOUNDER_ARCHITECTURE,
    FOUNDER_MUTATION_STRENGTH,
    EARLY_GENERATION_LIMIT,
    EARLY_STRENGTH_BASE,
    EARLY_STRENGTH_GROWTH,
    EARLY_RATE_BASE,
    EARLY_RATE_GROWTH,
    LATE_RATE_BASE,
    LATE_STRENGTH_BASE,
)


# Directional outputs use tanh, decision outputs use sigmoid
OUTPUT_ACTIVATIONS = ['tanh', 'tanh', 'sigmoid', 'sigmoid', 'sigmoid']

ARCHITECTURES = {
    'simple': [SENSOR_COUNT, OUTPUT_COUNT],
    'medium': FOUNDER_ARCHITECTURE,
    'complex': [SENSOR_COUNT, 12, 8, OUTPUT_COUNT],
}

# Sensor indices wired by instinct
_SENSOR_FOOD_DISTANCE = 0
_SENSOR_THREAT_DISTANCE = 4
_SENSOR_ENERGY = 6
_SENSOR_AGE = 8

# Hidden relay neurons: (hidden index, sensor index)
_RELAYS = {
    'energy': (0, _SENSOR_ENERGY),
    'food': (1, _SENSOR_FOOD_DISTANCE),
    'threat': (2, _SENSOR_THREAT_DISTANCE),
    'age': (3, _SENSOR_AGE),
}
_RELAY_GAIN = 4.0     # tanh(4 * (s - 0.5)) ~ -1 for s=0, +1 for s=1
_RELAY_BIAS = -2.0


def create_creature_brain(rng: np.random.Generator, complexity: str = 'medium') -> NeuralNetwork:
    """
    Random creature brain.

    Args:
        rng: Generator for initial weights
        complexity: 'simple' (14-5), 'medium' (14-8-5), or 'complex' (14-12-8-5)

    Returns:
        NeuralNetwork with tanh hidden layers and mixed output activations
    """
    if complexity not in ARCHITECTURES:
        raise ValueError(f"Unknown brain complexity '{complexity}' (expected one of {sorted(ARCHITECTURES)})")
    return NeuralNetwork.create(ARCHITECTURES[complexity], rng,
                                hidden_activation='tanh',
                                output_activations=OUTPUT_ACTIVATIONS)


def create_founder_brain(rng: np.random.Generator) -> NeuralNetwork:
    """
    Instinct-wired brain for generation 0.

    Four hidden neurons relay energy, food distance, threat distance, and
    age. Outputs: hungry or near food -> eat; threat close -> move;
    well fed and old enough -> reproduce. Remaining weights stay random.
    """
    brain = create_creature_brain(rng, 'medium')
    hidden, output = brain.layers

    for h, sensor in _RELAYS.values():
        hidden.weights[h, :] = 0.0
        hidden.weights[h, sensor] = _RELAY_GAIN
        hidden.biases[h] = _RELAY_BIAS

    energy_h = _RELAYS['energy'][0]
    food_h = _RELAYS['food'][0]
    threat_h = _RELAYS['threat'][0]
    age_h = _RELAYS['age'][0]

    brain.set_bias(1, OUT_EAT, 1.0)
    brain.set_weight(1, OUT_EAT, energy_h, -2.0)     # low energy -> eat
    brain.set_weight(1, OUT_EAT, food_h, -1.5)       # food close -> eat

    brain.set_weight(1, OUT_MOVE_X, threat_h, -2.0)  # threat close -> bolt
    brain.set_weight(1, OUT_MOVE_Y, threat_h, -2.0)

    brain.set_bias(1, OUT_ATTACK, -0.5)

    brain.set_bias(1, OUT_REPRODUCE, 0.5)
    brain.set_weight(1, OUT_REPRODUCE, energy_h, 2.5)  # well fed -> breed
    brain.set_weight(1, OUT_REPRODUCE, age_h, 3.0)     # mature -> breed

    brain.mutate(rate=1.0, strength=FOUNDER_MUTATION_STRENGTH, rng=rng)
    return brain


def genetic_stability(genetics: Genetics) -> float:
    """(efficiency + lifespan/1000) / 2; higher means gentler brain mutation."""
    return (genetics.efficiency + genetics.lifespan / 1000.0) / 2.0


def create_offspring_brain(
    parent_a: NeuralNetwork,
    parent_b: Optional[NeuralNetwork],
    child_genetics: Genetics,
    generation: int,
    rng: np.random.Generator
) -> NeuralNetwork:
    """
    Inherit a brain for a new creature.

    Args:
        parent_a: First parent's brain (always used)
        parent_b: Second parent's brain (crossover partner for late generations)
        child_genetics: Offspring genome, drives mutation scale in late generations
        generation: Offspring generation number
        rng: Generator for crossover/mutation draws

    Returns:
        New NeuralNetwork (never shares arrays with either parent)
    """
    if generation <= EARLY_GENERATION_LIMIT:
        progress = generation / EARLY_GENERATION_LIMIT
        brain = parent_a.clone()
        brain.mutate(rate=EARLY_RATE_BASE + progress * EARLY_RATE_GROWTH,
                     strength=EARLY_STRENGTH_BASE + progress * EARLY_STRENGTH_GROWTH,
                     rng=rng)
        return brain

    if parent_b is not None and parent_b.architecture == parent_a.architecture:
        brain = NeuralNetwork.crossover(parent_a, parent_b, rng)
    else:
        brain = parent_a.clone()

    instability = 2.0 - genetic_stability(child_genetics)
    brain.mutate(rate=LATE_RATE_BASE * instability,
                 strength=LATE_STRENGTH_BASE * instability,
                 rng=rng)
    return brain
