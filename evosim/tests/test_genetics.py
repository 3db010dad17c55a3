"""
Genetics: every derivation path keeps traits inside TRAIT_BOUNDS.
"""

import pytest

from evosim.genetics import Genetics, TRAIT_BOUNDS, FOUNDER_RANGES
from evosim.rng import make_rng


def _assert_in_bounds(g: Genetics):
    for name, (low, high) in TRAIT_BOUNDS.items():
        value = getattr(g, name)
        assert low <= value <= high, f"{name}={value} outside [{low}, {high}]"


def test_construction_clamps():
    g = Genetics(size=10.0, speed=-1.0, lifespan=1e6, aggression=2.0)
    assert g.size == 2.0
    assert g.speed == 0.3
    assert g.lifespan == 2000.0
    assert g.aggression == 1.0


def test_founders_within_founder_ranges():
    rng = make_rng(1)
    for _ in range(50):
        g = Genetics.random(rng)
        for name, (low, high) in FOUNDER_RANGES.items():
            assert low <= getattr(g, name) <= high
    print("[OK] 50 founders inside founder ranges")


def test_crossover_of_extremes_stays_in_bounds():
    rng = make_rng(2)
    low = Genetics(**{n: b[0] for n, b in TRAIT_BOUNDS.items()})
    high = Genetics(**{n: b[1] for n, b in TRAIT_BOUNDS.items()})

    for _ in range(100):
        child = Genetics.crossover(low, high, rng)
        _assert_in_bounds(child)
        for name in Genetics.trait_names():
            assert getattr(child, name) in (getattr(low, name), getattr(high, name))
    print("[OK] Crossover inherits each trait from one parent")


def test_heavy_mutation_stays_in_bounds():
    rng = make_rng(3)
    g = Genetics.random(rng)
    for _ in range(200):
        g = g.mutated(rng, rate=1.0, strength=10.0)
        _assert_in_bounds(g)


def test_zero_rate_mutation_is_identity():
    g = Genetics.random(make_rng(4))
    assert g.mutated(make_rng(5), rate=0.0) == g


def test_species_matching():
    a = Genetics(plant_preference=0.8, meat_preference=0.2, aggression=0.2, size=1.0)
    b = Genetics(plant_preference=0.7, meat_preference=0.3, aggression=0.3, size=1.1)
    c = Genetics(plant_preference=0.0, meat_preference=1.0, aggression=1.0, size=2.0)

    assert a.is_same_species(b)
    assert b.is_same_species(a)
    assert not a.is_same_species(c)
    assert a.species_distance(a) == 0.0


def test_genetic_distance_symmetric():
    rng = make_rng(6)
    a = Genetics.random(rng)
    b = Genetics.random(rng)
    assert a.genetic_distance(b) == pytest.approx(b.genetic_distance(a))
    assert a.genetic_distance(a) == 0.0


def test_describe_labels():
    labels = Genetics(meat_preference=0.9, plant_preference=0.1, size=1.8,
                      aggression=0.9, speed=1.4).describe()
    assert labels == {'diet': 'carnivore', 'size': 'large',
                      'temperament': 'aggressive', 'movement': 'fast'}


def test_dict_round_trip():
    g = Genetics.random(make_rng(7))
    assert Genetics.from_dict(g.to_dict()) == g
