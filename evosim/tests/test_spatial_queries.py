"""
Spatial grid correctness against the O(n) reference scan, plus the
cKDTree batch neighbour counter.
"""

import numpy as np

from evosim.entity import EntityType, Food, Feature
from evosim.spatial_queries import (
    SpatialGrid, SpatialQuery, neighbors_within, count_neighbors_within
)
from evosim.rng import make_rng


class _Dot:
    """Minimal creature stand-in for grid tests."""
    type = EntityType.CREATURE

    def __init__(self, position):
        self.position = np.asarray(position, dtype=np.float64)
        self.is_active = True


def _random_world(rng, n_creatures=150, n_food=150, n_features=20, extent=1000.0):
    creatures = [_Dot(rng.uniform(0, extent, 2)) for _ in range(n_creatures)]
    food = [Food(EntityType.PLANT_FOOD, rng.uniform(0, extent, 2), 5.0, 3.0) for _ in range(n_food)]
    features = [Feature(EntityType.OBSTACLE, rng.uniform(0, extent, 2), 20.0) for _ in range(n_features)]
    return creatures, food, features


def _ids(hits):
    return sorted(id(h.entity) for h in hits)


def test_grid_matches_brute_force():
    rng = make_rng(42)
    creatures, food, features = _random_world(rng)
    everything = creatures + food + features

    grid = SpatialGrid(100.0)
    grid.rebuild(creatures, food, features)

    for _ in range(100):
        query = SpatialQuery(position=rng.uniform(-50, 1050, 2), radius=float(rng.uniform(0, 250)))
        got = grid.query(query)
        expected = neighbors_within(query, everything)
        assert _ids(got.creature_hits) == _ids(expected.creature_hits)
        assert _ids(got.food_hits) == _ids(expected.food_hits)
        assert _ids(got.environmental_hits) == _ids(expected.environmental_hits)

    assert grid.query_count == 100
    print("[OK] 100 random queries match brute force")


def test_type_filter_exclude_and_sorting():
    rng = make_rng(7)
    creatures, food, features = _random_world(rng, n_creatures=80, n_food=80, n_features=0)
    grid = SpatialGrid(50.0)
    grid.rebuild(creatures, food, features)

    me = creatures[0]
    query = SpatialQuery(position=me.position, radius=300.0,
                         entity_types=frozenset({EntityType.CREATURE}),
                         exclude=me, sort_by_distance=True, max_results=5)
    result = grid.query(query)

    assert not result.food_hits, "Food filtered out by entity_types"
    assert all(h.entity is not me for h in result.creature_hits)
    assert len(result.creature_hits) <= 5
    distances = [h.distance for h in result.creature_hits]
    assert distances == sorted(distances)

    expected = neighbors_within(query, creatures)
    assert _ids(result.creature_hits) == _ids(expected.creature_hits)


def test_boundary_distance_is_inclusive():
    grid = SpatialGrid(10.0)
    dot = _Dot([15.0, 0.0])
    grid.insert(dot)
    result = grid.query(SpatialQuery(position=np.array([5.0, 0.0]), radius=10.0))
    assert result.creatures == [dot]
    assert result.distance == 10.0


def test_inactive_entities_are_skipped():
    grid = SpatialGrid(100.0)
    plant = Food(EntityType.PLANT_FOOD, [10.0, 10.0], 5.0, 3.0)
    grid.insert(plant)
    plant.is_active = False
    assert len(grid.query(SpatialQuery(position=np.array([10.0, 10.0]), radius=5.0))) == 0


def test_remove_after_move():
    grid = SpatialGrid(10.0)
    dot = _Dot([5.0, 5.0])
    grid.insert(dot)
    dot.position = np.array([95.0, 95.0])

    assert grid.remove(dot), "Entity found even though it moved cells"
    assert grid.entity_count() == 0
    assert not grid.remove(dot)


def test_negative_coordinates_use_floor_cells():
    grid = SpatialGrid(10.0)
    assert grid.cell_key(np.array([-0.5, 0.5])) == (-1, 0)
    assert grid.cell_key(np.array([-10.0, -10.0])) == (-1, -1)


def test_count_neighbors_matches_brute_force():
    rng = make_rng(3)
    positions = rng.uniform(0, 500, size=(200, 2))
    radius = 60.0

    counts = count_neighbors_within(positions, radius)

    diffs = positions[:, None, :] - positions[None, :, :]
    dist = np.sqrt((diffs ** 2).sum(axis=2))
    expected = (dist <= radius).sum(axis=1) - 1

    assert np.array_equal(counts, expected)
    assert count_neighbors_within(np.empty((0, 2)), radius).shape == (0,)
    print("[OK] cKDTree neighbour counts match brute force")
