"""
Spatial index for proximity queries.

SpatialGrid: uniform grid keyed by (floor(x/cell), floor(y/cell)). Each cell
holds three buckets (creatures, food/carrion, environmental features);
the bucket is chosen once from entity.type at insertion. A radius query
scans only the cells overlapping the query circle's bounding box, then
filters by true Euclidean distance.

Also provided:
- neighbors_within: O(n) brute-force scan (reference for grid correctness)
- count_neighbors_within: batch neighbour counts via scipy.cKDTree
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Tuple

from scipy.spatial import cKDTree

from .entity import EntityType, CONSUMABLE_TYPES, FEATURE_TYPES
from .constants import CKDTREE_LEAFSIZE


CellKey = Tuple[int, int]


@dataclass
class SpatialQuery:
    """
    Radius query parameters.

    Attributes:
        position: Query center [x, y]
        radius: Search radius (inclusive)
        entity_types: Only these kinds match (None = all kinds)
        exclude: Entity to skip (usually the querying creature), compared by identity
        max_results: Cap per result bucket (applied after sorting)
        sort_by_distance: Sort each bucket nearest first
    """
    position: np.ndarray
    radius: float
    entity_types: Optional[FrozenSet[EntityType]] = None
    exclude: object = None
    max_results: Optional[int] = None
    sort_by_distance: bool = False


class Hit(NamedTuple):
    entity: object
    distance: float


@dataclass
class QueryResult:
    """Matches split by bucket; `distance` is the nearest match overall (None if empty)"""
    food_hits: List[Hit] = field(default_factory=list)
    creature_hits: List[Hit] = field(default_factory=list)
    environmental_hits: List[Hit] = field(default_factory=list)

    @property
    def food(self) -> list:
        return [h.entity for h in self.food_hits]

    @property
    def creatures(self) -> list:
        return [h.entity for h in self.creature_hits]

    @property
    def environmental(self) -> list:
        return [h.entity for h in self.environmental_hits]

    @property
    def distance(self) -> Optional[float]:
        best = None
        for hits in (self.food_hits, self.creature_hits, self.environmental_hits):
            for h in hits:
                if best is None or h.distance < best:
                    best = h.distance
        return best

    def __len__(self) -> int:
        return len(self.food_hits) + len(self.creature_hits) + len(self.environmental_hits)


@dataclass
class GridCell:
    creatures: list = field(default_factory=list)
    food: list = field(default_factory=list)
    environmental: list = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.creatures or self.food or self.environmental)


def _bucket_name(entity_type: EntityType) -> str:
    if entity_type is EntityType.CREATURE:
        return 'creatures'
    if entity_type in CONSUMABLE_TYPES:
        return 'food'
    if entity_type in FEATURE_TYPES:
        return 'environmental'
    raise ValueError(f"No grid bucket for entity type {entity_type}")


class SpatialGrid:
    """
    Uniform-cell spatial hash.

    Rebuilt wholesale once per tick (rebuild()); insert/remove keep it
    usable between rebuilds for entities added mid-tick.

    Counters:
        query_count: Radius queries since last reset_counters()
        check_count: Candidate distance checks since last reset_counters()
    """

    def __init__(self, cell_size: float):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)
        self.cells: Dict[CellKey, GridCell] = {}
        self.query_count = 0
        self.check_count = 0

    def cell_key(self, position: np.ndarray) -> CellKey:
        return (math.floor(float(position[0]) / self.cell_size),
                math.floor(float(position[1]) / self.cell_size))

    def clear(self):
        self.cells.clear()

    def reset_counters(self):
        self.query_count = 0
        self.check_count = 0

    def insert(self, entity):
        """Place entity in the bucket for its type, in the cell containing its position."""
        key = self.cell_key(entity.position)
        cell = self.cells.get(key)
        if cell is None:
            cell = GridCell()
            self.cells[key] = cell
        getattr(cell, _bucket_name(entity.type)).append(entity)

    def remove(self, entity) -> bool:
        """
        Remove entity from the grid.

        Checks the cell matching its current position first, then every cell
        (the entity may have moved since the last rebuild).

        Returns:
            True if found and removed
        """
        name = _bucket_name(entity.type)
        key = self.cell_key(entity.position)
        keys = [key] + [k for k in self.cells if k != key]
        for k in keys:
            cell = self.cells.get(k)
            if cell is None:
                continue
            bucket = getattr(cell, name)
            for i, candidate in enumerate(bucket):
                if candidate is entity:
                    del bucket[i]
                    if cell.is_empty():
                        del self.cells[k]
                    return True
        return False

    def rebuild(self, creatures: Iterable, consumables: Iterable, features: Iterable):
        """Discard all cells and re-insert every active entity."""
        self.cells.clear()
        for group in (creatures, consumables, features):
            for entity in group:
                if entity.is_active:
                    self.insert(entity)

    def entity_count(self) -> int:
        return sum(len(c.creatures) + len(c.food) + len(c.environmental) for c in self.cells.values())

    def cells_for_radius(self, position: np.ndarray, radius: float) -> List[CellKey]:
        """Cell keys overlapping the bounding box of the query circle."""
        x, y = float(position[0]), float(position[1])
        x0 = math.floor((x - radius) / self.cell_size)
        x1 = math.floor((x + radius) / self.cell_size)
        y0 = math.floor((y - radius) / self.cell_size)
        y1 = math.floor((y + radius) / self.cell_size)
        return [(cx, cy) for cx in range(x0, x1 + 1) for cy in range(y0, y1 + 1)]

    def query(self, query: SpatialQuery) -> QueryResult:
        """
        Find entities within query.radius of query.position.

        Args:
            query: SpatialQuery parameters

        Returns:
            QueryResult with per-bucket hits
        """
        self.query_count += 1
        result = QueryResult()
        qx, qy = float(query.position[0]), float(query.position[1])
        radius = query.radius
        types = query.entity_types
        exclude = query.exclude
        checks = 0

        for key in self.cells_for_radius(query.position, radius):
            cell = self.cells.get(key)
            if cell is None:
                continue
            for bucket, hits in ((cell.food, result.food_hits),
                                 (cell.creatures, result.creature_hits),
                                 (cell.environmental, result.environmental_hits)):
                for entity in bucket:
                    if entity is exclude or not entity.is_active:
                        continue
                    if types is not None and entity.type not in types:
                        continue
                    checks += 1
                    pos = entity.position
                    d = math.hypot(float(pos[0]) - qx, float(pos[1]) - qy)
                    if d <= radius:
                        hits.append(Hit(entity, d))

        self.check_count += checks

        for hits in (result.food_hits, result.creature_hits, result.environmental_hits):
            if query.sort_by_distance:
                hits.sort(key=lambda h: h.distance)
            if query.max_results is not None and len(hits) > query.max_results:
                del hits[query.max_results:]

        return result


# ============================================================================
# O(n) Reference Scan
# ============================================================================

def neighbors_within(query: SpatialQuery, entities: Iterable) -> QueryResult:
    """
    Brute-force equivalent of SpatialGrid.query over an entity list.

    Used to cross-check grid results; applies the same filters, sorting,
    and per-bucket caps.
    """
    result = QueryResult()
    buckets = {
        'food': result.food_hits,
        'creatures': result.creature_hits,
        'environmental': result.environmental_hits,
    }
    for entity in entities:
        if entity is query.exclude or not entity.is_active:
            continue
        if query.entity_types is not None and entity.type not in query.entity_types:
            continue
        d = math.hypot(float(entity.position[0]) - float(query.position[0]),
                       float(entity.position[1]) - float(query.position[1]))
        if d <= query.radius:
            buckets[_bucket_name(entity.type)].append(Hit(entity, d))

    for hits in buckets.values():
        if query.sort_by_distance:
            hits.sort(key=lambda h: h.distance)
        if query.max_results is not None and len(hits) > query.max_results:
            del hits[query.max_results:]
    return result


# ============================================================================
# Batch Neighbour Counts (cKDTree)
# ============================================================================

def count_neighbors_within(positions: np.ndarray, radius: float) -> np.ndarray:
    """
    Count, for every point, the other points within radius.

    Args:
        positions: (N, 2) array of positions
        radius: Neighbour radius (inclusive)

    Returns:
        (N,) int array of neighbour counts (self excluded)
    """
    positions = np.asarray(positions, dtype=np.float64)
    if len(positions) == 0:
        return np.zeros(0, dtype=np.int64)

    tree = cKDTree(positions, leafsize=CKDTREE_LEAFSIZE)
    counts = tree.query_ball_point(positions, r=radius, return_length=True)
    return np.asarray(counts, dtype=np.int64) - 1
