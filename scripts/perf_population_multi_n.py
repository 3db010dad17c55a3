"""
Multi-N tick performance for the evolution environment.

Runs Environment.update() with 100, 200, 400 creatures (clustered and
spread) and reports median/p90 tick time. Targets: 60 ticks/s
(~16.7ms/tick) at 400 creatures.
"""

# Pin threading for stable measurement
import os
os.environ.update({
    'OPENBLAS_NUM_THREADS': '1',
    'MKL_NUM_THREADS': '1',
    'NUMEXPR_NUM_THREADS': '1',
    'OMP_NUM_THREADS': '1'
})

import gc
import time

import numpy as np

from evosim.data_types import EnvironmentConfig, CarryingCapacityConfig
from evosim.environment import Environment

TICK_BUDGET_MS = 1000.0 / 60.0


def build_environment(creature_count: int, clustered: bool, seed: int = 42) -> Environment:
    """Environment at the default 400 cap, populated with founders."""
    config = EnvironmentConfig(
        max_creatures=400,
        carrying_capacity=CarryingCapacityConfig(target_population=300, max_population=400)
    )
    env = Environment(config, seed=seed)
    if clustered:
        env.populate(creature_count, center=(500.0, 500.0), spread=150.0)
    else:
        env.populate(creature_count)
    return env


def run_tick_perf_test(creature_count: int, clustered: bool, ticks: int = 30) -> dict:
    """
    Time Environment.update() at a given population.

    Args:
        creature_count: Founders to spawn
        clustered: Spawn all founders within 150 units of the center
        ticks: Measured ticks (after 3 warmup ticks)

    Returns:
        Dict with p50, p90, min, max, queries, checks
    """
    env = build_environment(creature_count, clustered)

    for _ in range(3):
        env.update()

    gc.collect()
    gc.disable()

    times_ns = []
    try:
        for _ in range(ticks):
            start = time.perf_counter_ns()
            env.update()
            times_ns.append(time.perf_counter_ns() - start)
    finally:
        gc.enable()

    times_ms = np.array(times_ns) / 1_000_000
    stats = env.get_stats()

    return {
        'creature_count': creature_count,
        'clustered': clustered,
        'living': stats.living_creatures,
        'p50_ms': np.percentile(times_ms, 50),
        'p90_ms': np.percentile(times_ms, 90),
        'min_ms': np.min(times_ms),
        'max_ms': np.max(times_ms),
        'queries': stats.spatial_queries,
        'checks': stats.collision_checks,
    }


def main():
    print("=" * 80)
    print("Environment Tick Multi-N Performance")
    print("=" * 80)
    print()

    results = []
    for clustered in (False, True):
        for creature_count in (100, 200, 400):
            layout = "clustered" if clustered else "spread"
            print(f"[N = {creature_count}, {layout}]")

            result = run_tick_perf_test(creature_count, clustered)

            print(f"  p50: {result['p50_ms']:.3f}ms")
            print(f"  p90: {result['p90_ms']:.3f}ms")
            print(f"  min: {result['min_ms']:.3f}ms, max: {result['max_ms']:.3f}ms")
            print(f"  Queries: {result['queries']}, Checks: {result['checks']}, Living: {result['living']}")

            if result['p50_ms'] >= TICK_BUDGET_MS:
                print(f"  WARNING: p50 {result['p50_ms']:.3f}ms >= {TICK_BUDGET_MS:.1f}ms budget")
            else:
                headroom_pct = ((TICK_BUDGET_MS - result['p50_ms']) / TICK_BUDGET_MS) * 100
                print(f"  PASS: {headroom_pct:.1f}% headroom under {TICK_BUDGET_MS:.1f}ms budget")

            results.append(result)
            print()

    print("=" * 80)
    print("Summary Table")
    print("=" * 80)
    print()
    print("| Creatures | Layout    | p50 (ms) | p90 (ms) | Queries | Checks  |")
    print("|-----------|-----------|----------|----------|---------|---------|")
    for r in results:
        layout = "clustered" if r['clustered'] else "spread"
        print(f"| {r['creature_count']:9d} | {layout:9s} | {r['p50_ms']:8.3f} | {r['p90_ms']:8.3f} "
              f"| {r['queries']:7d} | {r['checks']:7d} |")
    print()
    print("=" * 80)


if __name__ == '__main__':
    main()
