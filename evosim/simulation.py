"""
Evolution simulation driver.

Spawns the initial population, advances the Environment one tick at a
time, and tracks tick timing plus simulation-level statistics (generations,
fitness, births, deaths, extinctions).
"""

import time
from typing import List, Optional

from .data_types import SimulationConfig, SimulationStats, EnvironmentStats
from .environment import Environment
from .events import EventSink, NullEventSink, SimEvent, EventCategory, EventLevel
from .rng import make_rng, make_seed
from .constants import TICK_TIME_WINDOW


class EvolutionSimulation:
    """
    Tick driver for an Environment.

    Lifecycle: start() enables run(); pause() halts run() without
    discarding state; step() always advances exactly one tick (even while
    paused or stopped); reset() rebuilds the world from the config seed.

    Args:
        config: SimulationConfig (validated here; ConfigError on failure)
        sink: Event sink shared with the environment (default: NullEventSink)
    """

    def __init__(self, config: Optional[SimulationConfig] = None, sink: Optional[EventSink] = None):
        self.config = config if config is not None else SimulationConfig()
        self.config.validate()
        self.sink: EventSink = sink if sink is not None else NullEventSink()

        self.running = False
        self.paused = False
        self.extinction_events = 0
        self._extinct = False

        self._tick_times: List[float] = []
        self._tick_time_sum: float = 0.0
        self._tick_time_window: int = TICK_TIME_WINDOW

        self.environment = self._build_environment()
        self.stats = SimulationStats()
        self._update_stats()

    def _build_environment(self) -> Environment:
        seed = self.config.seed
        self.rng = make_rng(make_seed(seed, "environment") if seed is not None else None)
        env = Environment(self.config.environment, sink=self.sink, rng=self.rng)
        env.populate(self._founder_count(env))
        return env

    def _founder_count(self, env: Environment) -> int:
        return min(self.config.initial_population, env.config.population_cap)

    def _record(self, message: str, level: EventLevel = EventLevel.INFO, data: Optional[dict] = None):
        self.sink.record(SimEvent(tick=self.environment.tick, category=EventCategory.SYSTEM,
                                  message=message, level=level, data=data or {}))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        self.running = True
        self.paused = False
        self._record("Simulation started", level=EventLevel.SUCCESS,
                     data={'population': self.environment.living_population})

    def stop(self):
        self.running = False
        self._record("Simulation stopped")

    def pause(self):
        self.paused = True
        self._record("Simulation paused")

    def resume(self):
        self.paused = False
        self._record("Simulation resumed")

    def reset(self):
        """Discard the world and rebuild it (same seed = same trajectory)."""
        self.running = False
        self.paused = False
        self.extinction_events = 0
        self._extinct = False
        self._tick_times = []
        self._tick_time_sum = 0.0
        self.environment = self._build_environment()
        self.stats = SimulationStats()
        self._update_stats()
        self._record("Simulation reset", data={'seed': self.config.seed})

    def step(self) -> EnvironmentStats:
        """
        Advance exactly one tick.

        Returns:
            Environment stats for the completed tick
        """
        start = time.perf_counter()
        self.environment.update()
        self._check_extinction()
        self._update_stats()
        self._record_tick_time(time.perf_counter() - start)
        return self.environment.get_stats()

    def run(self, n_ticks: int, realtime: bool = False) -> int:
        """
        Run up to n_ticks, stopping early if paused or stopped.

        Args:
            n_ticks: Maximum ticks to advance
            realtime: Sleep between ticks to honour ticks_per_second

        Returns:
            Number of ticks actually executed
        """
        if not self.running:
            self.start()

        interval = 1.0 / self.config.ticks_per_second
        executed = 0
        for _ in range(n_ticks):
            if not self.running or self.paused:
                break
            tick_start = time.perf_counter()
            self.step()
            executed += 1
            if realtime:
                remaining = interval - (time.perf_counter() - tick_start)
                if remaining > 0:
                    time.sleep(remaining)
        return executed

    def _check_extinction(self):
        population = self.environment.living_population
        if population > 0:
            self._extinct = False
            return
        if self._extinct:
            return

        self._extinct = True
        self.extinction_events += 1
        self._record(
            f"Extinction event #{self.extinction_events}",
            level=EventLevel.CRITICAL,
            data={'extinction_events': self.extinction_events, 'auto_pause': self.config.auto_pause}
        )

        if self.config.auto_pause:
            self.pause()
            return

        spawned = self.environment.populate(self._founder_count(self.environment))
        if spawned:
            self._extinct = False
        self._record(f"Respawned {len(spawned)} founders", level=EventLevel.WARNING,
                     data={'spawned': len(spawned)})

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def _update_stats(self):
        env = self.environment
        alive = env.get_living_creatures()
        s = self.stats
        s.current_tick = env.tick
        s.total_creatures = len(env.creatures)
        s.living_creatures = len(alive)
        s.extinction_events = self.extinction_events
        s.total_births = env.total_births
        s.total_deaths = env.total_deaths
        s.death_causes = dict(env.death_causes)
        if alive:
            s.generation_count = max(c.generation for c in alive)
            s.average_generation = sum(c.generation for c in alive) / len(alive)
            s.average_fitness = sum(c.stats.fitness for c in alive) / len(alive)
        else:
            s.average_generation = 0.0
            s.average_fitness = 0.0

    def get_stats(self) -> SimulationStats:
        return self.stats

    def get_tick_stats(self) -> dict:
        """
        Get current tick timing statistics.

        Returns:
            Dict with tick_count, avg_tick_time_ms, last_tick_time_ms
        """
        if not self._tick_times:
            return {
                'tick_count': self.environment.tick,
                'avg_tick_time_ms': 0.0,
                'last_tick_time_ms': 0.0
            }

        return {
            'tick_count': self.environment.tick,
            'avg_tick_time_ms': self._tick_time_sum / len(self._tick_times) * 1000.0,
            'last_tick_time_ms': self._tick_times[-1] * 1000.0
        }

    def _record_tick_time(self, elapsed: float):
        self._tick_times.append(elapsed)
        self._tick_time_sum += elapsed
        if len(self._tick_times) > self._tick_time_window:
            self._tick_time_sum -= self._tick_times.pop(0)

    def get_snapshot(self) -> dict:
        """Complete state snapshot (creatures, food counts, timing)."""
        env = self.environment
        return {
            'tick_count': env.tick,
            'creatures': [c.to_dict() for c in env.get_creatures()],
            'food': [f.to_dict() for f in env.get_all_food()],
            'carrion': [c.to_dict() for c in env.get_carrion()],
            'environment': env.get_stats().to_dict(),
            'timing': self.get_tick_stats(),
        }

    def print_tick_summary(self):
        """Print tick summary to console (lightweight monitoring)"""
        stats = self.get_tick_stats()
        s = self.stats
        print(f"Tick {stats['tick_count']:5d} | "
              f"Avg: {stats['avg_tick_time_ms']:6.3f} ms | "
              f"Last: {stats['last_tick_time_ms']:6.3f} ms | "
              f"Living: {s.living_creatures} | "
              f"Gen: {s.generation_count} (avg {s.average_generation:.1f}) | "
              f"Fitness: {s.average_fitness:.1f}")
