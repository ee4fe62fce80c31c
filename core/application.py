"""Headless host application: frame loop, kinematics integration and collisions."""

import time
import numpy as np
from typing import Dict, Optional

from config import swarm as config
from swarm import (
    Appearance, CollisionHandlers, Population, Swarm, SwarmParams, TickResult,
    bump, find_collisions,
)
from swarm.neighbors import nearest_neighbors_numba
from swarm.spatial import SpatialGrid


class Application:
    """Host owning the per-frame loop around the swarm core."""

    def __init__(
        self,
        params: Optional[SwarmParams] = None,
        ticks: int = config.HOST["ticks"],
        log_interval: int = config.HOST["log_interval"],
        verbose: bool = True,
    ):
        self.params = params if params is not None else SwarmParams.from_config()
        self.ticks = ticks
        self.log_interval = log_interval
        self.verbose = verbose

        self._log(f"[App] Initializing swarm of {self.params.num_birds:,} birds "
                  f"(mode={self.params.mode}, rule={self.params.force_rule})")
        self.swarm = Swarm(self.params)

        # Presentation state, linked to the swarm only by bird id
        self.appearances: Dict[int, Appearance] = {
            int(bird_id): Appearance(int(bird_id)) for bird_id in self.swarm.population.ids
        }
        self.collisions = CollisionHandlers()
        self.collisions.register(lambda a, b: bump(a, b, self.swarm.rng))
        self.collision_count = 0

        # State
        self.running = True
        self.sim_time = 0.0
        self.fps = 0.0
        self._start_time = time.perf_counter()

        if self.params.mode in ("grid", "parallel"):
            self._warmup_numba()
        self._log("[App] Ready!")

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def _warmup_numba(self):
        """Pre-compile Numba functions."""
        self._log("[Swarm] Compiling Numba kernels...")
        n = 16
        pos = np.random.rand(n, 3).astype(np.float64) * 10
        idx = np.zeros(n, dtype=np.int64)
        dist = np.zeros(n, dtype=np.float64)
        nearest_neighbors_numba(pos, idx, dist, n)
        SpatialGrid(2.0).nearest(pos)

    def _integrate(self, dt: float):
        """Advance kinematics: velocity += acceleration*dt, position += velocity*dt."""
        population = self.swarm.population
        velocities = population.velocities + population.accelerations * dt
        positions = population.positions + velocities * dt
        self.swarm.replace_population(
            Population(positions, velocities, population.accelerations, population.ids)
        )

    def _handle_collisions(self, result: TickResult):
        if not len(self.collisions):
            return
        pairs = find_collisions(self.swarm.population.ids, result.neighbors, self.params.collision_distance)
        if pairs:
            self.appearances = self.collisions.dispatch(self.appearances, pairs)
            self.collision_count += len(pairs)

    def _report(self):
        elapsed = time.perf_counter() - self._start_time
        self.fps = self.swarm.tick / elapsed if elapsed > 0 else 0.0
        self._log(f"[Swarm] Tick: {self.swarm.tick}  Sim time: {self.sim_time:.1f}  "
                  f"Time: {elapsed:.2f}s  FPS: {self.fps:.1f}  Collisions: {self.collision_count}")

    def update(self) -> TickResult:
        """One frame: tick the swarm, dispatch collisions, integrate."""
        result = self.swarm.step()
        self._handle_collisions(result)
        self._integrate(self.params.dt)
        self.sim_time += self.params.dt

        if self.log_interval and self.swarm.tick % self.log_interval == 0:
            self._report()
        return result

    def stop(self):
        """Stop the loop before the next frame."""
        self.running = False

    def run(self) -> int:
        """Main application loop. Returns the number of frames run."""
        self._start_time = time.perf_counter()
        frames = 0
        try:
            while self.running and frames < self.ticks:
                self.update()
                frames += 1
        except KeyboardInterrupt:
            self._log("\n[App] Interrupted")

        self._report()
        self._log("[App] Done")
        return frames
