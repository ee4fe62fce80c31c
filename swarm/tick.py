"""Per-tick orchestration: snapshot, resolve neighbors, compute forces, commit."""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .neighbors import NeighborResult, resolve
from .params import SwarmParams
from .population import Population, seed_population
from .spatial import SpatialGrid
from .steering import fly, fly_inverse_distance, swarm_inverse_distance, swarm_reynolds


PER_BIRD_MODES = ("scalar", "grid")


@dataclass
class TickResult:
    """New kinematic state for every row of the input snapshot."""
    accelerations: np.ndarray
    velocities: np.ndarray
    positions: np.ndarray
    neighbors: NeighborResult


class TickPhase(Enum):
    IDLE = "idle"
    SNAPSHOT = "snapshot"
    RESOLVE = "resolve"
    COMPUTE = "compute"
    COMMIT = "commit"


def compute_forces(
    population: Population,
    neighbors: NeighborResult,
    params: SwarmParams,
    rng: np.random.Generator,
):
    """(accelerations, velocities, positions) under the configured mode and rule."""
    rule = params.force_rule

    if params.mode in PER_BIRD_MODES:
        n = len(population)
        accelerations = np.zeros((n, 3))
        velocities = np.zeros((n, 3))
        positions = np.zeros((n, 3))
        for row in range(n):
            if rule == "reynolds":
                a, v, p = fly(row, population, neighbors, params, rng)
            else:
                a, v, p = fly_inverse_distance(row, population, neighbors, params)
            accelerations[row] = a
            velocities[row] = v
            positions[row] = p
        return accelerations, velocities, positions

    if rule == "reynolds":
        return swarm_reynolds(population, neighbors, params, rng)
    return swarm_inverse_distance(population, neighbors, params)


def compute_tick(
    population: Population,
    params: SwarmParams,
    rng: Optional[np.random.Generator] = None,
    grid: Optional[SpatialGrid] = None,
) -> TickResult:
    """
    Compute one tick for a population snapshot.

    Reads only the snapshot and returns new arrays; the snapshot is not
    modified. All neighbor queries see the same (prior tick) positions.
    """
    if rng is None:
        rng = np.random.default_rng()

    neighbors = resolve(population.positions, params.mode, grid=grid, cell_size=params.neighborhood_radius)
    accelerations, velocities, positions = compute_forces(population, neighbors, params, rng)
    return TickResult(accelerations, velocities, positions, neighbors)


class Swarm:
    """
    Tick scheduler owning the live population.

    Ticks run strictly one after another. A tick reads a snapshot of the
    committed state and replaces the population as a whole at commit, so a
    tick never observes its own partial results.
    """

    def __init__(
        self,
        params: SwarmParams,
        population: Optional[Population] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(params.seed)
        self.population = population if population is not None else seed_population(
            params.num_birds, params.boundary, self.rng
        )
        self.grid = SpatialGrid(params.neighborhood_radius) if params.mode == "grid" else None

        self.phase = TickPhase.IDLE
        self.tick = 0
        self.last_result: Optional[TickResult] = None
        self._stop_requested = False

    def step(self) -> TickResult:
        """Run one full tick and commit it."""
        if self.phase != TickPhase.IDLE:
            raise RuntimeError(f"Tick {self.tick} already in progress ({self.phase.value})")

        try:
            self.phase = TickPhase.SNAPSHOT
            snapshot = self.population.snapshot()

            self.phase = TickPhase.RESOLVE
            neighbors = resolve(snapshot.positions, self.params.mode, grid=self.grid,
                                cell_size=self.params.neighborhood_radius)

            self.phase = TickPhase.COMPUTE
            accelerations, velocities, positions = compute_forces(snapshot, neighbors, self.params, self.rng)
            result = TickResult(accelerations, velocities, positions, neighbors)

            self.phase = TickPhase.COMMIT
            self.population = snapshot.commit(accelerations, velocities, positions)
            self.last_result = result
            self.tick += 1
        finally:
            self.phase = TickPhase.IDLE

        return result

    def stop(self):
        """Stop run() before the next tick begins."""
        self._stop_requested = True

    def run(self, ticks: int, on_tick: Optional[Callable[["Swarm", TickResult], None]] = None) -> int:
        """
        Run up to `ticks` ticks, calling on_tick after each commit.

        Returns the number of ticks completed.
        """
        self._stop_requested = False
        completed = 0
        while completed < ticks and not self._stop_requested:
            result = self.step()
            completed += 1
            if on_tick is not None:
                on_tick(self, result)
        return completed

    def replace_population(self, population: Population):
        """Hand back state advanced by the host integrator between ticks."""
        if self.phase != TickPhase.IDLE:
            raise RuntimeError("Cannot replace the population during a tick")
        if len(population) != len(self.population) or not np.array_equal(population.ids, self.population.ids):
            raise ValueError("Population ids must not change between ticks")
        self.population = population
