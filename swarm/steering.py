"""
Steering rules that turn a nearest-neighbor result into accelerations.

Two rules exist:

- reynolds: velocity matching toward the nearest neighbor's velocity, plus
  a positional term that follows the separation vector when within the
  avoidance distance and closes the gap (with a small jitter) beyond it.
  Isolated birds wander toward the domain center. The result is normalized
  and scaled to max_acceleration.
- inverse_distance: the separation vector to the nearest neighbor weighted
  by -1/dist within the avoidance distance and +1/dist beyond it, then
  clamped to max_acceleration. No velocity matching, wander or jitter.

Both rules wrap out-of-bounds positions and clamp velocity.
"""

import numpy as np
from typing import Optional, Tuple

from .neighbors import NO_NEIGHBOR, NeighborResult
from .params import SwarmParams
from .population import Population
from .vector import (
    add, clamp, clamp_rows, elmul, normalize, normalize_rows, out_of_bounds,
    periodic_boundary, periodic_boundary_rows, scale, sub,
)


JITTER = 0.1   # Upper bound of the per-axis random delta when closing distance


# ============================================================================
# SINGLE BIRD
# ============================================================================

def wander(position: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Random unit direction, biased toward the center by the bird's offset from it."""
    rand = rng.random(3) - 0.5
    return normalize(elmul(rand, scale(position, -1.0)))


def reynolds_acceleration(
    position: np.ndarray,
    velocity: np.ndarray,
    neighbor_position: np.ndarray,
    neighbor_velocity: np.ndarray,
    dist: float,
    avoidance_distance: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Raw (unnormalized) steering vector relative to the nearest neighbor."""
    dvec = sub(position, neighbor_position)
    velocity_term = sub(neighbor_velocity, velocity)

    if dist <= avoidance_distance:
        positional = dvec
    else:
        # Small random delta so we don't get into a loop
        positional = add(scale(dvec, -1.0), rng.random(3) * JITTER)

    return add(velocity_term, positional)


def steer(raw: np.ndarray, max_acceleration: float) -> np.ndarray:
    """Normalize, then scale to max_acceleration; zero stays zero."""
    return clamp(scale(normalize(raw), max_acceleration), max_acceleration)


def fly(
    row: int,
    population: Population,
    neighbors: NeighborResult,
    params: SwarmParams,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    New (acceleration, velocity, position) for one bird under the reynolds rule.

    Velocity is the current velocity clamped to max_velocity; position is
    wrapped only when a coordinate has left the domain.
    """
    position = population.positions[row]
    velocity = population.velocities[row]

    found = neighbors.neighbor_of(row)
    if found is None:
        raw = wander(position, rng)
    else:
        idx, dist = found
        raw = reynolds_acceleration(
            position, velocity,
            population.positions[idx], population.velocities[idx],
            dist, params.avoidance_distance, rng,
        )

    if out_of_bounds(position, params.boundary):
        position = periodic_boundary(position, params.boundary)
    else:
        position = position.copy()

    return (
        steer(raw, params.max_acceleration),
        clamp(velocity, params.max_velocity),
        position,
    )


def fly_inverse_distance(
    row: int,
    population: Population,
    neighbors: NeighborResult,
    params: SwarmParams,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Single-bird form of the inverse_distance rule."""
    position = population.positions[row]
    found = neighbors.neighbor_of(row)
    if found is None:
        acceleration = np.zeros(3)
    else:
        idx, dist = found
        acceleration = scale(sub(population.positions[idx], position), inverse_distance_weight(dist, params.avoidance_distance))

    if out_of_bounds(position, params.boundary):
        position = periodic_boundary(position, params.boundary)
    else:
        position = position.copy()

    return (
        clamp(acceleration, params.max_acceleration),
        clamp(population.velocities[row], params.max_velocity),
        position,
    )


def inverse_distance_weight(dist: float, avoidance_distance: float) -> float:
    """-1/dist within the avoidance distance, +1/dist beyond; 1/dist is taken as 1 at dist 0."""
    magnitude = 1.0 if dist == 0 else 1.0 / dist
    return -magnitude if dist <= avoidance_distance else magnitude


# ============================================================================
# WHOLE POPULATION
# ============================================================================

def _neighbor_rows(neighbors: NeighborResult):
    """Rows with a neighbor, and their neighbor indices."""
    has_neighbor = neighbors.indices != NO_NEIGHBOR
    return has_neighbor, neighbors.indices[has_neighbor]


def inverse_distance_weights(distances: np.ndarray, avoidance_distance: float) -> np.ndarray:
    magnitude = np.ones_like(distances, dtype=np.float64)
    nonzero = distances != 0
    magnitude[nonzero] = 1.0 / distances[nonzero]
    return np.where(distances <= avoidance_distance, -magnitude, magnitude)


def swarm_inverse_distance(
    population: Population,
    neighbors: NeighborResult,
    params: SwarmParams,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Batched inverse_distance rule.

    The delta matrix holds, per row, the vector from the bird to its nearest
    neighbor; each row is scaled by its weight. Rows without a neighbor get
    zero acceleration.
    """
    has_neighbor, idx = _neighbor_rows(neighbors)

    dvec = np.zeros_like(population.positions)
    dvec[has_neighbor] = population.positions[idx] - population.positions[has_neighbor]

    weights = np.zeros(len(population))
    weights[has_neighbor] = inverse_distance_weights(neighbors.distances[has_neighbor], params.avoidance_distance)

    accelerations = dvec * weights[:, None]
    return (
        clamp_rows(accelerations, params.max_acceleration),
        clamp_rows(population.velocities, params.max_velocity),
        periodic_boundary_rows(population.positions, params.boundary),
    )


def swarm_reynolds(
    population: Population,
    neighbors: NeighborResult,
    params: SwarmParams,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Batched reynolds rule: same terms as fly(), evaluated on whole matrices."""
    if rng is None:
        rng = np.random.default_rng()
    n = len(population)
    positions = population.positions
    velocities = population.velocities

    has_neighbor, idx = _neighbor_rows(neighbors)
    lonely = ~has_neighbor

    raw = np.zeros((n, 3))

    dvec = positions[has_neighbor] - positions[idx]
    velocity_term = velocities[idx] - velocities[has_neighbor]
    too_far = neighbors.distances[has_neighbor] > params.avoidance_distance
    positional = dvec.copy()
    positional[too_far] = -dvec[too_far] + rng.random((int(too_far.sum()), 3)) * JITTER
    raw[has_neighbor] = velocity_term + positional

    if lonely.any():
        rand = rng.random((int(lonely.sum()), 3)) - 0.5
        raw[lonely] = normalize_rows(rand * -positions[lonely])

    accelerations = normalize_rows(raw) * params.max_acceleration
    return (
        clamp_rows(accelerations, params.max_acceleration),
        clamp_rows(velocities, params.max_velocity),
        periodic_boundary_rows(positions, params.boundary),
    )
