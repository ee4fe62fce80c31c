"""
Nearest-neighbor resolution for every bird in a population snapshot.

All resolvers share one contract: for row i, the row of the closest other
bird by Euclidean distance (ties go to the lowest row) and that distance.
A bird with no other bird to compare against gets NO_NEIGHBOR and inf.
"""

import math
import numpy as np
from dataclasses import dataclass
from numba import njit, prange
from typing import Optional

from .vector import distance


NO_NEIGHBOR = -1

# Rows of the distance matrix evaluated at once by the batched resolver
BATCH_ROWS = 1024


@dataclass
class NeighborResult:
    """
    Per-row nearest neighbor and distance.

    `indices` holds matrix rows (NO_NEIGHBOR if none), not bird ids; map them
    through Population.ids, or use neighbor_ids().
    """
    indices: np.ndarray
    distances: np.ndarray

    def __len__(self) -> int:
        return len(self.indices)

    def neighbor_of(self, row: int):
        """(index, distance) for one row, or None when the row has no neighbor."""
        idx = int(self.indices[row])
        if idx == NO_NEIGHBOR:
            return None
        return idx, float(self.distances[row])

    def neighbor_ids(self, ids: np.ndarray) -> np.ndarray:
        """Nearest neighbor bird id per row, NO_NEIGHBOR where there is none."""
        ids = np.asarray(ids, dtype=np.int64)
        out = np.full(len(self.indices), NO_NEIGHBOR, dtype=np.int64)
        has_neighbor = self.indices != NO_NEIGHBOR
        out[has_neighbor] = ids[self.indices[has_neighbor]]
        return out

    @classmethod
    def empty(cls, n: int) -> "NeighborResult":
        return cls(
            indices=np.full(n, NO_NEIGHBOR, dtype=np.int64),
            distances=np.full(n, np.inf, dtype=np.float64),
        )


# ============================================================================
# SCALAR (ONE BIRD AT A TIME)
# ============================================================================

def nearest_neighbor(positions: np.ndarray, row: int, candidates=None):
    """
    Closest other bird to `row`, scanning `candidates` (default: every row).

    Returns (index, distance) or None. Candidates are scanned in the order
    given; pass them ascending to keep the lowest-index tie rule.
    """
    if candidates is None:
        candidates = range(len(positions))

    pos = positions[row]
    best = NO_NEIGHBOR
    best_dist = math.inf
    for j in candidates:
        if j == row:
            continue
        d = distance(pos, positions[j])
        if d < best_dist:
            best = j
            best_dist = d

    if best == NO_NEIGHBOR:
        return None
    return int(best), best_dist


def resolve_scalar(positions: np.ndarray) -> NeighborResult:
    """Brute-force O(N^2) scan, one bird at a time."""
    n = len(positions)
    result = NeighborResult.empty(n)
    for i in range(n):
        found = nearest_neighbor(positions, i)
        if found is not None:
            result.indices[i], result.distances[i] = found
    return result


# ============================================================================
# BATCHED (WHOLE DISTANCE MATRIX)
# ============================================================================

def pairwise_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """(len(a), len(b)) Euclidean distance matrix."""
    dx = a[:, None, 0] - b[None, :, 0]
    dy = a[:, None, 1] - b[None, :, 1]
    dz = a[:, None, 2] - b[None, :, 2]
    return np.sqrt(dx * dx + dy * dy + dz * dz)


def resolve_batched(positions: np.ndarray, batch_rows: int = BATCH_ROWS) -> NeighborResult:
    """
    All-pairs distances evaluated as a matrix, reduced to a row-wise arg-min
    with the diagonal excluded.

    The matrix is built in blocks of `batch_rows` rows so memory stays at
    batch_rows x N instead of N x N.
    """
    n = len(positions)
    result = NeighborResult.empty(n)
    if n < 2:
        return result

    for start in range(0, n, batch_rows):
        stop = min(start + batch_rows, n)
        block = pairwise_distances(positions[start:stop], positions)
        rows = np.arange(stop - start)
        block[rows, rows + start] = np.inf

        # argmin returns the first minimum, i.e. the lowest index on ties
        idx = np.argmin(block, axis=1)
        result.indices[start:stop] = idx
        result.distances[start:stop] = block[rows, idx]

    return result


# ============================================================================
# PARALLEL (NUMBA ALL-PAIRS KERNEL)
# ============================================================================

@njit(parallel=True, cache=True)
def nearest_neighbors_numba(
    positions: np.ndarray,
    out_indices: np.ndarray,
    out_distances: np.ndarray,
    num_birds: int
):
    """Numba JIT-compiled all-pairs nearest neighbor scan."""
    for i in prange(num_birds):
        px = positions[i, 0]
        py = positions[i, 1]
        pz = positions[i, 2]

        best = -1
        best_dist = np.inf

        for j in range(num_birds):
            if i == j:
                continue
            dx = px - positions[j, 0]
            dy = py - positions[j, 1]
            dz = pz - positions[j, 2]
            d = math.sqrt(dx * dx + dy * dy + dz * dz)
            if d < best_dist:
                best = j
                best_dist = d

        out_indices[i] = best
        out_distances[i] = best_dist


def resolve_parallel(positions: np.ndarray) -> NeighborResult:
    """All-pairs scan parallelized across birds with numba prange."""
    n = len(positions)
    result = NeighborResult.empty(n)
    if n < 2:
        return result
    nearest_neighbors_numba(
        np.ascontiguousarray(positions, dtype=np.float64),
        result.indices,
        result.distances,
        n
    )
    return result


def resolve(positions: np.ndarray, mode: str = "scalar", grid=None, cell_size: Optional[float] = None) -> NeighborResult:
    """
    Nearest neighbor for every row using the resolver of the given mode.

    `grid` is reused for the "grid" mode when supplied; otherwise one is built
    with `cell_size`.
    """
    if mode == "scalar":
        return resolve_scalar(positions)
    if mode == "batched":
        return resolve_batched(positions)
    if mode == "parallel":
        return resolve_parallel(positions)
    if mode == "grid":
        if grid is None:
            from .spatial import SpatialGrid
            if cell_size is None:
                raise ValueError("grid mode needs a SpatialGrid or a cell_size")
            grid = SpatialGrid(cell_size)
        return grid.nearest(positions)
    raise ValueError(f"Unknown mode {mode!r}")
