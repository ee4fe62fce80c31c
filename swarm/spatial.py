"""Uniform spatial grid with exact nearest-neighbor queries (Numba JIT)."""

import math
import numpy as np
from numba import njit, prange

from .neighbors import NeighborResult


# Slack on the shell stopping bound, in cells, for cell assignment rounding
SHELL_EPSILON = 1e-6


# ============================================================================
# NUMBA JIT-COMPILED GRID FUNCTIONS
# ============================================================================

@njit(cache=True)
def get_cell_coords(x: float, y: float, z: float,
                    ox: float, oy: float, oz: float, cell_size: float) -> tuple:
    """Convert a 3D position to integer cell coordinates."""
    return (int((x - ox) / cell_size),
            int((y - oy) / cell_size),
            int((z - oz) / cell_size))


@njit(parallel=True, cache=True)
def assign_cells(
    positions: np.ndarray,
    cell_indices: np.ndarray,
    ox: float, oy: float, oz: float,
    cell_size: float,
    dim_x: int, dim_y: int, dim_z: int,
    num_birds: int
):
    """Assign each bird to a cell."""
    for i in prange(num_birds):
        cx, cy, cz = get_cell_coords(positions[i, 0], positions[i, 1], positions[i, 2],
                                     ox, oy, oz, cell_size)
        cx = max(0, min(cx, dim_x - 1))
        cy = max(0, min(cy, dim_y - 1))
        cz = max(0, min(cz, dim_z - 1))
        cell_indices[i] = cx + cy * dim_x + cz * dim_x * dim_y


@njit(cache=True)
def build_cell_lists(
    cell_indices: np.ndarray,
    sorted_indices: np.ndarray,
    cell_starts: np.ndarray,
    cell_counts: np.ndarray,
    num_birds: int
):
    """Offset into sorted_indices and bird count per cell; empty cells start at -1."""
    cell_starts[:] = -1
    cell_counts[:] = 0

    previous = -1
    for pos in range(num_birds):
        cell = cell_indices[sorted_indices[pos]]
        if cell != previous:
            cell_starts[cell] = pos
            previous = cell
        cell_counts[cell] += 1


@njit(parallel=True, cache=True)
def nearest_in_grid(
    positions: np.ndarray,
    sorted_indices: np.ndarray,
    cell_starts: np.ndarray,
    cell_counts: np.ndarray,
    out_indices: np.ndarray,
    out_distances: np.ndarray,
    ox: float, oy: float, oz: float,
    cell_size: float,
    dim_x: int, dim_y: int, dim_z: int,
    num_birds: int
):
    """
    Exact nearest neighbor per bird by expanding Chebyshev shells of cells.

    After shell r is scanned, every unscanned bird is at least r * cell_size
    away, so the search stops once the best distance is below that bound.
    """
    max_shell = max(dim_x, max(dim_y, dim_z))

    for i in prange(num_birds):
        px = positions[i, 0]
        py = positions[i, 1]
        pz = positions[i, 2]

        cx, cy, cz = get_cell_coords(px, py, pz, ox, oy, oz, cell_size)
        cx = max(0, min(cx, dim_x - 1))
        cy = max(0, min(cy, dim_y - 1))
        cz = max(0, min(cz, dim_z - 1))

        best = -1
        best_dist = np.inf

        for r in range(max_shell + 1):
            for dcx in range(-r, r + 1):
                ncx = cx + dcx
                if ncx < 0 or ncx >= dim_x:
                    continue
                for dcy in range(-r, r + 1):
                    ncy = cy + dcy
                    if ncy < 0 or ncy >= dim_y:
                        continue
                    for dcz in range(-r, r + 1):
                        # Only the surface of the (2r+1)^3 block is new
                        if abs(dcx) != r and abs(dcy) != r and abs(dcz) != r:
                            continue
                        ncz = cz + dcz
                        if ncz < 0 or ncz >= dim_z:
                            continue

                        cell_idx = ncx + ncy * dim_x + ncz * dim_x * dim_y
                        start = cell_starts[cell_idx]
                        if start == -1:
                            continue

                        for k in range(cell_counts[cell_idx]):
                            j = sorted_indices[start + k]
                            if i == j:
                                continue
                            dx = px - positions[j, 0]
                            dy = py - positions[j, 1]
                            dz = pz - positions[j, 2]
                            d = math.sqrt(dx * dx + dy * dy + dz * dz)
                            if d < best_dist or (d == best_dist and j < best):
                                best = j
                                best_dist = d

            if best != -1 and best_dist < (r - SHELL_EPSILON) * cell_size:
                break

        out_indices[i] = best
        out_distances[i] = best_dist


# ============================================================================
# SPATIAL GRID CLASS
# ============================================================================

class SpatialGrid:
    """
    Cell-binned index over a population snapshot.

    The grid is rebuilt from the snapshot's bounding box on every query, so
    birds that have drifted past the boundary within a tick are still binned
    into their true cells.
    """

    def __init__(self, cell_size: float):
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)
        self.effective_cell_size = self.cell_size
        self.dims = (0, 0, 0)
        self.origin = np.zeros(3)

        self._cell_indices = np.zeros(0, dtype=np.int64)
        self._sorted_indices = np.zeros(0, dtype=np.int64)
        self._cell_starts = np.zeros(0, dtype=np.int64)
        self._cell_counts = np.zeros(0, dtype=np.int64)

    @property
    def num_cells(self) -> int:
        return self.dims[0] * self.dims[1] * self.dims[2]

    def build(self, positions: np.ndarray):
        """Bin every row of positions into the grid."""
        n = len(positions)
        self.origin = positions.min(axis=0)
        extent = positions.max(axis=0) - self.origin
        # Widen cells when the requested size would give far more cells than
        # birds; the shell search is exact for any cell size
        per_axis = max(1, int(math.ceil(n ** (1.0 / 3.0))))
        self.effective_cell_size = max(self.cell_size, float(extent.max()) / per_axis)
        self.dims = tuple(int(math.floor(e / self.effective_cell_size)) + 1 for e in extent)

        if len(self._cell_indices) != n:
            self._cell_indices = np.zeros(n, dtype=np.int64)
        if len(self._cell_starts) != self.num_cells:
            self._cell_starts = np.zeros(self.num_cells, dtype=np.int64)
            self._cell_counts = np.zeros(self.num_cells, dtype=np.int64)

        ox, oy, oz = (float(v) for v in self.origin)
        assign_cells(
            positions, self._cell_indices,
            ox, oy, oz, self.effective_cell_size,
            self.dims[0], self.dims[1], self.dims[2],
            n
        )

        # Stable sort keeps ascending rows within a cell
        self._sorted_indices = np.argsort(self._cell_indices, kind="stable").astype(np.int64)

        build_cell_lists(
            self._cell_indices, self._sorted_indices,
            self._cell_starts, self._cell_counts,
            n
        )

    def nearest(self, positions: np.ndarray) -> NeighborResult:
        """Exact nearest neighbor for every row of positions."""
        positions = np.ascontiguousarray(positions, dtype=np.float64)
        n = len(positions)
        result = NeighborResult.empty(n)
        if n < 2:
            return result

        self.build(positions)
        ox, oy, oz = (float(v) for v in self.origin)
        nearest_in_grid(
            positions,
            self._sorted_indices,
            self._cell_starts,
            self._cell_counts,
            result.indices,
            result.distances,
            ox, oy, oz,
            self.effective_cell_size,
            self.dims[0], self.dims[1], self.dims[2],
            n
        )
        return result
