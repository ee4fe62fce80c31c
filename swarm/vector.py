"""3D vector helpers and periodic boundary conditions."""

import math
import numpy as np


def length(v: np.ndarray) -> float:
    """Euclidean length of a 3D vector."""
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.asarray(a, dtype=np.float64) + b


def sub(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.asarray(a, dtype=np.float64) - b


def scale(v: np.ndarray, k: float) -> np.ndarray:
    return np.asarray(v, dtype=np.float64) * k


def elmul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Elementwise product."""
    return np.asarray(a, dtype=np.float64) * b


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    Euclidean distance between two points.

    Evaluated as sqrt(dx*dx + dy*dy + dz*dz) in that order so the scalar and
    batched neighbor scans produce bit-identical distances.
    """
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    dz = a[2] - b[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector in the direction of v, or the zero vector when v is zero."""
    v = np.asarray(v, dtype=np.float64)
    mag = length(v)
    if mag == 0:
        return np.zeros(3)
    return v / mag


def clamp(v: np.ndarray, max_length: float) -> np.ndarray:
    """Rescale v to max_length when it is longer, otherwise return it unchanged."""
    v = np.asarray(v, dtype=np.float64)
    mag = length(v)
    if mag > max_length:
        return (v / mag) * max_length
    return v


def wrap_axis(x: float, boundary: float) -> float:
    """Periodic wrap of a single coordinate into [-boundary, boundary]."""
    if x > boundary:
        return (x % boundary) - boundary
    if x < -boundary:
        return boundary - ((-x) % boundary)
    return x


def out_of_bounds(pos: np.ndarray, boundary: float) -> bool:
    """True if any coordinate magnitude exceeds the boundary."""
    return abs(pos[0]) > boundary or abs(pos[1]) > boundary or abs(pos[2]) > boundary


def periodic_boundary(pos: np.ndarray, boundary: float) -> np.ndarray:
    """Change a position according to periodic boundary conditions."""
    return np.array([
        wrap_axis(float(pos[0]), boundary),
        wrap_axis(float(pos[1]), boundary),
        wrap_axis(float(pos[2]), boundary),
    ])


# ============================================================================
# ROW-WISE (N x 3) VARIANTS
# ============================================================================

def row_lengths(m: np.ndarray) -> np.ndarray:
    return np.sqrt(m[:, 0] * m[:, 0] + m[:, 1] * m[:, 1] + m[:, 2] * m[:, 2])


def normalize_rows(m: np.ndarray) -> np.ndarray:
    """Normalize every row; zero rows stay zero."""
    mags = row_lengths(m)
    out = np.zeros_like(m, dtype=np.float64)
    nonzero = mags > 0
    out[nonzero] = m[nonzero] / mags[nonzero, None]
    return out


def clamp_rows(m: np.ndarray, max_length: float) -> np.ndarray:
    """Row-wise clamp, same rule as clamp()."""
    mags = row_lengths(m)
    out = np.array(m, dtype=np.float64)
    over = mags > max_length
    out[over] = (m[over] / mags[over, None]) * max_length
    return out


def periodic_boundary_rows(positions: np.ndarray, boundary: float) -> np.ndarray:
    """Row-wise periodic wrap, same rule as periodic_boundary()."""
    out = np.array(positions, dtype=np.float64)
    high = out > boundary
    low = out < -boundary
    out[high] = np.mod(out[high], boundary) - boundary
    out[low] = boundary - np.mod(-out[low], boundary)
    return out
