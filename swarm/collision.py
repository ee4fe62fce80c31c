"""
Collision handling contract.

Collision functions take (collider, collidee) appearances and return
(collider, collidee). They are called once per pair of colliding birds and
only see presentation records, so they cannot touch kinematic state.
"""

import numpy as np
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .bird import Appearance
from .neighbors import NO_NEIGHBOR, NeighborResult


CollisionHandler = Callable[[Appearance, Appearance], Tuple[Appearance, Appearance]]


def bump(bird1: Appearance, bird2: Appearance, rng: Optional[np.random.Generator] = None) -> Tuple[Appearance, Appearance]:
    """Collision between two birds: the first one takes a random opaque color."""
    if rng is None:
        rng = np.random.default_rng()
    r, g, b = (float(c) for c in rng.random(3))
    return Appearance(bird1.id, (r, g, b, 1.0), bird1.cone_length, bird1.cone_radius), bird2


def find_collisions(ids: np.ndarray, neighbors: NeighborResult, collision_distance: float) -> List[Tuple[int, int]]:
    """
    Unordered pairs of bird ids whose nearest-neighbor distance is below
    collision_distance, each pair reported once with the lower row first.
    """
    pairs = set()
    for row, idx in enumerate(neighbors.indices):
        if idx == NO_NEIGHBOR or neighbors.distances[row] >= collision_distance:
            continue
        pairs.add((min(row, int(idx)), max(row, int(idx))))
    return [(int(ids[a]), int(ids[b])) for a, b in sorted(pairs)]


class CollisionHandlers:
    """Registry of collision handlers applied to host appearance records."""

    def __init__(self, handlers: Optional[Iterable[CollisionHandler]] = None):
        self._handlers: List[CollisionHandler] = list(handlers or [])

    def __len__(self) -> int:
        return len(self._handlers)

    def register(self, handler: CollisionHandler):
        self._handlers.append(handler)

    def dispatch(self, appearances: Dict[int, Appearance], pairs: Iterable[Tuple[int, int]]) -> Dict[int, Appearance]:
        """
        Apply every handler to every colliding pair.

        Returns a new id -> appearance mapping; the input is left unchanged.
        """
        updated = dict(appearances)
        for a, b in pairs:
            for handler in self._handlers:
                new_a, new_b = handler(updated[a], updated[b])
                if new_a.id != a or new_b.id != b:
                    raise ValueError(f"Collision handler {handler!r} changed bird ids ({a}, {b})")
                updated[a] = new_a
                updated[b] = new_b
        return updated
