"""Agent state store: position/velocity/acceleration matrices indexed by bird id."""

import numpy as np
from typing import Iterable, List, Optional

from .bird import Bird


class Population:
    """
    Fixed-size collection of birds stored as (N, 3) float64 matrices.

    Row k always belongs to ids[k]; rows are never reordered, so neighbor
    indices and the previous tick's state stay attributable to the same bird.
    A Population is treated as an immutable snapshot: commit() returns a new
    one instead of writing in place.
    """

    def __init__(
        self,
        positions: np.ndarray,
        velocities: Optional[np.ndarray] = None,
        accelerations: Optional[np.ndarray] = None,
        ids: Optional[Iterable[int]] = None,
    ):
        self.positions = self._as_matrix(positions, "positions")
        n = len(self.positions)
        self.velocities = np.zeros((n, 3)) if velocities is None else self._as_matrix(velocities, "velocities")
        self.accelerations = np.zeros((n, 3)) if accelerations is None else self._as_matrix(accelerations, "accelerations")

        for name, m in (("velocities", self.velocities), ("accelerations", self.accelerations)):
            if len(m) != n:
                raise ValueError(f"{name} has {len(m)} rows, expected {n}")

        self.ids = np.arange(n, dtype=np.int64) if ids is None else np.asarray(list(ids), dtype=np.int64)
        if self.ids.shape != (n,):
            raise ValueError(f"Expected {n} ids, got {self.ids.shape[0]}")
        if len(np.unique(self.ids)) != n:
            raise ValueError("Bird ids must be unique")

        self._rows = {int(bird_id): row for row, bird_id in enumerate(self.ids)}

    @staticmethod
    def _as_matrix(m, name: str) -> np.ndarray:
        m = np.array(m, dtype=np.float64)
        if m.size == 0:
            return np.zeros((0, 3))
        if m.ndim != 2 or m.shape[1] != 3:
            raise ValueError(f"{name} must have shape (N, 3), got {m.shape}")
        return m

    @classmethod
    def from_birds(cls, birds: Iterable[Bird]) -> "Population":
        birds = list(birds)
        return cls(
            positions=[b.position for b in birds],
            velocities=[b.velocity for b in birds],
            accelerations=[b.acceleration for b in birds],
            ids=[b.id for b in birds],
        )

    def __len__(self) -> int:
        return len(self.ids)

    def row_of(self, bird_id: int) -> int:
        """Matrix row holding the given bird id."""
        try:
            return self._rows[int(bird_id)]
        except KeyError:
            raise KeyError(f"No bird with id {bird_id}") from None

    def bird(self, bird_id: int) -> Bird:
        """Copy of one bird's state as a discrete record."""
        row = self.row_of(bird_id)
        return Bird(
            id=int(self.ids[row]),
            position=self.positions[row].copy(),
            velocity=self.velocities[row].copy(),
            acceleration=self.accelerations[row].copy(),
        )

    def birds(self) -> List[Bird]:
        return [self.bird(bird_id) for bird_id in self.ids]

    def snapshot(self) -> "Population":
        """Deep copy, safe to read while the live store is replaced."""
        return Population(
            self.positions.copy(),
            self.velocities.copy(),
            self.accelerations.copy(),
            self.ids.copy(),
        )

    def commit(
        self,
        accelerations: np.ndarray,
        velocities: Optional[np.ndarray] = None,
        positions: Optional[np.ndarray] = None,
    ) -> "Population":
        """New population with the given fields replaced, ids unchanged."""
        return Population(
            self.positions if positions is None else positions,
            self.velocities if velocities is None else velocities,
            accelerations,
            self.ids,
        )


def seed_population(n: int, boundary: float, rng: Optional[np.random.Generator] = None) -> Population:
    """
    Seed n birds at random positions.

    Positions are uniform in [-boundary/2, boundary/2] per axis, half the
    extent of the domain. Velocity and acceleration start at zero.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if rng is None:
        rng = np.random.default_rng()
    positions = rng.random((n, 3)) * boundary - boundary / 2
    return Population(positions)
