"""Individual bird records: kinematic state and host-side appearance."""

import numpy as np
from dataclasses import dataclass, field
from typing import Tuple

from config import swarm as config


@dataclass
class Bird:
    """
    A single bird in the swarm.

    Attributes:
        id: Stable integer id, also the bird's row in the population matrices
        position: 3D position vector
        velocity: 3D velocity vector
        acceleration: 3D acceleration vector (steering output of the last tick)
    """
    id: int
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.velocity = np.asarray(self.velocity, dtype=np.float64).reshape(3)
        self.acceleration = np.asarray(self.acceleration, dtype=np.float64).reshape(3)


@dataclass(frozen=True)
class Appearance:
    """
    Presentation record owned by the host, linked to a Bird only by id.

    Collision handlers receive and return these, never kinematic state.
    """
    id: int
    color: Tuple[float, float, float, float] = config.COLORS["bird"]
    cone_length: float = config.SHAPE["cone_length"]
    cone_radius: float = config.SHAPE["cone_radius"]
