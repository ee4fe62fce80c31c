"""Nearest-neighbor swarm (flocking) core."""

from .bird import Appearance, Bird
from .collision import CollisionHandlers, bump, find_collisions
from .neighbors import NO_NEIGHBOR, NeighborResult, resolve
from .params import SwarmParams
from .population import Population, seed_population
from .spatial import SpatialGrid
from .tick import Swarm, TickPhase, TickResult, compute_tick

__all__ = [
    "Appearance", "Bird",
    "CollisionHandlers", "bump", "find_collisions",
    "NO_NEIGHBOR", "NeighborResult", "resolve",
    "SwarmParams",
    "Population", "seed_population",
    "SpatialGrid",
    "Swarm", "TickPhase", "TickResult", "compute_tick",
]
