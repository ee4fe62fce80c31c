import numpy as np
import pytest

from swarm.bird import Appearance
from swarm.collision import CollisionHandlers, bump, find_collisions
from swarm.neighbors import resolve_scalar


def test_bump_recolors_only_the_first_bird(rng):
    a = Appearance(1)
    b = Appearance(2)
    new_a, new_b = bump(a, b, rng)

    assert new_a.id == 1
    assert new_a.color != a.color
    assert new_a.color[3] == 1.0
    assert all(0.0 <= c < 1.0 for c in new_a.color[:3])
    assert new_a.cone_length == a.cone_length
    assert new_b is b


def test_find_collisions_reports_each_pair_once():
    positions = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [50.0, 0.0, 0.0],
        [50.5, 0.0, 0.0],
        [200.0, 0.0, 0.0],
    ])
    ids = np.array([10, 11, 12, 13, 14])
    pairs = find_collisions(ids, resolve_scalar(positions), collision_distance=1.5)
    assert pairs == [(10, 11), (12, 13)]


def test_find_collisions_ignores_lonely_bird():
    positions = np.zeros((1, 3))
    assert find_collisions(np.array([0]), resolve_scalar(positions), 1.5) == []


def test_dispatch_applies_handlers_without_mutating_input(rng):
    appearances = {i: Appearance(i) for i in range(3)}
    handlers = CollisionHandlers([lambda a, b: bump(a, b, rng)])
    updated = handlers.dispatch(appearances, [(0, 2)])

    assert updated[0].color != appearances[0].color
    assert updated[1] is appearances[1]
    assert updated[2] is appearances[2]
    assert appearances[0].color == Appearance(0).color


def test_dispatch_rejects_handlers_that_swap_birds():
    handlers = CollisionHandlers()
    handlers.register(lambda a, b: (b, a))
    with pytest.raises(ValueError):
        handlers.dispatch({0: Appearance(0), 1: Appearance(1)}, [(0, 1)])
