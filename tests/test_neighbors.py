import numpy as np
import pytest

from swarm.neighbors import (
    NO_NEIGHBOR, nearest_neighbor, pairwise_distances, resolve, resolve_batched,
    resolve_parallel, resolve_scalar,
)
from swarm.params import SwarmParams
from swarm.population import Population
from swarm.spatial import SpatialGrid
from swarm.tick import compute_tick


def _all_resolvers(positions, cell_size=50.0):
    return {
        "scalar": resolve_scalar(positions),
        "batched": resolve_batched(positions),
        "batched_small_blocks": resolve_batched(positions, batch_rows=7),
        "parallel": resolve_parallel(positions),
        "grid": SpatialGrid(cell_size).nearest(positions),
    }


def test_two_birds_find_each_other():
    positions = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
    for name, result in _all_resolvers(positions).items():
        assert list(result.indices) == [1, 0], name
        assert list(result.distances) == [10.0, 10.0], name


def test_single_bird_has_no_neighbor():
    positions = np.array([[5.0, -3.0, 2.0]])
    for name, result in _all_resolvers(positions).items():
        assert result.indices[0] == NO_NEIGHBOR, name
        assert np.isinf(result.distances[0]), name
        assert result.neighbor_of(0) is None


def test_empty_population():
    positions = np.zeros((0, 3))
    for result in _all_resolvers(positions).values():
        assert len(result) == 0


@pytest.mark.parametrize("n", [2, 3, 17, 150])
def test_resolvers_agree_on_random_positions(n):
    rng = np.random.default_rng(n)
    positions = rng.uniform(-300.0, 300.0, size=(n, 3))
    results = _all_resolvers(positions, cell_size=40.0)
    expected = results.pop("scalar")
    for name, result in results.items():
        assert np.array_equal(result.indices, expected.indices), name
        assert np.array_equal(result.distances, expected.distances), name


def test_resolvers_agree_on_clustered_and_out_of_bounds_positions():
    rng = np.random.default_rng(99)
    cluster = rng.normal(0.0, 2.0, size=(60, 3))
    stragglers = rng.uniform(-900.0, 900.0, size=(10, 3))
    positions = np.vstack([cluster, stragglers])
    results = _all_resolvers(positions, cell_size=60.0)
    expected = results.pop("scalar")
    for name, result in results.items():
        assert np.array_equal(result.indices, expected.indices), name


def test_ties_go_to_lowest_index():
    # Birds 0 and 2 are both exactly 5 away from bird 1
    positions = np.array([
        [-5.0, 0.0, 0.0],
        [0.0, 0.0, 0.0],
        [5.0, 0.0, 0.0],
        [0.0, 0.0, 5.0],
    ])
    for name, result in _all_resolvers(positions, cell_size=3.0).items():
        assert result.indices[1] == 0, name


def test_coincident_birds_are_at_distance_zero():
    positions = np.array([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0], [50.0, 0.0, 0.0]])
    for name, result in _all_resolvers(positions).items():
        assert result.indices[0] == 1, name
        assert result.indices[1] == 0, name
        assert result.distances[0] == 0.0, name


def test_distance_is_symmetric_but_neighbors_need_not_be_mutual():
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    dist = pairwise_distances(positions, positions)
    assert np.array_equal(dist, dist.T)

    result = resolve_scalar(positions)
    assert result.indices[2] == 1
    assert result.indices[1] == 0


def test_nearest_neighbor_with_candidate_subset():
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    assert nearest_neighbor(positions, 0) == (1, 1.0)
    assert nearest_neighbor(positions, 0, candidates=[2]) == (2, 2.0)
    assert nearest_neighbor(positions, 0, candidates=[0]) is None


def test_resolve_dispatches_by_mode():
    positions = np.array([[0.0, 0.0, 0.0], [3.0, 4.0, 0.0]])
    for mode in ("scalar", "batched", "parallel"):
        assert list(resolve(positions, mode).indices) == [1, 0]
    assert list(resolve(positions, "grid", cell_size=1.0).indices) == [1, 0]
    with pytest.raises(ValueError):
        resolve(positions, "grid")
    with pytest.raises(ValueError):
        resolve(positions, "octree")


def test_grid_is_reusable_across_sizes():
    grid = SpatialGrid(10.0)
    rng = np.random.default_rng(3)
    for n in (5, 40, 12):
        positions = rng.uniform(-100.0, 100.0, size=(n, 3))
        assert np.array_equal(grid.nearest(positions).indices, resolve_scalar(positions).indices)


def test_grid_rejects_non_positive_cell_size():
    with pytest.raises(ValueError):
        SpatialGrid(0.0)


def test_tiny_cell_size_widens_cells_and_stays_exact():
    rng = np.random.default_rng(21)
    positions = np.vstack([
        [[-250.0, -250.0, -250.0], [250.0, 250.0, 250.0]],
        rng.uniform(-250.0, 250.0, size=(40, 3)),
    ])
    grid = SpatialGrid(0.01)
    result = grid.nearest(positions)
    expected = resolve_scalar(positions)

    assert np.array_equal(result.indices, expected.indices)
    assert np.array_equal(result.distances, expected.distances)
    assert grid.effective_cell_size > grid.cell_size
    assert grid.num_cells <= 8 * len(positions)


def test_grid_mode_tick_with_tiny_neighborhood_radius():
    params = SwarmParams(num_birds=2, boundary=300.0, neighborhood_radius=0.01, mode="grid")
    population = Population(np.array([[-250.0, -250.0, -250.0], [250.0, 250.0, 250.0]]))
    result = compute_tick(population, params, np.random.default_rng(0))
    assert list(result.neighbors.indices) == [1, 0]


def test_neighbor_ids_map_rows_through_population_ids():
    population = Population(
        np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [9.0, 0.0, 0.0]]),
        ids=[70, 30, 50],
    )
    result = resolve_scalar(population.positions)
    assert list(result.indices) == [1, 0, 1]
    assert list(result.neighbor_ids(population.ids)) == [30, 70, 30]

    lonely = resolve_scalar(np.zeros((1, 3)))
    assert list(lonely.neighbor_ids(np.array([5]))) == [NO_NEIGHBOR]
