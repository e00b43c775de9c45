import numpy as np
import pytest

from mls_mpm.physics_world.solvers.mpm.mpm_grid import MPMGrid

DT = 0.01


@pytest.fixture
def grid():
    # nodes sit at i / 10, so indices 0 and 10 fall inside a 0.05 band
    return MPMGrid(resolution=10, boundary_thickness=0.05, gravity=(0.0, -200.0))


def _velocity_after_solve(grid, index, mass, momentum):
    grid.clear_grid()
    grid.grid_m[index] = mass
    grid.grid_v[index] = momentum
    grid.grid_operations(DT)
    return grid.grid_v.to_numpy()[index]


def test_grid_has_one_more_node_than_cells(grid):
    assert grid.masses().shape == (11, 11)
    assert grid.velocities().shape == (11, 11, 2)


def test_interior_node_normalizes_and_applies_gravity(grid):
    v = _velocity_after_solve(grid, (5, 5), 2.0, [4.0, 6.0])
    np.testing.assert_allclose(v, [2.0, 3.0 - 200.0 * DT])


@pytest.mark.parametrize("index", [(0, 5), (10, 5), (5, 10), (0, 0), (10, 0)])
def test_sticky_walls_zero_velocity(grid, index):
    v = _velocity_after_solve(grid, index, 1.0, [3.0, 3.0])
    np.testing.assert_array_equal(v, [0.0, 0.0])


def test_floor_blocks_downward_motion(grid):
    v = _velocity_after_solve(grid, (5, 0), 1.0, [1.0, -5.0])
    np.testing.assert_allclose(v, [1.0, 0.0])


def test_floor_lets_material_lift_off(grid):
    v = _velocity_after_solve(grid, (5, 0), 1.0, [1.0, 5.0])
    np.testing.assert_allclose(v, [1.0, 5.0 - 200.0 * DT])


def test_zero_mass_nodes_stay_at_rest(grid):
    grid.clear_grid()
    grid.grid_m[5, 5] = 1.0
    grid.grid_v[5, 5] = [1.0, 1.0]
    grid.grid_operations(DT)
    velocities = grid.velocities()
    masses = grid.masses()
    untouched = masses == 0.0
    assert untouched.sum() == 11 * 11 - 1
    assert np.all(np.isfinite(velocities))
    np.testing.assert_array_equal(velocities[untouched], 0.0)


def test_clear_grid_resets_everything(grid):
    grid.grid_m[3, 4] = 2.0
    grid.grid_v[3, 4] = [1.0, -1.0]
    grid.clear_grid()
    assert not grid.masses().any()
    assert not grid.velocities().any()
