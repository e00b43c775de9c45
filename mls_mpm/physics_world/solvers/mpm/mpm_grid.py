"""
MPM grid operations - background Eulerian grid for momentum transfer.
"""
from typing import Sequence

import taichi as ti

from .mpm_boundary import apply_domain_boundary


@ti.data_oriented
class MPMGrid:
    """Background Eulerian grid over the unit square."""

    def __init__(self, resolution: int, boundary_thickness: float, gravity: Sequence[float]):
        """
        Initialize MPM grid.

        Args:
            resolution: Cells per axis; the grid holds (resolution + 1)^2 nodes
            boundary_thickness: Width of the wall band as a fraction of the domain
            gravity: Body acceleration applied to every node with mass
        """
        self.n_grid = resolution
        self.dx = 1.0 / resolution
        self.inv_dx = float(resolution)
        self.boundary_thickness = boundary_thickness
        self.gravity_x = float(gravity[0])
        self.gravity_y = float(gravity[1])

        # grid_v holds momentum after P2G and velocity after grid_operations
        self.grid_v = ti.Vector.field(2, dtype=float, shape=(resolution + 1, resolution + 1))
        self.grid_m = ti.field(dtype=float, shape=(resolution + 1, resolution + 1))

    @ti.kernel
    def clear_grid(self):
        """Clear grid momentum and mass."""
        for I in ti.grouped(self.grid_m):
            self.grid_v[I] = ti.Vector.zero(float, 2)
            self.grid_m[I] = 0.0

    @ti.kernel
    def grid_operations(self, dt: float):
        """Momentum to velocity, gravity, domain boundary. Nodes without mass are left at rest."""
        gravity = ti.Vector([self.gravity_x, self.gravity_y])
        for I in ti.grouped(self.grid_m):
            if self.grid_m[I] > 0:  # No need for epsilon here
                v = self.grid_v[I] / self.grid_m[I]
                v += dt * gravity
                self.grid_v[I] = apply_domain_boundary(v, I.cast(float) * self.dx, self.boundary_thickness)

    def velocities(self):
        """Grid velocities as a numpy array of shape (n + 1, n + 1, 2)."""
        return self.grid_v.to_numpy()

    def masses(self):
        """Grid masses as a numpy array of shape (n + 1, n + 1)."""
        return self.grid_m.to_numpy()
