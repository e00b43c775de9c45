"""
MPM state management - stores particle positions, velocities, etc.
"""
from typing import Optional

import numpy as np
import taichi as ti

from .mpm_materials import Material


@ti.data_oriented
class MPMState:
    """Manages MPM particle state (positions, velocities, deformation gradients, etc.)"""

    def __init__(self, max_particles: int):
        """
        Initialize MPM state.

        Args:
            max_particles: Maximum number of MPM particles
        """
        self.max_particles = max_particles

        # Particle data
        self.x = ti.Vector.field(2, dtype=float, shape=max_particles)      # positions
        self.v = ti.Vector.field(2, dtype=float, shape=max_particles)      # velocities
        self.C = ti.Matrix.field(2, 2, dtype=float, shape=max_particles)   # APIC affine matrix
        self.F = ti.Matrix.field(2, 2, dtype=float, shape=max_particles)   # deformation gradient
        self.Jp = ti.field(dtype=float, shape=max_particles)               # plastic volume change

        # Particle properties
        self.material = ti.field(dtype=ti.i32, shape=max_particles)        # material type
        self.color = ti.field(dtype=ti.i32, shape=max_particles)           # 0xRRGGBB render tag

        # Active particle count
        self.n_particles = ti.field(dtype=ti.i32, shape=())
        self.sealed = False

    @property
    def particle_count(self) -> int:
        return int(self.n_particles[None])

    def add_particles(self, positions: np.ndarray, material, color: int,
                      velocities: Optional[np.ndarray] = None) -> range:
        """
        Append a block of particles at rest state (F = I, C = 0, Jp = 1).

        Args:
            positions: (n, 2) array in unit domain coordinates
            material: Material kind shared by the whole block
            color: 0xRRGGBB render tag shared by the whole block
            velocities: Optional (n, 2) initial velocities, zero by default

        Returns:
            Index range of the new particles
        """
        if self.sealed:
            raise RuntimeError("Particles can only be added before the first simulation step")
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        n = len(positions)
        if velocities is None:
            velocities = np.zeros_like(positions)
        velocities = np.asarray(velocities, dtype=np.float64)
        if velocities.ndim == 1:
            velocities = np.tile(velocities, (n, 1))
        if velocities.shape != positions.shape:
            raise ValueError(f"velocities shape {velocities.shape} does not match positions {positions.shape}")
        start = self.particle_count
        if start + n > self.max_particles:
            raise ValueError(f"Too many particles: {start + n} > {self.max_particles}")
        if n == 0:
            return range(start, start)
        self._seed(start, np.ascontiguousarray(positions), np.ascontiguousarray(velocities),
                   int(Material.parse(material)), int(color))
        self.n_particles[None] = start + n
        return range(start, start + n)

    @ti.kernel
    def _seed(self, start: ti.i32, positions: ti.types.ndarray(), velocities: ti.types.ndarray(),
              mat_type: ti.i32, color: ti.i32):
        for k in range(positions.shape[0]):
            p = start + k
            self.x[p] = ti.Vector([positions[k, 0], positions[k, 1]])
            self.v[p] = ti.Vector([velocities[k, 0], velocities[k, 1]])
            self.F[p] = ti.Matrix.identity(float, 2)  # Initial deformation = identity
            self.C[p] = ti.Matrix.zero(float, 2, 2)
            self.Jp[p] = 1.0
            self.material[p] = mat_type
            self.color[p] = color

    def get_positions(self) -> np.ndarray:
        """Get particle positions as numpy array."""
        return self.x.to_numpy()[:self.particle_count]

    def get_velocities(self) -> np.ndarray:
        """Get particle velocities as numpy array."""
        return self.v.to_numpy()[:self.particle_count]

    def get_deformation_gradients(self) -> np.ndarray:
        return self.F.to_numpy()[:self.particle_count]

    def get_affine_velocities(self) -> np.ndarray:
        return self.C.to_numpy()[:self.particle_count]

    def get_plastic_jacobians(self) -> np.ndarray:
        return self.Jp.to_numpy()[:self.particle_count]

    def get_materials(self) -> np.ndarray:
        return self.material.to_numpy()[:self.particle_count]

    def get_colors(self) -> np.ndarray:
        return self.color.to_numpy()[:self.particle_count].astype(np.uint32)
