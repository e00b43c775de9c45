"""
MPM solver - Moving Least Squares Material Point Method in two dimensions.
"""
from typing import Optional, Sequence

import numpy as np
import taichi as ti

from ...state import ParticleSnapshot
from .mpm_grid import MPMGrid
from .mpm_kernels import base_node, quadratic_weights
from .mpm_materials import (
    MATERIAL_LIQUID,
    MATERIAL_SNOW,
    fixed_corotated_stress,
    hardening_factor,
    lame_parameters,
    project_snow_plasticity,
)
from .mpm_state import MPMState


class NumericalInstabilityError(RuntimeError):
    """Particle state became non-finite, inverted or escaped the grid."""


@ti.func
def _is_finite(value):
    ok = 1
    if ti.math.isnan(value) or ti.math.isinf(value):
        ok = 0
    return ok


@ti.func
def vector_is_finite(v):
    ok = 1
    for d in ti.static(range(2)):
        ok = ok & _is_finite(v[d])
    return ok


@ti.func
def matrix_is_finite(M):
    ok = 1
    for i, j in ti.static(ti.ndrange(2, 2)):
        ok = ok & _is_finite(M[i, j])
    return ok


@ti.data_oriented
class MPMSolver:
    """Owns the particle store and the grid, and advances them one step at a time."""

    def __init__(self,
                 max_particles: int = 10000,
                 grid_resolution: int = 80,
                 dt: float = 1e-4,
                 gravity: Sequence[float] = (0.0, -200.0),
                 boundary_thickness: float = 0.05,
                 particle_mass: float = 1.0,
                 particle_volume: float = 1.0,
                 hardening: float = 10.0,
                 youngs_modulus: float = 1e4,
                 poisson_ratio: float = 0.2,
                 snow_bounds: Sequence[float] = (1.0 - 2.5e-2, 1.0 + 7.5e-3),
                 plastic_jacobian_bounds: Sequence[float] = (0.6, 20.0),
                 check_stability: bool = True,
                 debug_interval: int = 0,
                 verbose: bool = True):
        """
        Initialize MPM solver.

        Args:
            max_particles: Particle store capacity
            grid_resolution: Cells per axis over the unit square
            dt: Default time step size
            gravity: Gravity vector in domain units per second squared
            boundary_thickness: Wall band width as a fraction of the domain
            particle_mass: Mass of every particle
            particle_volume: Rest volume of every particle
            hardening: Exponent of the snow hardening law
            youngs_modulus: Young's modulus E
            poisson_ratio: Poisson's ratio nu
            snow_bounds: Allowed range of the singular values of F for snow
            plastic_jacobian_bounds: Allowed range of Jp
            check_stability: Raise NumericalInstabilityError after a bad step
            debug_interval: Print particle statistics every N steps (0 disables)
            verbose: Print the configuration on construction
        """
        if grid_resolution <= 0:
            raise ValueError(f"grid_resolution must be positive, got {grid_resolution}")
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        if particle_mass <= 0:
            raise ValueError(f"particle_mass must be positive, got {particle_mass}")

        self.dt = dt
        self.n_grid = grid_resolution
        self.dx = 1.0 / grid_resolution
        self.inv_dx = float(grid_resolution)
        self.p_mass = float(particle_mass)
        self.p_vol = float(particle_volume)
        self.hardening = float(hardening)
        self.mu_0, self.lambda_0 = lame_parameters(youngs_modulus, poisson_ratio)
        self.snow_lower, self.snow_upper = (float(b) for b in snow_bounds)
        self.jp_min, self.jp_max = (float(b) for b in plastic_jacobian_bounds)
        self.check_stability = check_stability
        self.debug_interval = debug_interval

        self.state = MPMState(max_particles)
        self.grid = MPMGrid(grid_resolution, boundary_thickness, gravity)

        self.step_count = 0
        self._stepping = False
        self._failure: Optional[str] = None

        # Debug tracking
        self.min_Jp = ti.field(dtype=float, shape=())
        self.max_Jp = ti.field(dtype=float, shape=())
        self.avg_v = ti.field(dtype=float, shape=())
        self.max_v = ti.field(dtype=float, shape=())
        self.unstable = ti.field(dtype=ti.i32, shape=())

        if verbose:
            print(f"[MPMSolver] Initializing with max_particles={max_particles}, grid_resolution={grid_resolution}²")
            print(f"[MPMSolver] dt={dt}s, gravity={tuple(gravity)}, boundary={boundary_thickness}")
            print(f"[MPMSolver] Material params: E={youngs_modulus}, nu={poisson_ratio}, "
                  f"mu_0={self.mu_0:.3f}, lambda_0={self.lambda_0:.3f}, hardening={hardening}")

    @property
    def particle_count(self) -> int:
        return self.state.particle_count

    def add_particles(self, positions: np.ndarray, material, color: int,
                      velocities: Optional[np.ndarray] = None) -> range:
        """Append particles; only allowed before the first step."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        # the 3x3 stencil of every particle must fall on the grid
        lo, hi = 0.5 * self.dx, 1.0 - 0.5 * self.dx
        if len(positions) and not np.all((positions >= lo) & (positions < hi)):
            raise ValueError(f"Particle positions must lie in [{lo}, {hi}) on both axes")
        return self.state.add_particles(positions, material, color, velocities)

    @ti.kernel
    def particle_to_grid(self, dt: float):
        """P2G: scatter mass, momentum and stress-derived force to the 3x3 node stencil."""
        for p in range(self.state.n_particles[None]):
            xg = self.state.x[p] * self.inv_dx
            base = base_node(xg)
            fx = xg - base.cast(float)
            w = quadratic_weights(fx)
            e = hardening_factor(self.state.Jp[p], self.hardening)
            mu, la = self.mu_0 * e, self.lambda_0 * e
            stress = fixed_corotated_stress(self.state.F[p], mu, la)
            stress = (-4 * self.inv_dx * self.inv_dx * dt * self.p_vol) * stress
            affine = stress + self.p_mass * self.state.C[p]
            for i, j in ti.static(ti.ndrange(3, 3)):
                offset = ti.Vector([i, j])
                dpos = (offset.cast(float) - fx) * self.dx
                weight = w[i, 0] * w[j, 1]
                self.grid.grid_v[base + offset] += weight * (self.p_mass * self.state.v[p] + affine @ dpos)
                self.grid.grid_m[base + offset] += weight * self.p_mass

    @ti.kernel
    def grid_to_particle(self, dt: float):
        """G2P: gather velocity and APIC C, advect, then evolve F per material."""
        for p in range(self.state.n_particles[None]):
            xg = self.state.x[p] * self.inv_dx
            base = base_node(xg)
            fx = xg - base.cast(float)
            w = quadratic_weights(fx)
            new_v = ti.Vector.zero(float, 2)
            new_C = ti.Matrix.zero(float, 2, 2)
            for i, j in ti.static(ti.ndrange(3, 3)):
                offset = ti.Vector([i, j])
                dpos = offset.cast(float) - fx
                g_v = self.grid.grid_v[base + offset]
                weight = w[i, 0] * w[j, 1]
                new_v += weight * g_v
                new_C += 4 * self.inv_dx * (weight * g_v).outer_product(dpos)
            self.state.v[p] = new_v
            self.state.C[p] = new_C
            self.state.x[p] += dt * new_v

            mat = self.state.material[p]
            if mat != MATERIAL_LIQUID:
                F = (ti.Matrix.identity(float, 2) + dt * new_C) @ self.state.F[p]
                if mat == MATERIAL_SNOW:
                    old_J = F.determinant()
                    F = project_snow_plasticity(F, self.snow_lower, self.snow_upper)
                    self.state.Jp[p] = ti.min(ti.max(self.state.Jp[p] * old_J / F.determinant(),
                                                     self.jp_min), self.jp_max)
                self.state.F[p] = F

    @ti.kernel
    def count_unstable_particles(self) -> ti.i32:
        """Count particles that are non-finite, inverted, or outside the addressable grid."""
        self.unstable[None] = 0
        lo = 0.5 * self.dx
        hi = 1.0 - 0.5 * self.dx
        for p in range(self.state.n_particles[None]):
            x = self.state.x[p]
            F = self.state.F[p]
            bad = 0
            if vector_is_finite(x) == 0 or vector_is_finite(self.state.v[p]) == 0:
                bad = 1
            if matrix_is_finite(F) == 0 or matrix_is_finite(self.state.C[p]) == 0:
                bad = 1
            if bad == 0:
                if x[0] < lo or x[0] >= hi or x[1] < lo or x[1] >= hi:
                    bad = 1
                if self.state.material[p] != MATERIAL_LIQUID and F.determinant() <= 0:
                    bad = 1
            if bad:
                self.unstable[None] += 1
        return self.unstable[None]

    def step(self, dt: Optional[float] = None) -> None:
        """Advance simulation by one time step."""
        if self._failure is not None:
            raise NumericalInstabilityError(self._failure)
        dt = self.dt if dt is None else dt
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")

        self.state.sealed = True
        self._stepping = True
        try:
            self.grid.clear_grid()
            self.particle_to_grid(dt)
            self.grid.grid_operations(dt)  # Convert momentum->velocity, add gravity, walls
            self.grid_to_particle(dt)
        finally:
            self._stepping = False
        self.step_count += 1

        if self.check_stability:
            unstable = self.count_unstable_particles()
            if unstable > 0:
                self._failure = (
                    f"{unstable} particle(s) became non-finite, inverted or left the grid "
                    f"at step {self.step_count} (dt={dt})"
                )
                raise NumericalInstabilityError(self._failure)

        if self.debug_interval and self.step_count % self.debug_interval == 0:
            self.print_stats()

    def snapshot(self) -> ParticleSnapshot:
        """Read-only positions and colors of all particles, in particle order."""
        if self._stepping:
            raise RuntimeError("snapshot() cannot be taken while a step is in progress")
        positions = self.state.get_positions()
        colors = self.state.get_colors()
        positions.setflags(write=False)
        colors.setflags(write=False)
        return ParticleSnapshot(positions=positions, colors=colors)

    @ti.kernel
    def compute_jp_stats(self):
        """Range of the plastic Jacobian for debugging."""
        self.min_Jp[None] = 1e10
        self.max_Jp[None] = -1e10
        for p in range(self.state.n_particles[None]):
            ti.atomic_min(self.min_Jp[None], self.state.Jp[p])
            ti.atomic_max(self.max_Jp[None], self.state.Jp[p])

    @ti.kernel
    def compute_velocity_stats(self):
        """Statistics of velocity magnitudes for debugging."""
        n = self.state.n_particles[None]
        self.avg_v[None] = 0.0
        self.max_v[None] = 0.0
        for p in range(n):
            v_mag = self.state.v[p].norm()
            self.avg_v[None] += v_mag / n
            ti.atomic_max(self.max_v[None], v_mag)

    def print_stats(self) -> None:
        n_particles = self.particle_count
        print(f"[MPM Step {self.step_count}] Particles: {n_particles}")
        if n_particles == 0:
            return
        self.compute_jp_stats()
        self.compute_velocity_stats()
        positions = self.state.get_positions()
        pmin, pmax = positions.min(axis=0), positions.max(axis=0)
        print(f"  Plasticity: Jp_min={self.min_Jp[None]:.3f}, Jp_max={self.max_Jp[None]:.3f}")
        print(f"  Velocity: v_avg={self.avg_v[None]:.3f}, v_max={self.max_v[None]:.3f}")
        print(f"  Particles range: X[{pmin[0]:.3f}, {pmax[0]:.3f}], Y[{pmin[1]:.3f}, {pmax[1]:.3f}]")
