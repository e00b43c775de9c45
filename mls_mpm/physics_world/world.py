"""Physics world core that owns the MPM solver and the simulation clock."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ..scene import add_object
from .solvers.mpm import MPMSolver
from .state import WorldSnapshot

if TYPE_CHECKING:
    from ..configuration import SceneConfig


@dataclass
class PhysicsWorld:
    config: SceneConfig
    mpm_solver: MPMSolver
    current_time: float = 0.0
    current_step: int = 0

    @classmethod
    def from_config(cls, config: SceneConfig, verbose: bool = True) -> "PhysicsWorld":
        sim = config.simulation
        material = config.material
        mpm_solver = MPMSolver(
            max_particles=sim.max_particles,
            grid_resolution=sim.grid_resolution,
            dt=sim.time_step,
            gravity=sim.gravity,
            boundary_thickness=config.boundary.thickness,
            particle_mass=material.particle_mass,
            particle_volume=material.particle_volume,
            hardening=material.hardening,
            youngs_modulus=material.youngs_modulus,
            poisson_ratio=material.poisson_ratio,
            snow_bounds=material.snow_singular_value_bounds,
            plastic_jacobian_bounds=(material.plastic_jacobian_min, material.plastic_jacobian_max),
            check_stability=sim.check_stability,
            debug_interval=sim.debug_interval,
            verbose=verbose,
        )

        rng = np.random.default_rng(config.runtime.random_seed)
        for obj in config.objects:
            added = add_object(mpm_solver, obj, rng)
            if verbose:
                print(f"[PhysicsWorld] Added {len(added)} {obj.material.name.lower()} particles "
                      f"at {obj.center} (color=0x{obj.color:06X})")
        if verbose:
            print(f"[PhysicsWorld] Scene '{config.scene_name}' ready with {mpm_solver.particle_count} particles")

        return cls(config=config, mpm_solver=mpm_solver)

    def step(self, dt: float | None = None) -> None:
        """Advance the solver by a single step."""
        dt = dt if dt is not None else self.config.simulation.time_step
        self.mpm_solver.step(dt)
        self.current_time += dt
        self.current_step += 1

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(
            step_index=self.current_step,
            time=self.current_time,
            particles=self.mpm_solver.snapshot(),
        )
