"""Scene setup helpers: initial particle placement."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def sample_square(
    center: Sequence[float],
    half_size: float,
    count: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Uniformly scatter ``count`` points in the axis-aligned square around ``center``."""
    offsets = (rng.random((count, 2)) * 2.0 - 1.0) * half_size
    return offsets + np.asarray(center, dtype=np.float64)


def add_object(solver, obj, rng: np.random.Generator) -> range:
    """Seed one configured block of particles into the solver."""
    positions = sample_square(obj.center, obj.half_size, obj.particle_count, rng)
    velocities = np.tile(np.asarray(obj.velocity, dtype=np.float64), (obj.particle_count, 1))
    return solver.add_particles(positions, obj.material, obj.color, velocities)
