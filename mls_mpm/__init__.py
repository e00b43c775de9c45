"""Two-dimensional MLS-MPM simulation of elastic, snow and liquid materials."""

from .configuration import (
    ConfigurationError,
    SceneConfig,
    default_scene_config,
    load_scene_config,
)
from .physics_world import ParticleSnapshot, PhysicsWorld, WorldSnapshot
from .physics_world.solvers.mpm import Material, MPMSolver, NumericalInstabilityError
from .runtime import init_taichi
from .world_container import WorldContainer

__all__ = [
    "ConfigurationError",
    "Material",
    "MPMSolver",
    "NumericalInstabilityError",
    "ParticleSnapshot",
    "PhysicsWorld",
    "SceneConfig",
    "WorldContainer",
    "WorldSnapshot",
    "default_scene_config",
    "init_taichi",
    "load_scene_config",
]
