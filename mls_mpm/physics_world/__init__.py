"""Physics world package aggregating the MPM solver and its published state."""

from .world import PhysicsWorld
from .state import ParticleSnapshot, WorldSnapshot

__all__ = ["PhysicsWorld", "ParticleSnapshot", "WorldSnapshot"]
