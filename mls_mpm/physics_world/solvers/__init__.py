"""Solver implementations used by the physics world."""

from .mpm import Material, MPMSolver, MPMState, NumericalInstabilityError

__all__ = ["Material", "MPMSolver", "MPMState", "NumericalInstabilityError"]
