"""
MPM (Material Point Method) solver module.
Provides the 2D MLS-MPM particle/grid time integrator.
"""

from .mpm_materials import Material
from .mpm_solver import MPMSolver, NumericalInstabilityError
from .mpm_state import MPMState

__all__ = ['MPMSolver', 'MPMState', 'Material', 'NumericalInstabilityError']
