"""
MPM material models (elastic, snow, liquid).
"""
from enum import IntEnum
from typing import Tuple

import taichi as ti

# Material type constants (kernel side)
MATERIAL_ELASTIC = 0
MATERIAL_SNOW = 1
MATERIAL_LIQUID = 2


class Material(IntEnum):
    """Material kind of a particle, fixed at creation."""

    ELASTIC = MATERIAL_ELASTIC
    SNOW = MATERIAL_SNOW
    LIQUID = MATERIAL_LIQUID

    @classmethod
    def parse(cls, value) -> "Material":
        """Accept a Material, its integer tag or a name such as 'snow'."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "PLASTIC":
                name = "SNOW"
            try:
                return cls[name]
            except KeyError:
                raise ValueError(
                    f"Unknown material {value!r}, expected one of {[m.name.lower() for m in cls]}"
                ) from None
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unknown material {value!r}") from None


def lame_parameters(youngs_modulus: float, poisson_ratio: float) -> Tuple[float, float]:
    """
    Convert Young's modulus and Poisson's ratio to Lamé parameters.

    Returns:
        (mu, lambda)
    """
    mu = youngs_modulus / (2 * (1 + poisson_ratio))
    lam = youngs_modulus * poisson_ratio / ((1 + poisson_ratio) * (1 - 2 * poisson_ratio))
    return mu, lam


@ti.func
def hardening_factor(Jp, hardening: ti.template()):
    """Exponential hardening: material stiffens as it compacts (Jp < 1)."""
    return ti.exp(hardening * (1.0 - Jp))


@ti.func
def fixed_corotated_stress(F, mu, la):
    """
    Fixed corotated Kirchhoff stress 2*mu*(F - R)*F^T + lambda*(J - 1)*J*I.

    Args:
        F: Deformation gradient
        mu: Shear modulus
        la: Lamé's first parameter
    """
    J = F.determinant()
    R, _ = ti.polar_decompose(F)
    return 2 * mu * (F - R) @ F.transpose() + ti.Matrix.identity(float, 2) * la * (J - 1) * J


@ti.func
def project_snow_plasticity(F, lower: ti.template(), upper: ti.template()):
    """
    Clamp the singular values of F into [lower, upper].

    The removed part of the deformation is the plastic flow; callers compare
    determinants before and after to track the plastic volume change.
    """
    U, sig, V = ti.svd(F)
    for d in ti.static(range(2)):
        sig[d, d] = ti.min(ti.max(sig[d, d], lower), upper)
    return U @ sig @ V.transpose()
