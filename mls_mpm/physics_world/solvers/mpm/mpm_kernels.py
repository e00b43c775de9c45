"""
MPM Taichi kernels - interpolation stencil shared by P2G and G2P.
"""
import taichi as ti


@ti.func
def base_node(xg):
    """
    Lower-left node of the 3x3 stencil around a particle.

    Args:
        xg: Particle position in grid coordinates (position * inv_dx)
    """
    return ti.floor(xg - 0.5, ti.i32)


@ti.func
def quadratic_weights(fx):
    """
    Quadratic B-spline weights for the three grid lines of each axis.

    Args:
        fx: Particle offset from the base node, in grid units (0.5 <= fx < 1.5)

    Returns:
        3x2 matrix; row i holds the weights of line i for the x and y axes.
        Each column sums to one.
    """
    w0 = 0.5 * (1.5 - fx) ** 2
    w1 = 0.75 - (fx - 1.0) ** 2
    w2 = 0.5 * (fx - 0.5) ** 2
    return ti.Matrix([[w0[0], w0[1]], [w1[0], w1[1]], [w2[0], w2[1]]])
