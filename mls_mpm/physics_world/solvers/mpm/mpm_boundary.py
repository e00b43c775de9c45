"""
MPM boundary handling - fixed axis-aligned domain walls.
"""
import taichi as ti


@ti.func
def apply_domain_boundary(v, node_pos, thickness: ti.template()):
    """
    Enforce the box boundary on a grid node velocity.

    The left, right and top bands are sticky (velocity zeroed). The bottom
    band separates: it removes downward motion but lets material lift off.

    Args:
        v: Node velocity
        node_pos: Node position in domain coordinates
        thickness: Width of the boundary band as a fraction of the domain
    """
    result = v
    if node_pos[0] < thickness or node_pos[0] > 1 - thickness or node_pos[1] > 1 - thickness:
        result = ti.Vector.zero(float, 2)
    if node_pos[1] < thickness:
        result[1] = ti.max(0.0, result[1])
    return result
