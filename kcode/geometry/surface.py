"""
Surface operations based on the quadric equation:
   f(x,y,z) = Axx + Byy + Czz + Dxy + Exz + Fyz + Gx + Hy + Iz + J

Box surfaces store (xmin, xmax, ymin, ymax, zmin, zmax) in the first six
coefficients and evaluate to the largest face excess, negative inside.
"""

import math

####

from numba import njit

from kcode.constant import (
    COINCIDENCE_TOLERANCE,
    INF,
    SURFACE_BOX,
    SURFACE_PLANE,
    SURFACE_PLANE_X,
    SURFACE_PLANE_Y,
    SURFACE_PLANE_Z,
)


@njit
def check_sense(x, y, z, ux, uy, uz, type_, coeffs, on_surface):
    """
    Check on which side of the surface the point is
        - Return True if on positive side
        - Return False otherwise
    A point on the surface takes the side its direction points to; a tangent
    direction counts as the negative side.
    """
    result = evaluate(x, y, z, type_, coeffs)

    # Check if coincident on the surface
    if on_surface or abs(result) < COINCIDENCE_TOLERANCE:
        return get_normal_component(x, y, z, ux, uy, uz, type_, coeffs) > 0.0

    return result > 0.0


@njit
def evaluate(x, y, z, type_, coeffs):
    """
    Evaluate the surface equation at the point
    """
    if type_ == SURFACE_PLANE_X:
        return x + coeffs[9]
    elif type_ == SURFACE_PLANE_Y:
        return y + coeffs[9]
    elif type_ == SURFACE_PLANE_Z:
        return z + coeffs[9]
    elif type_ == SURFACE_PLANE:
        return coeffs[6] * x + coeffs[7] * y + coeffs[8] * z + coeffs[9]
    elif type_ == SURFACE_BOX:
        return _box_evaluate(x, y, z, coeffs)

    A, B, C, D, E, F, G, H, I, J = _unpack(coeffs)
    return (
        A * x * x
        + B * y * y
        + C * z * z
        + D * x * y
        + E * x * z
        + F * y * z
        + G * x
        + H * y
        + I * z
        + J
    )


@njit
def get_normal(x, y, z, type_, coeffs):
    """
    Outward (positive-side) normal at the point, not normalized
    """
    if type_ == SURFACE_BOX:
        return _box_normal(x, y, z, coeffs)

    A, B, C, D, E, F, G, H, I, J = _unpack(coeffs)
    nx = 2.0 * A * x + D * y + E * z + G
    ny = 2.0 * B * y + D * x + F * z + H
    nz = 2.0 * C * z + E * x + F * y + I
    return nx, ny, nz


@njit
def get_normal_component(x, y, z, ux, uy, uz, type_, coeffs):
    """
    Dot product of the direction and the outward normal
    """
    nx, ny, nz = get_normal(x, y, z, type_, coeffs)
    return nx * ux + ny * uy + nz * uz


@njit
def reflect(x, y, z, ux, uy, uz, type_, coeffs):
    """
    Mirror the direction about the surface normal at the point
    """
    nx, ny, nz = get_normal(x, y, z, type_, coeffs)
    norm_square = nx * nx + ny * ny + nz * nz
    c = 2.0 * (nx * ux + ny * uy + nz * uz) / norm_square
    return ux - c * nx, uy - c * ny, uz - c * nz


@njit
def get_distance(x, y, z, ux, uy, uz, type_, coeffs, on_surface):
    """
    Get the distance along the direction to the surface

    The zero root is discarded when the point is on the surface; otherwise
    only strictly positive roots count. INF if the ray never hits.
    """
    if type_ == SURFACE_BOX:
        return _box_distance(x, y, z, ux, uy, uz, coeffs, on_surface)

    A, B, C, D, E, F, G, H, I, J = _unpack(coeffs)

    # f(t) = a t^2 + b t + c along the ray
    a = (
        A * ux * ux
        + B * uy * uy
        + C * uz * uz
        + D * ux * uy
        + E * ux * uz
        + F * uy * uz
    )
    b = (
        2.0 * (A * x * ux + B * y * uy + C * z * uz)
        + D * (x * uy + y * ux)
        + E * (x * uz + z * ux)
        + F * (y * uz + z * uy)
        + G * ux
        + H * uy
        + I * uz
    )
    c = evaluate(x, y, z, type_, coeffs)
    on_surface = on_surface or abs(c) < COINCIDENCE_TOLERANCE

    # Linear along the ray
    if abs(a) < COINCIDENCE_TOLERANCE:
        if on_surface or b == 0.0:
            return INF
        distance = -c / b
        if distance > 0.0:
            return distance
        return INF

    # On the surface: the roots are 0 and -b/a
    if on_surface:
        distance = -b / a
        if distance > 0.0:
            return distance
        return INF

    determinant = b * b - 4.0 * a * c
    if determinant < 0.0:
        return INF

    # Numerically stable roots
    sqrt_determinant = math.sqrt(determinant)
    if b >= 0.0:
        q = -0.5 * (b + sqrt_determinant)
    else:
        q = -0.5 * (b - sqrt_determinant)
    root_1 = q / a
    root_2 = c / q if q != 0.0 else root_1
    if root_1 > root_2:
        root_1, root_2 = root_2, root_1

    if root_1 > 0.0:
        return root_1
    if root_2 > 0.0:
        return root_2
    return INF


# ======================================================================================
# Private
# ======================================================================================


@njit
def _unpack(coeffs):
    return (
        coeffs[0],
        coeffs[1],
        coeffs[2],
        coeffs[3],
        coeffs[4],
        coeffs[5],
        coeffs[6],
        coeffs[7],
        coeffs[8],
        coeffs[9],
    )


@njit
def _box_evaluate(x, y, z, coeffs):
    return max(
        coeffs[0] - x,
        x - coeffs[1],
        coeffs[2] - y,
        y - coeffs[3],
        coeffs[4] - z,
        z - coeffs[5],
    )


@njit
def _box_normal(x, y, z, coeffs):
    # Face with the largest excess
    excess = coeffs[0] - x
    nx, ny, nz = -1.0, 0.0, 0.0
    if x - coeffs[1] > excess:
        excess = x - coeffs[1]
        nx, ny, nz = 1.0, 0.0, 0.0
    if coeffs[2] - y > excess:
        excess = coeffs[2] - y
        nx, ny, nz = 0.0, -1.0, 0.0
    if y - coeffs[3] > excess:
        excess = y - coeffs[3]
        nx, ny, nz = 0.0, 1.0, 0.0
    if coeffs[4] - z > excess:
        excess = coeffs[4] - z
        nx, ny, nz = 0.0, 0.0, -1.0
    if z - coeffs[5] > excess:
        nx, ny, nz = 0.0, 0.0, 1.0
    return nx, ny, nz


@njit
def _box_slab(position, direction, low, high):
    # Entry and exit distances of the ray through one slab
    if direction == 0.0:
        if low <= position <= high:
            return -INF, INF
        return INF, -INF
    t_1 = (low - position) / direction
    t_2 = (high - position) / direction
    if t_1 > t_2:
        t_1, t_2 = t_2, t_1
    return t_1, t_2


@njit
def _box_distance(x, y, z, ux, uy, uz, coeffs, on_surface):
    f = _box_evaluate(x, y, z, coeffs)
    on_surface = on_surface or abs(f) < COINCIDENCE_TOLERANCE
    if on_surface:
        # Leaving a convex box never hits it again
        if get_normal_component(x, y, z, ux, uy, uz, SURFACE_BOX, coeffs) > 0.0:
            return INF
        inside = True
    else:
        inside = f < 0.0

    x_near, x_far = _box_slab(x, ux, coeffs[0], coeffs[1])
    y_near, y_far = _box_slab(y, uy, coeffs[2], coeffs[3])
    z_near, z_far = _box_slab(z, uz, coeffs[4], coeffs[5])
    t_near = max(x_near, y_near, z_near)
    t_far = min(x_far, y_far, z_far)

    if inside:
        if t_far > 0.0:
            return t_far
        return INF

    if t_near <= t_far and t_near > 0.0:
        return t_near
    return INF
