import math

from numba import njit

####

from kcode.transport.util import find_bin


@njit
def find_group(E, energy_grid):
    """
    Group index of the energy, -1 if outside; the top edge belongs to the
    last group
    """
    G = len(energy_grid) - 1
    if E == energy_grid[G]:
        return G - 1
    return find_bin(E, energy_grid)


@njit
def group_energy(g, energy_grid):
    """
    Representative energy of a group: the geometric mean of its edges, or
    half the upper edge for a group starting at zero
    """
    low = energy_grid[g]
    high = energy_grid[g + 1]
    if low > 0.0:
        return math.sqrt(low * high)
    return 0.5 * high


@njit
def scatter_direction(ux, uy, uz, mu0, azi):
    """
    Turn the unit direction ``u`` by polar cosine ``mu0`` and azimuth ``azi``
    about itself.
    """
    # Unit vector v normal to u, off the axis u is least aligned with
    if abs(uz) < 0.9:
        norm = math.sqrt(ux * ux + uy * uy)
        vx, vy, vz = -uy / norm, ux / norm, 0.0
    else:
        norm = math.sqrt(uy * uy + uz * uz)
        vx, vy, vz = 0.0, -uz / norm, uy / norm

    # w = u x v
    wx = uy * vz - uz * vy
    wy = uz * vx - ux * vz
    wz = ux * vy - uy * vx

    sin_polar = math.sqrt(max(1.0 - mu0 * mu0, 0.0))
    a = sin_polar * math.cos(azi)
    b = sin_polar * math.sin(azi)
    return (
        mu0 * ux + a * vx + b * wx,
        mu0 * uy + a * vy + b * wy,
        mu0 * uz + a * vz + b * wz,
    )
