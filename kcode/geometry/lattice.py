"""
Uniform lattice kernels.

A lattice grid is a row ``[x0, dx, Nx, y0, dy, Ny, z0, dz, Nz]``. Element
frames are centered: the local coordinate of element ``i`` along x is
``x - (x0 + (i + 0.5) dx)``. An axis with a single element of infinite pitch
is unbounded and left untouched.
"""

from numba import njit

####

from kcode.constant import INF
from kcode.transport.util import floor_index


@njit
def is_infinite(grid, axis):
    return grid[3 * axis + 2] == 1 and grid[3 * axis + 1] >= INF


@njit
def get_index(position, direction, grid, axis):
    """
    Element index along the axis; grid lines go to the element the direction
    points into
    """
    if is_infinite(grid, axis):
        return 0
    return floor_index(position, grid[3 * axis], grid[3 * axis + 1], direction)


@njit
def get_indices(x, y, z, ux, uy, uz, grid):
    ix = get_index(x, ux, grid, 0)
    iy = get_index(y, uy, grid, 1)
    iz = get_index(z, uz, grid, 2)
    return ix, iy, iz


@njit
def in_grid(ix, iy, iz, grid):
    return (
        0 <= ix < int(grid[2])
        and 0 <= iy < int(grid[5])
        and 0 <= iz < int(grid[8])
    )


@njit
def get_local(position, index, grid, axis):
    if is_infinite(grid, axis):
        return position
    origin = grid[3 * axis]
    pitch = grid[3 * axis + 1]
    return position - (origin + (index + 0.5) * pitch)


@njit
def get_distance(x, y, z, ux, uy, uz, grid):
    """
    Distance to the nearest element wall in the element-centered frame

    Returns (distance, axis, step) with step +1/-1 the index change on
    crossing; (INF, -1, 0) if every axis is unbounded or parallel.
    """
    distance = INF
    axis = -1
    step = 0

    for i in range(3):
        if is_infinite(grid, i):
            continue
        if i == 0:
            position = x
            direction = ux
        elif i == 1:
            position = y
            direction = uy
        else:
            position = z
            direction = uz
        if direction == 0.0:
            continue

        half_pitch = 0.5 * grid[3 * i + 1]
        if direction > 0.0:
            d = (half_pitch - position) / direction
            s = 1
        else:
            d = (-half_pitch - position) / direction
            s = -1
        d = max(d, 0.0)
        if d < distance:
            distance = d
            axis = i
            step = s

    return distance, axis, step
