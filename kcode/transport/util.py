import math

from numba import njit

####

from kcode.constant import COINCIDENCE_TOLERANCE


@njit
def find_bin(value, grid):
    """
    Index ``i`` with ``grid[i] <= value < grid[i+1]``, or -1 outside the grid.

    ``grid`` holds increasing bin edges. Used for group lookup and energy
    filters.
    """
    if not (grid[0] <= value < grid[-1]):
        return -1

    low = 0
    high = len(grid) - 1
    while high - low > 1:
        mid = (low + high) // 2
        if value < grid[mid]:
            high = mid
        else:
            low = mid
    return low


@njit
def floor_index(value, origin, pitch, direction):
    """
    Grid element index of ``value`` on a uniform grid.

    A value sitting on a grid line is assigned to the element the direction
    points into; a zero direction goes to the lower element.
    """
    position = (value - origin) / pitch
    index = math.floor(position)
    nearest = math.floor(position + 0.5)

    # On a grid line
    if abs(position - nearest) * pitch < COINCIDENCE_TOLERANCE:
        index = nearest
        if direction <= 0.0:
            index -= 1
    return int(index)
