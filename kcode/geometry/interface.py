import numpy as np

from typing import NamedTuple

####

import kcode.geometry.lattice as lattice_kernel
import kcode.geometry.surface as surface_kernel

from kcode.constant import (
    BC_PERIODIC,
    BC_REFLECTIVE,
    BC_VACUUM,
    COINCIDENCE_TOLERANCE,
    FILL_LATTICE,
    FILL_MATERIAL,
    FILL_UNIVERSE,
    INF,
    STATE_ESCAPED,
    STATE_IN_FLIGHT,
    STATE_KILLED,
    UNIVERSE_ROOT,
)
from kcode.error import GeometryError
from kcode.geometry.region import cell_contains


class Boundary(NamedTuple):
    """
    Nearest boundary along the particle direction.

    ``surface_ID`` is set for a surface crossing; ``lattice_axis`` and
    ``lattice_step`` for a lattice element wall. ``level`` is the stack level
    whose frame the boundary belongs to.
    """

    distance: float
    level: int
    surface_ID: int
    lattice_axis: int
    lattice_step: int


# ======================================================================================
# Point location
# ======================================================================================


def set_coordinate(particle, xyz, uvw):
    """Reset the coordinate stack to a root frame at the given global state."""
    particle.coord.reset()
    particle.coord.push(UNIVERSE_ROOT, xyz, uvw)
    particle.surface_ID = -1
    particle.surface_level = -1


def find_cell(particle, geometry):
    """
    Resolve the particle's cells from the root frame down to a material (or
    void) cell.

    Raises
    ------
    GeometryError
        If no cell contains the point at some level.
    """
    coord = particle.coord
    coord.prune(0)
    if not locate(particle, geometry, 0):
        level = coord.coord_deepest
        universe_ID = coord.universe[level]
        x, y, z = coord.xyz[level]
        raise GeometryError(
            f"No cell found at level {level} of universe {universe_ID} "
            f"(local point ({x:.10g}, {y:.10g}, {z:.10g}))",
            particle_ID=particle.ID,
            xyz=(particle.x, particle.y, particle.z),
        )
    update_material(particle, geometry)


def locate(particle, geometry, start_level, hint=None):
    """
    Fill the coordinate stack from ``start_level`` down.

    The frame at ``start_level`` has to exist already (universe, position,
    direction). Returns False, leaving the failing level as the deepest one,
    if some universe has no cell containing the point.

    ``hint`` lists cells tested first at ``start_level``.
    """
    coord = particle.coord
    level = start_level
    while True:
        coord.prune(level)
        universe_ID = coord.universe[level]
        x, y, z = coord.xyz[level]
        ux, uy, uz = coord.uvw[level]
        surface_on = particle.surface_ID if level == particle.surface_level else -1

        cell_ID = find_cell_in_universe(
            geometry,
            universe_ID,
            x,
            y,
            z,
            ux,
            uy,
            uz,
            surface_on,
            hint if level == start_level else None,
        )
        if cell_ID == -1:
            return False
        coord.cell[level] = cell_ID

        # Material or void
        fill_type = geometry.cell_fill_type[cell_ID]
        if fill_type != FILL_UNIVERSE and fill_type != FILL_LATTICE:
            return True

        # Fill frame
        fill_ID = geometry.cell_fill_ID[cell_ID]
        translation = geometry.cell_translation[cell_ID]
        x -= translation[0]
        y -= translation[1]
        z -= translation[2]

        if fill_type == FILL_UNIVERSE:
            coord.push(fill_ID, (x, y, z), (ux, uy, uz))

        else:
            grid = geometry.lattice_grid[fill_ID]
            ix, iy, iz = lattice_kernel.get_indices(x, y, z, ux, uy, uz, grid)
            if not lattice_kernel.in_grid(ix, iy, iz, grid):
                return False
            coord.push(
                geometry.get_lattice_universe(fill_ID, ix, iy, iz),
                _element_local(x, y, z, ix, iy, iz, grid),
                (ux, uy, uz),
                fill_ID,
                (ix, iy, iz),
            )

        level += 1


def find_cell_in_universe(
    geometry, universe_ID, x, y, z, ux, uy, uz, surface_on=-1, hint=None
):
    """
    First cell of the universe whose region contains the point, -1 if none.

    Cells in ``hint`` are tried first; the answer is the same either way as
    long as the cells of the universe do not overlap.
    """
    if hint is not None:
        for cell_ID in hint:
            if geometry.cell_universe[cell_ID] != universe_ID:
                continue
            if _contains(geometry, cell_ID, x, y, z, ux, uy, uz, surface_on):
                return cell_ID

    for cell_ID in geometry.get_universe_cells(universe_ID):
        if _contains(geometry, cell_ID, x, y, z, ux, uy, uz, surface_on):
            return cell_ID

    return -1


def update_material(particle, geometry):
    cell_ID = particle.cell_ID
    particle.last_material_ID = particle.material_ID
    if geometry.cell_fill_type[cell_ID] == FILL_MATERIAL:
        particle.material_ID = int(geometry.cell_fill_ID[cell_ID])
    else:
        particle.material_ID = -1


# ======================================================================================
# Distance to boundary
# ======================================================================================


def distance_to_boundary(particle, geometry):
    """
    Nearest surface or lattice wall over every level of the stack.

    Levels are scanned from the outermost; a later candidate has to be closer
    by more than the coincidence tolerance, so ties keep the outer level.
    """
    coord = particle.coord
    distance = INF
    boundary = Boundary(INF, -1, -1, -1, 0)

    for level in range(coord.n_level):
        x, y, z = coord.xyz[level]
        ux, uy, uz = coord.uvw[level]

        # Lattice element walls of this frame
        lattice_ID = coord.lattice[level]
        if lattice_ID >= 0:
            d, axis, step = lattice_kernel.get_distance(
                x, y, z, ux, uy, uz, geometry.lattice_grid[lattice_ID]
            )
            if d < distance - COINCIDENCE_TOLERANCE:
                distance = d
                boundary = Boundary(d, level, -1, axis, step)

        # Bounding surfaces of the cell at this level
        for surface_ID in geometry.get_cell_surfaces(coord.cell[level]):
            on_surface = (
                surface_ID == particle.surface_ID and level == particle.surface_level
            )
            d = surface_kernel.get_distance(
                x,
                y,
                z,
                ux,
                uy,
                uz,
                geometry.surface_type[surface_ID],
                geometry.surface_coeffs[surface_ID],
                on_surface,
            )
            if d < distance - COINCIDENCE_TOLERANCE:
                distance = d
                boundary = Boundary(d, level, int(surface_ID), -1, 0)

    return boundary


# ======================================================================================
# Boundary crossing
# ======================================================================================


def cross_surface(particle, geometry, level, surface_ID):
    """
    Apply the boundary condition of a surface the particle has just reached.

    Returns the new particle state: ``STATE_ESCAPED`` through a vacuum
    boundary, ``STATE_IN_FLIGHT`` once the new cells are resolved, or
    ``STATE_KILLED`` if no cell is found for the point (the caller may retry).
    """
    coord = particle.coord
    bc = geometry.surface_bc[surface_ID]
    particle.surface_ID = surface_ID
    particle.surface_level = level

    if bc == BC_VACUUM:
        return STATE_ESCAPED

    if bc == BC_REFLECTIVE:
        x, y, z = coord.xyz[level]
        ux, uy, uz = coord.uvw[level]
        ux, uy, uz = surface_kernel.reflect(
            x,
            y,
            z,
            ux,
            uy,
            uz,
            geometry.surface_type[surface_ID],
            geometry.surface_coeffs[surface_ID],
        )
        norm = (ux * ux + uy * uy + uz * uz) ** 0.5
        coord.set_direction(ux / norm, uy / norm, uz / norm)
        return STATE_IN_FLIGHT

    if bc == BC_PERIODIC:
        coord.translate(geometry.surface_translation[surface_ID])
        particle.surface_ID = geometry.surface_partner[surface_ID]
        if locate(particle, geometry, 0):
            update_material(particle, geometry)
            return STATE_IN_FLIGHT
        return STATE_KILLED

    # Transmission: cells on the far side are tried first
    x, y, z = coord.xyz[level]
    ux, uy, uz = coord.uvw[level]
    positive_side = surface_kernel.check_sense(
        x,
        y,
        z,
        ux,
        uy,
        uz,
        geometry.surface_type[surface_ID],
        geometry.surface_coeffs[surface_ID],
        True,
    )
    hint = geometry.get_neighbors(surface_ID, positive_side)
    if resolve_from(particle, geometry, level, hint):
        return STATE_IN_FLIGHT
    return STATE_KILLED


def cross_lattice(particle, geometry, level, axis, step):
    """
    Step the lattice index of the frame at ``level`` by one along ``axis``.

    Leaving the grid re-resolves from the parent level.
    """
    coord = particle.coord
    particle.surface_ID = -1
    particle.surface_level = -1

    lattice_ID = coord.lattice[level]
    grid = geometry.lattice_grid[lattice_ID]
    index = coord.index[level].copy()
    index[axis] += step
    ix, iy, iz = index

    if not lattice_kernel.in_grid(ix, iy, iz, grid):
        if resolve_from(particle, geometry, level - 1):
            return STATE_IN_FLIGHT
        return STATE_KILLED

    # Rebuild the element frame from the parent frame
    parent = level - 1
    translation = geometry.cell_translation[coord.cell[parent]]
    x, y, z = coord.xyz[parent] - translation
    coord.prune(level)
    coord.index[level] = index
    coord.universe[level] = geometry.get_lattice_universe(lattice_ID, ix, iy, iz)
    coord.xyz[level] = _element_local(x, y, z, ix, iy, iz, grid)

    if resolve_from(particle, geometry, level):
        return STATE_IN_FLIGHT
    return STATE_KILLED


def resolve_from(particle, geometry, level, hint=None):
    """
    Re-resolve cells from ``level`` down, moving up one level at a time when
    a universe has no cell for the point.
    """
    while level >= 0:
        if locate(particle, geometry, level, hint):
            update_material(particle, geometry)
            return True
        hint = None
        level -= 1
    return False


# ======================================================================================
# Private
# ======================================================================================


def _contains(geometry, cell_ID, x, y, z, ux, uy, uz, surface_on):
    start, end = geometry.cell_token_range(cell_ID)
    return cell_contains(
        geometry.cell_tokens,
        start,
        end,
        x,
        y,
        z,
        ux,
        uy,
        uz,
        surface_on,
        geometry.surface_type,
        geometry.surface_coeffs,
    )


def _element_local(x, y, z, ix, iy, iz, grid):
    return np.array(
        [
            lattice_kernel.get_local(x, ix, grid, 0),
            lattice_kernel.get_local(y, iy, grid, 1),
            lattice_kernel.get_local(z, iz, grid, 2),
        ]
    )
