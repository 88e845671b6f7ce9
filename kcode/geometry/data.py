import numpy as np

####

from kcode.constant import (
    FILL_LATTICE,
    FILL_UNIVERSE,
    OP_UNION,
    UNIVERSE_ROOT,
)
from kcode.error import RegionError


# ======================================================================================
# Flat geometry arrays
# ======================================================================================


class GeometryData:
    """
    Integer-handle flat arrays of the model geometry.

    Variable-length lists (cell tokens, cell surfaces, universe cells, lattice
    universes, surface neighbors) are stored CSR-style: the entries of item
    ``i`` are ``values[offsets[i]:offsets[i+1]]``. Built once in preparation
    and only read afterwards.
    """

    def __init__(self, simulation):
        surfaces = simulation.surfaces
        cells = simulation.cells
        universes = simulation.universes
        lattices = simulation.lattices

        if len(cells) == 0:
            raise RegionError("The model has no cells")
        fill_root_universe(simulation)

        # ==============================================================================
        # Surfaces
        # ==============================================================================

        N_surface = len(surfaces)
        self.surface_type = np.zeros(N_surface, dtype=np.int64)
        self.surface_coeffs = np.zeros((N_surface, 10))
        self.surface_bc = np.zeros(N_surface, dtype=np.int64)
        self.surface_partner = np.full(N_surface, -1, dtype=np.int64)
        self.surface_translation = np.zeros((N_surface, 3))
        for surface in surfaces:
            ID = surface.ID
            self.surface_type[ID] = surface.type
            self.surface_coeffs[ID] = surface.coefficients
            self.surface_bc[ID] = surface.boundary_condition
            if surface.periodic_partner is not None:
                self.surface_partner[ID] = surface.periodic_partner.ID
                self.surface_translation[ID] = surface.periodic_translation()

        # ==============================================================================
        # Cells
        # ==============================================================================

        N_cell = len(cells)
        self.cell_fill_type = np.zeros(N_cell, dtype=np.int64)
        self.cell_fill_ID = np.full(N_cell, -1, dtype=np.int64)
        self.cell_universe = np.full(N_cell, -1, dtype=np.int64)
        self.cell_translation = np.zeros((N_cell, 3))
        for cell in cells:
            ID = cell.ID
            self.cell_fill_type[ID] = cell.fill_type
            self.cell_fill_ID[ID] = cell.fill_ID
            if cell.universe is not None:
                self.cell_universe[ID] = cell.universe.ID
            self.cell_translation[ID] = cell.translation

        self.cell_token_offsets, self.cell_tokens = _csr(
            [cell.region_tokens for cell in cells]
        )
        self.cell_surface_offsets, self.cell_surfaces = _csr(
            [[surface.ID for surface in cell.surfaces] for cell in cells]
        )

        # ==============================================================================
        # Universes
        # ==============================================================================

        self.universe_cell_offsets, self.universe_cells = _csr(
            [[cell.ID for cell in universe.cells] for universe in universes]
        )
        self.universe_level = universe_levels(simulation)

        # ==============================================================================
        # Lattices
        # ==============================================================================

        N_lattice = len(lattices)
        self.lattice_grid = np.zeros((N_lattice, 9))
        self.lattice_universe_offsets, self.lattice_universes = _csr(
            [lattice.universe_IDs.flatten().tolist() for lattice in lattices]
        )
        for lattice in lattices:
            self.lattice_grid[lattice.ID] = [
                lattice.x0,
                lattice.dx,
                lattice.Nx,
                lattice.y0,
                lattice.dy,
                lattice.Ny,
                lattice.z0,
                lattice.dz,
                lattice.Nz,
            ]

        # ==============================================================================
        # Surface neighbors
        #   Cells referencing the surface with the given sense
        # ==============================================================================

        positive = [[] for _ in range(N_surface)]
        negative = [[] for _ in range(N_surface)]
        for cell in cells:
            for token in cell.region_tokens:
                if token == 0 or abs(token) >= OP_UNION:
                    continue
                side = positive if token > 0 else negative
                if cell.ID not in side[abs(token) - 1]:
                    side[abs(token) - 1].append(cell.ID)
        self.neighbor_positive_offsets, self.neighbor_positive = _csr(positive)
        self.neighbor_negative_offsets, self.neighbor_negative = _csr(negative)

        # Read-only from here on
        for value in self.__dict__.values():
            if isinstance(value, np.ndarray):
                value.flags.writeable = False

    # ==================================================================================
    # CSR getters
    # ==================================================================================

    def cell_token_range(self, cell_ID):
        return self.cell_token_offsets[cell_ID], self.cell_token_offsets[cell_ID + 1]

    def get_cell_surfaces(self, cell_ID):
        start = self.cell_surface_offsets[cell_ID]
        end = self.cell_surface_offsets[cell_ID + 1]
        return self.cell_surfaces[start:end]

    def get_universe_cells(self, universe_ID):
        start = self.universe_cell_offsets[universe_ID]
        end = self.universe_cell_offsets[universe_ID + 1]
        return self.universe_cells[start:end]

    def get_lattice_universe(self, lattice_ID, ix, iy, iz):
        grid = self.lattice_grid[lattice_ID]
        Ny = int(grid[5])
        Nz = int(grid[8])
        idx = (ix * Ny + iy) * Nz + iz
        return self.lattice_universes[self.lattice_universe_offsets[lattice_ID] + idx]

    def get_neighbors(self, surface_ID, positive_side):
        if positive_side:
            offsets = self.neighbor_positive_offsets
            values = self.neighbor_positive
        else:
            offsets = self.neighbor_negative_offsets
            values = self.neighbor_negative
        return values[offsets[surface_ID] : offsets[surface_ID + 1]]


# ======================================================================================
# Preparation helpers
# ======================================================================================


def fill_root_universe(simulation):
    """
    An empty root universe receives every cell not placed in another one.
    """
    root = simulation.universes[UNIVERSE_ROOT]
    if len(root.cells) > 0:
        return
    for cell in simulation.cells:
        if cell.universe is None:
            root.add_cell(cell)
    if len(root.cells) == 0:
        raise RegionError("The root universe has no cells")


def universe_levels(simulation):
    """
    Nesting level of every universe (root = 0), walking the fill graph.

    A universe reachable at different depths keeps the deepest level; a
    universe that fills itself, directly or not, is an error.
    """
    N_universe = len(simulation.universes)
    level = np.full(N_universe, -1, dtype=np.int64)

    def children(universe):
        for cell in universe.cells:
            if cell.fill_type == FILL_UNIVERSE:
                yield cell.fill_ID
            elif cell.fill_type == FILL_LATTICE:
                lattice = simulation.lattices[cell.fill_ID]
                for ID in sorted(set(lattice.universe_IDs.flatten().tolist())):
                    yield ID

    def visit(ID, depth, path):
        if ID in path:
            raise RegionError(f"Universe {ID} is nested inside itself")
        level[ID] = max(level[ID], depth)
        for child in children(simulation.universes[ID]):
            visit(child, depth + 1, path | {ID})

    visit(UNIVERSE_ROOT, 0, frozenset())
    return level


def _csr(lists):
    offsets = np.zeros(len(lists) + 1, dtype=np.int64)
    for i, values in enumerate(lists):
        offsets[i + 1] = offsets[i] + len(values)
    values = np.zeros(offsets[-1], dtype=np.int64)
    for i, items in enumerate(lists):
        values[offsets[i] : offsets[i + 1]] = items
    return offsets, values
