from __future__ import annotations
from types import NoneType
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from kcode.object_.cell import Cell

####

import numpy as np

from numpy import int64
from numpy.typing import NDArray

####

from kcode.constant import INF
from kcode.error import RegionError
from kcode.object_.base import ObjectNonSingleton
from kcode.print_ import print_error

# ======================================================================================
# Universe
# ======================================================================================


class Universe(ObjectNonSingleton):
    label: str = "universe"
    #
    name: str
    cells: list[Cell]

    def __init__(self, name: str = "", cells: list[Cell] = [], root: bool = False):
        # Custom treatment for root universe
        if root:
            super().__init__(register=False)
            self.ID = 0
        else:
            super().__init__()

        # Set name
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        self.cells = []
        for cell in cells:
            self.add_cell(cell)

    def add_cell(self, cell):
        if cell.universe is not None and cell.universe is not self:
            raise RegionError(
                f"Cell {cell.ID} ({cell.name}) already belongs to universe "
                f"{cell.universe.ID}; it cannot also be placed in universe {self.ID}"
            )
        if cell.universe is self:
            return
        cell.universe = self
        self.cells.append(cell)

    def __repr__(self):
        text = "\n"
        text += f"Universe\n"
        if self.ID == 0:
            text += f"  - ID: {self.ID} (root)\n"
        else:
            text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - Cells: {[x.ID for x in self.cells]}\n"
        return text


# ======================================================================================
# Lattice
# ======================================================================================


class Lattice(ObjectNonSingleton):
    """
    Regular 2-D or 3-D grid of universes.

    Each axis is given as ``(origin, pitch, count)``; an omitted axis is a
    single infinitely wide element. Universes are either a dense nested list
    laid out ``[z][y][x]`` (rows of y and z listed from top to bottom), or a
    sparse dictionary ``{(ix, iy[, iz]): universe}`` completed by ``default``.

    Elements are addressed internally with ``universe_IDs[ix, iy, iz]``.
    """

    label: str = "lattice"
    #
    name: str
    x0: float
    dx: float
    Nx: int
    y0: float
    dy: float
    Ny: int
    z0: float
    dz: float
    Nz: int
    universe_IDs: Annotated[NDArray[int64], ("Nx", "Ny", "Nz")]

    def __init__(
        self,
        name: str = "",
        x: tuple[float, float, int] | NoneType = None,
        y: tuple[float, float, int] | NoneType = None,
        z: tuple[float, float, int] | NoneType = None,
        universes: list | dict = None,
        default: Universe | NoneType = None,
    ):
        super().__init__()

        # Set name
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        # Grid per axis; an omitted axis is one infinitely wide element
        for axis, grid in zip("xyz", (x, y, z)):
            origin, pitch, count = (-INF, 2 * INF, 1) if grid is None else grid
            if pitch <= 0.0 or count < 1:
                print_error(f"Lattice {self.name}: {axis} pitch and count must be positive")
            setattr(self, f"{axis}0", float(origin))
            setattr(self, f"d{axis}", float(pitch))
            setattr(self, f"N{axis}", int(count))
        if universes is None:
            print_error(f"Lattice {self.name}: universes are not specified")

        if isinstance(universes, dict):
            self.universe_IDs = self._sparse_IDs(universes, default)
        else:
            self.universe_IDs = self._dense_IDs(universes, x, y, z)

    def _dense_IDs(self, universes, x, y, z):
        get_ID = np.vectorize(lambda obj: obj.ID, otypes=[int64])
        universe_IDs = get_ID(np.array(universes, dtype=object))
        # Missing axes, outermost first, so the layout stays [z][y][x]
        ax_expand = []
        if z is None:
            ax_expand.append(0)
        if y is None:
            ax_expand.append(1)
        if x is None:
            ax_expand.append(2)
        for ax in ax_expand:
            universe_IDs = np.expand_dims(universe_IDs, axis=ax)

        # Change indexing structure: [z(flip), y(flip), x] --> [x, y, z]
        universe_IDs = np.transpose(universe_IDs)
        universe_IDs = np.flip(universe_IDs, axis=1)
        universe_IDs = np.flip(universe_IDs, axis=2)

        if universe_IDs.shape != (self.Nx, self.Ny, self.Nz):
            print_error(
                f"Lattice {self.name}: universes of shape {universe_IDs.shape} "
                f"do not match the grid ({self.Nx}, {self.Ny}, {self.Nz})"
            )
        return np.ascontiguousarray(universe_IDs, dtype=int64)

    def _sparse_IDs(self, universes, default):
        fill = -1 if default is None else default.ID
        universe_IDs = np.full((self.Nx, self.Ny, self.Nz), fill, dtype=int64)
        for index, universe in universes.items():
            index = tuple(index) + (0,) * (3 - len(index))
            ix, iy, iz = index
            if not (0 <= ix < self.Nx and 0 <= iy < self.Ny and 0 <= iz < self.Nz):
                print_error(f"Lattice {self.name}: index {index} is outside the grid")
            universe_IDs[ix, iy, iz] = universe.ID
        if (universe_IDs < 0).any():
            missing = tuple(int(i) for i in np.argwhere(universe_IDs < 0)[0])
            print_error(
                f"Lattice {self.name}: element {missing} has no universe and no default is given"
            )
        return universe_IDs

    def get_universe_ID(self, ix, iy, iz=0):
        return int(self.universe_IDs[ix, iy, iz])

    def __repr__(self):
        text = "\n"
        text += f"Lattice\n"
        text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - (x0, dx, Nx): ({self.x0}, {self.dx}, {self.Nx})\n"
        text += f"  - (y0, dy, Ny): ({self.y0}, {self.dy}, {self.Ny})\n"
        text += f"  - (z0, dz, Nz): ({self.z0}, {self.dz}, {self.Nz})\n"
        text += f"  - Universes: {sorted(set(self.universe_IDs.flatten().tolist()))}\n"
        return text
