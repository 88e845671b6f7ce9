from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kcode.object_.cell import Cell, Region
    from kcode.object_.material import MaterialMG
    from kcode.object_.source import Source
    from kcode.object_.surface import Surface
    from kcode.object_.tally import TallyCell
    from kcode.object_.universe import Lattice

####

from kcode.object_.base import ObjectSingleton
from kcode.object_.settings import Settings
from kcode.object_.technique import ImplicitCapture, WeightRoulette
from kcode.object_.universe import Universe


# ======================================================================================
# Simulation
# ======================================================================================


class Simulation(ObjectSingleton):
    """
    Registry of every model object plus run settings and techniques.

    Objects register themselves here on construction and receive their
    integer ``ID`` as the index in the matching list.
    """

    # Physics
    materials: list[MaterialMG]
    sources: list[Source]

    # Geometry
    cells: list[Cell]
    lattices: list[Lattice]
    regions: list[Region]
    surfaces: list[Surface]
    universes: list[Universe]

    # Tallies
    tallies: list[TallyCell]

    # Settings
    settings: Settings

    # Techniques
    implicit_capture: ImplicitCapture
    weight_roulette: WeightRoulette

    def __init__(self):
        super().__init__()

        self.settings = Settings()
        self.implicit_capture = ImplicitCapture()
        self.weight_roulette = WeightRoulette()
        self._reset_objects()

    def _reset_objects(self):
        # Physics
        self.materials = []
        self.sources = []

        # Geometry
        self.cells = []
        self.lattices = []
        self.regions = []
        self.surfaces = []
        self.universes = []
        self.universes.append(Universe("Root Universe", root=True))

        # Tallies
        self.tallies = []

    def reset(self):
        """Clear the model and restore default settings and techniques in place."""
        self._reset_objects()
        self.settings.reset()
        self.implicit_capture.__init__()
        self.weight_roulette.__init__()

    def set_root_universe(self, cells=[]):
        root = self.universes[0]
        for cell in cells:
            root.add_cell(cell)


simulation = Simulation()
