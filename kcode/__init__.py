# ======================================================================================
# Simulation building blocks
# ======================================================================================

from kcode.object_.simulation import simulation

settings = simulation.settings
implicit_capture = simulation.implicit_capture
weight_roulette = simulation.weight_roulette

# The objects
from kcode.object_.cell import Cell
from kcode.object_.material import MaterialMG
from kcode.object_.source import Source
from kcode.object_.surface import Surface
from kcode.object_.tally import TallyCell
from kcode.object_.universe import Universe, Lattice

# ======================================================================================
# Runners
# ======================================================================================

from kcode.main import run, prepare
from kcode.transport.kernel import transport_one
