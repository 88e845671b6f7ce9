import numpy as np

from numpy import float64
from numpy.typing import NDArray
from types import NoneType
from typing import Annotated, Iterable

####

from kcode.constant import (
    PARTICLE_NEUTRON,
    SOURCE_DIRECTION_ISO,
    SOURCE_DIRECTION_MONO,
    SOURCE_ENERGY_MONO,
    SOURCE_ENERGY_WATT,
    SOURCE_POSITION_BOX,
    SOURCE_POSITION_POINT,
    WATT_A,
    WATT_B,
)
from kcode.object_.base import ObjectNonSingleton
from kcode.object_.simulation import simulation
from kcode.print_ import print_error


def decode_particle_type(type_):
    if type_ == PARTICLE_NEUTRON:
        return "Neutron"


# ======================================================================================
# Source
# ======================================================================================


class Source(ObjectNonSingleton):
    """
    External source used to sample the first cycle's particles.

    Defaults to an isotropic point source at the origin with a Watt fission
    spectrum, ``p(E) ~ exp(-E/a) sinh(sqrt(b E))`` with ``a = 0.988 MeV`` and
    ``b = 2.249 /MeV``.
    """

    label: str = "source"
    #
    name: str
    position_type: int
    point: Annotated[NDArray[float64], (3,)]
    x: Annotated[NDArray[float64], (2,)]
    y: Annotated[NDArray[float64], (2,)]
    z: Annotated[NDArray[float64], (2,)]
    direction_type: int
    direction: Annotated[NDArray[float64], (3,)]
    energy_type: int
    energy: float
    watt_a: float
    watt_b: float
    particle_type: int
    probability: float

    def __init__(
        self,
        name: str = "",
        position: Iterable[float] | NoneType = None,
        x: Iterable[float] | NoneType = None,
        y: Iterable[float] | NoneType = None,
        z: Iterable[float] | NoneType = None,
        #
        direction: Iterable[float] | NoneType = None,
        #
        energy: float | NoneType = None,
        watt: Iterable[float] | NoneType = None,
        #
        probability: float = 1.0,
    ):
        super().__init__()

        # Set name
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        # ==============================================================================
        # Default attributes
        #   Point source at origin, isotropic, Watt spectrum, neutron
        # ==============================================================================

        self.position_type = SOURCE_POSITION_POINT
        self.point = np.zeros(3)
        self.x = np.zeros(2)
        self.y = np.zeros(2)
        self.z = np.zeros(2)

        self.direction_type = SOURCE_DIRECTION_ISO
        self.direction = np.zeros(3)

        self.energy_type = SOURCE_ENERGY_WATT
        self.energy = 0.0
        self.watt_a = WATT_A
        self.watt_b = WATT_B

        self.particle_type = PARTICLE_NEUTRON
        self.probability = probability
        if probability <= 0.0:
            print_error(f"Source {self.name}: probability has to be positive")

        # ==============================================================================
        # Assignment
        # ==============================================================================

        # Position
        if position is not None:
            self.point = np.array(position, dtype=float)
        elif x is not None or y is not None or z is not None:
            self.position_type = SOURCE_POSITION_BOX
            if x is not None:
                self.x = np.array(x, dtype=float)
            if y is not None:
                self.y = np.array(y, dtype=float)
            if z is not None:
                self.z = np.array(z, dtype=float)

        # Direction
        if direction is not None:
            direction = np.array(direction, dtype=float)
            norm = np.linalg.norm(direction)
            if norm == 0.0:
                print_error(f"Source {self.name}: direction cannot be zero")
            self.direction_type = SOURCE_DIRECTION_MONO
            self.direction = direction / norm

        # Energy
        if energy is not None:
            if energy <= 0.0:
                print_error(f"Source {self.name}: energy has to be positive")
            self.energy_type = SOURCE_ENERGY_MONO
            self.energy = energy
        elif watt is not None:
            self.watt_a, self.watt_b = watt

    def __repr__(self):
        text = "\n"
        text += f"Source\n"
        text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - Particle: {decode_particle_type(self.particle_type)}\n"
        text += f"  - Probability: {self.probability / total_probability() * 100}%\n"
        if self.position_type == SOURCE_POSITION_POINT:
            text += f"  - Position [x, y, z]: {self.point} cm\n"
        else:
            text += f"  - Position\n"
            text += f"    - x: {self.x} cm\n"
            text += f"    - y: {self.y} cm\n"
            text += f"    - z: {self.z} cm\n"
        if self.direction_type == SOURCE_DIRECTION_ISO:
            text += f"  - Direction: Isotropic\n"
        else:
            text += f"  - Direction [ux, uy, uz]: {self.direction}\n"
        if self.energy_type == SOURCE_ENERGY_MONO:
            text += f"  - Energy: {self.energy} MeV\n"
        else:
            text += f"  - Energy: Watt (a={self.watt_a} MeV, b={self.watt_b} /MeV)\n"
        return text


def total_probability():
    return sum([source.probability for source in simulation.sources])
