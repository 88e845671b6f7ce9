import numpy as np

from dataclasses import dataclass
from typing import NamedTuple

####

import kcode.transport.rng as rng

from kcode.constant import PARTICLE_NEUTRON, STATE_BIRTH
from kcode.object_.cell import describe_tokens


# ======================================================================================
# Coordinate stack
# ======================================================================================


class CoordStack:
    """
    Nested local frames of a particle, indexed by level.

    Level 0 is the root frame; level ``n_level - 1`` is the deepest one, where
    the material lives. Each level records the cell found there, the universe
    the cell belongs to, the lattice (and element index) the universe was
    reached through, and the position and direction in that frame. Buffers
    grow by doubling and are reused across histories.
    """

    def __init__(self, capacity=4):
        self.n_level = 0
        self._allocate(capacity)

    def _allocate(self, capacity):
        self.cell = np.full(capacity, -1, dtype=np.int64)
        self.universe = np.full(capacity, -1, dtype=np.int64)
        self.lattice = np.full(capacity, -1, dtype=np.int64)
        self.index = np.zeros((capacity, 3), dtype=np.int64)
        self.xyz = np.zeros((capacity, 3))
        self.uvw = np.zeros((capacity, 3))

    @property
    def capacity(self):
        return len(self.cell)

    @property
    def coord_root(self):
        return 0

    @property
    def coord_deepest(self):
        return self.n_level - 1

    def _grow(self):
        n = self.n_level
        old = (self.cell, self.universe, self.lattice, self.index, self.xyz, self.uvw)
        self._allocate(2 * self.capacity)
        for new_array, old_array in zip(
            (self.cell, self.universe, self.lattice, self.index, self.xyz, self.uvw),
            old,
        ):
            new_array[:n] = old_array[:n]

    def push(self, universe, xyz, uvw, lattice=-1, index=(0, 0, 0)):
        """Add a frame below the deepest one and return its level."""
        if self.n_level == self.capacity:
            self._grow()
        level = self.n_level
        self.cell[level] = -1
        self.universe[level] = universe
        self.lattice[level] = lattice
        self.index[level] = index
        self.xyz[level] = xyz
        self.uvw[level] = uvw
        self.n_level += 1
        return level

    def prune(self, level):
        """Drop every frame below ``level`` and forget the cell at ``level``."""
        self.n_level = level + 1
        self.cell[level] = -1

    def reset(self):
        self.n_level = 0

    def move(self, distance):
        n = self.n_level
        self.xyz[:n] += distance * self.uvw[:n]

    def translate(self, shift):
        n = self.n_level
        self.xyz[:n] += shift

    def set_direction(self, ux, uy, uz):
        self.uvw[: self.n_level] = (ux, uy, uz)

    @property
    def cells(self):
        return tuple(int(x) for x in self.cell[: self.n_level])


# ======================================================================================
# Value types
# ======================================================================================


class SourceSite(NamedTuple):
    """A banked source/fission site; ``(history, sequence)`` orders the bank."""

    x: float
    y: float
    z: float
    ux: float
    uy: float
    uz: float
    E: float
    w: float
    history: int
    sequence: int


site_dtype = np.dtype(
    [
        ("x", np.float64),
        ("y", np.float64),
        ("z", np.float64),
        ("ux", np.float64),
        ("uy", np.float64),
        ("uz", np.float64),
        ("E", np.float64),
        ("w", np.float64),
        ("history", np.int64),
        ("sequence", np.int64),
    ]
)


def make_bank(sites):
    return np.array([tuple(site) for site in sites], dtype=site_dtype)


def get_site(bank, idx):
    return SourceSite(*bank[idx].item())


@dataclass(frozen=True)
class Snapshot:
    """Particle state handed to tallies; ``cell_IDs`` lists every level."""

    x: float
    y: float
    z: float
    w: float
    E: float
    cell_ID: int
    material_ID: int
    cell_IDs: tuple = ()


# ======================================================================================
# Particle
# ======================================================================================


class Particle:
    """
    A single history.

    The particle owns its coordinate stack and its private random stream
    (``rng_state``). ``surface_ID``/``surface_level`` name the surface it sits
    on after a crossing (-1 when it is not on a surface).
    """

    def __init__(self):
        self.coord = CoordStack()
        self.rng_state = rng.make_state(0)
        self.reset(-1, 0)

    def reset(self, ID, seed):
        self.ID = ID
        self.particle_type = PARTICLE_NEUTRON
        self.coord.reset()
        self.w = 1.0
        self.E = 0.0
        self.alive = True
        self.state = STATE_BIRTH
        self.last_xyz = (0.0, 0.0, 0.0)
        self.last_w = 1.0
        self.last_E = 0.0
        self.surface_ID = -1
        self.surface_level = -1
        self.material_ID = -1
        self.last_material_ID = -1
        self.cell_born = -1
        self.n_collision = 0
        self.n_bank = 0
        self.n_zero_step = 0
        self.rng_state[0] = seed

    # Global frame
    @property
    def x(self):
        return self.coord.xyz[0, 0]

    @property
    def y(self):
        return self.coord.xyz[0, 1]

    @property
    def z(self):
        return self.coord.xyz[0, 2]

    @property
    def ux(self):
        return self.coord.uvw[0, 0]

    @property
    def uy(self):
        return self.coord.uvw[0, 1]

    @property
    def uz(self):
        return self.coord.uvw[0, 2]

    @property
    def cell_ID(self):
        if self.coord.n_level == 0:
            return -1
        return int(self.coord.cell[self.coord.coord_deepest])

    def snapshot(self, w=None):
        return Snapshot(
            float(self.x),
            float(self.y),
            float(self.z),
            self.w if w is None else w,
            self.E,
            self.cell_ID,
            self.material_ID,
            self.coord.cells,
        )


def describe_particle(particle, geometry=None):
    """
    Multi-line dump of a particle for diagnostics: global and local frames,
    lattice indices, cells, and the surface it sits on.
    """
    text = f"Particle {particle.ID}\n"
    text += f"  - Position (x, y, z): ({particle.x:.10g}, {particle.y:.10g}, {particle.z:.10g}) cm\n"
    text += f"  - Direction (ux, uy, uz): ({particle.ux:.10g}, {particle.uy:.10g}, {particle.uz:.10g})\n"
    text += f"  - Weight: {particle.w}\n"
    text += f"  - Energy: {particle.E} MeV\n"
    text += f"  - Material: {particle.material_ID}\n"
    text += f"  - Surface: {particle.surface_ID} (level {particle.surface_level})\n"
    coord = particle.coord
    for level in range(coord.n_level):
        x, y, z = coord.xyz[level]
        text += f"  - Level {level}: universe {coord.universe[level]}, cell {coord.cell[level]}"
        if coord.lattice[level] >= 0:
            ix, iy, iz = coord.index[level]
            text += f", lattice {coord.lattice[level]} [{ix}, {iy}, {iz}]"
        text += f", local ({x:.10g}, {y:.10g}, {z:.10g})\n"
        if geometry is not None and coord.cell[level] >= 0:
            start, end = geometry.cell_token_range(coord.cell[level])
            tokens = geometry.cell_tokens[start:end].tolist()
            text += f"      region: {describe_tokens(tokens)}\n"
    return text
