from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kcode.object_.cell import Cell
    from kcode.transport.particle import Snapshot

####

import math
import numpy as np

from numpy import float64
from numpy.typing import NDArray
from types import NoneType

####

from kcode.constant import (
    EVENT_COLLISION,
    EVENT_TRACK,
    INF,
    SCORE_ABSORPTION,
    SCORE_COLLISION,
    SCORE_FLUX,
)
from kcode.object_.base import ObjectNonSingleton
from kcode.print_ import print_1d_array, print_error
from kcode.transport.util import find_bin


# ======================================================================================
# Cell tally
# ======================================================================================


class TallyCell(ObjectNonSingleton):
    """
    Cell tally with an optional energy filter.

    A tally matches an event whenever its cell is anywhere on the particle's
    coordinate stack, so a tally on a lattice-holding cell also collects what
    happens inside its elements.

    Scores
    ------
    flux
        Track-length estimator, ``w * track length``.
    collision
        Weight entering each collision.
    absorption
        Weight removed at each collision (capture, or the implicit-capture
        reduction under survival biasing).

    Bins are laid out ``[energy, score]``. ``bin_sum`` and ``bin_sum_square``
    accumulate the per-cycle values over active cycles; ``mean`` and ``sdev``
    are filled at the end of the run.
    """

    label: str = "cell_tally"
    #
    name: str
    cell: Cell
    scores: list[int]
    energy: NDArray[float64]
    filter_energy: bool
    bin_sum: NDArray[float64]
    bin_sum_square: NDArray[float64]
    mean: NDArray[float64]
    sdev: NDArray[float64]

    def __init__(
        self,
        name: str = "",
        cell: Cell = None,
        scores: list[str] = ["flux"],
        energy: NDArray[float64] | NoneType = None,
    ):
        super().__init__()

        # Set name
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        if cell is None:
            print_error(f"Tally {self.name}: a cell is required")
        self.cell = cell

        # Set scores
        self.scores = []
        for score in scores:
            if score == "flux":
                self.scores.append(SCORE_FLUX)
            elif score == "collision":
                self.scores.append(SCORE_COLLISION)
            elif score == "absorption":
                self.scores.append(SCORE_ABSORPTION)
            else:
                print_error(f"Tally {self.name}: unknown score '{score}'")

        # Energy filter
        self.energy = np.array([0.0, INF])
        self.filter_energy = False
        if energy is not None:
            energy = np.array(energy, dtype=float)
            if len(energy) < 2 or (np.diff(energy) <= 0.0).any():
                print_error(f"Tally {self.name}: energy bins have to be increasing")
            self.energy = energy
            self.filter_energy = True

        # Accumulators
        self.bin_sum = np.zeros(self.shape)
        self.bin_sum_square = np.zeros(self.shape)
        self.mean = np.zeros(self.shape)
        self.sdev = np.zeros(self.shape)

    @property
    def shape(self):
        return (len(self.energy) - 1, len(self.scores))

    def score(self, pre: Snapshot, post: Snapshot, score_kind: int, bins):
        """
        Add the contribution of one event into ``bins``.

        Parameters
        ----------
        pre, post : Snapshot
            Particle state before and after the event. For a track, ``post``
            is the state at the end of the flight; for a collision, ``post`` is
            the state after the collision has been applied (weight 0 if the
            particle was absorbed).
        score_kind : int
            ``EVENT_TRACK`` or ``EVENT_COLLISION``.
        bins : ndarray
            Bins of this tally, shaped like :attr:`shape`.
        """
        if self.cell.ID not in pre.cell_IDs:
            return

        i_energy = find_bin(pre.E, self.energy)
        if i_energy == -1:
            return

        for i_score, score_type in enumerate(self.scores):
            if score_kind == EVENT_TRACK:
                if score_type == SCORE_FLUX:
                    distance = math.sqrt(
                        (post.x - pre.x) ** 2
                        + (post.y - pre.y) ** 2
                        + (post.z - pre.z) ** 2
                    )
                    bins[i_energy, i_score] += pre.w * distance
            elif score_kind == EVENT_COLLISION:
                if score_type == SCORE_COLLISION:
                    bins[i_energy, i_score] += pre.w
                elif score_type == SCORE_ABSORPTION:
                    bins[i_energy, i_score] += pre.w - post.w

    def __repr__(self):
        text = "\n"
        text += f"Cell tally\n"
        text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - Cell: {self.cell.ID} ({self.cell.name})\n"
        text += f"  - Scores: {[decode_score_type(x) for x in self.scores]}\n"
        if self.filter_energy:
            text += f"  - Energy {print_1d_array(self.energy)} MeV\n"
        return text


def decode_score_type(type_):
    if type_ == SCORE_FLUX:
        return "Flux"
    elif type_ == SCORE_COLLISION:
        return "Collision"
    elif type_ == SCORE_ABSORPTION:
        return "Absorption"
