from abc import ABC, abstractmethod
from typing import NamedTuple

####

from kcode.constant import REACTION_NONE


class FissionNeutron(NamedTuple):
    """A neutron emitted by fission, before it is placed in the bank."""

    ux: float
    uy: float
    uz: float
    E: float
    w: float


class CollisionOutcome(NamedTuple):
    """
    Result of one collision.

    ``weight_factor`` multiplies the particle weight (survival biasing).
    ``absorbed`` ends the history. ``sites`` holds the ``n_fission`` neutrons
    to bank for the next cycle.
    """

    reaction: int = REACTION_NONE
    E: float = 0.0
    ux: float = 0.0
    uy: float = 0.0
    uz: float = 0.0
    weight_factor: float = 1.0
    absorbed: bool = False
    n_fission: int = 0
    sites: tuple = ()


class ReactionSampler(ABC):
    """
    Service that samples flight distances and collision outcomes.

    Samplers consume random numbers only from the ``rng_state`` they are
    handed, so a history replays identically wherever it runs.
    """

    @abstractmethod
    def sample_distance(self, material_ID, E, rng_state):
        """Distance to the next collision; INF in void."""

    @abstractmethod
    def sample_collision(self, material_ID, E, u, w, k_eff, rng_state):
        """
        Sample a collision at energy ``E`` with direction ``u`` and weight
        ``w``; fission production is divided by ``k_eff``.

        Returns
        -------
        CollisionOutcome
        """

    def sample_distance_and_outcome(self, material_ID, E, u, w, k_eff, rng_state):
        distance = self.sample_distance(material_ID, E, rng_state)
        outcome = self.sample_collision(material_ID, E, u, w, k_eff, rng_state)
        return distance, outcome
