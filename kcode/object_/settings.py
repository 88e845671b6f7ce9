from dataclasses import dataclass, fields

####

from kcode.constant import (
    GYRATION_RADIUS_ALL,
    GYRATION_RADIUS_INFINITE_X,
    GYRATION_RADIUS_INFINITE_Y,
    GYRATION_RADIUS_INFINITE_Z,
)
from kcode.object_.base import ObjectSingleton
from kcode.print_ import print_error

GYRATION_RADIUS_TYPES = {
    "all": GYRATION_RADIUS_ALL,
    "infinite-x": GYRATION_RADIUS_INFINITE_X,
    "infinite-y": GYRATION_RADIUS_INFINITE_Y,
    "infinite-z": GYRATION_RADIUS_INFINITE_Z,
}


# ======================================================================================
# Settings
# ======================================================================================


@dataclass
class Settings(ObjectSingleton):
    # Basic
    N_particle: int = 0
    rng_seed: int = 1

    # k-eigenvalue
    N_inactive: int = 0
    N_active: int = 0
    k_init: float = 1.0
    use_gyration_radius: bool = False
    gyration_radius_type: int = GYRATION_RADIUS_ALL

    # Physics cutoff
    energy_cutoff: float = 0.0

    # Lost particles tolerated before the run is aborted
    max_lost_particles: int = 10

    # In-process workers per MPI rank
    N_worker: int = 1

    # Output
    output_name: str = "output"
    save_output: bool = True
    use_progress_bar: bool = True

    def __post_init__(self):
        super().__init__()

    @property
    def N_cycle(self):
        return self.N_inactive + self.N_active

    def set_eigenmode(
        self,
        N_inactive: int = 0,
        N_active: int = 0,
        k_init: float = 1.0,
        gyration_radius: str | None = None,
    ):
        """
        Set the power iteration: cycle counts, the initial guess of k, and
        optionally the gyration-radius diagnostic of the fission bank
        (``"all"``, or ``"infinite-x"``/``-y``/``-z`` to leave an axis out).
        """
        if N_active < 1:
            print_error("Eigenvalue mode needs at least one active cycle")
        self.N_inactive = N_inactive
        self.N_active = N_active
        self.k_init = k_init

        if gyration_radius is not None:
            if gyration_radius not in GYRATION_RADIUS_TYPES:
                print_error(f"Unknown gyration radius type: {gyration_radius}")
            self.use_gyration_radius = True
            self.gyration_radius_type = GYRATION_RADIUS_TYPES[gyration_radius]

    def reset(self):
        for field_ in fields(self):
            setattr(self, field_.name, field_.default)
