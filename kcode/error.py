# ======================================================================================
# Error taxonomy
# ======================================================================================


class KcodeError(Exception):
    """
    Base class of all fatal run errors.

    Optional particle context (``particle_ID``, ``cell_ID``, ``xyz``) is
    attached so the run diagnostic can point at the failing history.
    """

    def __init__(self, message, particle_ID=-1, cell_ID=-1, xyz=None):
        super().__init__(message)
        self.particle_ID = particle_ID
        self.cell_ID = cell_ID
        self.xyz = xyz

    def __str__(self):
        text = super().__str__()
        if self.particle_ID >= 0:
            text += f" [particle {self.particle_ID}"
            if self.cell_ID >= 0:
                text += f", cell {self.cell_ID}"
            if self.xyz is not None:
                x, y, z = self.xyz
                text += f", ({x:.6g}, {y:.6g}, {z:.6g})"
            text += "]"
        return text


class GeometryError(KcodeError):
    """A point cannot be resolved to any cell, or too many particles got lost."""


class RegionError(GeometryError):
    """Malformed region token sequence or invalid cell/universe linkage."""


class PhysicsSamplingError(KcodeError):
    """Raised by a reaction sampler on inconsistent data or out-of-range input."""


class BankError(KcodeError):
    """Fission bank synchronization failed."""


class LostParticleWarning(UserWarning):
    """
    Record of a particle killed after failing to make geometric progress.

    Not raised; instances are collected per worker and summarized at the end
    of the run. ``details`` holds the particle dump taken when it was lost.
    """

    def __init__(self, particle_ID, cell_ID, xyz, reason="", details=""):
        super().__init__(f"Particle {particle_ID} lost in cell {cell_ID}: {reason}")
        self.particle_ID = particle_ID
        self.cell_ID = cell_ID
        self.xyz = tuple(xyz)
        self.reason = reason
        self.details = details

    def __reduce__(self):
        # Records are gathered across ranks
        return (
            self.__class__,
            (self.particle_ID, self.cell_ID, self.xyz, self.reason, self.details),
        )
