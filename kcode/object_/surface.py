import numpy as np

from numpy import float64
from numpy.typing import NDArray
from typing import Annotated, Iterable

####

from kcode.constant import (
    BC_NONE,
    BC_PERIODIC,
    BC_REFLECTIVE,
    BC_VACUUM,
    SURFACE_BOX,
    SURFACE_CONE_X,
    SURFACE_CONE_Y,
    SURFACE_CONE_Z,
    SURFACE_CYLINDER_X,
    SURFACE_CYLINDER_Y,
    SURFACE_CYLINDER_Z,
    SURFACE_PLANE,
    SURFACE_PLANE_X,
    SURFACE_PLANE_Y,
    SURFACE_PLANE_Z,
    SURFACE_QUADRIC,
    SURFACE_SPHERE,
)
from kcode.object_.base import ObjectNonSingleton
from kcode.object_.cell import Region
from kcode.print_ import print_error

BC_TYPES = {
    "none": BC_NONE,
    "vacuum": BC_VACUUM,
    "reflective": BC_REFLECTIVE,
    "periodic": BC_PERIODIC,
}

TYPE_NAMES = {
    SURFACE_PLANE_X: "Plane-X surface",
    SURFACE_PLANE_Y: "Plane-Y surface",
    SURFACE_PLANE_Z: "Plane-Z surface",
    SURFACE_PLANE: "Plane surface",
    SURFACE_CYLINDER_X: "Infinite cylinder-X surface",
    SURFACE_CYLINDER_Y: "Infinite cylinder-Y surface",
    SURFACE_CYLINDER_Z: "Infinite cylinder-Z surface",
    SURFACE_SPHERE: "Sphere surface",
    SURFACE_CONE_X: "Cone-X surface",
    SURFACE_CONE_Y: "Cone-Y surface",
    SURFACE_CONE_Z: "Cone-Z surface",
    SURFACE_QUADRIC: "Quadric surface",
    SURFACE_BOX: "Box surface",
}


# ======================================================================================
# Surface
# ======================================================================================


class Surface(ObjectNonSingleton):
    """
    Registered surface: a type tag, a coefficient vector, and a boundary
    condition.

    Quadric types keep ``(A, B, C, D, E, F, G, H, I, J)`` of

        f = Ax² + By² + Cz² + Dxy + Exz + Fyz + Gx + Hy + Iz + J

    and a box keeps ``(xmin, xmax, ymin, ymax, zmin, zmax)`` in the first six
    entries. The negative side (``f < 0``) is the inside of closed surfaces.

    Use the factory class methods (:meth:`PlaneX`, :meth:`Sphere`, ...)
    rather than the constructor, and ``+surface`` / ``-surface`` to form
    half-space regions.
    """

    label: str = "surface"
    #
    type: int
    name: str
    boundary_condition: int
    coeffs: Annotated[NDArray[float64], (10,)]
    linear: bool
    normal: Annotated[NDArray[float64], (3,)]

    def __init__(self, type_, name, boundary_condition, coeffs, linear=False):
        super().__init__()

        self.type = type_
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        if boundary_condition not in BC_TYPES:
            print_error(f"Unknown boundary condition: {boundary_condition}")
        self.boundary_condition = BC_TYPES[boundary_condition]
        self.periodic_partner = None

        self.coeffs = np.array(coeffs, dtype=float)
        self.linear = linear

        # Unit normal of planes
        self.normal = np.zeros(3)
        if linear:
            self.normal = self.coeffs[6:9].copy()

    @property
    def coefficients(self):
        return self.coeffs.copy()

    @property
    def bounds(self):
        return self.coeffs[:6]

    def __repr__(self):
        text = "\n"
        text += f"{decode_type(self.type)}\n"
        text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - Boundary condition: {decode_BC_type(self.boundary_condition)}\n"
        if self.periodic_partner is not None:
            text += f"  - Periodic partner: {self.periodic_partner.ID}\n"

        if self.type in (SURFACE_PLANE_X, SURFACE_PLANE_Y, SURFACE_PLANE_Z):
            axis = "xyz"[self.type - SURFACE_PLANE_X]
            text += f"  - {axis}0: {-self.coeffs[9]} cm\n"
        elif self.type == SURFACE_PLANE:
            text += f"  - Normal: {self.normal.tolist()}\n"
            text += f"  - Offset: {self.coeffs[9]} cm\n"
        elif self.type == SURFACE_SPHERE:
            center = -0.5 * self.coeffs[6:9]
            radius = (np.dot(center, center) - self.coeffs[9]) ** 0.5
            text += f"  - Center: {center.tolist()} cm\n"
            text += f"  - Radius: {radius} cm\n"
        elif self.type == SURFACE_BOX:
            text += f"  - Bounds: {self.bounds.tolist()} cm\n"
        else:
            text += f"  - Coeffs. (A..J): {self.coeffs.tolist()}\n"

        return text

    # ==================================================================================
    # Planes
    # ==================================================================================

    @classmethod
    def PlaneX(cls, name: str = "", x: float = 0.0, boundary_condition: str = "none"):
        """
        Plane ``x = x0`` with normal ``(+1, 0, 0)``.

        Parameters
        ----------
        name : str, optional
        x : float, default 0.0
            Plane location (cm).
        boundary_condition : {"none","vacuum","reflective","periodic"}, optional
        """
        return cls._axis_plane(SURFACE_PLANE_X, 0, x, name, boundary_condition)

    @classmethod
    def PlaneY(cls, name: str = "", y: float = 0.0, boundary_condition: str = "none"):
        return cls._axis_plane(SURFACE_PLANE_Y, 1, y, name, boundary_condition)

    @classmethod
    def PlaneZ(cls, name: str = "", z: float = 0.0, boundary_condition: str = "none"):
        return cls._axis_plane(SURFACE_PLANE_Z, 2, z, name, boundary_condition)

    @classmethod
    def Plane(
        cls,
        name: str = "",
        A: float = 0.0,
        B: float = 0.0,
        C: float = 0.0,
        D: float = 0.0,
        boundary_condition: str = "none",
    ):
        """
        Plane ``A x + B y + C z + D = 0``, rescaled so (A, B, C) is a unit
        normal.
        """
        norm = (A**2 + B**2 + C**2) ** 0.5
        if norm == 0.0:
            print_error("Plane normal (A, B, C) cannot be zero")

        coeffs = np.zeros(10)
        coeffs[6:] = np.array([A, B, C, D]) / norm
        return cls(SURFACE_PLANE, name, boundary_condition, coeffs, linear=True)

    @classmethod
    def _axis_plane(cls, type_, axis, position, name, boundary_condition):
        coeffs = np.zeros(10)
        coeffs[6 + axis] = 1.0
        coeffs[9] = -position
        return cls(type_, name, boundary_condition, coeffs, linear=True)

    # ==================================================================================
    # Quadrics
    # ==================================================================================

    @classmethod
    def CylinderX(
        cls,
        name: str = "",
        center: Iterable[float] = [0.0, 0.0],
        radius: float = 0.0,
        boundary_condition: str = "none",
    ):
        """
        Infinite cylinder along x; ``center`` is (y, z).
        """
        y, z = center
        coeffs = _axial_quadric((0.0, y, z), (0.0, 1.0, 1.0), radius**2)
        return cls(SURFACE_CYLINDER_X, name, boundary_condition, coeffs)

    @classmethod
    def CylinderY(
        cls,
        name: str = "",
        center: Iterable[float] = [0.0, 0.0],
        radius: float = 0.0,
        boundary_condition: str = "none",
    ):
        """
        Infinite cylinder along y; ``center`` is (x, z).
        """
        x, z = center
        coeffs = _axial_quadric((x, 0.0, z), (1.0, 0.0, 1.0), radius**2)
        return cls(SURFACE_CYLINDER_Y, name, boundary_condition, coeffs)

    @classmethod
    def CylinderZ(
        cls,
        name: str = "",
        center: Iterable[float] = [0.0, 0.0],
        radius: float = 0.0,
        boundary_condition: str = "none",
    ):
        """
        Infinite cylinder along z; ``center`` is (x, y).

        Parameters
        ----------
        name : str, optional
        center : (2,) array_like of float, default (0, 0)
            Axis position (cm).
        radius : float
            Cylinder radius (cm).
        boundary_condition : {"none","vacuum","reflective"}, optional
        """
        x, y = center
        coeffs = _axial_quadric((x, y, 0.0), (1.0, 1.0, 0.0), radius**2)
        return cls(SURFACE_CYLINDER_Z, name, boundary_condition, coeffs)

    @classmethod
    def Sphere(
        cls,
        name: str = "",
        center: Iterable[float] = [0.0, 0.0, 0.0],
        radius: float = 0.0,
        boundary_condition: str = "none",
    ):
        """
        Sphere of ``radius`` (cm) around ``center`` (x, y, z).
        """
        coeffs = _axial_quadric(center, (1.0, 1.0, 1.0), radius**2)
        return cls(SURFACE_SPHERE, name, boundary_condition, coeffs)

    @classmethod
    def ConeX(
        cls,
        name: str = "",
        apex: Iterable[float] = [0.0, 0.0, 0.0],
        R2: float = 1.0,
        boundary_condition: str = "none",
    ):
        """
        Double cone ``(y-y0)² + (z-z0)² = R2 (x-x0)²``.

        ``R2`` is the squared tangent of the half-opening angle.
        """
        coeffs = _axial_quadric(apex, (-R2, 1.0, 1.0), 0.0)
        return cls(SURFACE_CONE_X, name, boundary_condition, coeffs)

    @classmethod
    def ConeY(
        cls,
        name: str = "",
        apex: Iterable[float] = [0.0, 0.0, 0.0],
        R2: float = 1.0,
        boundary_condition: str = "none",
    ):
        coeffs = _axial_quadric(apex, (1.0, -R2, 1.0), 0.0)
        return cls(SURFACE_CONE_Y, name, boundary_condition, coeffs)

    @classmethod
    def ConeZ(
        cls,
        name: str = "",
        apex: Iterable[float] = [0.0, 0.0, 0.0],
        R2: float = 1.0,
        boundary_condition: str = "none",
    ):
        coeffs = _axial_quadric(apex, (1.0, 1.0, -R2), 0.0)
        return cls(SURFACE_CONE_Z, name, boundary_condition, coeffs)

    @classmethod
    def Quadric(
        cls,
        name: str = "",
        A: float = 0.0,
        B: float = 0.0,
        C: float = 0.0,
        D: float = 0.0,
        E: float = 0.0,
        F: float = 0.0,
        G: float = 0.0,
        H: float = 0.0,
        I: float = 0.0,
        J: float = 0.0,
        boundary_condition: str = "none",
    ):
        """
        General quadric from its ten coefficients.

        Only second-order terms make it curved; a quadric without them is
        still tracked with the general solver.
        """
        coeffs = [A, B, C, D, E, F, G, H, I, J]
        return cls(SURFACE_QUADRIC, name, boundary_condition, coeffs)

    # ==================================================================================
    # Box
    # ==================================================================================

    @classmethod
    def Box(
        cls,
        name: str = "",
        x: Iterable[float] = [-1.0, 1.0],
        y: Iterable[float] = [-1.0, 1.0],
        z: Iterable[float] = [-1.0, 1.0],
        boundary_condition: str = "none",
    ):
        """
        Axis-aligned box, negative inside.

        Parameters
        ----------
        name : str, optional
        x, y, z : (2,) array_like of float
            Lower and upper bounds along each axis (cm).
        boundary_condition : {"none","vacuum"}, optional
            Reflective and periodic boxes are not supported.
        """
        if BC_TYPES.get(boundary_condition) in (BC_REFLECTIVE, BC_PERIODIC):
            print_error("Box surface only supports 'none' and 'vacuum' boundaries")

        bounds = np.array([x[0], x[1], y[0], y[1], z[0], z[1]], dtype=float)
        if (bounds[1::2] <= bounds[0::2]).any():
            print_error(f"Box bounds have to be increasing, got {bounds.tolist()}")

        coeffs = np.zeros(10)
        coeffs[:6] = bounds
        return cls(SURFACE_BOX, name, boundary_condition, coeffs)

    # ==================================================================================
    # Periodic pairing
    # ==================================================================================

    def set_periodic(self, other):
        """
        Pair two parallel planes as a periodic boundary.

        A particle reaching one plane continues from the other, shifted by
        the translation between them, with its direction unchanged.
        """
        for surface in (self, other):
            if not surface.linear:
                print_error(f"Periodic surface {surface.name} has to be a plane")
        if np.linalg.norm(np.cross(self.normal, other.normal)) > 1e-12:
            print_error(f"Periodic surfaces {self.name} and {other.name} are not parallel")

        self.boundary_condition = BC_PERIODIC
        other.boundary_condition = BC_PERIODIC
        self.periodic_partner = other
        other.periodic_partner = self

    def periodic_translation(self):
        """
        Translation that maps a point on this plane onto its periodic partner.
        """
        other = self.periodic_partner
        sign = 1.0 if np.dot(self.normal, other.normal) > 0.0 else -1.0
        return (self.coeffs[9] - sign * other.coeffs[9]) * self.normal

    # ==================================================================================
    # Half-spaces
    # ==================================================================================

    def __pos__(self):
        return Region.make_halfspace(self, +1)

    def __neg__(self):
        return Region.make_halfspace(self, -1)


# ======================================================================================
# Helpers
# ======================================================================================


def _axial_quadric(center, weights, constant):
    """
    Coefficients of ``sum_k w_k (x_k - c_k)² - constant``.
    """
    coeffs = np.zeros(10)
    for k in range(3):
        w = weights[k]
        c = center[k]
        coeffs[k] = w
        coeffs[6 + k] = -2.0 * w * c
        coeffs[9] += w * c * c
    coeffs[9] -= constant
    return coeffs


def decode_type(type_):
    return TYPE_NAMES[type_]


def decode_BC_type(type_):
    for name, value in BC_TYPES.items():
        if value == type_:
            return name.capitalize()
