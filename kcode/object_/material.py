import numpy as np

from numpy import float64
from numpy.typing import NDArray
from types import NoneType
from typing import Annotated

####

from kcode.constant import INF
from kcode.object_.base import ObjectNonSingleton
from kcode.print_ import print_1d_array, print_error

# ======================================================================================
# Multigroup material
# ======================================================================================


class MaterialMG(ObjectNonSingleton):
    """
    Multigroup macroscopic cross-section set.

    Groups are numbered in increasing energy: group ``g`` spans
    ``[energy_grid[g], energy_grid[g+1])`` in MeV.

    Parameters
    ----------
    name : str, optional
    capture : (G,) array_like
        Capture cross-section (/cm).
    scatter : (G, G) array_like
        Scattering matrix laid out ``[g_out, g_in]`` (/cm).
    fission : (G,) array_like
        Fission cross-section (/cm).
    nu : (G,) array_like
        Neutrons released per fission.
    chi : (G,) array_like
        Fission spectrum; normalized on construction.
    energy_grid : (G+1,) array_like, optional
        Group edges (MeV). May be omitted for a one-group material, which then
        accepts any energy.
    """

    label: str = "multigroup_material"
    #
    name: str
    G: int
    energy_grid: Annotated[NDArray[float64], ("G+1",)]
    mgxs_capture: Annotated[NDArray[float64], ("G",)]
    mgxs_scatter: Annotated[NDArray[float64], ("G",)]
    mgxs_fission: Annotated[NDArray[float64], ("G",)]
    mgxs_total: Annotated[NDArray[float64], ("G",)]
    mgxs_nu_f: Annotated[NDArray[float64], ("G",)]
    mgxs_chi_s: Annotated[NDArray[float64], ("G", "G")]
    mgxs_chi_f: Annotated[NDArray[float64], ("G",)]
    fissionable: bool

    def __init__(
        self,
        name: str = "",
        capture: NDArray[float64] | NoneType = None,
        scatter: NDArray[float64] | NoneType = None,
        fission: NDArray[float64] | NoneType = None,
        nu: NDArray[float64] | NoneType = None,
        chi: NDArray[float64] | NoneType = None,
        energy_grid: NDArray[float64] | NoneType = None,
    ):
        super().__init__()

        # Set name
        if name != "":
            self.name = name
        else:
            self.name = f"{self.label}_{self.ID}"

        # Energy group size
        if capture is not None:
            G = len(capture)
        elif scatter is not None:
            G = len(scatter)
        elif fission is not None:
            G = len(fission)
        else:
            print_error("Need to supply capture, scatter, or fission for MaterialMG")
        self.G = G

        # Group structure
        if energy_grid is None:
            if G > 1:
                print_error(f"Material {self.name}: energy_grid is needed for G > 1")
            energy_grid = np.array([0.0, INF])
        energy_grid = np.array(energy_grid, dtype=float)
        if len(energy_grid) != G + 1 or (np.diff(energy_grid) <= 0.0).any():
            print_error(
                f"Material {self.name}: energy_grid has to be {G + 1} increasing edges"
            )
        self.energy_grid = energy_grid

        # Allocate the attributes
        self.mgxs_capture = np.zeros(G)
        self.mgxs_scatter = np.zeros(G)
        self.mgxs_fission = np.zeros(G)
        self.mgxs_nu_f = np.zeros(G)
        self.mgxs_chi_s = np.zeros([G, G])
        self.mgxs_chi_f = np.zeros(G)
        self.fissionable = False

        # Cross-sections (vector of size G)
        if capture is not None:
            self.mgxs_capture = self._check_vector(capture, G, "capture")
        if scatter is not None:
            scatter = np.array(scatter, dtype=float)
            if scatter.shape != (G, G) or (scatter < 0.0).any():
                print_error(f"Material {self.name}: scatter has to be a nonnegative (G, G) matrix")
            self.mgxs_scatter = np.sum(scatter, 0)

            # Outgoing group probabilities [g_in, g_out]
            for g in range(G):
                if self.mgxs_scatter[g] > 0.0:
                    self.mgxs_chi_s[g, :] = scatter[:, g] / self.mgxs_scatter[g]
        if fission is not None:
            self.mgxs_fission = self._check_vector(fission, G, "fission")
            self.fissionable = bool((self.mgxs_fission > 0.0).any())
        self.mgxs_total = self.mgxs_capture + self.mgxs_scatter + self.mgxs_fission

        # Fission production
        if nu is not None:
            self.mgxs_nu_f = self._check_vector(nu, G, "nu")
        if chi is not None:
            chi = self._check_vector(chi, G, "chi")
            if chi.sum() <= 0.0:
                print_error(f"Material {self.name}: chi has to have a positive sum")
            self.mgxs_chi_f = chi / chi.sum()
        elif self.fissionable:
            if G > 1:
                print_error(f"Material {self.name}: chi is needed for fissionable G > 1")
            self.mgxs_chi_f = np.ones(1)

    def _check_vector(self, value, G, tag):
        value = np.array(value, dtype=float)
        if value.shape != (G,) or (value < 0.0).any():
            print_error(f"Material {self.name}: {tag} has to be a nonnegative vector of size {G}")
        return value

    def __repr__(self):
        text = "\n"
        text += f"Multigroup material\n"
        text += f"  - ID: {self.ID}\n"
        text += f"  - Name: {self.name}\n"
        text += f"  - Groups: {self.G}\n"
        text += f"  - Energy grid {print_1d_array(self.energy_grid)}\n"
        text += f"  - Total {print_1d_array(self.mgxs_total)}\n"
        text += f"  - Capture {print_1d_array(self.mgxs_capture)}\n"
        text += f"  - Scatter {print_1d_array(self.mgxs_scatter)}\n"
        text += f"  - Fission {print_1d_array(self.mgxs_fission)}\n"
        text += f"  - nu {print_1d_array(self.mgxs_nu_f)}\n"
        return text
