import math
import numpy as np

####

import kcode.transport.rng as rng

from kcode.constant import (
    INF,
    PI,
    REACTION_CAPTURE,
    REACTION_FISSION,
    REACTION_SCATTER,
)
from kcode.error import PhysicsSamplingError
from kcode.physics.interface import CollisionOutcome, FissionNeutron, ReactionSampler
from kcode.physics.util import find_group, group_energy, scatter_direction
from kcode.transport.distribution import sample_discrete, sample_isotropic_direction


# ======================================================================================
# Multigroup reaction sampler
# ======================================================================================


class MultigroupSampler(ReactionSampler):
    """
    Reaction sampler over :class:`MaterialMG` cross-sections.

    The particle energy selects the group. Under implicit capture the
    collision always scatters and the weight is reduced by ``Σs/Σt``;
    otherwise the particle scatters with probability ``Σs/Σt`` and is
    absorbed otherwise. Fission neutrons are produced at every collision in a
    fissionable material with the expected count ``w νΣf / (Σt k)``.
    """

    def __init__(self, materials, implicit_capture=False):
        self.materials = list(materials)
        self.implicit_capture = implicit_capture

        # Cumulative spectra for discrete sampling
        self._chi_s_cdf = []
        self._chi_f_cdf = []
        for material in self.materials:
            self._check_material(material)
            self._chi_s_cdf.append(
                np.concatenate(
                    (np.zeros((material.G, 1)), np.cumsum(material.mgxs_chi_s, 1)), 1
                )
            )
            self._chi_f_cdf.append(
                np.concatenate(([0.0], np.cumsum(material.mgxs_chi_f)))
            )

    def _check_material(self, material):
        if (material.mgxs_total < 0.0).any():
            raise PhysicsSamplingError(
                f"Material {material.name} has a negative total cross-section"
            )
        if material.fissionable and material.mgxs_chi_f.sum() <= 0.0:
            raise PhysicsSamplingError(
                f"Material {material.name} is fissionable but has no fission spectrum"
            )

    def _get_group(self, material, E):
        g = find_group(E, material.energy_grid)
        if g == -1:
            raise PhysicsSamplingError(
                f"Energy {E} MeV is outside the group structure of material "
                f"{material.name} {material.energy_grid.tolist()}"
            )
        return g

    def sample_distance(self, material_ID, E, rng_state):
        # Void
        if material_ID < 0:
            return INF

        material = self.materials[material_ID]
        g = self._get_group(material, E)
        SigmaT = material.mgxs_total[g]
        if SigmaT == 0.0:
            return INF

        xi = rng.lcg(rng_state)
        return -math.log(xi) / SigmaT

    def sample_collision(self, material_ID, E, u, w, k_eff, rng_state):
        if material_ID < 0:
            raise PhysicsSamplingError("Collision sampled in a void cell")

        material = self.materials[material_ID]
        g = self._get_group(material, E)
        SigmaT = material.mgxs_total[g]
        SigmaS = material.mgxs_scatter[g]
        SigmaF = material.mgxs_fission[g]
        if SigmaT <= 0.0:
            raise PhysicsSamplingError(
                f"Collision in material {material.name} with zero total cross-section"
            )
        if k_eff <= 0.0:
            raise PhysicsSamplingError(f"Non-positive eigenvalue {k_eff}")

        # Fission neutrons
        sites = []
        if material.fissionable and SigmaF > 0.0:
            nu_SigmaF = material.mgxs_nu_f[g] * SigmaF
            N = int(math.floor(w * nu_SigmaF / (SigmaT * k_eff) + rng.lcg(rng_state)))
            chi_cdf = self._chi_f_cdf[material_ID]
            for n in range(N):
                ux_new, uy_new, uz_new = sample_isotropic_direction(rng_state)
                g_out = sample_discrete(chi_cdf, rng_state)
                E_new = group_energy(g_out, material.energy_grid)
                sites.append(FissionNeutron(ux_new, uy_new, uz_new, E_new, 1.0))

        # Reaction
        weight_factor = 1.0
        if self.implicit_capture:
            if SigmaS == 0.0:
                return CollisionOutcome(
                    REACTION_CAPTURE, E, *u, 0.0, True, len(sites), tuple(sites)
                )
            weight_factor = SigmaS / SigmaT
        else:
            xi = rng.lcg(rng_state) * SigmaT
            if xi >= SigmaS:
                reaction = REACTION_FISSION if xi < SigmaS + SigmaF else REACTION_CAPTURE
                return CollisionOutcome(
                    reaction, E, *u, 1.0, True, len(sites), tuple(sites)
                )

        # Scattering
        ux, uy, uz = u
        mu0 = 2.0 * rng.lcg(rng_state) - 1.0
        azi = 2.0 * PI * rng.lcg(rng_state)
        ux_new, uy_new, uz_new = scatter_direction(ux, uy, uz, mu0, azi)
        norm = math.sqrt(ux_new**2 + uy_new**2 + uz_new**2)

        g_out = sample_discrete(self._chi_s_cdf[material_ID][g], rng_state)
        if g_out == g:
            E_new = E
        else:
            E_new = group_energy(g_out, material.energy_grid)

        return CollisionOutcome(
            REACTION_SCATTER,
            E_new,
            ux_new / norm,
            uy_new / norm,
            uz_new / norm,
            weight_factor,
            False,
            len(sites),
            tuple(sites),
        )
