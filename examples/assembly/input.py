import numpy as np
import kcode


# =============================================================================
# Materials
# =============================================================================

energy_grid = np.array([1e-11, 6.25e-7, 20.0])

# Setter
def set_mat(capture, scatter, fission=None, nu=None):
    return kcode.MaterialMG(
        capture=np.array(capture),
        scatter=np.array(scatter),
        fission=None if fission is None else np.array(fission),
        nu=None if nu is None else np.array(nu),
        chi=None if fission is None else np.array([0.0, 1.0]),
        energy_grid=energy_grid,
    )

mat_uo2 = set_mat(
    [0.08544, 0.01275], [[0.3611, 0.0], [0.01779, 0.5256]], [0.1934, 0.004], [2.44, 2.44]
)
mat_mox = set_mat(
    [0.1102, 0.01380], [[0.3520, 0.0], [0.01701, 0.5012]], [0.2653, 0.0051], [2.86, 2.86]
)
mat_gt = set_mat([0.0144, 0.0003], [[1.3840, 0.0], [0.0471, 0.5580]])
mat_mod = set_mat([0.01913, 0.0004], [[1.4123, 0.0], [0.0494, 0.5515]])

# =============================================================================
# Pin cells
# =============================================================================

pitch = 1.26
radius = 0.54

cy = kcode.Surface.CylinderZ(center=[0.0, 0.0], radius=radius)

# Fuel pins
uo2 = kcode.Cell(-cy, mat_uo2)
mox = kcode.Cell(-cy, mat_mox)
mod_uo2 = kcode.Cell(+cy, mat_mod)
mod_mox = kcode.Cell(+cy, mat_mod)
fuel_uo2 = kcode.Universe(name="uo2 pin", cells=[uo2, mod_uo2])
fuel_mox = kcode.Universe(name="mox pin", cells=[mox, mod_mox])

# Guide tube
gt = kcode.Cell(-cy, mat_gt)
mod_gt = kcode.Cell(+cy, mat_mod)
guide_tube = kcode.Universe(name="guide tube", cells=[gt, mod_gt])

# =============================================================================
# Assembly lattice
# =============================================================================

u = fuel_uo2
m = fuel_mox
g = guide_tube
N = 5
lattice = kcode.Lattice(
    name="assembly",
    x=[-pitch * N / 2, pitch, N],
    y=[-pitch * N / 2, pitch, N],
    universes=[
        [m, m, m, m, m],
        [m, u, u, u, m],
        [m, u, g, u, m],
        [m, u, u, u, m],
        [m, m, m, m, m],
    ],
)

# Assembly box, reflective on the sides and vacuum on the top and bottom
half = pitch * N / 2
x1 = kcode.Surface.PlaneX(x=-half, boundary_condition="reflective")
x2 = kcode.Surface.PlaneX(x=half, boundary_condition="reflective")
y1 = kcode.Surface.PlaneY(y=-half, boundary_condition="reflective")
y2 = kcode.Surface.PlaneY(y=half, boundary_condition="reflective")
z1 = kcode.Surface.PlaneZ(z=-50.0, boundary_condition="vacuum")
z2 = kcode.Surface.PlaneZ(z=50.0, boundary_condition="vacuum")
assembly = kcode.Cell(+x1 & -x2 & +y1 & -y2 & +z1 & -z2, lattice, name="assembly")

# =============================================================================
# Source, tallies, settings, and run
# =============================================================================

kcode.Source(x=[-half, half], y=[-half, half], z=[-50.0, 50.0], energy=1.0)

kcode.TallyCell(name="uo2_fuel", cell=uo2, scores=["flux", "absorption"])
kcode.TallyCell(name="mox_fuel", cell=mox, scores=["flux", "absorption"])
kcode.TallyCell(name="guide_tube", cell=gt, scores=["flux"])

kcode.settings.N_particle = 5000
kcode.settings.output_name = "assembly"
kcode.settings.set_eigenmode(N_inactive=20, N_active=100)

kcode.run()
