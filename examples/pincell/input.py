import numpy as np
import kcode


# =============================================================================
# Set model
# =============================================================================

# Two-group cross-sections (fast, thermal); groups listed in increasing energy
energy_grid = np.array([1e-11, 6.25e-7, 20.0])

fuel = kcode.MaterialMG(
    name="fuel",
    capture=np.array([0.08544, 0.01275]),
    scatter=np.array([[0.3611, 0.0], [0.01779, 0.5256]]),
    fission=np.array([0.1934, 0.004]),
    nu=np.array([2.44, 2.44]),
    chi=np.array([0.0, 1.0]),
    energy_grid=energy_grid,
)

water = kcode.MaterialMG(
    name="water",
    capture=np.array([0.01913, 0.0004]),
    scatter=np.array([[1.4123, 0.0], [0.0494, 0.5515]]),
    energy_grid=energy_grid,
)

# Set surfaces
cy = kcode.Surface.CylinderZ(center=[0.0, 0.0], radius=0.45720)
pitch = 1.25984
x1 = kcode.Surface.PlaneX(x=-pitch / 2, boundary_condition="reflective")
x2 = kcode.Surface.PlaneX(x=pitch / 2, boundary_condition="reflective")
y1 = kcode.Surface.PlaneY(y=-pitch / 2, boundary_condition="reflective")
y2 = kcode.Surface.PlaneY(y=pitch / 2, boundary_condition="reflective")

# Set cells
fuel_cell = kcode.Cell(region=-cy & +x1 & -x2 & +y1 & -y2, fill=fuel, name="fuel")
kcode.Cell(region=+cy & +x1 & -x2 & +y1 & -y2, fill=water, name="water")

# =============================================================================
# Set source
# =============================================================================

kcode.Source(
    x=[-pitch / 2, pitch / 2],
    y=[-pitch / 2, pitch / 2],
    energy=1.0,
)

# =============================================================================
# Set tallies, settings, and run kcode
# =============================================================================

# Tallies
kcode.TallyCell(
    name="fuel",
    cell=fuel_cell,
    scores=["flux", "absorption"],
    energy=energy_grid,
)

# Settings
kcode.settings.N_particle = 1000
kcode.settings.output_name = "pincell"
kcode.settings.set_eigenmode(N_inactive=10, N_active=50, gyration_radius="infinite-z")

# Run
kcode.run()
