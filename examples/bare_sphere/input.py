import kcode


# =============================================================================
# Set model
# =============================================================================

# One-group fuel
fuel = kcode.MaterialMG(
    capture=[0.019584],
    scatter=[[0.225216]],
    fission=[0.081600],
    nu=[2.84],
)

# Bare sphere at its one-group critical radius
sphere = kcode.Surface.Sphere(
    center=[0.0, 0.0, 0.0], radius=6.082547, boundary_condition="vacuum"
)
core = kcode.Cell(region=-sphere, fill=fuel)

# =============================================================================
# Set source, tallies, settings, and run kcode
# =============================================================================

kcode.Source(position=[0.0, 0.0, 0.0], energy=1.0)

kcode.TallyCell(cell=core, scores=["flux", "collision", "absorption"])

kcode.settings.N_particle = 2000
kcode.settings.N_worker = 4
kcode.settings.output_name = "bare_sphere"
kcode.settings.set_eigenmode(N_inactive=20, N_active=80, gyration_radius="all")

result = kcode.run()
