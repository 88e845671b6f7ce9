import numpy as np
import pytest

####

import kcode

from kcode.error import GeometryError
from kcode.transport.particle import SourceSite


def infinite_medium(nu=1.5):
    """Reflective cube of a one-group fuel with k-infinity nu SigmaF / SigmaA."""
    fuel = kcode.MaterialMG(capture=[0.5], scatter=[[0.5]], fission=[1.0], nu=[nu])
    planes = [
        kcode.Surface.PlaneX(x=-1.0, boundary_condition="reflective"),
        kcode.Surface.PlaneX(x=1.0, boundary_condition="reflective"),
        kcode.Surface.PlaneY(y=-1.0, boundary_condition="reflective"),
        kcode.Surface.PlaneY(y=1.0, boundary_condition="reflective"),
        kcode.Surface.PlaneZ(z=-1.0, boundary_condition="reflective"),
        kcode.Surface.PlaneZ(z=1.0, boundary_condition="reflective"),
    ]
    region = +planes[0] & -planes[1] & +planes[2] & -planes[3] & +planes[4] & -planes[5]
    cell = kcode.Cell(region, fuel)
    kcode.TallyCell(cell=cell, scores=["flux", "collision", "absorption"])
    return cell


def configure(N_particle=200, N_inactive=2, N_active=4, N_worker=1):
    kcode.settings.N_particle = N_particle
    kcode.settings.set_eigenmode(N_inactive=N_inactive, N_active=N_active)
    kcode.settings.N_worker = N_worker


def test_infinite_medium_k():
    infinite_medium(nu=1.5)
    configure(N_particle=400)
    result = kcode.run()

    assert result.k_eff == pytest.approx(1.0, abs=0.1)
    assert result.k_cycle.shape == (6,)
    assert result.k_std >= 0.0
    assert result.n_lost == 0


def test_infinite_medium_tally_balance():
    # Per source particle: collisions = SigmaT * flux, absorptions = SigmaA * flux
    infinite_medium()
    configure(N_particle=300)
    result = kcode.run()

    mean, sdev = next(iter(result.tallies.values()))
    flux, collision, absorption = mean[0]
    assert collision == pytest.approx(2.0 * flux, rel=0.1)
    assert absorption == pytest.approx(1.5 * flux, rel=0.1)
    assert (sdev >= 0.0).all()


def test_worker_count_reproducibility():
    infinite_medium()
    configure(N_particle=90, N_worker=1)
    serial = kcode.run()

    configure(N_particle=90, N_worker=3)
    threaded = kcode.run()

    assert np.array_equal(serial.k_cycle, threaded.k_cycle)
    for name, (mean, sdev) in serial.tallies.items():
        mean_threaded, sdev_threaded = threaded.tallies[name]
        assert mean_threaded == pytest.approx(mean, rel=1e-10)
        assert sdev_threaded == pytest.approx(sdev, rel=1e-8, abs=1e-12)


def test_repeated_runs_match():
    infinite_medium()
    configure(N_particle=50)
    first = kcode.run()
    second = kcode.run()
    assert np.array_equal(first.k_cycle, second.k_cycle)


def test_run_arguments_in_cycle_order():
    infinite_medium()
    configure(N_particle=10, N_inactive=5, N_active=5)
    result = kcode.run(1, 2, 30)

    assert kcode.settings.N_inactive == 1
    assert kcode.settings.N_active == 2
    assert kcode.settings.N_particle == 30
    assert result.k_cycle.shape == (3,)


def test_seed_changes_histories():
    infinite_medium()
    configure(N_particle=50)
    first = kcode.run()
    kcode.settings.rng_seed = 2
    second = kcode.run()
    assert not np.array_equal(first.k_cycle, second.k_cycle)


def test_gyration_radius():
    infinite_medium()
    configure(N_particle=100)
    kcode.settings.set_eigenmode(N_inactive=1, N_active=2, gyration_radius="all")
    result = kcode.run()
    assert result.gyration_radius.shape == (3,)
    # Sites fill the cube of half-width 1
    assert ((result.gyration_radius > 0.0) & (result.gyration_radius < np.sqrt(3.0))).all()


def test_too_many_lost_particles():
    fuel = kcode.MaterialMG(capture=[0.1], fission=[0.1], nu=[2.0])
    inner = kcode.Surface.Sphere(radius=0.5)
    middle = kcode.Surface.Sphere(radius=1.5)
    outer = kcode.Surface.Sphere(radius=2.0, boundary_condition="vacuum")
    kcode.Cell(-inner, fuel)
    kcode.Cell(+middle & -outer, fuel)
    configure(N_particle=100)
    kcode.settings.max_lost_particles = 5

    with pytest.raises(GeometryError):
        kcode.run()


def test_birth_outside_geometry():
    infinite_medium()
    configure()
    ctx = kcode.prepare()
    site = SourceSite(5.0, 0.0, 0.0, 1.0, 0.0, 0.0, 1.0, 1.0, 0, 0)
    with pytest.raises(GeometryError):
        ctx.make_particle(site, 0, 1)


def test_default_source_is_added():
    infinite_medium()
    configure()
    assert kcode.simulation.sources == []
    ctx = kcode.prepare()
    assert len(ctx.sources) == 1
    assert ctx.sources[0].probability == 1.0


def test_source_probabilities_normalized():
    infinite_medium()
    configure()
    kcode.Source(position=[0.5, 0.0, 0.0], probability=3.0)
    kcode.Source(x=[-1.0, 1.0], y=[-1.0, 1.0], z=[-1.0, 1.0], energy=2.0)
    ctx = kcode.prepare()
    assert [source.probability for source in ctx.sources] == pytest.approx([0.75, 0.25])


def test_external_source_sampling_reproducible():
    infinite_medium()
    configure()
    kcode.Source(x=[-1.0, 1.0], y=[-1.0, 1.0], z=[-1.0, 1.0], energy=2.0)
    ctx = kcode.prepare()
    a = ctx.make_particle(None, 3, 77)
    position = (float(a.x), float(a.y), float(a.z))
    b = ctx.make_particle(None, 3, 77)
    assert (float(b.x), float(b.y), float(b.z)) == position
    assert b.E == 2.0
    assert all(abs(value) <= 1.0 for value in position)
