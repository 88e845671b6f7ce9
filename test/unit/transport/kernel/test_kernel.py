import numpy as np
import pytest

####

import kcode
import kcode.transport.rng as rng

from kcode.constant import STATE_ABSORBED, STATE_ESCAPED, STATE_KILLED
from kcode.error import PhysicsSamplingError
from kcode.geometry.data import GeometryData
from kcode.physics.multigroup import MultigroupSampler
from kcode.transport.kernel import transport_one
from kcode.transport.particle import Particle, SourceSite
from kcode.transport.simulation import RunContext
from kcode.transport.technique import weight_roulette


def make_context():
    simulation = kcode.simulation
    return RunContext(
        simulation.settings,
        GeometryData(simulation),
        MultigroupSampler(simulation.materials),
        simulation.sources,
        simulation.tallies,
        simulation.weight_roulette,
    )


def site_at(x, y, z, ux, uy, uz, E=1.0):
    return SourceSite(x, y, z, ux, uy, uz, E, 1.0, 0, 0)


def test_void_sphere_escape():
    sphere = kcode.Surface.Sphere(radius=1.0, boundary_condition="vacuum")
    cell = kcode.Cell(-sphere)
    tally = kcode.TallyCell(cell=cell, scores=["flux", "collision"])

    ctx = make_context()
    worker = ctx.workers[0]
    particle = ctx.make_particle(site_at(0.0, 0.0, 0.0, 0.0, 1.0, 0.0), 0, 1)
    assert particle.cell_born == cell.ID

    assert transport_one(particle, ctx, worker) == STATE_ESCAPED
    assert particle.y == pytest.approx(1.0)
    assert worker.tally_bins[tally.ID][0, 0] == pytest.approx(1.0)
    assert worker.tally_bins[tally.ID][0, 1] == 0.0
    assert worker.sites == []


def test_absorption_scores():
    absorber = kcode.MaterialMG(capture=[5.0])
    sphere = kcode.Surface.Sphere(radius=100.0, boundary_condition="vacuum")
    cell = kcode.Cell(-sphere, absorber)
    tally = kcode.TallyCell(cell=cell, scores=["collision", "absorption"])

    ctx = make_context()
    worker = ctx.workers[0]
    particle = ctx.make_particle(site_at(0.0, 0.0, 0.0, 1.0, 0.0, 0.0), 0, 5)

    assert transport_one(particle, ctx, worker) == STATE_ABSORBED
    assert particle.n_collision == 1
    assert worker.tally_bins[tally.ID][0].tolist() == [1.0, 1.0]


def test_energy_filter():
    absorber = kcode.MaterialMG(capture=[5.0])
    sphere = kcode.Surface.Sphere(radius=100.0, boundary_condition="vacuum")
    cell = kcode.Cell(-sphere, absorber)
    tally = kcode.TallyCell(cell=cell, scores=["collision"], energy=[0.0, 1.0, 10.0])

    ctx = make_context()
    worker = ctx.workers[0]
    particle = ctx.make_particle(site_at(0.0, 0.0, 0.0, 1.0, 0.0, 0.0, E=2.0), 0, 5)
    transport_one(particle, ctx, worker)
    assert worker.tally_bins[tally.ID][:, 0].tolist() == [0.0, 1.0]


def test_fission_sites_are_banked_with_keys():
    fuel = kcode.MaterialMG(capture=[0.0], fission=[1.0], nu=[3.0])
    sphere = kcode.Surface.Sphere(radius=100.0, boundary_condition="vacuum")
    kcode.Cell(-sphere, fuel)

    ctx = make_context()
    worker = ctx.workers[0]
    particle = ctx.make_particle(site_at(0.0, 0.0, 0.0, 1.0, 0.0, 0.0), 17, 3)
    transport_one(particle, ctx, worker)

    assert len(worker.sites) == 3
    assert [site.history for site in worker.sites] == [17, 17, 17]
    assert [site.sequence for site in worker.sites] == [0, 1, 2]
    for site in worker.sites:
        assert (site.x, site.y, site.z) == pytest.approx(particle.last_xyz)


def test_gap_loses_particle():
    absorber = kcode.MaterialMG(capture=[1e-6])
    inner = kcode.Surface.Sphere(radius=1.0)
    middle = kcode.Surface.Sphere(radius=1.5)
    outer = kcode.Surface.Sphere(radius=2.0, boundary_condition="vacuum")
    kcode.Cell(-inner, absorber)
    kcode.Cell(+middle & -outer, absorber)

    ctx = make_context()
    worker = ctx.workers[0]
    particle = ctx.make_particle(site_at(0.0, 0.0, 0.0, 1.0, 0.0, 0.0), 4, 1)

    assert transport_one(particle, ctx, worker) == STATE_KILLED
    assert len(worker.lost) == 1
    assert worker.lost[0].particle_ID == 4


def test_weight_roulette_survival_rate():
    roulette = kcode.weight_roulette
    roulette(weight_threshold=0.25, weight_target=1.0)
    particle = Particle()
    survived = 0
    N = 5000
    for i in range(N):
        particle.reset(i, rng.split_seed(i, 1))
        particle.w = 0.2
        if weight_roulette(particle, roulette):
            survived += 1
            assert particle.w == 1.0
        else:
            assert not particle.alive
    assert survived / N == pytest.approx(0.2, abs=0.03)


def test_weight_roulette_above_threshold():
    particle = Particle()
    particle.reset(0, 1)
    particle.w = 0.5
    state = particle.rng_state.copy()
    assert weight_roulette(particle, kcode.weight_roulette)
    assert particle.w == 0.5
    assert np.array_equal(particle.rng_state, state)


def test_sampling_error_names_the_particle():
    fuel = kcode.MaterialMG(capture=[1.0, 1.0], energy_grid=[0.0, 1.0, 2.0])
    sphere = kcode.Surface.Sphere(radius=1.0, boundary_condition="vacuum")
    cell = kcode.Cell(-sphere, fuel)

    ctx = make_context()
    worker = ctx.workers[0]
    particle = ctx.make_particle(site_at(0.25, 0.0, 0.0, 1.0, 0.0, 0.0, E=5.0), 3, 1)

    with pytest.raises(PhysicsSamplingError) as error:
        transport_one(particle, ctx, worker)
    assert error.value.particle_ID == 3
    assert error.value.cell_ID == cell.ID
    assert error.value.xyz == pytest.approx((0.25, 0.0, 0.0))
    assert "[particle 3, cell" in str(error.value)
