import math
import numpy as np
import pytest

####

import kcode
import kcode.transport.rng as rng

from kcode.constant import INF, REACTION_CAPTURE, REACTION_FISSION, REACTION_SCATTER
from kcode.error import PhysicsSamplingError
from kcode.physics.multigroup import MultigroupSampler
from kcode.physics.util import find_group, group_energy


U = (1.0, 0.0, 0.0)


@pytest.fixture
def state():
    return rng.make_state(rng.split_seed(12, 34))


@pytest.fixture
def absorber():
    return kcode.MaterialMG(capture=[2.0])


@pytest.fixture
def scatterer():
    return kcode.MaterialMG(capture=[0.0], scatter=[[1.0]])


@pytest.fixture
def fuel():
    return kcode.MaterialMG(capture=[0.5], scatter=[[0.5]], fission=[1.0], nu=[2.0])


@pytest.fixture
def two_group():
    return kcode.MaterialMG(
        capture=[0.1, 0.2],
        scatter=[[0.5, 0.3], [0.0, 0.4]],
        fission=[0.2, 0.0],
        nu=[2.5, 0.0],
        chi=[0.0, 1.0],
        energy_grid=[0.0, 1e-6, 20.0],
    )


def test_distance_void_and_mean(absorber, state):
    sampler = MultigroupSampler([absorber])
    assert sampler.sample_distance(-1, 1.0, state) == INF

    distances = [sampler.sample_distance(0, 1.0, state) for _ in range(4000)]
    assert np.mean(distances) == pytest.approx(0.5, rel=0.1)


def test_pure_absorber(absorber, state):
    sampler = MultigroupSampler([absorber])
    outcome = sampler.sample_collision(0, 1.0, U, 1.0, 1.0, state)
    assert outcome.absorbed
    assert outcome.reaction == REACTION_CAPTURE
    assert outcome.sites == ()


def test_pure_scatterer(scatterer, state):
    sampler = MultigroupSampler([scatterer])
    for _ in range(50):
        outcome = sampler.sample_collision(0, 1.0, U, 1.0, 1.0, state)
        assert not outcome.absorbed
        assert outcome.reaction == REACTION_SCATTER
        assert outcome.E == 1.0
        norm = math.sqrt(outcome.ux**2 + outcome.uy**2 + outcome.uz**2)
        assert norm == pytest.approx(1.0)


def test_fission_yield(fuel, state):
    sampler = MultigroupSampler([fuel])
    N = 4000
    n_sites = 0
    n_fission = 0
    for _ in range(N):
        outcome = sampler.sample_collision(0, 1.0, U, 1.0, 1.0, state)
        n_sites += len(outcome.sites)
        assert outcome.n_fission == len(outcome.sites)
        n_fission += outcome.reaction == REACTION_FISSION
    # nu SigmaF / SigmaT = 1
    assert n_sites / N == pytest.approx(1.0, rel=0.05)
    assert n_fission / N == pytest.approx(0.5, rel=0.1)


def test_fission_yield_divided_by_k(fuel, state):
    sampler = MultigroupSampler([fuel])
    # Expected yield 0.5: either 0 or 1 site
    counts = {len(sampler.sample_collision(0, 1.0, U, 1.0, 2.0, state).sites) for _ in range(200)}
    assert counts == {0, 1}


def test_implicit_capture(fuel, state):
    sampler = MultigroupSampler([fuel], implicit_capture=True)
    outcome = sampler.sample_collision(0, 1.0, U, 1.0, 1.0, state)
    assert not outcome.absorbed
    assert outcome.weight_factor == pytest.approx(0.5 / 2.0)


def test_two_group_energies(two_group, state):
    sampler = MultigroupSampler([two_group])
    fast = group_energy(1, two_group.energy_grid)
    thermal = group_energy(0, two_group.energy_grid)
    for _ in range(200):
        outcome = sampler.sample_collision(0, fast, U, 1.0, 1.0, state)
        for site in outcome.sites:
            assert site.E == fast
        if not outcome.absorbed:
            assert outcome.E in (fast, thermal)
    # Thermal neutrons never up-scatter
    for _ in range(200):
        outcome = sampler.sample_collision(0, thermal, U, 1.0, 1.0, state)
        if not outcome.absorbed:
            assert outcome.E == thermal


def test_find_group(two_group):
    grid = two_group.energy_grid
    assert find_group(0.0, grid) == 0
    assert find_group(1e-6, grid) == 1
    assert find_group(20.0, grid) == 1
    assert find_group(21.0, grid) == -1


def test_energy_outside_groups(two_group, state):
    sampler = MultigroupSampler([two_group])
    with pytest.raises(PhysicsSamplingError):
        sampler.sample_distance(0, 100.0, state)
    with pytest.raises(PhysicsSamplingError):
        sampler.sample_collision(0, -1.0, U, 1.0, 1.0, state)


def test_collision_in_void(absorber, state):
    sampler = MultigroupSampler([absorber])
    with pytest.raises(PhysicsSamplingError):
        sampler.sample_collision(-1, 1.0, U, 1.0, 1.0, state)


def test_non_positive_k(fuel, state):
    sampler = MultigroupSampler([fuel])
    with pytest.raises(PhysicsSamplingError):
        sampler.sample_collision(0, 1.0, U, 1.0, 0.0, state)


def test_zero_total_collision(state):
    empty = kcode.MaterialMG(capture=[0.0])
    sampler = MultigroupSampler([empty])
    assert sampler.sample_distance(0, 1.0, state) == INF
    with pytest.raises(PhysicsSamplingError):
        sampler.sample_collision(0, 1.0, U, 1.0, 1.0, state)


def test_combined_form(fuel):
    sampler = MultigroupSampler([fuel])
    a = rng.make_state(99)
    b = rng.make_state(99)
    distance, outcome = sampler.sample_distance_and_outcome(0, 1.0, U, 1.0, 1.0, a)
    assert distance == sampler.sample_distance(0, 1.0, b)
    assert outcome == sampler.sample_collision(0, 1.0, U, 1.0, 1.0, b)
