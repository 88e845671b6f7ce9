import numpy as np
import pytest

from mpi4py import MPI

####

import kcode.transport.particle_bank as particle_bank

from kcode.error import BankError
from kcode.transport.particle import SourceSite, get_site, make_bank

from numba import uint64


def site(history, sequence, w=1.0, x=0.0):
    return SourceSite(x, 0.0, 0.0, 1.0, 0.0, 0.0, 1.0, w, history, sequence)


@pytest.fixture
def comm():
    return MPI.COMM_SELF


@pytest.fixture
def sites():
    rng = np.random.default_rng(11)
    result = []
    for history in rng.permutation(40):
        for sequence in range(int(history) % 3):
            result.append(site(int(history), sequence, w=1.0 + 0.1 * sequence))
    return result


def test_sort_bank(sites):
    bank = particle_bank.sort_bank(make_bank(sites))
    keys = list(zip(bank["history"].tolist(), bank["sequence"].tolist()))
    assert keys == sorted(keys)


def test_get_site_round_trip():
    original = site(3, 2, w=0.5, x=1.25)
    bank = make_bank([original])
    assert get_site(bank, 0) == original


@pytest.mark.parametrize("N", [1, 10, 37, 100])
def test_exact_count(sites, comm, N):
    bank = particle_bank.synchronize_bank(sites, N, uint64(9), comm)
    assert len(bank) == N
    assert (bank["w"] == 1.0).all()


def test_comb_is_reproducible_and_order_free(sites, comm):
    shuffled = list(reversed(sites))
    a = particle_bank.synchronize_bank(sites, 25, uint64(4), comm)
    b = particle_bank.synchronize_bank(shuffled, 25, uint64(4), comm)
    assert np.array_equal(a, b)


def test_comb_follows_weight(comm):
    # A site carrying nearly all the weight takes nearly all the teeth
    sites = [site(0, 0, w=99.0, x=1.0), site(1, 0, w=1.0, x=2.0)]
    bank = particle_bank.synchronize_bank(sites, 100, uint64(1), comm)
    assert np.count_nonzero(bank["x"] == 1.0) == 99
    assert np.count_nonzero(bank["x"] == 2.0) == 1


def test_empty_bank_raises(comm):
    with pytest.raises(BankError):
        particle_bank.synchronize_bank([], 10, uint64(1), comm)


def test_zero_weight_raises(comm):
    with pytest.raises(BankError):
        particle_bank.synchronize_bank([site(0, 0, w=0.0)], 10, uint64(1), comm)


def test_bank_scanning(sites, comm):
    bank = make_bank(sites)
    idx_start, N_local, N_global = particle_bank.bank_scanning(bank, comm)
    assert idx_start == 0
    assert N_local == N_global == len(sites)


class SplitComm:
    """Stand-in communicator whose allgather hands back a fixed split."""

    def __init__(self, chunks):
        self.chunks = chunks

    def allgather(self, value):
        return self.chunks


def test_total_weight_independent_of_rank_split():
    rng = np.random.default_rng(5)
    bank = make_bank(
        [site(i, 0, w=w) for i, w in enumerate(rng.uniform(0.1, 3.0, 101))]
    )

    expected = 0.0
    for w in bank["w"]:
        expected += w

    single = particle_bank.total_weight(bank, MPI.COMM_SELF)
    assert single == expected
    for cut in [1, 37, 64, 100]:
        comm = SplitComm([bank["w"][:cut], bank["w"][cut:]])
        assert particle_bank.total_weight(bank, comm) == single


def test_total_weight_empty_bank(comm):
    assert particle_bank.total_weight(make_bank([]), comm) == 0.0
