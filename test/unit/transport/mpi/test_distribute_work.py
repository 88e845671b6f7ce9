import pytest

####

from kcode.transport.mpi import distribute_work, work_starts


@pytest.mark.parametrize("N_work, size", [(10, 1), (10, 3), (7, 7), (3, 5), (1000, 6)])
def test_contiguous_cover(N_work, size):
    next_start = 0
    for rank in range(size):
        start, count = distribute_work(N_work, size, rank)
        assert start == next_start
        next_start = start + count
    assert next_start == N_work


def test_remainder_goes_first():
    assert [distribute_work(10, 3, r) for r in range(3)] == [(0, 4), (4, 3), (7, 3)]


def test_work_starts():
    assert work_starts(10, 3) == [0, 4, 7]
    assert work_starts(2, 4) == [0, 1, 2, 2]
