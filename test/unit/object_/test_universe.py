import numpy as np
import pytest

####

import kcode


@pytest.fixture
def universes():
    return [kcode.Universe(cells=[kcode.Cell()]) for _ in range(3)]


def test_dense_1d(universes):
    u0, u1, u2 = universes
    lattice = kcode.Lattice(x=(0.0, 1.0, 3), universes=[u0, u1, u2])
    assert lattice.universe_IDs.shape == (3, 1, 1)
    assert lattice.universe_IDs[:, 0, 0].tolist() == [u0.ID, u1.ID, u2.ID]


def test_dense_2d_rows_top_to_bottom(universes):
    u0, u1, u2 = universes
    lattice = kcode.Lattice(
        x=(0.0, 1.0, 2),
        y=(0.0, 1.0, 2),
        universes=[
            [u0, u1],
            [u2, u0],
        ],
    )
    assert lattice.universe_IDs.shape == (2, 2, 1)
    # Bottom row is listed last
    assert lattice.get_universe_ID(0, 0) == u2.ID
    assert lattice.get_universe_ID(1, 0) == u0.ID
    assert lattice.get_universe_ID(0, 1) == u0.ID
    assert lattice.get_universe_ID(1, 1) == u1.ID


def test_sparse_with_default(universes):
    u0, u1, u2 = universes
    lattice = kcode.Lattice(
        x=(0.0, 1.0, 3),
        y=(0.0, 1.0, 2),
        universes={(0, 0): u1, (2, 1): u2},
        default=u0,
    )
    IDs = lattice.universe_IDs[:, :, 0]
    expected = np.full((3, 2), u0.ID)
    expected[0, 0] = u1.ID
    expected[2, 1] = u2.ID
    assert np.array_equal(IDs, expected)


def test_sparse_without_default_exits(universes):
    with pytest.raises(SystemExit):
        kcode.Lattice(x=(0.0, 1.0, 2), universes={(0,): universes[0]})


def test_root_universe_explicit_cells():
    inner = kcode.Cell()
    outer = kcode.Cell()
    kcode.simulation.set_root_universe(cells=[outer])

    from kcode.geometry.data import fill_root_universe

    fill_root_universe(kcode.simulation)
    root = kcode.simulation.universes[0]
    assert root.cells == [outer]
    assert inner.universe is None


def test_root_universe_collects_free_cells(universes):
    free = kcode.Cell()

    from kcode.geometry.data import fill_root_universe

    fill_root_universe(kcode.simulation)
    root = kcode.simulation.universes[0]
    assert free in root.cells
    assert all(cell not in root.cells for u in universes for cell in u.cells)
