from kcode.transport.util import floor_index


def test_interior():
    assert floor_index(0.5, 0.0, 1.0, 1.0) == 0
    assert floor_index(2.7, 0.0, 1.0, -1.0) == 2
    assert floor_index(-0.5, 0.0, 1.0, 1.0) == -1


def test_offset_origin_and_pitch():
    assert floor_index(-1.5, -2.0, 1.0, 1.0) == 0
    assert floor_index(1.1, -2.0, 2.0, 1.0) == 1


def test_grid_line_follows_direction():
    assert floor_index(1.0, 0.0, 1.0, 1.0) == 1
    assert floor_index(1.0, 0.0, 1.0, -1.0) == 0


def test_grid_line_zero_direction_goes_lower():
    assert floor_index(2.0, 0.0, 1.0, 0.0) == 1


def test_near_grid_line_snaps():
    assert floor_index(1.0 - 1e-13, 0.0, 1.0, 1.0) == 1
    assert floor_index(1.0 + 1e-13, 0.0, 1.0, -1.0) == 0
