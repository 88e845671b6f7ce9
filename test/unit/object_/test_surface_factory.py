import numpy as np
import pytest

####

import kcode

from kcode.constant import BC_PERIODIC, BC_VACUUM


def test_axis_planes():
    plane = kcode.Surface.PlaneY(y=-2.5, boundary_condition="vacuum")
    assert plane.linear
    assert plane.boundary_condition == BC_VACUUM
    assert plane.coefficients.tolist() == [0, 0, 0, 0, 0, 0, 0, 1, 0, 2.5]
    assert plane.normal.tolist() == [0.0, 1.0, 0.0]


def test_general_plane_is_normalized():
    plane = kcode.Surface.Plane(B=3.0, C=4.0, D=10.0)
    assert plane.coefficients[6:] == pytest.approx([0.0, 0.6, 0.8, 2.0])
    assert plane.normal == pytest.approx([0.0, 0.6, 0.8])


def test_cylinder_x():
    cylinder = kcode.Surface.CylinderX(center=[1.0, -2.0], radius=3.0)
    assert not cylinder.linear
    A, B, C, D, E, F, G, H, I, J = cylinder.coefficients
    assert (A, B, C) == (0.0, 1.0, 1.0)
    assert (G, H, I, J) == (0.0, -2.0, 4.0, -4.0)


def test_cylinder_y():
    A, B, C, D, E, F, G, H, I, J = kcode.Surface.CylinderY(
        center=[2.0, 0.0], radius=1.0
    ).coefficients
    assert (A, B, C) == (1.0, 0.0, 1.0)
    assert (G, H, I, J) == (-4.0, 0.0, 0.0, 3.0)


def test_cone_z():
    cone = kcode.Surface.ConeZ(apex=[1.0, 2.0, 3.0], R2=0.25)
    A, B, C, D, E, F, G, H, I, J = cone.coefficients
    assert (A, B, C) == (1.0, 1.0, -0.25)
    assert (G, H, I, J) == pytest.approx((-2.0, -4.0, 1.5, 2.75))


@pytest.mark.parametrize("factory", ["ConeX", "ConeY", "ConeZ"])
def test_cone_apex_is_on_surface(factory):
    apex = np.array([0.5, -1.0, 2.0])
    cone = getattr(kcode.Surface, factory)(apex=apex, R2=2.0)
    A, B, C, D, E, F, G, H, I, J = cone.coefficients
    x, y, z = apex
    f = A * x * x + B * y * y + C * z * z + G * x + H * y + I * z + J
    assert f == pytest.approx(0.0, abs=1e-12)


def test_quadric_keeps_coefficients():
    quadric = kcode.Surface.Quadric(A=1.0, D=2.0, F=-1.0, J=-3.0)
    assert quadric.coefficients.tolist() == [1, 0, 0, 2, 0, -1, 0, 0, 0, -3]


def test_box_bounds():
    box = kcode.Surface.Box(x=[-1.0, 2.0], y=[0.0, 1.0], z=[-3.0, 3.0])
    assert box.bounds.tolist() == [-1.0, 2.0, 0.0, 1.0, -3.0, 3.0]


def test_box_rejects_reflective():
    with pytest.raises(SystemExit):
        kcode.Surface.Box(boundary_condition="reflective")


def test_unknown_boundary_condition():
    with pytest.raises(SystemExit):
        kcode.Surface.PlaneX(x=0.0, boundary_condition="white")


def test_periodic_pair_translation():
    low = kcode.Surface.PlaneX(x=-1.0)
    high = kcode.Surface.PlaneX(x=2.0)
    low.set_periodic(high)

    assert low.boundary_condition == BC_PERIODIC
    assert high.periodic_partner is low
    assert low.periodic_translation() == pytest.approx([3.0, 0.0, 0.0])
    assert high.periodic_translation() == pytest.approx([-3.0, 0.0, 0.0])


def test_periodic_needs_parallel_planes():
    x = kcode.Surface.PlaneX(x=0.0)
    y = kcode.Surface.PlaneY(y=1.0)
    with pytest.raises(SystemExit):
        x.set_periodic(y)


def test_repr_mentions_type_and_boundary():
    sphere = kcode.Surface.Sphere(
        name="shell", center=[0.0, 0.0, 1.0], radius=2.0, boundary_condition="vacuum"
    )
    text = repr(sphere)
    assert "Sphere surface" in text
    assert "shell" in text
    assert "Vacuum" in text
    assert "Radius: 2.0" in text
