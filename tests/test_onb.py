"""Tests for orthonormal basis construction."""

import pytest

from pathforge.vec3 import Vec3
from pathforge.onb import ONB


NORMALS = [
    Vec3(0, 0, 1),
    Vec3(0, 1, 0),
    Vec3(1, 0, 0),
    Vec3(-1, 0, 0),
    Vec3(0.95, 0.1, 0.3),
    Vec3(1, 2, 3),
    Vec3(0, -5, 0),
]


class TestONB:
    """Test ONB construction and transforms."""

    @pytest.mark.parametrize("normal", NORMALS)
    def test_orthonormal(self, normal):
        uvw = ONB(normal)
        for axis in (uvw.u, uvw.v, uvw.w):
            assert axis.length() == pytest.approx(1.0)
        assert uvw.u.dot(uvw.v) == pytest.approx(0.0, abs=1e-12)
        assert uvw.u.dot(uvw.w) == pytest.approx(0.0, abs=1e-12)
        assert uvw.v.dot(uvw.w) == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize("normal", NORMALS)
    def test_w_follows_normal(self, normal):
        assert ONB(normal).w == normal.normalize()

    def test_transform_z_maps_to_normal(self):
        uvw = ONB(Vec3(1, 1, 0))
        assert uvw.transform(Vec3(0, 0, 1)) == Vec3(1, 1, 0).normalize()

    def test_degenerate_normal_uses_z_axis(self):
        uvw = ONB(Vec3(0, 0, 0))
        assert uvw.w == Vec3(0, 0, 1)
        assert uvw.u.length() == pytest.approx(1.0)
