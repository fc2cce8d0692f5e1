"""Tests for Ray class."""

import pytest
from pathforge.vec3 import Vec3, Point3, Color
from pathforge.ray import Ray
from pathforge.shapes import HitRecord, Quad, HittableList
from pathforge.materials import Lambertian, Metal, Dielectric
from pathforge.integrator import PathIntegrator


class TestRay:
    """Test Ray construction and evaluation."""

    def test_defaults(self):
        ray = Ray(Point3(1, 2, 3), Vec3(0, 0, 2))
        assert ray.origin == Point3(1, 2, 3)
        assert ray.direction == Vec3(0, 0, 2)
        assert ray.time == 0.0

    @pytest.mark.parametrize("t, expected", [
        (0, Point3(1, 1, 1)),
        (2, Point3(3, 5, 1)),
        (-1, Point3(0, -1, 1)),
    ])
    def test_at(self, t, expected):
        ray = Ray(Point3(1, 1, 1), Vec3(1, 2, 0))
        assert ray.at(t) == expected

    def test_direction_not_normalized(self):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 3, 4))
        assert ray.direction.length() == pytest.approx(5.0)
        assert ray.at(1) == Point3(0, 3, 4)

    def test_repr(self):
        s = repr(Ray(Point3(1, 2, 3), Vec3(0, 1, 0)))
        assert s.startswith("Ray(")
        assert "origin" in s and "direction" in s


class TestTimeTag:
    """The time tag passes through scattering untouched."""

    def make_hit(self, ray):
        rec = HitRecord(point=Point3(0, 0, 0), normal=Vec3(0, 1, 0), t=1.0, front_face=True)
        rec.set_face_normal(ray, Vec3(0, 1, 0))
        return rec

    @pytest.mark.parametrize("material", [
        Metal(Color(1, 1, 1), 0.2),
        Dielectric(1.5),
    ])
    def test_specular_keeps_time(self, rng, material):
        ray = Ray(Point3(0, 1, 0), Vec3(0.2, -1, 0), 0.37)
        srec = material.scatter(ray, self.make_hit(ray), rng)
        assert srec.skip_pdf_ray.time == 0.37

    def test_diffuse_bounce_keeps_time(self, rng):
        seen = []

        class RecordingIntegrator(PathIntegrator):
            def ray_color(self, ray, world, lights, depth, rng):
                seen.append(ray.time)
                return super().ray_color(ray, world, lights, depth, rng)

        floor = Quad(Point3(-5, 0, -5), Vec3(0, 0, 10), Vec3(10, 0, 0), Lambertian(Color(0.5, 0.5, 0.5)))
        RecordingIntegrator().ray_color(
            Ray(Point3(0, 1, 0), Vec3(0, -1, 0), 0.8), HittableList([floor]), None, 3, rng
        )
        assert len(seen) >= 2
        assert all(t == 0.8 for t in seen)
