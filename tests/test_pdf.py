"""Tests for direction densities."""

import pytest
import math
import numpy as np

from pathforge.vec3 import Vec3, Point3
from pathforge.shapes import Sphere, Quad, HittableList
from pathforge.pdf import (
    IsotropicSphereDensity, CosineLobeDensity, GeometryImportanceDensity,
    ListAggregateDensity, MixtureDensity, FALLBACK_DIRECTION
)
from pathforge.monte_carlo import estimate_integral


def ceiling_quad():
    """2x2 quad one unit above the origin, facing down."""
    return Quad(Point3(-1, 1, -1), Vec3(2, 0, 0), Vec3(0, 0, 2))


def region_probability(density, region, rng, samples):
    """Probability of ``region`` implied by ``density.value``.

    Integrates value * indicator over the sphere with uniform samples.
    """
    return estimate_integral(
        lambda d: density.value(d) if region(d) else 0.0,
        IsotropicSphereDensity(), samples, rng
    )


def generated_fraction(density, region, rng, samples):
    """Fraction of ``density.generate`` outputs that fall in ``region``."""
    return sum(1 for _ in range(samples) if region(density.generate(rng))) / samples


class TestNormalization:
    """Each density integrates to one over the sphere."""

    def test_isotropic(self, rng):
        d = IsotropicSphereDensity()
        assert estimate_integral(d.value, IsotropicSphereDensity(), 100, rng) == pytest.approx(1.0)

    def test_cosine_lobe(self, rng):
        d = CosineLobeDensity(Vec3(0.3, -0.5, 0.8))
        total = estimate_integral(d.value, IsotropicSphereDensity(), 20000, rng)
        assert total == pytest.approx(1.0, abs=0.05)

    def test_quad_light(self, rng):
        d = GeometryImportanceDensity(ceiling_quad(), Point3(0, 0, 0))
        total = estimate_integral(d.value, IsotropicSphereDensity(), 40000, rng)
        assert total == pytest.approx(1.0, abs=0.1)

    def test_sphere_cone(self, rng):
        d = GeometryImportanceDensity(Sphere(Point3(0, 0, 2), 1.0), Point3(0, 0, 0))
        total = estimate_integral(d.value, IsotropicSphereDensity(), 40000, rng)
        assert total == pytest.approx(1.0, abs=0.1)

    def test_mixture_of_cosine_and_sphere(self, rng):
        d = MixtureDensity(
            [CosineLobeDensity(Vec3(0, 0, 1)),
             GeometryImportanceDensity(Sphere(Point3(0, 0, 2), 1.0), Point3(0, 0, 0))],
            [0.5, 0.5]
        )
        total = estimate_integral(d.value, IsotropicSphereDensity(), 40000, rng)
        assert total == pytest.approx(1.0, abs=0.1)


class TestSelfConsistency:
    """Generated samples follow the distribution implied by value()."""

    def test_cosine_moments(self, rng):
        normal = Vec3(0, 1, 0)
        d = CosineLobeDensity(normal)
        cosines = [d.generate(rng).normalize().dot(normal) for _ in range(5000)]

        assert min(cosines) >= -1e-12
        # E[cos] under cos/pi is 2/3, P(cos > 0.5) = 1 - 0.5^2
        assert np.mean(cosines) == pytest.approx(2.0 / 3.0, abs=0.02)
        assert np.mean([c > 0.5 for c in cosines]) == pytest.approx(0.75, abs=0.03)

    def test_cosine_histogram_matches_value(self, rng):
        d = CosineLobeDensity(Vec3(1, 1, 0))
        region = lambda v: v.normalize().x > 0.8
        implied = region_probability(d, region, rng, 20000)
        observed = generated_fraction(d, region, rng, 5000)
        assert observed == pytest.approx(implied, abs=0.05)

    def test_isotropic_moments(self, rng):
        d = IsotropicSphereDensity()
        zs = [d.generate(rng).z for _ in range(5000)]
        assert np.mean(zs) == pytest.approx(0.0, abs=0.04)
        assert np.mean([z > 0.5 for z in zs]) == pytest.approx(0.25, abs=0.03)

    def test_quad_histogram_matches_value(self, rng):
        d = GeometryImportanceDensity(ceiling_quad(), Point3(0.5, 0, 0))
        region = lambda v: v.x > 0
        implied = region_probability(d, region, rng, 40000)
        observed = generated_fraction(d, region, rng, 5000)
        assert observed == pytest.approx(implied, abs=0.06)

    def test_sphere_samples_stay_in_cone(self, rng):
        sphere = Sphere(Point3(3, 0, 0), 1.0)
        d = GeometryImportanceDensity(sphere, Point3(0, 0, 0))
        cos_theta_max = math.sqrt(1 - 1.0 / 9.0)
        for _ in range(500):
            direction = d.generate(rng)
            assert direction.normalize().x >= cos_theta_max - 1e-9

    @pytest.mark.parametrize("make_density", [
        lambda: CosineLobeDensity(Vec3(0, 0, 1)),
        lambda: IsotropicSphereDensity(),
        lambda: GeometryImportanceDensity(ceiling_quad(), Point3(0.2, 0, 0.3)),
        lambda: GeometryImportanceDensity(Sphere(Point3(0, 0, 4), 1.0), Point3(0, 0, 0)),
    ])
    def test_generated_directions_have_positive_value(self, rng, make_density):
        d = make_density()
        for _ in range(200):
            assert d.value(d.generate(rng)) > 0


class TestMixtureDensity:
    """Test MixtureDensity."""

    def test_value_is_weighted_sum(self):
        components = [
            CosineLobeDensity(Vec3(0, 1, 0)),
            IsotropicSphereDensity(),
            GeometryImportanceDensity(ceiling_quad(), Point3(0, 0, 0)),
        ]
        mixture = MixtureDensity(components, [0.2, 0.3, 0.5])
        assert mixture.weights == pytest.approx([0.2, 0.3, 0.5])
        w = mixture.weights

        directions = [
            Vec3(0, 1, 0),       # reachable by all three
            Vec3(0, -1, 0),      # unreachable by cosine and quad
            Vec3(1, 0.1, 0),     # misses the quad
            Vec3(0.3, 1, -0.2),
        ]
        for d in directions:
            expected = (
                w[0] * components[0].value(d)
                + w[1] * components[1].value(d)
                + w[2] * components[2].value(d)
            )
            assert mixture.value(d) == expected

    def test_weights_normalized(self):
        mixture = MixtureDensity([IsotropicSphereDensity(), IsotropicSphereDensity()], [1, 3])
        assert mixture.weights == [0.25, 0.75]

    def test_default_weights_equal(self):
        mixture = MixtureDensity([IsotropicSphereDensity()] * 4)
        assert mixture.weights == [0.25] * 4

    def test_selection_follows_weights(self, rng):
        up = CosineLobeDensity(Vec3(0, 0, 1))
        down = CosineLobeDensity(Vec3(0, 0, -1))
        mixture = MixtureDensity([up, down], [0.3, 0.7])
        fraction_up = np.mean([mixture.generate(rng).z > 0 for _ in range(4000)])
        assert fraction_up == pytest.approx(0.3, abs=0.03)

    def test_single_component_rejected(self):
        with pytest.raises(ValueError):
            MixtureDensity([IsotropicSphereDensity()])

    def test_weight_count_mismatch_rejected(self):
        with pytest.raises(ValueError):
            MixtureDensity([IsotropicSphereDensity(), IsotropicSphereDensity()], [1.0])

    @pytest.mark.parametrize("weights", [[0.0, 1.0], [-0.5, 1.5], [float('nan'), 1.0]])
    def test_non_positive_weights_rejected(self, weights):
        with pytest.raises(ValueError):
            MixtureDensity([IsotropicSphereDensity(), IsotropicSphereDensity()], weights)


class TestGeometryImportanceDensity:
    """Test the delegation to sampleable objects and its fallbacks."""

    def test_object_without_protocol(self, rng):
        d = GeometryImportanceDensity(object(), Point3(0, 0, 0))
        assert d.value(Vec3(0, 1, 0)) == 0.0
        assert d.generate(rng) == FALLBACK_DIRECTION

    def test_hittable_default_protocol(self, rng):
        from pathforge.volumes import ConstantMedium
        medium = ConstantMedium(Sphere(Point3(0, 5, 0), 1.0), 1.0, Vec3(1, 1, 1))
        d = GeometryImportanceDensity(medium, Point3(0, 0, 0))
        assert d.value(Vec3(0, 1, 0)) == 0.0
        assert d.generate(rng) == Vec3(1, 0, 0)

    def test_miss_is_zero(self):
        d = GeometryImportanceDensity(ceiling_quad(), Point3(0, 0, 0))
        assert d.value(Vec3(0, -1, 0)) == 0.0
        assert d.value(Vec3(1, 0.01, 0)) == 0.0


class TestListAggregateDensity:
    """Test ListAggregateDensity."""

    def test_value_is_average(self):
        a = Sphere(Point3(0, 0, 5), 1.0)
        b = Sphere(Point3(0, 5, 0), 1.0)
        origin = Point3(0, 0, 0)
        d = ListAggregateDensity([a, b], origin)
        direction = Vec3(0, 0, 1)
        assert d.value(direction) == pytest.approx(0.5 * a.pdf_value(origin, direction))
        assert d.value(Vec3(1, 0, 0)) == 0.0

    def test_generate_picks_every_object(self, rng):
        a = Sphere(Point3(0, 0, 5), 1.0)
        b = Sphere(Point3(0, 5, 0), 1.0)
        d = ListAggregateDensity([a, b], Point3(0, 0, 0))
        towards_a = np.mean([d.generate(rng).z > 0.5 for _ in range(2000)])
        assert towards_a == pytest.approx(0.5, abs=0.05)

    def test_empty_list(self, rng):
        d = ListAggregateDensity([], Point3(0, 0, 0))
        assert d.value(Vec3(0, 1, 0)) == 0.0
        assert d.generate(rng) == FALLBACK_DIRECTION

    def test_hittable_list_delegates(self):
        light = ceiling_quad()
        lights = HittableList([light, Sphere(Point3(0, -5, 0), 1.0)])
        origin = Point3(0, 0, 0)
        direction = Vec3(0, 1, 0)
        assert lights.pdf_value(origin, direction) == pytest.approx(
            0.5 * light.pdf_value(origin, direction)
        )


class TestDegenerateInputs:
    """Zero or non-finite directions never produce NaN densities."""

    @pytest.mark.parametrize("direction", [
        Vec3(0, 0, 0),
        Vec3(float('nan'), 0, 0),
        Vec3(float('inf'), 1, 0),
    ])
    @pytest.mark.parametrize("make_density", [
        lambda: CosineLobeDensity(Vec3(0, 1, 0)),
        lambda: IsotropicSphereDensity(),
        lambda: GeometryImportanceDensity(ceiling_quad(), Point3(0, 0, 0)),
        lambda: GeometryImportanceDensity(Sphere(Point3(0, 3, 0), 1.0), Point3(0, 0, 0)),
        lambda: MixtureDensity([CosineLobeDensity(Vec3(0, 1, 0)), IsotropicSphereDensity()]),
    ])
    def test_value_is_zero(self, direction, make_density):
        assert make_density().value(direction) == 0.0

    def test_cosine_lobe_with_zero_normal(self, rng):
        d = CosineLobeDensity(Vec3(0, 0, 0))
        direction = d.generate(rng)
        assert direction.is_finite()
        assert direction.z > 0
