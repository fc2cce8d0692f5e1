"""
Probability densities over directions.

A Density answers two questions about the same distribution:
- value(direction): the density (per steradian) of drawing ``direction``
- generate(rng): draw a direction from that distribution

The integrator relies on both being consistent. Any direction the density
cannot produce evaluates to exactly 0.0, never to NaN or a negative number.

Implements:
- IsotropicSphereDensity (uniform over the full sphere)
- CosineLobeDensity (Lambertian, oriented by a surface normal)
- GeometryImportanceDensity (towards a sampleable scene object)
- ListAggregateDensity (uniform mixture over several sampleable objects)
- MixtureDensity (weighted combination of other densities)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Sequence
import math

import numpy as np

from .vec3 import Vec3, Point3
from .onb import ONB

# Direction reported by objects that cannot be sampled
FALLBACK_DIRECTION = Vec3(1, 0, 0)


def _finite_nonnegative(value: float) -> float:
    """Clamp a density evaluation to a finite, non-negative float."""
    if not math.isfinite(value) or value <= 0.0:
        return 0.0
    return float(value)


class Density(ABC):
    """Abstract base class for direction densities."""

    @abstractmethod
    def value(self, direction: Vec3) -> float:
        """Return the density of ``direction`` (solid angle measure).

        Args:
            direction: Query direction, need not be unit length

        Returns:
            A finite value >= 0
        """
        pass

    @abstractmethod
    def generate(self, rng: np.random.Generator) -> Vec3:
        """Draw a direction distributed according to this density."""
        pass


class IsotropicSphereDensity(Density):
    """Uniform density over the whole sphere of directions.

    This is the phase function of an isotropic participating medium.
    """

    def value(self, direction: Vec3) -> float:
        if direction.near_zero() or not direction.is_finite():
            return 0.0
        return 1.0 / (4.0 * math.pi)

    def generate(self, rng: np.random.Generator) -> Vec3:
        return Vec3.random_unit_vector(rng)


class CosineLobeDensity(Density):
    """Cosine-weighted hemisphere around a normal: cos(theta) / pi."""

    def __init__(self, normal: Vec3):
        self.uvw = ONB(normal)

    def value(self, direction: Vec3) -> float:
        cosine = direction.normalize().dot(self.uvw.w)
        return _finite_nonnegative(cosine / math.pi)

    def generate(self, rng: np.random.Generator) -> Vec3:
        return self.uvw.transform(random_cosine_direction(rng))


class GeometryImportanceDensity(Density):
    """Directions from ``origin`` towards a sampleable object.

    The object provides ``pdf_value(origin, direction)`` and
    ``random(origin, rng)``. Objects without that capability behave as a
    density that is zero everywhere and generates FALLBACK_DIRECTION.
    """

    def __init__(self, obj, origin: Point3):
        self.obj = obj
        self.origin = origin

    def value(self, direction: Vec3) -> float:
        pdf_value = getattr(self.obj, 'pdf_value', None)
        if pdf_value is None or direction.near_zero() or not direction.is_finite():
            return 0.0
        return _finite_nonnegative(pdf_value(self.origin, direction))

    def generate(self, rng: np.random.Generator) -> Vec3:
        random_direction = getattr(self.obj, 'random', None)
        if random_direction is None:
            return FALLBACK_DIRECTION
        direction = random_direction(self.origin, rng)
        if direction.near_zero() or not direction.is_finite():
            return FALLBACK_DIRECTION
        return direction


class ListAggregateDensity(Density):
    """Uniform mixture of GeometryImportanceDensity over several objects."""

    def __init__(self, objects: Sequence, origin: Point3):
        self.densities = [GeometryImportanceDensity(obj, origin) for obj in objects]

    def value(self, direction: Vec3) -> float:
        if not self.densities:
            return 0.0
        weight = 1.0 / len(self.densities)
        return sum(weight * d.value(direction) for d in self.densities)

    def generate(self, rng: np.random.Generator) -> Vec3:
        if not self.densities:
            return FALLBACK_DIRECTION
        index = int(rng.integers(len(self.densities)))
        return self.densities[index].generate(rng)


class MixtureDensity(Density):
    """Convex combination of two or more densities.

    ``value`` sums every component's contribution: a direction reachable by
    several components is counted through all of them. ``generate`` picks a
    single component by weight and delegates to it.
    """

    def __init__(self, components: Sequence[Density], weights: Optional[Sequence[float]] = None):
        """Create a mixture.

        Args:
            components: Two or more densities
            weights: Positive weights, one per component (default: equal).
                They are normalized to sum to one.

        Raises:
            ValueError: On fewer than two components, a length mismatch or a
                non-positive weight
        """
        if len(components) < 2:
            raise ValueError(f"MixtureDensity needs at least 2 components, got {len(components)}")
        if weights is None:
            weights = [1.0] * len(components)
        if len(weights) != len(components):
            raise ValueError(
                f"Got {len(weights)} weights for {len(components)} components"
            )
        if any(not math.isfinite(w) or w <= 0 for w in weights):
            raise ValueError(f"Mixture weights must be positive and finite: {list(weights)}")

        total = float(sum(weights))
        self.components = list(components)
        self.weights = [w / total for w in weights]
        self._cdf = np.cumsum(self.weights)

    def value(self, direction: Vec3) -> float:
        return sum(w * c.value(direction) for w, c in zip(self.weights, self.components))

    def generate(self, rng: np.random.Generator) -> Vec3:
        index = int(np.searchsorted(self._cdf, rng.random(), side='right'))
        index = min(index, len(self.components) - 1)
        return self.components[index].generate(rng)


def random_cosine_direction(rng: np.random.Generator) -> Vec3:
    """Cosine-distributed direction around +z."""
    r1 = rng.random()
    r2 = rng.random()

    phi = 2 * math.pi * r1
    x = math.cos(phi) * math.sqrt(r2)
    y = math.sin(phi) * math.sqrt(r2)
    z = math.sqrt(1 - r2)

    return Vec3(x, y, z)


def random_to_sphere(radius: float, distance_squared: float, rng: np.random.Generator) -> Vec3:
    """Uniform direction inside the cone subtending a sphere, around +z.

    Args:
        radius: Sphere radius
        distance_squared: Squared distance from the query point to the centre
        rng: Random stream
    """
    r1 = rng.random()
    r2 = rng.random()
    cos_theta_max = math.sqrt(max(0.0, 1 - radius * radius / distance_squared))
    z = 1 + r2 * (cos_theta_max - 1)

    phi = 2 * math.pi * r1
    sin_theta = math.sqrt(max(0.0, 1 - z * z))
    x = math.cos(phi) * sin_theta
    y = math.sin(phi) * sin_theta

    return Vec3(x, y, z)
