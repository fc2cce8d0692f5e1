"""
Participating media.

Implements a constant density medium bounded by a convex shape, scattering
isotropically. Light entering the medium travels an exponentially
distributed free-flight distance before scattering.
"""

from __future__ import annotations
from typing import Optional
import math

import numpy as np

from .vec3 import Vec3, Color
from .ray import Ray
from .shapes import Hittable, HitRecord
from .materials import Material, ScatterRecord
from .pdf import IsotropicSphereDensity


class IsotropicMaterial(Material):
    """Phase material that scatters equally in all directions."""

    def __init__(self, albedo: Color):
        self.albedo = albedo

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterRecord]:
        return ScatterRecord(attenuation=self.albedo, pdf=IsotropicSphereDensity())

    def scattering_pdf(self, ray_in: Ray, rec: HitRecord, scattered: Ray) -> float:
        return 1.0 / (4.0 * math.pi)


class ConstantMedium(Hittable):
    """A constant density participating medium (fog, smoke).

    The boundary must be convex: the ray is assumed to enter and leave it
    exactly once.

    Free-flight distances are drawn from the generator passed to hit(),
    which during rendering is the tile's stream. The medium's own stream
    is only used when hit() is called directly without one.
    """

    def __init__(self, boundary: Hittable, density: float, albedo: Color, seed: Optional[int] = None):
        """Create a constant density medium.

        Args:
            boundary: Convex shape enclosing the medium
            density: Extinction coefficient (higher = more opaque)
            albedo: Scattering color
            seed: Seed for the fallback stream used when hit() gets no rng
        """
        if density <= 0:
            raise ValueError(f"Medium density must be positive, got {density}")
        self.boundary = boundary
        self.neg_inv_density = -1.0 / density
        self.phase_material = IsotropicMaterial(albedo)
        self._rng = np.random.default_rng(seed)

    def hit(self, ray: Ray, t_min: float, t_max: float, rng: Optional[np.random.Generator] = None) -> Optional[HitRecord]:
        """Sample a scattering event inside the medium, or report a miss."""
        rng = rng if rng is not None else self._rng

        # Find entry and exit points
        hit1 = self.boundary.hit(ray, float('-inf'), float('inf'))
        if hit1 is None:
            return None

        hit2 = self.boundary.hit(ray, hit1.t + 0.0001, float('inf'))
        if hit2 is None:
            return None

        t_enter = max(hit1.t, t_min)
        t_exit = min(hit2.t, t_max)

        if t_enter >= t_exit:
            return None

        t_enter = max(t_enter, 0.0)

        ray_length = ray.direction.length()
        distance_inside_boundary = (t_exit - t_enter) * ray_length
        hit_distance = self.neg_inv_density * math.log(1.0 - rng.random())

        if hit_distance > distance_inside_boundary:
            return None

        t = t_enter + hit_distance / ray_length

        return HitRecord(
            point=ray.at(t),
            normal=Vec3(1, 0, 0),  # Arbitrary, not used for volumes
            t=t,
            front_face=True,
            material=self.phase_material,
        )
