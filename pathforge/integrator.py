"""
Recursive radiance estimator.

For each ray:
1. depth exhausted -> black
2. miss -> background
3. hit -> emission, plus
   - nothing more if the material absorbs
   - attenuation * L(specular ray) for specular materials
   - attenuation * scattering_pdf * L(sampled ray) / pdf for density-driven
     materials, where the direction is drawn from a mixture of light
     importance sampling and the material's own density

A sample whose combined density is zero or non-finite contributes emission
only. Non-finite radiance that slips through is handled by the renderer when
accumulating, not here.
"""

from __future__ import annotations
from typing import Sequence, Union
import math

import numpy as np

from .vec3 import Color
from .ray import Ray
from .shapes import Hittable, HitRecord, HittableList
from .materials import ScatterRecord
from .pdf import Density, GeometryImportanceDensity, ListAggregateDensity, MixtureDensity

Lights = Union[Hittable, Sequence[Hittable], None]


class PathIntegrator:
    """Monte Carlo path tracer with mixture importance sampling."""

    def __init__(
        self,
        background: Color = None,
        use_sky_gradient: bool = False,
        light_sampling_weight: float = 0.5,
        t_min: float = 0.001
    ):
        """Create an integrator.

        Args:
            background: Radiance returned for rays that escape the scene
            use_sky_gradient: Use a white-to-blue sky instead of ``background``
            light_sampling_weight: Mixture weight of light sampling, in [0, 1).
                0 samples the material density alone.
            t_min: Minimum hit distance, avoids self-intersection

        Raises:
            ValueError: If light_sampling_weight is outside [0, 1)
        """
        if not 0.0 <= light_sampling_weight < 1.0:
            raise ValueError(
                f"light_sampling_weight must be in [0, 1), got {light_sampling_weight}"
            )
        self.background = background if background is not None else Color(0, 0, 0)
        self.use_sky_gradient = use_sky_gradient
        self.light_sampling_weight = light_sampling_weight
        self.t_min = t_min

    def ray_color(
        self,
        ray: Ray,
        world: Hittable,
        lights: Lights,
        depth: int,
        rng: np.random.Generator
    ) -> Color:
        """Estimate the radiance arriving along ``ray``.

        Args:
            ray: The ray to trace
            world: Scene geometry
            lights: Sampleable light geometry (may be None)
            depth: Remaining bounce budget
            rng: Random stream for this sample

        Returns:
            Radiance estimate for this ray
        """
        if depth <= 0:
            return Color(0, 0, 0)

        rec = world.hit(ray, self.t_min, float('inf'), rng)
        if rec is None:
            return self.background_color(ray)

        # No material - return normal as color (for debugging)
        if rec.material is None:
            return (rec.normal + Color(1, 1, 1)) * 0.5

        emitted = rec.material.emitted(ray, rec)

        srec = rec.material.scatter(ray, rec, rng)
        if srec is None:
            return emitted

        if srec.is_degenerate:
            return emitted + srec.attenuation * self.ray_color(
                srec.skip_pdf_ray, world, lights, depth - 1, rng
            )

        density = self.combined_density(rec, srec, lights)
        scattered = Ray(rec.point, density.generate(rng), ray.time)
        pdf_value = density.value(scattered.direction)

        if not math.isfinite(pdf_value) or pdf_value <= 0:
            return emitted

        scattering_pdf = rec.material.scattering_pdf(ray, rec, scattered)
        if scattering_pdf <= 0:
            return emitted

        sample_color = self.ray_color(scattered, world, lights, depth - 1, rng)
        return emitted + srec.attenuation * sample_color * (scattering_pdf / pdf_value)

    def combined_density(self, rec: HitRecord, srec: ScatterRecord, lights: Lights) -> Density:
        """Density used to pick the next direction at a diffuse hit.

        Without lights (or with a zero light weight) this is the material
        density itself.
        """
        if self.light_sampling_weight == 0 or not _has_lights(lights):
            return srec.pdf

        if isinstance(lights, (list, tuple)):
            light_density = ListAggregateDensity(lights, rec.point)
        else:
            light_density = GeometryImportanceDensity(lights, rec.point)

        w = self.light_sampling_weight
        return MixtureDensity([light_density, srec.pdf], [w, 1.0 - w])

    def background_color(self, ray: Ray) -> Color:
        """Radiance for rays leaving the scene."""
        if not self.use_sky_gradient:
            return self.background
        unit_direction = ray.direction.normalize()
        t = 0.5 * (unit_direction.y + 1.0)
        return Color(1.0, 1.0, 1.0) * (1.0 - t) + Color(0.5, 0.7, 1.0) * t


def _has_lights(lights: Lights) -> bool:
    if lights is None:
        return False
    if isinstance(lights, (list, tuple, HittableList)):
        return len(lights) > 0
    return True
