"""
Materials and scattering dispatch.

Materials fall into two classes:
- Density-driven (Lambertian, isotropic volumes): scatter returns a Density
  to sample from and the integrator weights samples by scattering_pdf.
- Specular (Metal, Dielectric): scatter returns a concrete outgoing ray and
  the integrator skips density evaluation entirely, since the physical
  density is a delta function.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Color
from .ray import Ray
from .pdf import Density, CosineLobeDensity

if TYPE_CHECKING:
    from .shapes import HitRecord


@dataclass
class ScatterRecord:
    """Result of a material scatter operation.

    Exactly one of ``pdf`` and ``skip_pdf_ray`` is set:
    - pdf: sample a direction from it, then divide by its value
    - skip_pdf_ray: follow this ray, weighting only by attenuation
    """
    attenuation: Color
    pdf: Optional[Density] = None
    skip_pdf_ray: Optional[Ray] = None

    def __post_init__(self):
        if (self.pdf is None) == (self.skip_pdf_ray is None):
            raise ValueError("ScatterRecord needs exactly one of pdf or skip_pdf_ray")

    @property
    def is_degenerate(self) -> bool:
        """True when scattering is a delta distribution with no density to evaluate."""
        return self.skip_pdf_ray is not None

    @property
    def is_specular(self) -> bool:
        return self.is_degenerate


class Material(ABC):
    """Abstract base class for materials."""

    @abstractmethod
    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterRecord]:
        """Decide how light arriving along ``ray_in`` leaves the surface.

        Args:
            ray_in: The incoming ray
            rec: Intersection data at the surface
            rng: Random stream for stochastic choices

        Returns:
            ScatterRecord if the ray scatters, None if absorbed
        """
        pass

    def emitted(self, ray_in: Ray, rec: HitRecord) -> Color:
        """Return emitted radiance. Default is no emission."""
        return Color(0, 0, 0)

    def scattering_pdf(self, ray_in: Ray, rec: HitRecord, scattered: Ray) -> float:
        """Physical scattering density (BRDF times cosine) towards ``scattered``.

        Only density-driven materials are ever asked.
        """
        return 0.0


class Lambertian(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    def __init__(self, albedo: Color):
        """Create a Lambertian material.

        Args:
            albedo: The base color (RGB, each component 0-1)
        """
        self.albedo = albedo

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterRecord]:
        return ScatterRecord(attenuation=self.albedo, pdf=CosineLobeDensity(rec.normal))

    def scattering_pdf(self, ray_in: Ray, rec: HitRecord, scattered: Ray) -> float:
        cosine = rec.normal.dot(scattered.direction.normalize())
        if not math.isfinite(cosine) or cosine <= 0:
            return 0.0
        return cosine / math.pi


class Metal(Material):
    """Metallic material with specular reflection."""

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        """Create a metal material.

        Args:
            albedo: The reflection color
            fuzz: Perturbation radius (0 = mirror, 1 = very rough)
        """
        self.albedo = albedo
        self.fuzz = max(0.0, min(fuzz, 1.0))

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterRecord]:
        reflected = ray_in.direction.normalize().reflect(rec.normal)

        if self.fuzz > 0:
            reflected = reflected + Vec3.random_in_unit_sphere(rng) * self.fuzz

        # Perturbed below the surface: absorbed
        if reflected.dot(rec.normal) <= 0:
            return None

        scattered = Ray(rec.point, reflected.normalize(), ray_in.time)
        return ScatterRecord(attenuation=self.albedo, skip_pdf_ray=scattered)


class Dielectric(Material):
    """Dielectric (glass-like) material with refraction."""

    def __init__(self, ior: float = 1.5, tint: Color = None):
        """Create a dielectric material.

        Args:
            ior: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
            tint: Optional color tint for the glass
        """
        if ior <= 0:
            raise ValueError(f"Index of refraction must be positive, got {ior}")
        self.ior = ior
        self.tint = tint if tint else Color(1, 1, 1)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterRecord]:
        refraction_ratio = 1.0 / self.ior if rec.front_face else self.ior

        unit_direction = ray_in.direction.normalize()
        cos_theta = min(-unit_direction.dot(rec.normal), 1.0)
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))

        cannot_refract = refraction_ratio * sin_theta > 1.0

        # Schlick's approximation picks reflection vs refraction
        if cannot_refract or self._reflectance(cos_theta, refraction_ratio) > rng.random():
            direction = unit_direction.reflect(rec.normal)
        else:
            direction = unit_direction.refract(rec.normal, refraction_ratio)

        scattered = Ray(rec.point, direction.normalize(), ray_in.time)
        return ScatterRecord(attenuation=self.tint, skip_pdf_ray=scattered)

    @staticmethod
    def _reflectance(cosine: float, ref_idx: float) -> float:
        """Schlick's approximation for reflectance."""
        r0 = (1 - ref_idx) / (1 + ref_idx)
        r0 = r0 * r0
        return r0 + (1 - r0) * pow(1 - cosine, 5)


class DiffuseLight(Material):
    """One-sided light-emitting material."""

    def __init__(self, color: Color, intensity: float = 1.0):
        """Create an emissive material.

        Args:
            color: The emission color
            intensity: Emission intensity multiplier
        """
        self.color = color
        self.intensity = intensity

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterRecord]:
        return None

    def emitted(self, ray_in: Ray, rec: HitRecord) -> Color:
        # Back faces are dark
        if not rec.front_face:
            return Color(0, 0, 0)
        return self.color * self.intensity
