"""
pathforge - Monte Carlo path tracing with composable sampling densities

Supports:
- Importance sampling through a Density abstraction (cosine lobe,
  uniform sphere, light geometry, light lists, weighted mixtures)
- Diffuse, metal, glass and emissive materials
- Constant density participating media
- Deterministic multi-threaded tile rendering from a single seed
"""

__version__ = "0.1.0"
__author__ = "pathforge Team"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .onb import ONB
from .pdf import (
    Density, IsotropicSphereDensity, CosineLobeDensity,
    GeometryImportanceDensity, ListAggregateDensity, MixtureDensity
)
from .monte_carlo import (
    UniformIntervalDensity, PowerIntervalDensity,
    estimate_integral, estimate_with_variance
)
from .shapes import Hittable, HitRecord, Sphere, Quad, HittableList, make_box
from .materials import Material, ScatterRecord, Lambertian, Metal, Dielectric, DiffuseLight
from .volumes import IsotropicMaterial, ConstantMedium
from .camera import Camera
from .integrator import PathIntegrator
from .renderer import Renderer, RenderSettings, RenderResult, sanitize_sample
from .scenes import cornell_box
