"""
Geometric shapes for the path tracer.

Each shape implements the Hittable protocol with a `hit` method. Shapes that
can act as lights additionally implement the geometry sampling protocol:

- pdf_value(origin, direction): solid-angle density of ``direction`` when
  sampling the shape from ``origin``
- random(origin, rng): a direction from ``origin`` towards the shape

Shapes that do not override these report a density of zero and the fixed
direction (1, 0, 0).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray
from .onb import ONB
from .pdf import ListAggregateDensity, FALLBACK_DIRECTION, random_to_sphere

if TYPE_CHECKING:
    from .materials import Material


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: Unit surface normal (always points against the ray)
        t: The ray parameter at intersection
        front_face: True if the ray hit the outward-facing side
        material: The material at the hit point
        u, v: Surface parametrization at the hit point
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None
    u: float = 0.0
    v: float = 0.0

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        """Set the normal to always point against the ray direction.

        Args:
            ray: The incoming ray
            outward_normal: The unit geometric normal pointing outward
        """
        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


class Hittable(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float,
            rng: Optional[np.random.Generator] = None) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (avoid self-intersection)
            t_max: Maximum t value to consider
            rng: Random stream for objects whose intersection is stochastic
                (participating media); surfaces ignore it

        Returns:
            HitRecord if intersection found, None otherwise
        """
        pass

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        """Density of ``direction`` when sampling this object from ``origin``.

        Objects that cannot be sampled return 0.
        """
        return 0.0

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        """Direction from ``origin`` towards a random point of this object.

        Objects that cannot be sampled return (1, 0, 0).
        """
        return FALLBACK_DIRECTION


class Sphere(Hittable):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere (negative flips the normals inward)
            material: Material for shading
        """
        self.center = center
        self.radius = radius
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float,
            rng: Optional[np.random.Generator] = None) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if root < t_min or root > t_max:
            root = (-half_b + sqrtd) / a
            if root < t_min or root > t_max:
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius
        u, v = self._get_sphere_uv(outward_normal)

        hit_record = HitRecord(
            point=point,
            normal=outward_normal,
            t=root,
            front_face=True,
            material=self.material,
            u=u,
            v=v
        )
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        """Uniform density over the cone of directions subtending the sphere."""
        if self.hit(Ray(origin, direction), 0.001, float('inf')) is None:
            return 0.0

        radius_sq = self.radius * self.radius
        distance_squared = (self.center - origin).length_squared()
        if distance_squared <= radius_sq:
            # Inside: every direction sees the sphere
            return 1.0 / (4.0 * math.pi)

        cos_theta_max = math.sqrt(1 - radius_sq / distance_squared)
        solid_angle = 2 * math.pi * (1 - cos_theta_max)
        if solid_angle <= 0:
            return 0.0
        return 1.0 / solid_angle

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        direction = self.center - origin
        distance_squared = direction.length_squared()
        if distance_squared <= self.radius * self.radius:
            return Vec3.random_unit_vector(rng)
        uvw = ONB(direction)
        return uvw.transform(random_to_sphere(abs(self.radius), distance_squared, rng))

    def _get_sphere_uv(self, point: Vec3) -> tuple[float, float]:
        """Spherical UV coordinates for a point on the unit sphere.

        u: [0,1] angle around the Y axis from X=-1
        v: [0,1] angle from Y=-1 to Y=+1
        """
        theta = math.acos(max(-1.0, min(1.0, -point.y)))
        phi = math.atan2(-point.z, point.x) + math.pi
        return phi / (2 * math.pi), theta / math.pi

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Quad(Hittable):
    """A planar parallelogram spanning Q, Q+u, Q+v and Q+u+v.

    The outward normal is normalize(u x v). Used for walls and area lights.
    """

    def __init__(self, q: Point3, u: Vec3, v: Vec3, material: Optional[Material] = None):
        """Create a quad.

        Args:
            q: Corner point
            u: Edge vector from q to one adjacent corner
            v: Edge vector from q to the other adjacent corner
            material: Material for shading
        """
        self.q = q
        self.u = u
        self.v = v
        self.material = material

        n = u.cross(v)
        n_length_sq = n.length_squared()
        if n_length_sq == 0:
            raise ValueError(f"Degenerate quad: edges {u} and {v} are parallel")

        self.normal = n.normalize()
        self.d = self.normal.dot(q)
        self.w = n / n_length_sq
        self.area = math.sqrt(n_length_sq)

    def hit(self, ray: Ray, t_min: float, t_max: float,
            rng: Optional[np.random.Generator] = None) -> Optional[HitRecord]:
        """Ray-plane intersection followed by a parametric bounds check."""
        denom = self.normal.dot(ray.direction)

        # Ray is parallel to the plane
        if abs(denom) < 1e-8:
            return None

        t = (self.d - self.normal.dot(ray.origin)) / denom
        if t < t_min or t > t_max:
            return None

        point = ray.at(t)
        planar = point - self.q
        alpha = self.w.dot(planar.cross(self.v))
        beta = self.w.dot(self.u.cross(planar))

        if alpha < 0 or alpha > 1 or beta < 0 or beta > 1:
            return None

        hit_record = HitRecord(
            point=point,
            normal=self.normal,
            t=t,
            front_face=True,
            material=self.material,
            u=alpha,
            v=beta
        )
        hit_record.set_face_normal(ray, self.normal)

        return hit_record

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        """Area density converted to solid angle: dist² / (cos θ · A).

        Zero when the ray misses the quad or reaches its back side.
        """
        hit_record = self.hit(Ray(origin, direction), 0.001, float('inf'))
        if hit_record is None:
            return 0.0

        length_sq = direction.length_squared()
        cosine = -direction.dot(self.normal) / math.sqrt(length_sq)
        if cosine <= 0:
            return 0.0

        distance_squared = hit_record.t * hit_record.t * length_sq
        return distance_squared / (cosine * self.area)

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        p = self.q + self.u * rng.random() + self.v * rng.random()
        return p - origin

    def __repr__(self) -> str:
        return f"Quad(q={self.q}, u={self.u}, v={self.v})"


class HittableList(Hittable):
    """A collection of hittable objects.

    As a sampleable object the list is a uniform mixture of its members,
    which is how several lights are sampled as one.
    """

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = objects if objects is not None else []

    def add(self, obj: Hittable) -> None:
        """Add an object to the list."""
        self.objects.append(obj)

    def clear(self) -> None:
        """Remove all objects."""
        self.objects.clear()

    def hit(self, ray: Ray, t_min: float, t_max: float,
            rng: Optional[np.random.Generator] = None) -> Optional[HitRecord]:
        """Find the closest intersection among all objects."""
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.objects:
            hit_record = obj.hit(ray, t_min, closest_t, rng)
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def pdf_value(self, origin: Point3, direction: Vec3) -> float:
        return ListAggregateDensity(self.objects, origin).value(direction)

    def random(self, origin: Point3, rng: np.random.Generator) -> Vec3:
        return ListAggregateDensity(self.objects, origin).generate(rng)

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)


def make_box(a: Point3, b: Point3, material: Optional[Material] = None) -> HittableList:
    """Closed axis-aligned box with opposite corners ``a`` and ``b``.

    Returns the six faces as outward-facing quads.
    """
    lo = Point3(min(a.x, b.x), min(a.y, b.y), min(a.z, b.z))
    hi = Point3(max(a.x, b.x), max(a.y, b.y), max(a.z, b.z))

    dx = Vec3(hi.x - lo.x, 0, 0)
    dy = Vec3(0, hi.y - lo.y, 0)
    dz = Vec3(0, 0, hi.z - lo.z)

    return HittableList([
        Quad(Point3(lo.x, lo.y, hi.z), dx, dy, material),    # front
        Quad(Point3(hi.x, lo.y, hi.z), -dz, dy, material),   # right
        Quad(Point3(hi.x, lo.y, lo.z), -dx, dy, material),   # back
        Quad(Point3(lo.x, lo.y, lo.z), dz, dy, material),    # left
        Quad(Point3(lo.x, hi.y, hi.z), dx, -dz, material),   # top
        Quad(Point3(lo.x, lo.y, lo.z), dx, dz, material),    # bottom
    ])
