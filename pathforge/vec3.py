"""
Vector3 class for 3D math operations.

Used throughout the path tracer for:
- Points in 3D space
- Direction vectors
- RGB radiance values

Random helpers never touch a global random state: every sampling call takes
an explicit ``numpy.random.Generator`` so that independent render workers
draw from independent streams.
"""

from __future__ import annotations
import math
from typing import Union
import numpy as np


class Vec3:
    """A 3D vector backed by a small numpy array."""

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Create Vec3 from numpy array."""
        v = cls.__new__(cls)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Aliases for color operations
    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    def __hash__(self) -> int:
        return hash(tuple(self._data))

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data + other._data)
        return Vec3.from_array(self._data + other)

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data - other._data)
        return Vec3.from_array(self._data - other)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data * other._data)
        return Vec3.from_array(self._data * other)

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data / other._data)
        return Vec3.from_array(self._data / other)

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def length(self) -> float:
        """Return the magnitude (length) of the vector."""
        return float(np.linalg.norm(self._data))

    def length_squared(self) -> float:
        """Return the squared magnitude (avoids sqrt for comparisons)."""
        return float(np.dot(self._data, self._data))

    def normalize(self) -> Vec3:
        """Return a unit vector in the same direction.

        The zero vector normalizes to itself rather than to NaNs.
        """
        length = self.length()
        if length == 0 or not math.isfinite(length):
            return Vec3(0, 0, 0)
        return Vec3.from_array(self._data / length)

    def dot(self, other: Vec3) -> float:
        """Compute dot product with another vector."""
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        """Compute cross product with another vector."""
        return Vec3.from_array(np.cross(self._data, other._data))

    def reflect(self, normal: Vec3) -> Vec3:
        """Reflect this vector around the given normal."""
        return self - normal * 2 * self.dot(normal)

    def refract(self, normal: Vec3, eta_ratio: float) -> Vec3:
        """Refract this (unit) vector through a surface.

        Args:
            normal: Unit surface normal facing against this vector
            eta_ratio: Ratio of refractive indices (n1/n2)

        Returns:
            Refracted direction vector, or zero vector on total internal reflection
        """
        cos_theta = min(-self.dot(normal), 1.0)
        r_out_perp = (self + normal * cos_theta) * eta_ratio
        perp_len_sq = r_out_perp.length_squared()

        if perp_len_sq > 1.0:
            return Vec3(0, 0, 0)

        r_out_parallel = normal * (-math.sqrt(abs(1.0 - perp_len_sq)))
        return r_out_perp + r_out_parallel

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        """Check if vector is close to zero in all dimensions."""
        return bool(np.all(np.abs(self._data) < epsilon))

    def is_finite(self) -> bool:
        """True when no component is NaN or infinite."""
        return bool(np.all(np.isfinite(self._data)))

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()

    @staticmethod
    def random(rng: np.random.Generator, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Generate a random vector with components in [min_val, max_val)."""
        return Vec3.from_array(rng.uniform(min_val, max_val, 3))

    @staticmethod
    def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
        """Generate a random point inside the unit sphere (rejection sampling)."""
        while True:
            p = Vec3.random(rng, -1, 1)
            if p.length_squared() < 1:
                return p

    @staticmethod
    def random_unit_vector(rng: np.random.Generator) -> Vec3:
        """Generate a random unit vector, uniform over the sphere.

        Uses closed-form inversion: z uniform in [-1, 1], phi uniform in [0, 2pi).
        """
        z = 1.0 - 2.0 * rng.random()
        phi = 2.0 * math.pi * rng.random()
        r = math.sqrt(max(0.0, 1.0 - z * z))
        return Vec3(r * math.cos(phi), r * math.sin(phi), z)

    @staticmethod
    def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
        """Generate a random point inside the unit disk (z=0)."""
        while True:
            p = Vec3(rng.uniform(-1, 1), rng.uniform(-1, 1), 0)
            if p.length_squared() < 1:
                return p


# Convenience type aliases
Point3 = Vec3
Color = Vec3
