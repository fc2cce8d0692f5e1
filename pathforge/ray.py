"""
Ray class for representing rays in 3D space.

Ray(t) = origin + t * direction
"""

from __future__ import annotations
from .vec3 import Vec3, Point3


class Ray:
    """A ray with origin, direction and a time tag.

    The direction does not have to be unit length. The time tag is carried
    through scattering unchanged; nothing in the sampling core reads it.
    """

    __slots__ = ('origin', 'direction', 'time')

    def __init__(self, origin: Point3, direction: Vec3, time: float = 0.0):
        self.origin = origin
        self.direction = direction
        self.time = time

    def at(self, t: float) -> Point3:
        """Get the point origin + t * direction."""
        return self.origin + self.direction * t

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin}, direction={self.direction})"
