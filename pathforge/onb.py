"""
Orthonormal basis construction.

Densities are defined in a canonical frame around +z and rotated into
world space through an ONB whose w axis is a surface normal (cosine lobe)
or the direction towards a sampled object (sphere cone).
"""

from __future__ import annotations

from .vec3 import Vec3


class ONB:
    """Orthonormal basis (u, v, w) with w along a given axis."""

    __slots__ = ('u', 'v', 'w')

    def __init__(self, n: Vec3):
        """Build the basis around ``n``.

        The helper axis is (0, 1, 0) unless |n.x| > 0.9, in which case
        (1, 0, 0) is used so that it is never parallel to ``n``. A zero-length
        ``n`` yields the canonical frame around +z.
        """
        w = n.normalize()
        if w.near_zero():
            w = Vec3(0, 0, 1)
        a = Vec3(1, 0, 0) if abs(w.x) > 0.9 else Vec3(0, 1, 0)
        v = w.cross(a).normalize()
        u = w.cross(v)
        self.u = u
        self.v = v
        self.w = w

    def transform(self, local: Vec3) -> Vec3:
        """Map local (x, y, z) coordinates into world space."""
        return self.u * local.x + self.v * local.y + self.w * local.z

    def __repr__(self) -> str:
        return f"ONB(u={self.u}, v={self.v}, w={self.w})"
