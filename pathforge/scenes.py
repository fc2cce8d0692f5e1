"""
Built-in test scenes.
"""

from __future__ import annotations
import logging
from typing import Tuple

from .vec3 import Vec3, Point3, Color
from .camera import Camera
from .shapes import HittableList, Quad, make_box
from .materials import Lambertian, DiffuseLight

logger = logging.getLogger(__name__)

BOX_SIZE = 555.0


def cornell_box(
    light_intensity: float = 15.0,
    with_boxes: bool = True,
    aspect_ratio: float = 1.0
) -> Tuple[HittableList, HittableList, Camera]:
    """Create the Cornell box.

    Five diffuse walls of side 555 (red left, green right, white floor,
    ceiling and back) lit by a single 130x105 ceiling light facing down.

    Args:
        light_intensity: Emission multiplier of the ceiling light
        with_boxes: Add the two white blocks inside the room
        aspect_ratio: Camera aspect ratio

    Returns:
        Tuple of (world, lights, camera). ``lights`` holds the ceiling light
        quad so it can be importance sampled.
    """
    red = Lambertian(Color(0.65, 0.05, 0.05))
    white = Lambertian(Color(0.73, 0.73, 0.73))
    green = Lambertian(Color(0.12, 0.45, 0.15))
    light = DiffuseLight(Color(1, 1, 1), light_intensity)

    s = BOX_SIZE
    world = HittableList()

    # Walls
    world.add(Quad(Point3(s, 0, 0), Vec3(0, s, 0), Vec3(0, 0, s), green))
    world.add(Quad(Point3(0, 0, 0), Vec3(0, s, 0), Vec3(0, 0, s), red))
    world.add(Quad(Point3(0, 0, 0), Vec3(s, 0, 0), Vec3(0, 0, s), white))
    world.add(Quad(Point3(s, s, s), Vec3(-s, 0, 0), Vec3(0, 0, -s), white))
    world.add(Quad(Point3(0, 0, s), Vec3(s, 0, 0), Vec3(0, s, 0), white))

    # Ceiling light, normal (0, -1, 0)
    ceiling_light = Quad(Point3(343, s - 1, 332), Vec3(-130, 0, 0), Vec3(0, 0, -105), light)
    world.add(ceiling_light)

    if with_boxes:
        world.add(make_box(Point3(265, 0, 295), Point3(430, 330, 460), white))
        world.add(make_box(Point3(130, 0, 65), Point3(295, 165, 230), white))

    lights = HittableList([ceiling_light])

    camera = Camera(
        look_from=Point3(278, 278, -800),
        look_at=Point3(278, 278, 0),
        vup=Vec3(0, 1, 0),
        vfov=40,
        aspect_ratio=aspect_ratio,
    )

    logger.debug("Built Cornell box with %d objects", len(world))
    return world, lights, camera
