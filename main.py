#!/usr/bin/env python3
"""
pathforge - Monte Carlo path tracer

Main entry point for rendering the built-in scenes.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from pathforge.vec3 import Vec3, Color, Point3
from pathforge.camera import Camera
from pathforge.shapes import Sphere, Quad, HittableList
from pathforge.materials import Lambertian, Metal, Dielectric, DiffuseLight
from pathforge.volumes import ConstantMedium
from pathforge.renderer import Renderer, RenderSettings
from pathforge.scenes import cornell_box


def create_demo_scene(aspect_ratio: float):
    """Spheres of every material under a single quad light."""
    world = HittableList()

    world.add(Sphere(Point3(0, -1000, 0), 1000, Lambertian(Color(0.5, 0.5, 0.5))))
    world.add(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))
    world.add(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.05)))
    world.add(ConstantMedium(Sphere(Point3(1.5, 0.5, 2), 0.5), 2.0, Color(0.9, 0.9, 0.9)))

    light = Quad(Point3(-2, 6, -2), Vec3(4, 0, 0), Vec3(0, 0, 4), DiffuseLight(Color(1, 1, 1), 8.0))
    world.add(light)

    camera = Camera(
        look_from=Point3(13, 2, 3),
        look_at=Point3(0, 0, 0),
        vup=Vec3(0, 1, 0),
        vfov=20,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0
    )
    return world, HittableList([light]), camera


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='pathforge - Monte Carlo path tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene cornell --samples 64 --output cornell.png
  python main.py --scene cornell --light-weight 0 --output cosine_only.png
  python main.py --scene demo --width 400 --height 300 --seed 7
        '''
    )

    parser.add_argument('--width', type=int, default=200, help='Image width (default: 200)')
    parser.add_argument('--height', type=int, default=200, help='Image height (default: 200)')
    parser.add_argument('--samples', type=int, default=16, help='Samples per pixel (default: 16)')
    parser.add_argument('--depth', type=int, default=50, help='Max ray depth (default: 50)')
    parser.add_argument('--threads', type=int, default=0, help='Number of threads (0=auto)')
    parser.add_argument('--light-weight', type=float, default=0.5,
                        help='Mixture weight of light sampling in [0, 1) (default: 0.5)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for reproducible renders')
    parser.add_argument('--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--scene', type=str, default='cornell', choices=['demo', 'cornell'],
                        help='Scene to render (default: cornell)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s'
    )

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            num_threads=args.threads,
            light_sampling_weight=args.light_weight,
            seed=args.seed,
            use_sky_gradient=args.scene == 'demo'
        )
    except ValueError as e:
        parser.error(str(e))

    print("=" * 60)
    print("pathforge")
    print("=" * 60)
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  Samples: {settings.samples_per_pixel}")
    print(f"  Max Depth: {settings.max_depth}")
    print(f"  Light weight: {settings.light_sampling_weight}")
    print(f"  Threads: {settings.num_threads}")

    aspect_ratio = settings.width / settings.height
    if args.scene == 'cornell':
        world, lights, camera = cornell_box(aspect_ratio=aspect_ratio)
    else:
        world, lights, camera = create_demo_scene(aspect_ratio)

    print(f"\nScene: {args.scene} ({len(world)} objects)")

    renderer = Renderer(settings)

    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    renderer.set_progress_callback(progress_callback)

    print("\nRendering...")
    start_time = time.time()

    result = renderer.render(world, camera, lights)

    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")
    if result.nonfinite_samples:
        print(f"  Zeroed non-finite samples: {result.nonfinite_samples}")

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"\nSaving to: {args.output}")
    renderer.save_image(result.average(), args.output)

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
