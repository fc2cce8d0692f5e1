"""
Renderer module - drives the integrator over an image.

Implements:
- Tile-based rendering, optionally multi-threaded
- One independent random stream per tile, derived from a single seed
- Accumulation of unnormalized radiance with a per-pixel sample count
- Output boundary: non-finite samples are zeroed before accumulation,
  gamma and 8-bit conversion happen only when saving
"""

from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Callable, Tuple
import numpy as np

from .vec3 import Color
from .camera import Camera
from .shapes import Hittable
from .integrator import PathIntegrator, Lights

logger = logging.getLogger(__name__)


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 800
    height: int = 600
    samples_per_pixel: int = 100
    max_depth: int = 50
    tile_size: int = 32
    num_threads: int = 0  # 0 = auto-detect
    background_color: Color = None
    use_sky_gradient: bool = False
    light_sampling_weight: float = 0.5
    seed: Optional[int] = None
    gamma: float = 2.2

    def __post_init__(self):
        if self.background_color is None:
            self.background_color = Color(0.0, 0.0, 0.0)
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

        for name in ('width', 'height', 'samples_per_pixel', 'max_depth', 'tile_size'):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if not 0.0 <= self.light_sampling_weight < 1.0:
            raise ValueError(
                f"light_sampling_weight must be in [0, 1), got {self.light_sampling_weight}"
            )


@dataclass
class RenderResult:
    """Accumulated radiance for an image.

    Attributes:
        accumulated: Sum of sample radiance per pixel, shape (height, width, 3)
        samples_per_pixel: Number of samples summed into every pixel
        nonfinite_samples: Samples that had a non-finite component zeroed
    """
    accumulated: np.ndarray
    samples_per_pixel: int
    nonfinite_samples: int = 0

    def average(self) -> np.ndarray:
        """Return the per-pixel mean radiance."""
        return self.accumulated / self.samples_per_pixel


def sanitize_sample(color: Color) -> Tuple[Color, bool]:
    """Replace non-finite components of a sample with zero.

    Returns:
        Tuple of (sanitized color, whether anything was replaced)
    """
    data = color.to_array()
    bad = ~np.isfinite(data)
    if not bad.any():
        return color, False
    data[bad] = 0.0
    return Color.from_array(data), True


class Renderer:
    """Path tracing renderer with multi-threading support."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self.integrator = PathIntegrator(
            background=self.settings.background_color,
            use_sky_gradient=self.settings.use_sky_gradient,
            light_sampling_weight=self.settings.light_sampling_weight,
        )
        self._progress_callback: Optional[Callable[[float], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def render(self, scene: Hittable, camera: Camera, lights: Lights = None) -> RenderResult:
        """Render the scene.

        Args:
            scene: The scene to render (any Hittable)
            camera: The camera to render from
            lights: Geometry to importance sample (None disables light sampling)

        Returns:
            RenderResult with unnormalized accumulated radiance
        """
        width = self.settings.width
        height = self.settings.height
        samples = self.settings.samples_per_pixel
        max_depth = self.settings.max_depth

        accumulated = np.zeros((height, width, 3), dtype=np.float64)

        tiles = self._generate_tiles(width, height)
        seeds = np.random.SeedSequence(self.settings.seed).spawn(len(tiles))
        total_tiles = len(tiles)
        completed_tiles = [0]  # Use list for mutable in closure
        progress_lock = threading.Lock()

        logger.info(
            "Rendering %dx%d, %d spp, depth %d, light weight %.2f, %d tiles",
            width, height, samples, max_depth,
            self.settings.light_sampling_weight, total_tiles
        )

        def render_tile(job: Tuple[Tuple[int, int, int, int], np.random.SeedSequence]) -> Tuple[Tuple, np.ndarray, int]:
            """Render a single tile with its own random stream."""
            tile, seed = job
            rng = np.random.default_rng(seed)
            x0, y0, x1, y1 = tile
            tile_image = np.zeros((y1 - y0, x1 - x0, 3), dtype=np.float64)
            nonfinite = 0

            for j in range(y1 - y0):
                for i in range(x1 - x0):
                    for _ in range(samples):
                        u = (x0 + i + rng.random()) / max(width - 1, 1)
                        v = (height - 1 - (y0 + j) + rng.random()) / max(height - 1, 1)

                        ray = camera.get_ray(u, v, rng)
                        color = self.integrator.ray_color(ray, scene, lights, max_depth, rng)
                        color, replaced = sanitize_sample(color)
                        nonfinite += replaced
                        tile_image[j, i] += color.to_array()

            with progress_lock:
                completed_tiles[0] += 1
                done = completed_tiles[0]
                logger.debug("Finished tile %s (%d/%d)", tile, done, total_tiles)
                if self._progress_callback:
                    self._progress_callback(done / total_tiles)

            return tile, tile_image, nonfinite

        jobs = list(zip(tiles, seeds))
        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                results = list(executor.map(render_tile, jobs))
        else:
            results = [render_tile(job) for job in jobs]

        nonfinite_total = 0
        for tile, tile_image, nonfinite in results:
            x0, y0, x1, y1 = tile
            accumulated[y0:y1, x0:x1] = tile_image
            nonfinite_total += nonfinite

        if nonfinite_total:
            logger.warning("Zeroed %d non-finite samples", nonfinite_total)
        logger.info("Render finished")

        return RenderResult(accumulated, samples, nonfinite_total)

    def _generate_tiles(self, width: int, height: int) -> list[Tuple[int, int, int, int]]:
        """Split the image into tiles of (x0, y0, x1, y1)."""
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles

    def to_ldr(self, hdr_image: np.ndarray) -> np.ndarray:
        """Convert an averaged HDR image to 8-bit with gamma correction."""
        gamma = self.settings.gamma
        corrected = np.power(np.clip(hdr_image, 0, None), 1.0 / gamma)
        return np.clip(corrected * 255, 0, 255).astype(np.uint8)

    def save_image(self, image: np.ndarray, filename: str) -> None:
        """Save image to file (format from the extension, via Pillow).

        Args:
            image: Averaged HDR image (float) or 8-bit image
            filename: Output filename
        """
        from PIL import Image as PILImage

        if image.dtype == np.float64 or image.dtype == np.float32:
            image = self.to_ldr(image)

        PILImage.fromarray(image).save(filename)
        logger.info("Saved %s", filename)
