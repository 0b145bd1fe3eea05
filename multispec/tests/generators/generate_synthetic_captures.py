#!/usr/bin/env python3
"""
Generate synthetic white-light / UV blister captures for testing multispec.

The generator draws one blister-pack scene and crops it twice, once per
sensor, with a known row offset between the crops. Merging the pair with that
offset as ``shift`` realigns the scene: below the zero-filled margin, row r
of the composite shows scene row r in both its blue (white) and green (UV)
channels.

Usage:
    from multispec.tests.generators.generate_synthetic_captures import SyntheticBlisterGenerator

    generator = SyntheticBlisterGenerator(image_size=(120, 160), row_offset=6, random_seed=0)
    white, uv = generator.generate_pair()
    generator.write_pair("path/to/output")
"""

from pathlib import Path

import cv2
import numpy as np


class SyntheticBlisterGenerator:
    """Generate a pair of offset captures of the same synthetic blister pack."""

    def __init__(self,
                 image_size=(240, 320),
                 row_offset=8,
                 pocket_grid=(2, 5),
                 pocket_radius=18,
                 num_contaminants=4,
                 contaminant_radius_range=(2, 5),
                 foil_intensity=170,
                 pocket_intensity=90,
                 uv_glow_intensity=240,
                 noise_level=4,
                 random_seed=None):
        """
        Initialize the synthetic capture generator.

        Args:
            image_size: (height, width) of each capture
            row_offset: Signed row offset between the sensors; equals the shift that realigns them
            pocket_grid: (rows, cols) of blister pockets
            pocket_radius: Pocket radius in pixels
            num_contaminants: Number of UV-fluorescent specks
            contaminant_radius_range: (min, max) speck radius
            foil_intensity: Foil brightness under white light
            pocket_intensity: Pocket brightness under white light
            uv_glow_intensity: Speck brightness under UV
            noise_level: Standard deviation of additive Gaussian noise
            random_seed: Random seed for reproducibility
        """
        self.image_size = image_size
        self.row_offset = row_offset
        self.pocket_grid = pocket_grid
        self.pocket_radius = pocket_radius
        self.num_contaminants = num_contaminants
        self.contaminant_radius_range = contaminant_radius_range
        self.foil_intensity = foil_intensity
        self.pocket_intensity = pocket_intensity
        self.uv_glow_intensity = uv_glow_intensity
        self.noise_level = noise_level
        self.rng = np.random.default_rng(random_seed)
        self._scene = None

    def _draw_scene(self):
        """Draw the full scene, tall enough to crop both sensor views from it."""
        height, width = self.image_size
        scene_height = height + abs(self.row_offset)

        white = np.full((scene_height, width), self.foil_intensity, dtype=np.float32)
        uv = np.full((scene_height, width), 20, dtype=np.float32)

        rows, cols = self.pocket_grid
        for i in range(rows):
            for j in range(cols):
                center = (int((j + 0.5) * width / cols), int((i + 0.5) * scene_height / rows))
                cv2.circle(white, center, self.pocket_radius, float(self.pocket_intensity), -1)

        for _ in range(self.num_contaminants):
            center = (int(self.rng.integers(0, width)), int(self.rng.integers(0, scene_height)))
            radius = int(self.rng.integers(*self.contaminant_radius_range, endpoint=True))
            cv2.circle(uv, center, radius, float(self.uv_glow_intensity), -1)
            cv2.circle(white, center, radius, float(self.pocket_intensity) * 0.8, -1)

        if self.noise_level > 0:
            white += self.rng.normal(0, self.noise_level, white.shape)
            uv += self.rng.normal(0, self.noise_level, uv.shape)

        return (np.clip(white, 0, 255).astype(np.uint8),
                np.clip(uv, 0, 255).astype(np.uint8))

    @staticmethod
    def _to_bgr(gray):
        return np.ascontiguousarray(np.repeat(gray[:, :, np.newaxis], 3, axis=2))

    def generate_scene(self):
        """Return the uncropped (white, uv) grayscale scenes; drawn once per generator."""
        if self._scene is None:
            self._scene = self._draw_scene()
        return self._scene

    def generate_pair(self):
        """
        Return (white, uv) as (H, W, 3) uint8 BGR captures.

        For ``row_offset >= 0`` the UV sensor sees scene rows ``[0, H)`` and the
        white sensor rows ``[offset, offset + H)``; a negative offset swaps them.
        """
        height, _ = self.image_size
        offset = abs(self.row_offset)
        white_scene, uv_scene = self.generate_scene()

        if self.row_offset >= 0:
            white = white_scene[offset:offset + height]
            uv = uv_scene[:height]
        else:
            white = white_scene[:height]
            uv = uv_scene[offset:offset + height]

        return self._to_bgr(white), self._to_bgr(uv)

    def write_pair(self, output_dir, extension=".png"):
        """Write the pair as white{ext} and uv{ext}; returns both paths."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        white, uv = self.generate_pair()
        white_path = output_dir / f"white{extension}"
        uv_path = output_dir / f"uv{extension}"
        cv2.imwrite(str(white_path), white)
        cv2.imwrite(str(uv_path), uv)
        return white_path, uv_path
