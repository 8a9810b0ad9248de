"""Perceptual override for images classified TEXT_HEAVY by keyword.

An image whose background dominates (many low-entropy grid cells), with a
calm center and no busy corner (burned-in logo), is safe for text overlay
even if its label said "cover" or "poster".

Entropy is the Shannon entropy, in bits, of the 8-bit grayscale histogram
(0 for a flat region, up to 8 for uniform noise).
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from animeintel.config import PipelineSettings
from animeintel.visuals.image_types import Classification, ScoredImage


logger = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]

CORNER_FRACTION = 0.15


@dataclass(frozen=True)
class RegionEntropy:
    grid: Tuple[float, ...]  # 9 cells, row-major
    center: float
    corners: Tuple[float, float, float, float]  # tl, tr, bl, br


def _grid_boxes(width: int, height: int, n: int = 3) -> List[Box]:
    boxes = []
    for row in range(n):
        for col in range(n):
            boxes.append(
                (
                    col * width // n,
                    row * height // n,
                    (col + 1) * width // n,
                    (row + 1) * height // n,
                )
            )
    return boxes


def _center_box(width: int, height: int) -> Box:
    return (width // 4, height // 4, width - width // 4, height - height // 4)


def _corner_boxes(width: int, height: int) -> List[Box]:
    cw = max(1, int(width * CORNER_FRACTION))
    ch = max(1, int(height * CORNER_FRACTION))
    return [
        (0, 0, cw, ch),
        (width - cw, 0, width, ch),
        (0, height - ch, cw, height),
        (width - cw, height - ch, width, height),
    ]


def measure_regions(image: Image.Image) -> RegionEntropy:
    gray = image.convert("L")
    w, h = gray.size
    grid = tuple(gray.crop(b).entropy() for b in _grid_boxes(w, h))
    center = gray.crop(_center_box(w, h)).entropy()
    tl, tr, bl, br = (gray.crop(b).entropy() for b in _corner_boxes(w, h))
    return RegionEntropy(grid=grid, center=center, corners=(tl, tr, bl, br))


def override_allows_clean(regions: RegionEntropy, settings: PipelineSettings) -> bool:
    flat = sum(1 for e in regions.grid if e < settings.flat_cell_entropy)
    if flat < settings.min_flat_cells:
        return False
    if regions.center > settings.center_entropy_limit:
        return False
    if any(c > settings.corner_entropy_limit for c in regions.corners):
        return False
    return True


def _load(content: bytes) -> Optional[Image.Image]:
    try:
        img = Image.open(io.BytesIO(content))
        img.load()
        return img
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None


def apply_visual_override(candidate: ScoredImage, settings: PipelineSettings) -> ScoredImage:
    """Flip TEXT_HEAVY to CLEAN when the pixels say the image is mostly background."""
    if candidate.classification != Classification.TEXT_HEAVY or not candidate.content:
        return candidate
    img = _load(candidate.content)
    if img is None:
        return candidate
    regions = measure_regions(img)
    if override_allows_clean(regions, settings):
        logger.info(
            "Visual override: %s reclassified CLEAN (center=%.2f, corners max=%.2f)",
            candidate.url,
            regions.center,
            max(regions.corners),
        )
        candidate.classification = Classification.CLEAN
    return candidate
