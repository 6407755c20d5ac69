"""Pixel statistics over sampled image regions."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

# Broadcast luma weights for R, G, B
LUMA_WEIGHTS_RGB = np.array([0.299, 0.587, 0.114], dtype=np.float32)


@dataclass(frozen=True)
class SampleBox:
    """Pixel rectangle (x1, y1, x2, y2), end-exclusive."""

    x1: int
    y1: int
    x2: int
    y2: int

    def within(self, width: int, height: int) -> bool:
        return self.x1 >= 0 and self.y1 >= 0 and self.x2 <= width and self.y2 <= height


@dataclass(frozen=True)
class RegionStats:
    """Statistics of one sampled region (0-255 scale)."""

    avg_luma: float
    luma_std: float
    avg_chroma: float
    max_chroma: float
    dark_fraction: float
    pixel_count: int


def sample_box(
    x: float,
    y: float,
    image_width: int,
    image_height: int,
    width_fraction: float,
    height_fraction: float,
) -> SampleBox:
    """
    Compute the sampling box for a normalized lot coordinate.

    Args:
        x, y: Normalized coordinates (0-100)
        image_width, image_height: Image size in pixels
        width_fraction, height_fraction: Box size relative to image size

    Returns:
        SampleBox centered on the converted pixel coordinate. It may extend
        past the image edges; callers check ``within``.
    """
    cx = x / 100.0 * image_width
    cy = y / 100.0 * image_height
    box_w = max(1, round(width_fraction * image_width))
    box_h = max(1, round(height_fraction * image_height))

    x1 = int(round(cx - box_w / 2))
    y1 = int(round(cy - box_h / 2))
    return SampleBox(x1=x1, y1=y1, x2=x1 + box_w, y2=y1 + box_h)


def compute_region_stats(
    block: np.ndarray,
    dark_luma: float,
    channel_order: str = "bgr",
) -> RegionStats:
    """
    Compute luminance, chroma, shadow and texture statistics for a pixel block.

    Args:
        block: HxWx3 (or HxWx4, alpha ignored) uint8 array
        dark_luma: Luminance below which a pixel counts as shadow
        channel_order: "bgr" for OpenCV images, "rgb" otherwise

    Returns:
        RegionStats for the block
    """
    if block.ndim != 3 or block.shape[2] < 3:
        raise ValueError(f"Expected a colour image block, got shape {block.shape}")

    pixels = block[:, :, :3].reshape(-1, 3).astype(np.float32)
    if channel_order == "bgr":
        pixels = pixels[:, ::-1]
    elif channel_order != "rgb":
        raise ValueError(f"Unsupported channel order: {channel_order}")

    luma = pixels @ LUMA_WEIGHTS_RGB
    chroma = pixels.max(axis=1) - pixels.min(axis=1)

    return RegionStats(
        avg_luma=float(luma.mean()),
        luma_std=float(luma.std()),
        avg_chroma=float(chroma.mean()),
        max_chroma=float(chroma.max()),
        dark_fraction=float((luma < dark_luma).mean()),
        pixel_count=int(luma.size),
    )


def crop(image: np.ndarray, box: SampleBox) -> Optional[np.ndarray]:
    """Return the pixels inside ``box``, or None if it leaves the image."""
    height, width = image.shape[:2]
    if not box.within(width, height):
        return None
    return image[box.y1:box.y2, box.x1:box.x2]
