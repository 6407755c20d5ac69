"""Heuristic occupancy classification from pixel statistics."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from ..config import ClassifierConfig
from ..errors import ImageDecodeError
from ..metrics import record_rule_match
from ..state.models import Spot
from .pixel_stats import RegionStats, SampleBox, compute_region_stats, crop, sample_box

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rule:
    """One step of the decision policy: if ``predicate`` holds, ``occupied`` is the verdict."""

    name: str
    predicate: Callable[[RegionStats, ClassifierConfig], bool]
    occupied: bool


def is_signage(s: RegionStats, c: ClassifierConfig) -> bool:
    """Bright, flat and grey: painted letters, icons and lane lines."""
    return s.avg_luma > c.signage_luma and s.luma_std < c.signage_std and s.avg_chroma < c.signage_chroma


def is_colorful(s: RegionStats, c: ClassifierConfig) -> bool:
    return s.avg_chroma > c.chroma_avg or s.max_chroma > c.chroma_max


def is_textured(s: RegionStats, c: ClassifierConfig) -> bool:
    return s.luma_std > c.texture_std


# Evaluated in order, first match wins
RULES: list[Rule] = [
    Rule("signage", is_signage, occupied=False),
    Rule("colorful_textured", lambda s, c: is_colorful(s, c) and is_textured(s, c), occupied=True),
    Rule("colorful_flat", lambda s, c: is_colorful(s, c) and s.avg_luma < c.near_white_luma, occupied=True),
    Rule("textured_shadow", lambda s, c: is_textured(s, c) and s.dark_fraction > c.shadow_fraction, occupied=True),
    Rule("busy", lambda s, c: s.luma_std > c.busy_std, occupied=True),
    Rule("default", lambda s, c: True, occupied=False),
]


def evaluate_rules(
    stats: RegionStats,
    config: ClassifierConfig,
    rules: Optional[list[Rule]] = None,
) -> Rule:
    """Return the first rule whose predicate matches ``stats``."""
    for rule in rules if rules is not None else RULES:
        if rule.predicate(stats, config):
            return rule
    raise ValueError("Rule list has no catch-all entry")


@dataclass
class RegionResult:
    """Per-spot classification diagnostics."""

    spot_id: str
    box: SampleBox
    stats: Optional[RegionStats]  # None when the box left the image
    rule: Optional[str]
    occupied: bool


class OccupancyClassifier:
    """
    Decides which parking spots are occupied from simple pixel statistics.

    Meant for stylized or demo lot imagery: each spot is sampled with a box a
    bit smaller than the painted bay, and an ordered rule list turns the
    region's luminance, chroma, shadow and texture statistics into a verdict.
    """

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        channel_order: str = "bgr",
    ):
        """
        Initialize the classifier.

        Args:
            config: Thresholds and sample box size
            channel_order: Channel order of images passed in ("bgr" for OpenCV)
        """
        self.config = config or ClassifierConfig()
        self.channel_order = channel_order
        self.rules = list(RULES)

    def classify_detailed(self, image: np.ndarray, regions: Iterable[Spot]) -> list[RegionResult]:
        """
        Classify every region and keep the statistics behind each verdict.

        Regions whose sample box falls partly outside the image are reported
        as not occupied with no statistics.
        """
        height, width = image.shape[:2]
        results = []

        for spot in regions:
            box = sample_box(
                spot.x,
                spot.y,
                width,
                height,
                self.config.box_width_fraction,
                self.config.box_height_fraction,
            )
            block = crop(image, box)

            if block is None:
                logger.debug(f"Sample box for spot {spot.id} leaves the image, skipping")
                results.append(RegionResult(spot.id, box, None, None, False))
                continue

            stats = compute_region_stats(block, self.config.dark_luma, self.channel_order)
            rule = evaluate_rules(stats, self.config, self.rules)
            record_rule_match(rule.name)

            logger.debug(
                f"Spot {spot.id}: luma={stats.avg_luma:.1f} std={stats.luma_std:.1f} "
                f"chroma={stats.avg_chroma:.1f}/{stats.max_chroma:.0f} "
                f"dark={stats.dark_fraction:.2f} -> {rule.name}"
            )
            results.append(RegionResult(spot.id, box, stats, rule.name, rule.occupied))

        return results

    def classify(self, image: np.ndarray, regions: Iterable[Spot]) -> set[str]:
        """
        Return the ids of the regions classified as occupied.

        Args:
            image: Decoded image as a HxWx3 uint8 array
            regions: Spots to sample (only ids and positions are used)

        Returns:
            Subset of the region ids that look occupied
        """
        return {r.spot_id for r in self.classify_detailed(image, regions) if r.occupied}


def decode_image(image_bytes: bytes) -> np.ndarray:
    """
    Decode an uploaded image into an OpenCV BGR array.

    Raises:
        ImageDecodeError: If the bytes are empty or not a decodable image
    """
    if not image_bytes:
        raise ImageDecodeError("Empty image upload")

    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if image is None:
        raise ImageDecodeError("Failed to decode image bytes")

    return image
