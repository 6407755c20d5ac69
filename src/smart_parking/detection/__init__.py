"""Occupancy detection module."""

from .occupancy_classifier import OccupancyClassifier, RegionResult, Rule, RULES, decode_image, evaluate_rules
from .pixel_stats import RegionStats, SampleBox, compute_region_stats, sample_box

__all__ = [
    "OccupancyClassifier",
    "RegionResult",
    "Rule",
    "RULES",
    "decode_image",
    "evaluate_rules",
    "RegionStats",
    "SampleBox",
    "compute_region_stats",
    "sample_box",
]
