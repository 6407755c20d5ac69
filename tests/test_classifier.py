"""
Occupancy classifier tests
"""

import cv2
import numpy as np
import pytest

from lot_tool.demo_lot import render_demo_lot
from smart_parking.config import ClassifierConfig
from smart_parking.detection.occupancy_classifier import (
    RULES,
    OccupancyClassifier,
    decode_image,
    evaluate_rules,
)
from smart_parking.detection.pixel_stats import RegionStats, compute_region_stats, sample_box
from smart_parking.errors import ImageDecodeError
from smart_parking.state.models import Spot
from smart_parking.state.spot_manager import seed_layout


def stats(luma, std, chroma, max_chroma=None, dark=0.0):
    return RegionStats(
        avg_luma=luma,
        luma_std=std,
        avg_chroma=chroma,
        max_chroma=chroma if max_chroma is None else max_chroma,
        dark_fraction=dark,
        pixel_count=100,
    )


@pytest.fixture
def config():
    return ClassifierConfig()


@pytest.fixture
def classifier():
    return OccupancyClassifier()


# ============================================================================
# Pixel statistics
# ============================================================================

def test_sample_box_centered():
    """Box is centered on the converted pixel coordinate"""
    box = sample_box(50, 50, 800, 600, 0.045, 0.09)

    assert box.x2 - box.x1 == 36
    assert box.y2 - box.y1 == 54
    assert (box.x1 + box.x2) / 2 == pytest.approx(400, abs=1)
    assert (box.y1 + box.y2) / 2 == pytest.approx(300, abs=1)
    assert box.within(800, 600)


def test_sample_box_at_edge_leaves_image():
    box = sample_box(0, 50, 800, 600, 0.045, 0.09)
    assert not box.within(800, 600)


def test_uniform_block_stats():
    block = np.full((10, 10, 3), 128, dtype=np.uint8)
    s = compute_region_stats(block, dark_luma=55)

    assert s.avg_luma == pytest.approx(128, abs=0.01)
    assert s.luma_std == pytest.approx(0, abs=1e-3)
    assert s.avg_chroma == 0
    assert s.max_chroma == 0
    assert s.dark_fraction == 0
    assert s.pixel_count == 100


def test_channel_order_affects_luma():
    """Pure red in BGR and RGB layouts gives the same luminance"""
    bgr = np.zeros((4, 4, 3), dtype=np.uint8)
    bgr[:, :, 2] = 255
    rgb = np.zeros((4, 4, 3), dtype=np.uint8)
    rgb[:, :, 0] = 255

    assert compute_region_stats(bgr, 55, "bgr").avg_luma == pytest.approx(0.299 * 255, rel=1e-4)
    assert compute_region_stats(rgb, 55, "rgb").avg_luma == pytest.approx(0.299 * 255, rel=1e-4)
    assert compute_region_stats(bgr, 55, "bgr").avg_chroma == 255


def test_dark_fraction():
    block = np.full((10, 10, 3), 200, dtype=np.uint8)
    block[:3] = 10
    assert compute_region_stats(block, dark_luma=55).dark_fraction == pytest.approx(0.3)


# ============================================================================
# Rules
# ============================================================================

def test_signage_is_available(config):
    """Bright, flat, grey paint never counts as a car"""
    rule = evaluate_rules(stats(luma=220, std=2, chroma=1), config)
    assert rule.name == "signage"
    assert not rule.occupied


def test_saturated_textured_patch_is_occupied(config):
    rule = evaluate_rules(stats(luma=90, std=15, chroma=80), config)
    assert rule.name == "colorful_textured"
    assert rule.occupied


def test_signage_wins_over_busy(config):
    """Rule order: signage is checked before anything else"""
    custom = config.model_copy(update={"busy_std": 1.0})
    rule = evaluate_rules(stats(luma=220, std=2, chroma=1), custom)
    assert rule.name == "signage"


def test_flat_colour_car(config):
    rule = evaluate_rules(stats(luma=100, std=0, chroma=150), config)
    assert rule.name == "colorful_flat"
    assert rule.occupied


def test_max_chroma_alone_counts_as_colorful(config):
    rule = evaluate_rules(stats(luma=100, std=0, chroma=5, max_chroma=60), config)
    assert rule.name == "colorful_flat"


def test_colour_on_near_white_is_not_flat_car(config):
    """Faint tint on near-white falls through to the default"""
    rule = evaluate_rules(stats(luma=240, std=0, chroma=15), config)
    assert rule.name == "default"
    assert not rule.occupied


def test_textured_with_shadow(config):
    rule = evaluate_rules(stats(luma=90, std=12, chroma=3, dark=0.2), config)
    assert rule.name == "textured_shadow"
    assert rule.occupied


def test_textured_without_shadow_is_available(config):
    rule = evaluate_rules(stats(luma=90, std=12, chroma=3, dark=0.01), config)
    assert rule.name == "default"


def test_busy_region(config):
    rule = evaluate_rules(stats(luma=120, std=30, chroma=3, dark=0.0), config)
    assert rule.name == "busy"
    assert rule.occupied


def test_plain_asphalt_is_available(config):
    rule = evaluate_rules(stats(luma=60, std=1, chroma=0), config)
    assert rule.name == "default"
    assert not rule.occupied


def test_rule_list_ends_with_catch_all():
    assert RULES[-1].name == "default"
    assert [r.name for r in RULES][:5] == [
        "signage",
        "colorful_textured",
        "colorful_flat",
        "textured_shadow",
        "busy",
    ]


# ============================================================================
# classify
# ============================================================================

def test_bright_grey_image_is_all_available(classifier):
    image = np.full((600, 800, 3), 220, dtype=np.uint8)
    assert classifier.classify(image, seed_layout()) == set()


def test_striped_red_patch_is_occupied(classifier):
    image = np.full((600, 800, 3), 60, dtype=np.uint8)
    # Alternate two reds (BGR) around the centre spot
    image[250:350, 350:450] = (0, 0, 150)
    image[250:350:2, 350:450] = (0, 0, 250)

    spots = [Spot(id="C", x=50, y=50), Spot(id="E", x=20, y=20)]
    assert classifier.classify(image, spots) == {"C"}


def test_out_of_bounds_region_is_skipped(classifier):
    image = np.zeros((600, 800, 3), dtype=np.uint8)
    image[:, :] = (0, 0, 255)

    spots = [Spot(id="edge", x=0, y=0), Spot(id="inside", x=50, y=50)]
    results = {r.spot_id: r for r in classifier.classify_detailed(image, spots)}

    assert results["edge"].stats is None
    assert not results["edge"].occupied
    assert results["inside"].occupied


def test_result_is_subset_of_regions(classifier):
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(600, 800, 3), dtype=np.uint8)
    spots = seed_layout()

    occupied = classifier.classify(image, spots)
    assert occupied <= {s.id for s in spots}


def test_demo_lot(classifier):
    """Rendered demo lot: cars detected, empty bays and accessible marker ignored"""
    spots = seed_layout()
    image = render_demo_lot(spots, ["A2", "A4", "B1", "B4"])

    assert classifier.classify(image, spots) == {"A2", "A4", "B1", "B4"}


# ============================================================================
# decode_image
# ============================================================================

def test_decode_png_roundtrip():
    image = np.full((20, 30, 3), 99, dtype=np.uint8)
    ok, buf = cv2.imencode(".png", image)
    assert ok

    decoded = decode_image(buf.tobytes())
    assert decoded.shape == (20, 30, 3)


@pytest.mark.parametrize("payload", [b"", b"not an image"])
def test_decode_rejects_garbage(payload):
    with pytest.raises(ImageDecodeError):
        decode_image(payload)
