import math
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest

from modules.sampler import (
    AnchoredField,
    SamplerOptions,
    TravelTimeSample,
    find_nearest_samples,
    generate_perturbed_samples,
    generate_radial_samples,
)
from utils.geo import haversine_km

ORIGIN = (11.5600, 48.1402)  # Hauptbahnhof


def _anchors():
    return [
        TravelTimeSample(lon=11.5765, lat=48.1366, minutes=5),
        TravelTimeSample(lon=11.5665, lat=48.1344, minutes=7),
        TravelTimeSample(lon=11.5772, lat=48.1425, minutes=8),
        TravelTimeSample(lon=11.6068, lat=48.1268, minutes=12),
        TravelTimeSample(lon=11.5532, lat=48.1752, minutes=18),
    ]


def test_radial_sample_layout():
    samples = generate_radial_samples(*ORIGIN)
    assert len(samples) == 1 + 24 * 10
    assert samples[0] == TravelTimeSample(lon=ORIGIN[0], lat=ORIGIN[1], minutes=0.0)

    farthest = max(samples, key=lambda s: s.minutes)
    assert farthest.minutes == pytest.approx(30.0)
    assert haversine_km(*ORIGIN, farthest.lon, farthest.lat) == pytest.approx(15.0, rel=1e-6)


def test_radial_sampling_is_deterministic():
    options = SamplerOptions(num_radials=8, points_per_radial=4, max_distance_km=4, average_speed_kmh=20)
    first = generate_radial_samples(*ORIGIN, options)
    second = generate_radial_samples(*ORIGIN, options)
    assert first == second
    assert len(first) == 1 + 8 * 4
    assert first[4].minutes == pytest.approx(4 / 20 * 60)


def test_perturbed_sampling_is_seeded_and_bounded():
    base = generate_radial_samples(*ORIGIN)
    one = generate_perturbed_samples(*ORIGIN, seed=42)
    two = generate_perturbed_samples(*ORIGIN, seed=42)
    other = generate_perturbed_samples(*ORIGIN, seed=43)

    assert one == two
    assert one != other
    assert one[0].minutes == 0.0
    for b, p in zip(base[1:], one[1:]):
        assert (b.lon, b.lat) == (p.lon, p.lat)
        assert 0.7 * b.minutes <= p.minutes <= 1.3 * b.minutes


def test_anchored_field_exact_at_anchors():
    field = AnchoredField(*ORIGIN, _anchors())
    assert field.is_triangulated
    assert field.evaluate(*ORIGIN) == 0.0
    for anchor in _anchors():
        assert field.evaluate(anchor.lon, anchor.lat) == anchor.minutes


def test_anchored_field_barycentric_inside_triangle():
    anchors = [
        TravelTimeSample(lon=11.60, lat=48.14, minutes=9),
        TravelTimeSample(lon=11.58, lat=48.17, minutes=21),
    ]
    field = AnchoredField(*ORIGIN, anchors)
    centroid_lon = (ORIGIN[0] + 11.60 + 11.58) / 3
    centroid_lat = (ORIGIN[1] + 48.14 + 48.17) / 3
    assert field.evaluate(centroid_lon, centroid_lat) == pytest.approx(10.0, abs=1e-6)


def test_anchored_field_outside_uses_nearest_anchors():
    field = AnchoredField(*ORIGIN, _anchors())
    value = field.evaluate(11.90, 48.50)
    assert math.isfinite(value)
    assert 0.0 <= value <= 18.0


def test_anchored_field_collinear_anchors():
    anchors = [
        TravelTimeSample(lon=ORIGIN[0] + 0.01, lat=ORIGIN[1], minutes=4),
        TravelTimeSample(lon=ORIGIN[0] + 0.02, lat=ORIGIN[1], minutes=8),
    ]
    field = AnchoredField(*ORIGIN, anchors)
    assert not field.is_triangulated
    assert field.evaluate(ORIGIN[0] + 0.02, ORIGIN[1]) == 8
    assert 4 < field.evaluate(ORIGIN[0] + 0.015, ORIGIN[1]) < 8


def test_duplicate_anchor_keeps_fastest_time():
    anchors = [
        TravelTimeSample(lon=11.58, lat=48.15, minutes=9),
        TravelTimeSample(lon=11.58, lat=48.15, minutes=4),
    ]
    field = AnchoredField(*ORIGIN, anchors)
    assert field.anchor_count == 2
    assert field.evaluate(11.58, 48.15) == 4


def test_anchor_at_origin_collapses_into_origin():
    anchors = _anchors() + [TravelTimeSample(lon=ORIGIN[0], lat=ORIGIN[1], minutes=4)]
    field = AnchoredField(*ORIGIN, anchors)
    assert field.anchor_count == len(_anchors()) + 1
    assert field.evaluate(*ORIGIN) == 0.0


def test_field_samples_are_restartable_and_include_origin():
    field = AnchoredField(*ORIGIN, _anchors())
    first = field.samples(grid_size=12)
    second = field.samples(grid_size=12)

    assert first == second
    assert first[0] == TravelTimeSample(lon=ORIGIN[0], lat=ORIGIN[1], minutes=0.0)
    assert len(first) > len(_anchors()) + 1
    assert all(s.minutes >= 0 for s in first)


def test_from_connectivity_skips_unknown_stops():
    field = AnchoredField.from_connectivity(
        *ORIGIN,
        {"2": 5.0, "ghost": 3.0},
        {"2": (11.5765, 48.1366)},
    )
    assert field.anchor_count == 2


def test_find_nearest_samples():
    samples = generate_radial_samples(*ORIGIN)
    nearest = find_nearest_samples(*ORIGIN, samples, n=3)
    assert nearest[0].minutes == 0.0
    assert len(nearest) == 3
    assert all(s.minutes == pytest.approx(3.0) for s in nearest[1:])
