import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest
from shapely.geometry import Point, Polygon

from modules.contour import (
    GeometryStrategy,
    ShapelyGeometryStrategy,
    circle_radius_km,
    color_for_threshold,
    extract,
)
from modules.sampler import AnchoredField, TravelTimeSample, generate_radial_samples
from utils.geo import destination_point, haversine_km

ORIGIN = (11.5600, 48.1402)


def _dense_anchors():
    """Anchors on a 9x9 grid around the origin, timed at 20 km/h."""
    anchors = []
    for i in range(-4, 5):
        for j in range(-4, 5):
            if i == 0 and j == 0:
                continue
            lon = ORIGIN[0] + i * 0.005
            lat = ORIGIN[1] + j * 0.005
            minutes = haversine_km(*ORIGIN, lon, lat) / 20 * 60
            anchors.append(TravelTimeSample(lon=lon, lat=lat, minutes=minutes))
    return anchors


class RecordingStrategy(GeometryStrategy):
    """Fails every attempt but remembers the order it was asked in."""

    def __init__(self, succeed_at=None):
        self.calls = []
        self.succeed_at = succeed_at
        self._real = ShapelyGeometryStrategy()

    def _answer(self, name, samples, origin):
        self.calls.append(name)
        if name == self.succeed_at:
            return self._real.try_convex_hull(samples, origin)
        return None

    def try_isoline(self, samples, threshold, field, origin, grid_size):
        return self._answer("isoline", samples, origin)

    def try_concave_hull(self, samples, origin, max_edge_km):
        return self._answer("concave_hull", samples, origin)

    def try_convex_hull(self, samples, origin):
        return self._answer("convex_hull", samples, origin)

    def circle(self, origin, radius_km, segments):
        self.calls.append("circle")
        return self._real.circle(origin, radius_km, segments)


def test_palette_buckets():
    assert color_for_threshold(5) == "#1a9641"
    assert color_for_threshold(15) == "#1a9641"
    assert color_for_threshold(16) == "#a6d96a"
    assert color_for_threshold(30) == "#a6d96a"
    assert color_for_threshold(45) == "#ffffc0"
    assert color_for_threshold(46) == "#fdae61"
    assert color_for_threshold(60) == "#fdae61"


@pytest.mark.parametrize("threshold,radius", [(15, 0.5), (30, 1.0), (60, 2.0)])
def test_few_samples_give_circle_of_scaled_radius(threshold, radius):
    samples = [
        TravelTimeSample(lon=ORIGIN[0], lat=ORIGIN[1], minutes=0),
        TravelTimeSample(lon=ORIGIN[0] + 0.01, lat=ORIGIN[1], minutes=4),
        TravelTimeSample(lon=ORIGIN[0], lat=ORIGIN[1] + 0.01, minutes=5),
        TravelTimeSample(lon=ORIGIN[0] + 0.3, lat=ORIGIN[1], minutes=90),
    ]
    polygon, method = extract(samples, threshold, ORIGIN)

    assert method == "circle"
    assert circle_radius_km(threshold) == pytest.approx(radius)
    ring = list(polygon.exterior.coords)
    assert len(ring) == 65
    for lon, lat in ring:
        assert haversine_km(*ORIGIN, lon, lat) == pytest.approx(radius, rel=1e-6)
    assert polygon.is_valid


def test_radial_samples_fall_back_to_convex_hull():
    samples = generate_radial_samples(*ORIGIN)
    polygon, method = extract(samples, 30, ORIGIN)

    # radial spacing (1.5 km) is wider than the concave hull edge limit
    assert method == "convex_hull"
    assert polygon.is_valid
    assert polygon.contains(Point(ORIGIN))
    edge = destination_point(*ORIGIN, 14.0, 90.0)
    assert polygon.contains(Point(edge))


def test_anchored_field_uses_isoline():
    field = AnchoredField(*ORIGIN, _dense_anchors())
    samples = field.samples(grid_size=24)
    polygon, method = extract(samples, 4, ORIGIN, field=field)

    assert method == "isoline"
    assert isinstance(polygon, Polygon)
    assert polygon.is_valid
    assert not polygon.is_empty
    assert polygon.contains(Point(ORIGIN))
    # 4 minutes at 20 km/h is about 1.33 km
    inside = destination_point(*ORIGIN, 1.0, 45.0)
    outside = destination_point(*ORIGIN, 1.7, 45.0)
    assert polygon.contains(Point(inside))
    assert not polygon.contains(Point(outside))


def test_concave_hull_on_dense_points():
    field = AnchoredField(*ORIGIN, _dense_anchors())
    samples = field.samples(grid_size=24)
    polygon, method = extract(samples, 4, ORIGIN)

    assert method == "concave_hull"
    assert polygon.is_valid
    assert polygon.contains(Point(ORIGIN))


def test_isoline_skipped_without_field():
    strategy = RecordingStrategy()
    extract(generate_radial_samples(*ORIGIN), 30, ORIGIN, strategy=strategy)
    assert strategy.calls == ["concave_hull", "convex_hull", "circle"]


def test_fallback_order_with_field():
    field = AnchoredField(*ORIGIN, _dense_anchors())
    samples = field.samples(grid_size=12)

    strategy = RecordingStrategy()
    _, method = extract(samples, 4, ORIGIN, field=field, strategy=strategy)
    assert strategy.calls == ["isoline", "concave_hull", "convex_hull", "circle"]
    assert method == "circle"

    strategy = RecordingStrategy(succeed_at="concave_hull")
    _, method = extract(samples, 4, ORIGIN, field=field, strategy=strategy)
    assert strategy.calls == ["isoline", "concave_hull"]
    assert method == "concave_hull"


def test_degenerate_points_reach_circle():
    samples = [
        TravelTimeSample(lon=ORIGIN[0] + k * 0.001, lat=ORIGIN[1], minutes=k)
        for k in range(6)
    ]
    polygon, method = extract(samples, 15, ORIGIN)
    assert method == "circle"
    assert polygon.is_valid


def test_extract_never_empty():
    samples = generate_radial_samples(*ORIGIN)
    for threshold in (5, 10, 15, 20, 30, 45, 60):
        polygon, _ = extract(samples, threshold, ORIGIN)
        assert not polygon.is_empty
        assert polygon.is_valid
        assert polygon.area > 0
