import logging
from typing import Optional, Sequence, Tuple

from shapely.geometry import Polygon

from core.config import settings
from modules.sampler import AnchoredField, TravelTimeSample

from .strategy import GeometryStrategy, LonLat, ShapelyGeometryStrategy

logger = logging.getLogger(__name__)

# Below this many qualifying samples a hull is not trusted; use the circle
MIN_HULL_SAMPLES = 4

PALETTE = (
    (15, "#1a9641"),
    (30, "#a6d96a"),
    (45, "#ffffc0"),
)
PALETTE_OVERFLOW = "#fdae61"


def color_for_threshold(minutes: float) -> str:
    for upper, color in PALETTE:
        if minutes <= upper:
            return color
    return PALETTE_OVERFLOW


def circle_radius_km(threshold: float) -> float:
    return settings.circle_radius_km_per_15min * threshold / 15


def extract(
    samples: Sequence[TravelTimeSample],
    threshold: float,
    origin: LonLat,
    field: Optional[AnchoredField] = None,
    strategy: Optional[GeometryStrategy] = None,
) -> Tuple[Polygon, str]:
    """
    Build the polygon bounding every sample reachable within `threshold`.

    Strategies are tried in order and the first success wins: isoline over
    the interpolated field (only when `field` is given), concave hull, convex
    hull, and finally a circle around the origin. Returns the polygon and the
    name of the strategy that produced it; never returns an empty geometry.
    """
    strategy = strategy or ShapelyGeometryStrategy()
    qualifying = [s for s in samples if s.minutes <= threshold]

    if len(qualifying) >= MIN_HULL_SAMPLES:
        if field is not None:
            polygon = strategy.try_isoline(qualifying, threshold, field, origin, settings.isoline_grid_size)
            if polygon is not None:
                return polygon, "isoline"

        polygon = strategy.try_concave_hull(qualifying, origin, settings.concave_max_edge_km)
        if polygon is not None:
            return polygon, "concave_hull"

        polygon = strategy.try_convex_hull(qualifying, origin)
        if polygon is not None:
            return polygon, "convex_hull"
    else:
        logger.info(
            "Only %d samples within %s min; using circle", len(qualifying), threshold
        )

    return strategy.circle(origin, circle_radius_km(threshold), settings.circle_segments), "circle"
