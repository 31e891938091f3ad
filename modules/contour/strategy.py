import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import Delaunay, QhullError
from shapely.errors import GEOSException
from shapely.geometry import MultiPoint, Point, Polygon, box
from shapely.ops import unary_union

from core.exceptions import GeometryConstructionFailure
from modules.sampler import AnchoredField, TravelTimeSample
from utils.geo import LocalProjection, destination_point, haversine_km

logger = logging.getLogger(__name__)

LonLat = Tuple[float, float]


def _polygon_parts(geom) -> List[Polygon]:
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if hasattr(geom, "geoms"):
        parts: List[Polygon] = []
        for g in geom.geoms:
            parts.extend(_polygon_parts(g))
        return parts
    return []


def _pick_polygon(geom, origin: LonLat, strategy: str) -> Polygon:
    """
    Reduce a union result to one valid polygon: the part holding the origin,
    otherwise the largest part.
    """
    parts = [p for p in _polygon_parts(geom) if p.area > 0]
    if not parts:
        raise GeometryConstructionFailure("empty geometry", strategy=strategy)

    center = Point(origin)
    holding = [p for p in parts if p.intersects(center)]
    polygon = max(holding or parts, key=lambda p: p.area)

    if not polygon.is_valid:
        repaired = [p for p in _polygon_parts(polygon.buffer(0)) if p.area > 0]
        if not repaired:
            raise GeometryConstructionFailure("invalid geometry could not be repaired", strategy=strategy)
        polygon = max(repaired, key=lambda p: p.area)
    return polygon


def _unique_points(samples: Sequence[TravelTimeSample]) -> np.ndarray:
    if not samples:
        return np.empty((0, 2))
    return np.unique(np.array([[s.lon, s.lat] for s in samples], dtype=float), axis=0)


def _clip_triangle(corners: Sequence[Tuple[float, float, float]], threshold: float) -> List[LonLat]:
    """
    Part of a linearly interpolated triangle whose value is <= threshold.
    """
    ring: List[LonLat] = []
    for i in range(3):
        p = corners[i]
        q = corners[(i + 1) % 3]
        p_in = p[2] <= threshold
        q_in = q[2] <= threshold
        if p_in:
            ring.append((p[0], p[1]))
        if p_in != q_in:
            # interpolate from the lower end so shared edges yield identical points
            lo, hi = (p, q) if p[2] < q[2] else (q, p)
            f = (threshold - lo[2]) / (hi[2] - lo[2])
            ring.append((lo[0] + f * (hi[0] - lo[0]), lo[1] + f * (hi[1] - lo[1])))
    return ring


class GeometryStrategy:
    """
    Geometry operations used by the contour extractor. The `try_*` methods
    return None when they cannot build a polygon; `circle` always succeeds.
    """

    def try_isoline(
        self,
        samples: Sequence[TravelTimeSample],
        threshold: float,
        field: AnchoredField,
        origin: LonLat,
        grid_size: int,
    ) -> Optional[Polygon]:
        return None

    def try_concave_hull(
        self,
        samples: Sequence[TravelTimeSample],
        origin: LonLat,
        max_edge_km: float,
    ) -> Optional[Polygon]:
        return None

    def try_convex_hull(self, samples: Sequence[TravelTimeSample], origin: LonLat) -> Optional[Polygon]:
        return None

    def circle(self, origin: LonLat, radius_km: float, segments: int) -> Polygon:
        raise NotImplementedError


class ShapelyGeometryStrategy(GeometryStrategy):
    def _attempt(self, label: str, builder: Callable[..., Polygon], *args) -> Optional[Polygon]:
        try:
            return builder(*args)
        except GeometryConstructionFailure as exc:
            logger.info("%s failed: %s", label, exc.message)
        except GEOSException as exc:
            logger.warning("%s failed in GEOS: %s", label, exc)
        return None

    # ==================== isoline ====================

    def _isoline(
        self,
        samples: Sequence[TravelTimeSample],
        threshold: float,
        field: AnchoredField,
        origin: LonLat,
        grid_size: int,
    ) -> Polygon:
        points = _unique_points(samples)
        if len(points) == 0 or grid_size < 2:
            raise GeometryConstructionFailure("nothing to grid", strategy="isoline")

        min_lon, min_lat = points.min(axis=0)
        max_lon, max_lat = points.max(axis=0)
        pad_lon = max((max_lon - min_lon) * 0.05, 1e-4)
        pad_lat = max((max_lat - min_lat) * 0.05, 1e-4)
        xs = np.linspace(min_lon - pad_lon, max_lon + pad_lon, grid_size)
        ys = np.linspace(min_lat - pad_lat, max_lat + pad_lat, grid_size)
        grid_x, grid_y = np.meshgrid(xs, ys)
        values = field.evaluate_many(grid_x.ravel(), grid_y.ravel()).reshape(grid_x.shape)

        below = values <= threshold
        if below.all() or not below.any():
            raise GeometryConstructionFailure("no contour line at threshold", strategy="isoline")

        pieces: List[Polygon] = []
        for r in range(grid_size - 1):
            for c in range(grid_size - 1):
                cell = below[r:r + 2, c:c + 2]
                if not cell.any():
                    continue
                if cell.all():
                    pieces.append(box(xs[c], ys[r], xs[c + 1], ys[r + 1]))
                    continue
                corners = [
                    (xs[c], ys[r], values[r, c]),
                    (xs[c + 1], ys[r], values[r, c + 1]),
                    (xs[c + 1], ys[r + 1], values[r + 1, c + 1]),
                    (xs[c], ys[r + 1], values[r + 1, c]),
                ]
                for tri in ((corners[0], corners[1], corners[2]), (corners[0], corners[2], corners[3])):
                    ring = _clip_triangle(tri, threshold)
                    if len(ring) >= 3:
                        piece = Polygon(ring)
                        if piece.area > 0:
                            pieces.append(piece)

        if not pieces:
            raise GeometryConstructionFailure("contour enclosed no area", strategy="isoline")
        return _pick_polygon(unary_union(pieces), origin, "isoline")

    def try_isoline(self, samples, threshold, field, origin, grid_size):
        return self._attempt("isoline", self._isoline, samples, threshold, field, origin, grid_size)

    # ==================== hulls ====================

    def _concave_hull(self, samples: Sequence[TravelTimeSample], origin: LonLat, max_edge_km: float) -> Polygon:
        points = _unique_points(samples)
        if len(points) < 3:
            raise GeometryConstructionFailure("need at least 3 distinct points", strategy="concave_hull")

        projection = LocalProjection(*origin)
        try:
            triangulation = Delaunay(projection.forward(points[:, 0], points[:, 1]))
        except QhullError as exc:
            raise GeometryConstructionFailure(f"triangulation failed: {exc}", strategy="concave_hull") from exc

        kept: List[Polygon] = []
        for simplex in triangulation.simplices:
            corners = points[simplex]
            edges = (
                haversine_km(*corners[0], *corners[1]),
                haversine_km(*corners[1], *corners[2]),
                haversine_km(*corners[2], *corners[0]),
            )
            if max(edges) <= max_edge_km:
                kept.append(Polygon(corners))

        if not kept:
            raise GeometryConstructionFailure(
                f"no triangle with edges <= {max_edge_km} km", strategy="concave_hull"
            )
        return _pick_polygon(unary_union(kept), origin, "concave_hull")

    def try_concave_hull(self, samples, origin, max_edge_km):
        return self._attempt("concave hull", self._concave_hull, samples, origin, max_edge_km)

    def _convex_hull(self, samples: Sequence[TravelTimeSample], origin: LonLat) -> Polygon:
        points = _unique_points(samples)
        hull = MultiPoint([tuple(p) for p in points]).convex_hull
        if not isinstance(hull, Polygon) or hull.area <= 0:
            raise GeometryConstructionFailure(
                f"degenerate hull ({hull.geom_type})", strategy="convex_hull"
            )
        return hull

    def try_convex_hull(self, samples, origin):
        return self._attempt("convex hull", self._convex_hull, samples, origin)

    # ==================== circle ====================

    def circle(self, origin: LonLat, radius_km: float, segments: int) -> Polygon:
        lon, lat = origin
        ring = [
            destination_point(lon, lat, radius_km, k * 360.0 / segments)
            for k in range(segments)
        ]
        return Polygon(ring)
