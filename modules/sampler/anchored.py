import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import Delaunay, QhullError, cKDTree

from utils.geo import LocalProjection

from .schemas import TravelTimeSample

logger = logging.getLogger(__name__)

# Query points closer than this (km) to an anchor take its value verbatim
EXACT_TOLERANCE_KM = 1e-9
IDW_NEIGHBOURS = 3


class AnchoredField:
    """
    Piecewise-linear travel-time field seeded by anchors with known times.

    Anchors are triangulated (Delaunay, planar km around the origin). Inside
    the triangulation a query is interpolated barycentrically from its
    enclosing triangle, so the field is exact at anchors and continuous across
    edges. Outside, or when the anchors are collinear, the value is the
    inverse-distance-squared average of the 3 nearest anchors.
    """

    def __init__(self, origin_lon: float, origin_lat: float, anchors: Sequence[TravelTimeSample]):
        # an anchor sharing the origin coordinates collapses into the origin at 0 min
        merged: Dict[Tuple[float, float], float] = {(origin_lon, origin_lat): 0.0}
        for anchor in anchors:
            key = (anchor.lon, anchor.lat)
            if key not in merged or anchor.minutes < merged[key]:
                merged[key] = anchor.minutes

        self.origin = (origin_lon, origin_lat)
        self._lons = np.array([k[0] for k in merged], dtype=float)
        self._lats = np.array([k[1] for k in merged], dtype=float)
        self._values = np.array(list(merged.values()), dtype=float)

        self._projection = LocalProjection(origin_lon, origin_lat)
        self._xy = self._projection.forward(self._lons, self._lats)
        self._tree = cKDTree(self._xy)
        self._triangulation: Optional[Delaunay] = None

        if len(self._values) >= 3:
            try:
                self._triangulation = Delaunay(self._xy)
            except QhullError:
                logger.info("Anchors are degenerate (collinear); using nearest-anchor weighting only")

    @classmethod
    def from_connectivity(
        cls,
        origin_lon: float,
        origin_lat: float,
        reachable: Dict[str, float],
        coordinates: Dict[str, Tuple[float, float]],
    ) -> "AnchoredField":
        """
        Build from a stop id -> minutes mapping; `coordinates` maps stop id to
        (lon, lat). Stops without coordinates are skipped.
        """
        anchors = [
            TravelTimeSample(lon=coordinates[stop_id][0], lat=coordinates[stop_id][1], minutes=minutes)
            for stop_id, minutes in sorted(reachable.items())
            if stop_id in coordinates
        ]
        return cls(origin_lon, origin_lat, anchors)

    @property
    def is_triangulated(self) -> bool:
        return self._triangulation is not None

    @property
    def anchor_count(self) -> int:
        return len(self._values)

    def evaluate_many(self, lons, lats) -> np.ndarray:
        points = self._projection.forward(np.atleast_1d(lons), np.atleast_1d(lats))
        k = min(IDW_NEIGHBOURS, len(self._values))
        dist, idx = self._tree.query(points, k=k)
        if k == 1:
            dist = dist[:, None]
            idx = idx[:, None]

        weights = 1.0 / np.maximum(dist, EXACT_TOLERANCE_KM) ** 2
        values = (weights * self._values[idx]).sum(axis=1) / weights.sum(axis=1)

        if self._triangulation is not None:
            simplex = self._triangulation.find_simplex(points)
            inside = simplex >= 0
            if inside.any():
                s = simplex[inside]
                transform = self._triangulation.transform[s]
                b = np.einsum("ijk,ik->ij", transform[:, :2, :], points[inside] - transform[:, 2, :])
                bary = np.column_stack((b, 1.0 - b.sum(axis=1)))
                vertices = self._triangulation.simplices[s]
                values[inside] = (bary * self._values[vertices]).sum(axis=1)

        exact = dist[:, 0] <= EXACT_TOLERANCE_KM
        values[exact] = self._values[idx[exact, 0]]
        return values

    def evaluate(self, lon: float, lat: float) -> float:
        return float(self.evaluate_many([lon], [lat])[0])

    def anchor_samples(self) -> List[TravelTimeSample]:
        return [
            TravelTimeSample(lon=float(lon), lat=float(lat), minutes=float(v))
            for lon, lat, v in zip(self._lons, self._lats, self._values)
        ]

    def samples(self, grid_size: int = 0) -> List[TravelTimeSample]:
        """
        Anchors (origin first) plus interpolated samples on a regular grid
        over the anchors' extent, restricted to the triangulated area.
        Returns a fresh list on each call.
        """
        samples = self.anchor_samples()
        if grid_size < 2 or self._triangulation is None:
            return samples

        grid_lons, grid_lats = np.meshgrid(
            np.linspace(self._lons.min(), self._lons.max(), grid_size),
            np.linspace(self._lats.min(), self._lats.max(), grid_size),
        )
        lons = grid_lons.ravel()
        lats = grid_lats.ravel()
        inside = self._triangulation.find_simplex(self._projection.forward(lons, lats)) >= 0
        lons, lats = lons[inside], lats[inside]
        values = self.evaluate_many(lons, lats)
        samples.extend(
            TravelTimeSample(lon=float(lon), lat=float(lat), minutes=max(0.0, float(v)))
            for lon, lat, v in zip(lons, lats, values)
        )
        return samples
