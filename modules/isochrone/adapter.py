from typing import Any, Dict

from shapely.geometry import mapping

from .schemas import IsochroneBatch, IsochroneRegion


def region_to_feature(region: IsochroneRegion) -> Dict[str, Any]:
    """
    GeoJSON Feature for the rendering side; coordinates are [lon, lat].
    """
    geometry = mapping(region.polygon)
    return {
        "type": "Feature",
        "properties": {
            "stop_id": region.stop_id,
            "stop_name": region.stop_name,
            "time": region.threshold,
            "color": region.color,
            "method": region.method,
        },
        "geometry": {
            "type": geometry["type"],
            "coordinates": [[list(pt) for pt in ring] for ring in geometry["coordinates"]],
        },
    }


def batch_to_feature_collection(batch: IsochroneBatch) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [region_to_feature(r) for r in batch.regions],
        "connectivity": dict(batch.connectivity),
        "errors": [e.model_dump() for e in batch.errors],
        "cancelled": batch.cancelled,
    }
