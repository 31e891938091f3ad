from .core import circle_radius_km, color_for_threshold, extract
from .strategy import GeometryStrategy, ShapelyGeometryStrategy

__all__ = [
    "GeometryStrategy",
    "ShapelyGeometryStrategy",
    "circle_radius_km",
    "color_for_threshold",
    "extract",
]
