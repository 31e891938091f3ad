"""
工具函数入口：统一对外暴露常用方法。
"""

from .geo import EARTH_RADIUS_KM, LocalProjection, destination_point, haversine_km

__all__ = [
    "EARTH_RADIUS_KM",
    "LocalProjection",
    "destination_point",
    "haversine_km",
]
