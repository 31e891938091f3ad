"""Convenience exports for the analysis pipeline."""

from .connectivity import find_reachable
from .contour import extract
from .isochrone import compute_isochrones, validate_request
from .schedule import ScheduleIndex, load_fallback_schedule

__all__ = [
    "ScheduleIndex",
    "compute_isochrones",
    "extract",
    "find_reachable",
    "load_fallback_schedule",
    "validate_request",
]
