from .clock import format_clock_time, parse_clock_time
from .core import ScheduleIndex, filter_routes_by_mode
from .fallback import MUNICH_BOUNDS, GeoBounds, filter_stops_in_bounds, load_fallback_schedule
from .schemas import (
    ROUTE_TYPES_BY_MODE,
    Route,
    ScheduleRecords,
    ScheduleStats,
    Stop,
    StopVisit,
    Trip,
    classify_route_type,
)

__all__ = [
    "ROUTE_TYPES_BY_MODE",
    "MUNICH_BOUNDS",
    "GeoBounds",
    "Route",
    "ScheduleIndex",
    "ScheduleRecords",
    "ScheduleStats",
    "Stop",
    "StopVisit",
    "Trip",
    "classify_route_type",
    "filter_routes_by_mode",
    "filter_stops_in_bounds",
    "format_clock_time",
    "load_fallback_schedule",
    "parse_clock_time",
]
