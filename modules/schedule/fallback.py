"""
Precalculated Munich network, used when no live schedule feed is available.

Stop visits are generated from a small table of travel times between central
stations, every trip leaving its first stop at 08:00.
"""

from typing import Dict, List

from pydantic import BaseModel

from .clock import format_clock_time, parse_clock_time
from .schemas import Route, ScheduleRecords, Stop, StopVisit, Trip


class GeoBounds(BaseModel):
    north: float
    south: float
    east: float
    west: float


MUNICH_BOUNDS = GeoBounds(north=48.248, south=48.055, east=11.722, west=11.360)

# Minutes between stations (from -> to -> minutes)
MUNICH_TIME_DISTANCE_MAP: Dict[str, Dict[str, int]] = {
    "1": {"2": 5, "3": 7, "4": 8, "6": 12, "7": 18},
    "2": {"1": 5, "3": 3, "4": 5, "5": 12},
    "3": {"1": 7, "2": 3, "4": 8, "10": 12},
    "4": {"1": 8, "2": 5, "3": 8, "5": 9},
    "5": {"2": 12, "4": 9, "7": 15},
    "6": {"1": 12, "2": 15, "9": 20},
    "7": {"1": 18, "5": 15, "8": 30, "9": 8},
    "8": {"7": 30, "9": 25},
    "9": {"6": 20, "7": 8, "8": 25},
    "10": {"3": 12},
}

_STOPS = [
    ("1", "Hauptbahnhof", 48.1402, 11.5600),
    ("2", "Marienplatz", 48.1366, 11.5765),
    ("3", "Sendlinger Tor", 48.1344, 11.5665),
    ("4", "Odeonsplatz", 48.1425, 11.5772),
    ("5", "Münchner Freiheit", 48.1612, 11.5860),
    ("6", "Ostbahnhof", 48.1268, 11.6068),
    ("7", "Olympiazentrum", 48.1752, 11.5532),
    ("8", "Garching-Forschungszentrum", 48.2650, 11.6710),
    ("9", "Fröttmaning", 48.1990, 11.6170),
    ("10", "Harras", 48.1196, 11.5370),
]

_ROUTES = [
    ("U1", "MVG", "U1", "Olympia-Einkaufszentrum - Mangfallplatz", "1"),
    ("U2", "MVG", "U2", "Feldmoching - Messestadt Ost", "1"),
    ("U3", "MVG", "U3", "Moosach - Fürstenried West", "1"),
    ("U6", "MVG", "U6", "Garching-Forschungszentrum - Klinikum Großhadern", "1"),
    ("S1", "DB", "S1", "Freising/Flughafen - Ostbahnhof", "2"),
    ("S8", "DB", "S8", "Herrsching - Flughafen München", "2"),
    ("19", "MVG", "19", "Pasing - Berg am Laim", "0"),
    ("58", "MVG", "58", "Hauptbahnhof - Silberhornstraße", "3"),
]

_TRIPS = [
    ("U3-1", "U3"),
    ("U6-1", "U6"),
    ("S1-1", "S1"),
    ("19-1", "19"),
    ("58-1", "58"),
]

BASE_DEPARTURE = "08:00:00"


def _first_stop_for_trip(trip_id: str) -> str:
    if trip_id.startswith("U"):
        return "1"
    if trip_id.startswith("S"):
        return "6"
    return "2"


def generate_stop_visits(trips: List[Trip], time_distance_map: Dict[str, Dict[str, int]]) -> List[StopVisit]:
    base = parse_clock_time(BASE_DEPARTURE)
    visits: List[StopVisit] = []
    for trip in trips:
        start = _first_stop_for_trip(trip.trip_id)
        visits.append(
            StopVisit(
                trip_id=trip.trip_id,
                stop_id=start,
                arrival_time=BASE_DEPARTURE,
                departure_time=BASE_DEPARTURE,
                stop_sequence=1,
            )
        )
        for sequence, (stop_id, minutes) in enumerate(time_distance_map.get(start, {}).items(), start=2):
            clock = format_clock_time(base + minutes)
            visits.append(
                StopVisit(
                    trip_id=trip.trip_id,
                    stop_id=stop_id,
                    arrival_time=clock,
                    departure_time=clock,
                    stop_sequence=sequence,
                )
            )
    return visits


def filter_stops_in_bounds(stops: List[Stop], bounds: GeoBounds = MUNICH_BOUNDS) -> List[Stop]:
    return [
        s for s in stops
        if bounds.south <= s.stop_lat <= bounds.north and bounds.west <= s.stop_lon <= bounds.east
    ]


def load_fallback_schedule() -> ScheduleRecords:
    stops = [
        Stop(stop_id=sid, stop_name=name, stop_lat=lat, stop_lon=lon, location_type="0")
        for sid, name, lat, lon in _STOPS
    ]
    routes = [
        Route(route_id=rid, agency_id=agency, route_short_name=short, route_long_name=long_name, route_type=rtype)
        for rid, agency, short, long_name, rtype in _ROUTES
    ]
    trips = [Trip(trip_id=tid, route_id=rid, service_id="Weekday") for tid, rid in _TRIPS]
    return ScheduleRecords(
        stops=filter_stops_in_bounds(stops),
        routes=routes,
        trips=trips,
        stop_times=generate_stop_visits(trips, MUNICH_TIME_DISTANCE_MAP),
    )
