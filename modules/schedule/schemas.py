from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .clock import format_clock_time, parse_clock_time

TransportMode = Literal["bus", "subway", "tram", "rail"]

# GTFS route_type codes per transport mode (extended rail types 100-109 included)
ROUTE_TYPES_BY_MODE: Dict[str, List[int]] = {
    "bus": [3],
    "subway": [1],
    "tram": [0],
    "rail": [2] + list(range(100, 110)),
}


def classify_route_type(route_type: Any) -> Optional[str]:
    try:
        code = int(str(route_type).strip())
    except (TypeError, ValueError):
        return None
    for mode, codes in ROUTE_TYPES_BY_MODE.items():
        if code in codes:
            return mode
    return None


def _as_text(value: Any) -> Any:
    # providers often hand over ids and GTFS codes as integers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _as_clock(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_clock_time(value)
    return value


class Stop(BaseModel):
    model_config = ConfigDict(frozen=True)

    stop_id: str
    stop_name: str = ""
    stop_lat: float = Field(..., ge=-90, le=90)
    stop_lon: float = Field(..., ge=-180, le=180)
    location_type: Optional[str] = None
    parent_station: Optional[str] = None
    wheelchair_boarding: Optional[str] = None
    platform_code: Optional[str] = None

    @field_validator(
        "stop_id", "location_type", "parent_station", "wheelchair_boarding", "platform_code", mode="before"
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class Route(BaseModel):
    model_config = ConfigDict(frozen=True)

    route_id: str
    agency_id: str = ""
    route_short_name: str = ""
    route_long_name: str = ""
    route_type: str

    @field_validator("route_id", "agency_id", "route_type", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @property
    def mode(self) -> Optional[str]:
        return classify_route_type(self.route_type)


class Trip(BaseModel):
    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: str
    service_id: str = ""
    trip_headsign: Optional[str] = None
    direction_id: Optional[str] = None

    @field_validator("trip_id", "route_id", "service_id", "direction_id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class StopVisit(BaseModel):
    """
    One row of stop_times. Clock strings may exceed 24:00:00 for trips that
    run past midnight; the parsed minutes are kept next to the raw strings.
    Times may also arrive as minutes past midnight and are stored as clock
    strings.
    """

    model_config = ConfigDict(frozen=True)

    trip_id: str
    stop_id: str
    arrival_time: str
    departure_time: str
    stop_sequence: int = Field(0, ge=0)
    arrival_min: float = 0.0
    departure_min: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _parse_clock_times(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("trip_id", "stop_id"):
            if key in data:
                data[key] = _as_text(data[key])

        departure = data.get("departure_time")
        if departure is None or departure == "":
            departure = data.get("arrival_time")
        arrival = data.get("arrival_time")
        if arrival is None or arrival == "":
            arrival = departure
        if departure is not None:
            data.setdefault("departure_min", parse_clock_time(departure))
            data.setdefault("arrival_min", parse_clock_time(arrival))
            data["departure_time"] = _as_clock(departure)
            data["arrival_time"] = _as_clock(arrival)
        return data


class ScheduleRecords(BaseModel):
    """
    Already-parsed schedule tables handed over by a schedule provider.
    """

    stops: List[Stop] = Field(default_factory=list)
    routes: List[Route] = Field(default_factory=list)
    trips: List[Trip] = Field(default_factory=list)
    stop_times: List[StopVisit] = Field(default_factory=list)


class ScheduleStats(BaseModel):
    stops: int = 0
    routes: int = 0
    trips: int = 0
    stop_times: int = 0
    dropped: Dict[str, int] = Field(default_factory=dict)
