import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.exceptions import ConfigurationError, DataIntegrityError, InsufficientDataError

from .schemas import (
    ROUTE_TYPES_BY_MODE,
    Route,
    ScheduleRecords,
    ScheduleStats,
    Stop,
    StopVisit,
    Trip,
)

logger = logging.getLogger(__name__)

# One stop occurrence inside a trip: (time-sorted visits of the trip, position)
Occurrence = Tuple[Tuple[StopVisit, ...], int]


def _visit_sort_key(visit: StopVisit) -> Tuple[float, int]:
    return (visit.departure_min, visit.stop_sequence)


def _check_visit(visit: StopVisit, stops: Dict[str, Stop], trips: Dict[str, Trip]) -> None:
    if visit.trip_id not in trips:
        raise DataIntegrityError(f"stop_time references unknown trip {visit.trip_id}", kind="unknown_trip")
    if visit.stop_id not in stops:
        raise DataIntegrityError(f"stop_time references unknown stop {visit.stop_id}", kind="unknown_stop")


class ScheduleIndex:
    """
    Read-only lookups over one set of schedule tables.

    Built once with `ScheduleIndex.build(...)`; nothing mutates it afterwards,
    so any number of searches may read it at the same time. Reloading means
    building a new index and swapping the reference.
    """

    def __init__(
        self,
        stops: Dict[str, Stop],
        routes: Dict[str, Route],
        trips: Dict[str, Trip],
        visits_by_trip: Dict[str, Tuple[StopVisit, ...]],
        dropped: Dict[str, int],
    ):
        self._stops = stops
        self._routes = routes
        self._trips = trips
        self._visits_by_trip = visits_by_trip
        self._dropped = dropped

        by_stop: Dict[str, List[StopVisit]] = defaultdict(list)
        occurrences: Dict[str, List[Occurrence]] = defaultdict(list)
        for trip_id in sorted(visits_by_trip):
            trip_visits = visits_by_trip[trip_id]
            for position, visit in enumerate(trip_visits):
                by_stop[visit.stop_id].append(visit)
                occurrences[visit.stop_id].append((trip_visits, position))

        self._visits_by_stop: Dict[str, Tuple[StopVisit, ...]] = {
            stop_id: tuple(sorted(visits, key=lambda v: (v.departure_min, v.trip_id, v.stop_sequence)))
            for stop_id, visits in by_stop.items()
        }
        self._occurrences: Dict[str, Tuple[Occurrence, ...]] = {
            stop_id: tuple(items) for stop_id, items in occurrences.items()
        }

    @classmethod
    def build(
        cls,
        stops: Iterable[Stop],
        routes: Iterable[Route],
        trips: Iterable[Trip],
        visits: Iterable[StopVisit],
    ) -> "ScheduleIndex":
        """
        Build the index. Rows with dangling references are dropped and counted
        instead of failing the whole load.
        """
        dropped: Dict[str, int] = defaultdict(int)

        stop_map = {s.stop_id: s for s in stops}
        route_map = {r.route_id: r for r in routes}

        trip_map: Dict[str, Trip] = {}
        for trip in trips:
            if trip.route_id not in route_map:
                dropped["unknown_route"] += 1
                logger.debug("Dropping trip %s: unknown route %s", trip.trip_id, trip.route_id)
                continue
            trip_map[trip.trip_id] = trip

        grouped: Dict[str, List[StopVisit]] = defaultdict(list)
        for visit in visits:
            try:
                _check_visit(visit, stop_map, trip_map)
            except DataIntegrityError as exc:
                dropped[exc.payload["kind"]] += 1
                logger.debug("Dropping stop_time: %s", exc.message)
                continue
            grouped[visit.trip_id].append(visit)

        visits_by_trip = {
            trip_id: tuple(sorted(items, key=_visit_sort_key))
            for trip_id, items in grouped.items()
        }

        if dropped:
            logger.warning("Schedule index dropped rows with dangling references: %s", dict(dropped))

        return cls(stop_map, route_map, trip_map, visits_by_trip, dict(dropped))

    @classmethod
    def from_records(cls, records: ScheduleRecords) -> "ScheduleIndex":
        return cls.build(records.stops, records.routes, records.trips, records.stop_times)

    # ==================== lookups ====================

    @property
    def stops(self) -> List[Stop]:
        return list(self._stops.values())

    def get_stop(self, stop_id: str) -> Optional[Stop]:
        return self._stops.get(stop_id)

    def visits_by_stop(self, stop_id: str) -> Tuple[StopVisit, ...]:
        """All visits of a stop, sorted by departure time ascending."""
        return self._visits_by_stop.get(stop_id, ())

    def visits_by_trip(self, trip_id: str) -> Tuple[StopVisit, ...]:
        """All visits of a trip, sorted by departure time ascending."""
        return self._visits_by_trip.get(trip_id, ())

    def stop_occurrences(self, stop_id: str) -> Tuple[Occurrence, ...]:
        """
        Every place the stop appears inside a trip. A loop trip that serves
        the stop twice yields two occurrences.
        """
        return self._occurrences.get(stop_id, ())

    def require_occurrences(self, stop_id: str) -> Tuple[Occurrence, ...]:
        occurrences = self.stop_occurrences(stop_id)
        if not occurrences:
            raise InsufficientDataError(stop_id)
        return occurrences

    def stats(self) -> ScheduleStats:
        return ScheduleStats(
            stops=len(self._stops),
            routes=len(self._routes),
            trips=len(self._trips),
            stop_times=sum(len(v) for v in self._visits_by_trip.values()),
            dropped=dict(self._dropped),
        )

    # ==================== views ====================

    def restrict_to_modes(self, modes: Sequence[str]) -> "ScheduleIndex":
        """
        New index holding only the trips whose route belongs to one of `modes`.
        Stops are kept so lookups by id keep working.
        """
        modes = list(modes or [])
        if not modes:
            raise ConfigurationError("Transport mode filter must not be empty", modes=modes)
        unknown = [m for m in modes if m not in ROUTE_TYPES_BY_MODE]
        if unknown:
            raise ConfigurationError(f"Unknown transport modes: {unknown}", modes=modes)

        routes = filter_routes_by_mode(self._routes.values(), modes)
        route_ids = {r.route_id for r in routes}
        trips = {tid: t for tid, t in self._trips.items() if t.route_id in route_ids}
        visits = {tid: v for tid, v in self._visits_by_trip.items() if tid in trips}
        return ScheduleIndex(
            dict(self._stops),
            {r.route_id: r for r in routes},
            trips,
            visits,
            dict(self._dropped),
        )


def filter_routes_by_mode(routes: Iterable[Route], modes: Sequence[str]) -> List[Route]:
    allowed = set(modes)
    return [r for r in routes if r.mode in allowed]
