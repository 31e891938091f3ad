import logging
from typing import Dict, Tuple

from core.exceptions import InsufficientDataError
from modules.schedule import ScheduleIndex, StopVisit

logger = logging.getLogger(__name__)

# stop_id -> minimal travel time in minutes from the origin
ConnectivityResult = Dict[str, float]


def _record(result: ConnectivityResult, stop_id: str, elapsed: float) -> None:
    best = result.get(stop_id)
    if best is None or elapsed < best:
        result[stop_id] = elapsed


def _walk(
    result: ConnectivityResult,
    trip_visits: Tuple[StopVisit, ...],
    position: int,
    origin_stop_id: str,
    time_budget_min: float,
    step: int,
) -> None:
    origin_departure = trip_visits[position].departure_min
    i = position + step
    while 0 <= i < len(trip_visits):
        visit = trip_visits[i]
        elapsed = (visit.departure_min - origin_departure) * step
        # visits are time sorted, nothing further along can be cheaper
        if elapsed > time_budget_min:
            break
        if visit.stop_id != origin_stop_id:
            _record(result, visit.stop_id, elapsed)
        i += step


def find_reachable(index: ScheduleIndex, origin_stop_id: str, time_budget_min: float) -> ConnectivityResult:
    """
    Stops reachable from `origin_stop_id` within `time_budget_min` minutes by
    staying on a single trip through the origin, in either direction.

    Transfers to a second trip are not followed. Each appearance of the origin
    in a trip (loop lines serve it twice) is walked on its own, and the
    smallest elapsed time per stop wins.
    """
    try:
        occurrences = index.require_occurrences(origin_stop_id)
    except InsufficientDataError as exc:
        logger.info("No connectivity for %s: %s", origin_stop_id, exc.message)
        return {}

    result: ConnectivityResult = {}
    for trip_visits, position in occurrences:
        _walk(result, trip_visits, position, origin_stop_id, time_budget_min, step=1)
        _walk(result, trip_visits, position, origin_stop_id, time_budget_min, step=-1)

    logger.debug(
        "Connectivity from %s (budget %s min): %d stops over %d trip occurrences",
        origin_stop_id, time_budget_min, len(result), len(occurrences),
    )
    return result
