import random
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from modules.connectivity import find_reachable
from modules.schedule import Route, ScheduleIndex, Stop, StopVisit, Trip, format_clock_time


def _build_index(trips):
    """
    trips: {trip_id: [(stop_id, minutes_after_8am), ...]}
    """
    stop_ids = sorted({stop_id for visits in trips.values() for stop_id, _ in visits})
    stops = [
        Stop(stop_id=sid, stop_name=sid, stop_lat=48.1 + i * 0.01, stop_lon=11.5 + i * 0.01)
        for i, sid in enumerate(stop_ids)
    ]
    routes = [Route(route_id="R", route_type="3")]
    trip_rows = [Trip(trip_id=tid, route_id="R") for tid in trips]
    visits = []
    for tid, items in trips.items():
        for seq, (stop_id, minutes) in enumerate(items, start=1):
            clock = format_clock_time(480 + minutes)
            visits.append(
                StopVisit(trip_id=tid, stop_id=stop_id, arrival_time=clock, departure_time=clock, stop_sequence=seq)
            )
    return ScheduleIndex.build(stops, routes, trip_rows, visits)


def test_forward_walk_stops_at_budget():
    index = _build_index({"t1": [("O", 0), ("A", 5), ("B", 12), ("C", 20)]})
    assert find_reachable(index, "O", 15) == {"A": 5, "B": 12}


def test_origin_in_middle_of_trip():
    index = _build_index({"t1": [("P", 0), ("Q", 4), ("O", 10), ("A", 15), ("B", 22), ("C", 40)]})
    result = find_reachable(index, "O", 15)
    assert result == {"Q": 6, "P": 10, "A": 5, "B": 12}


def test_minimum_over_trips():
    index = _build_index({
        "slow": [("O", 0), ("A", 14)],
        "fast": [("O", 30), ("A", 36)],
    })
    assert find_reachable(index, "O", 30) == {"A": 6}


def test_loop_trip_each_occurrence_walked_and_origin_excluded():
    index = _build_index({"loop": [("O", 0), ("A", 10), ("B", 20), ("O", 30), ("C", 33)]})
    result = find_reachable(index, "O", 12)
    assert "O" not in result
    # second occurrence of O reaches C after 3 minutes and B after 10 backwards
    assert result == {"A": 10, "B": 10, "C": 3}


def test_zero_visits_returns_empty():
    index = _build_index({"t1": [("A", 0), ("B", 5)]})
    assert find_reachable(index, "nowhere", 30) == {}


def test_no_transfers_followed():
    index = _build_index({
        "t1": [("O", 0), ("X", 5)],
        "t2": [("X", 6), ("Y", 8)],
    })
    assert find_reachable(index, "O", 30) == {"X": 5}


def test_random_schedules_respect_budget_and_exclude_origin():
    rng = random.Random(7)
    stop_pool = [f"S{i}" for i in range(12)]
    for _ in range(25):
        trips = {}
        for t in range(rng.randint(1, 6)):
            minutes = 0
            items = []
            for _ in range(rng.randint(2, 10)):
                minutes += rng.randint(0, 9)
                items.append((rng.choice(stop_pool), minutes))
            trips[f"t{t}"] = items
        index = _build_index(trips)
        origin = rng.choice(stop_pool)
        budget = rng.choice([5, 15, 30, 60])

        result = find_reachable(index, origin, budget)
        assert origin not in result
        assert all(0 <= v <= budget for v in result.values())
        assert find_reachable(index, origin, budget) == result
