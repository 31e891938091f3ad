import asyncio
import logging
import time
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from core.config import settings
from modules.connectivity import find_reachable
from modules.isochrone import batch_to_feature_collection, compute_isochrones, validate_request
from modules.isochrone.schemas import IsochroneRequest, IsochroneResponse
from modules.sampler import SamplerOptions
from modules.schedule import ScheduleIndex, ScheduleRecords, ScheduleStats, Stop

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/v1", tags=["Spatial Analysis"])


def _schedule(request: Request) -> ScheduleIndex:
    index: Optional[ScheduleIndex] = getattr(request.app.state, "schedule", None)
    if index is None:
        raise HTTPException(status_code=503, detail="No schedule loaded")
    return index


def _stop_or_404(index: ScheduleIndex, stop_id: str) -> Stop:
    stop = index.get_stop(stop_id)
    if stop is None:
        raise HTTPException(status_code=404, detail=f"Unknown stop: {stop_id}")
    return stop


@router.get("/stops", response_model=List[Stop], summary="List Stops")
async def list_stops(
    request: Request,
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    limit: int = Query(100, ge=1, le=5000),
):
    index = _schedule(request)
    stops = index.stops
    if q:
        needle = q.lower()
        stops = [s for s in stops if needle in s.stop_name.lower()]
    return stops[:limit]


@router.put("/schedule", response_model=ScheduleStats, summary="Replace Schedule")
async def replace_schedule(request: Request, payload: ScheduleRecords):
    """
    Swap in a new schedule built from already-parsed records.
    Requests in flight keep the index they started with.
    """
    index = await asyncio.to_thread(ScheduleIndex.from_records, payload)
    request.app.state.schedule = index
    stats = index.stats()
    logger.info(f"Schedule replaced: {stats.stops} stops, {stats.trips} trips, dropped={stats.dropped}")
    return stats


@router.get(
    "/stops/{stop_id}/connectivity",
    response_model=Dict[str, float],
    summary="Single-Trip Connectivity",
)
async def stop_connectivity(
    request: Request,
    stop_id: str,
    time_budget_min: Optional[int] = Query(None, description="Time budget (minutes, 5-60)"),
):
    index = _schedule(request)
    _stop_or_404(index, stop_id)
    budget = settings.time_budget_min if time_budget_min is None else time_budget_min
    validate_request([budget], budget)
    return find_reachable(index, stop_id, budget)


@router.post(
    "/analysis/isochrone",
    response_model=IsochroneResponse,
    summary="Calculate Isochrone Polygons",
    description="Generates reachable area polygons (WGS84) for one stop, largest threshold first.",
)
async def calculate_isochrone_endpoint(request: Request, payload: IsochroneRequest):
    start_time = time.time()
    index = _schedule(request)
    stop = _stop_or_404(index, payload.stop_id)

    modes = payload.modes if payload.modes is not None else settings.default_modes
    options = SamplerOptions(perturb=payload.perturb, seed=payload.seed)

    batch = await asyncio.to_thread(
        compute_isochrones,
        index,
        stop,
        payload.thresholds,
        payload.time_budget_min,
        modes,
        options,
    )

    duration = time.time() - start_time
    logger.info(
        f"Isochrone Calculated | Stop: {stop.stop_id} | Regions: {len(batch.regions)} | Time: {duration:.3f}s"
    )
    return batch_to_feature_collection(batch)
