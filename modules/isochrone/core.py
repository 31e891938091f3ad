import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.config import settings
from core.exceptions import ConfigurationError
from modules.connectivity import find_reachable
from modules.contour import GeometryStrategy, color_for_threshold, extract
from modules.sampler import (
    AnchoredField,
    SamplerOptions,
    generate_perturbed_samples,
    generate_radial_samples,
)
from modules.schedule import ROUTE_TYPES_BY_MODE, ScheduleIndex, Stop

from .schemas import IsochroneBatch, IsochroneRegion, ThresholdError

logger = logging.getLogger(__name__)

MIN_MINUTES = 5
MAX_MINUTES = 60


def validate_request(
    thresholds: Sequence[float],
    time_budget_min: float,
    modes: Optional[Sequence[str]] = None,
) -> List[float]:
    """
    Check the request before any work is done and return the thresholds to
    compute: de-duplicated, capped at the time budget, largest first.
    """
    if not thresholds:
        raise ConfigurationError("Threshold list must not be empty")
    out_of_range = [t for t in thresholds if not MIN_MINUTES <= t <= MAX_MINUTES]
    if out_of_range:
        raise ConfigurationError(
            f"Thresholds must be within {MIN_MINUTES}-{MAX_MINUTES} minutes",
            thresholds=list(out_of_range),
        )
    if not MIN_MINUTES <= time_budget_min <= MAX_MINUTES:
        raise ConfigurationError(
            f"Time budget must be within {MIN_MINUTES}-{MAX_MINUTES} minutes",
            time_budget_min=time_budget_min,
        )
    if modes is not None:
        if not modes:
            raise ConfigurationError("Transport mode filter must not be empty")
        unknown = [m for m in modes if m not in ROUTE_TYPES_BY_MODE]
        if unknown:
            raise ConfigurationError(f"Unknown transport modes: {unknown}", modes=list(modes))

    ordered = sorted(set(thresholds), reverse=True)
    capped = [t for t in ordered if t <= time_budget_min]
    if len(capped) < len(ordered):
        logger.info(
            "Dropping thresholds above the %s min budget: %s",
            time_budget_min, [t for t in ordered if t > time_budget_min],
        )
    if not capped:
        raise ConfigurationError(
            "All thresholds exceed the time budget",
            thresholds=list(thresholds),
            time_budget_min=time_budget_min,
        )
    return capped


def _stop_coordinates(index: ScheduleIndex, stop_ids) -> Dict[str, Tuple[float, float]]:
    coordinates = {}
    for stop_id in stop_ids:
        stop = index.get_stop(stop_id)
        if stop is not None:
            coordinates[stop_id] = (stop.stop_lon, stop.stop_lat)
    return coordinates


def compute_isochrones(
    index: ScheduleIndex,
    stop: Stop,
    thresholds: Sequence[float],
    time_budget_min: Optional[float] = None,
    modes: Optional[Sequence[str]] = None,
    options: Optional[SamplerOptions] = None,
    strategy: Optional[GeometryStrategy] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> IsochroneBatch:
    """
    Isochrones for one origin stop, one region per threshold, largest first.

    Stops reachable on a single trip anchor an interpolated travel-time
    field; a stop without reachable neighbours falls back to radial
    simulation. A failing threshold is reported in `errors` and the rest of
    the batch still runs. `should_cancel` is polled between thresholds.

    Raises:
        ConfigurationError: invalid thresholds, budget or mode filter.
    """
    budget = settings.time_budget_min if time_budget_min is None else time_budget_min
    ordered = validate_request(thresholds, budget, modes)
    search_index = index.restrict_to_modes(modes) if modes is not None else index
    options = options or SamplerOptions()
    origin = (stop.stop_lon, stop.stop_lat)

    # 1. Connectivity
    connectivity = find_reachable(search_index, stop.stop_id, budget)

    # 2. Samples
    field: Optional[AnchoredField] = None
    if connectivity:
        field = AnchoredField.from_connectivity(
            origin[0], origin[1], connectivity, _stop_coordinates(index, connectivity)
        )
        samples = field.samples(options.grid_size)
        logger.info(
            "Stop %s: %d reachable stops, anchored field with %d samples",
            stop.stop_id, len(connectivity), len(samples),
        )
    elif options.perturb:
        samples = generate_perturbed_samples(origin[0], origin[1], options)
        logger.info("Stop %s: no reachable stops, perturbed radial samples", stop.stop_id)
    else:
        samples = generate_radial_samples(origin[0], origin[1], options)
        logger.info("Stop %s: no reachable stops, radial samples", stop.stop_id)

    # 3. Contours, largest threshold first
    batch = IsochroneBatch(stop_id=stop.stop_id, connectivity=connectivity)
    for threshold in ordered:
        if should_cancel is not None and should_cancel():
            logger.info("Stop %s: cancelled before %s min", stop.stop_id, threshold)
            batch.cancelled = True
            break
        try:
            polygon, method = extract(samples, threshold, origin, field=field, strategy=strategy)
        except Exception as exc:
            logger.exception("Stop %s: isochrone for %s min failed", stop.stop_id, threshold)
            batch.errors.append(ThresholdError(threshold=threshold, error=str(exc)))
            continue

        batch.regions.append(
            IsochroneRegion(
                threshold=threshold,
                polygon=polygon,
                stop_id=stop.stop_id,
                stop_name=stop.stop_name,
                color=color_for_threshold(threshold),
                method=method,
            )
        )
        logger.debug("Stop %s: %s min region via %s", stop.stop_id, threshold, method)

    return batch
