import logging
from typing import List, Optional

import numpy as np

from utils.geo import destination_point, haversine_km

from .schemas import SamplerOptions, TravelTimeSample

logger = logging.getLogger(__name__)

PERTURBATION_RANGE = (0.7, 1.3)


def simulated_travel_time(distance_km: float, average_speed_kmh: float) -> float:
    return distance_km / average_speed_kmh * 60


def _radial_points(origin_lon: float, origin_lat: float, options: SamplerOptions):
    for i in range(options.num_radials):
        bearing = i * 360.0 / options.num_radials
        for j in range(1, options.points_per_radial + 1):
            distance = j / options.points_per_radial * options.max_distance_km
            lon, lat = destination_point(origin_lon, origin_lat, distance, bearing)
            yield lon, lat, distance


def generate_radial_samples(
    origin_lon: float,
    origin_lat: float,
    options: Optional[SamplerOptions] = None,
) -> List[TravelTimeSample]:
    """
    Geometric stand-in for a travel-time field: points on evenly spaced
    bearings around the origin, timed at a constant average speed.
    """
    options = options or SamplerOptions()
    samples = [TravelTimeSample(lon=origin_lon, lat=origin_lat, minutes=0.0)]
    for lon, lat, distance in _radial_points(origin_lon, origin_lat, options):
        samples.append(
            TravelTimeSample(
                lon=lon,
                lat=lat,
                minutes=simulated_travel_time(distance, options.average_speed_kmh),
            )
        )
    return samples


def generate_perturbed_samples(
    origin_lon: float,
    origin_lat: float,
    options: Optional[SamplerOptions] = None,
    seed: Optional[int] = None,
) -> List[TravelTimeSample]:
    """
    Same geometry as `generate_radial_samples`, with every travel time scaled
    by a factor drawn uniformly from 0.7-1.3. Pass a seed for reproducible
    output.
    """
    options = options or SamplerOptions()
    if seed is None:
        seed = options.seed
    if seed is None:
        logger.warning("Perturbed sampling without a seed; output is not reproducible")
    rng = np.random.default_rng(seed)

    samples = [TravelTimeSample(lon=origin_lon, lat=origin_lat, minutes=0.0)]
    low, high = PERTURBATION_RANGE
    for lon, lat, distance in _radial_points(origin_lon, origin_lat, options):
        factor = float(rng.uniform(low, high))
        samples.append(
            TravelTimeSample(
                lon=lon,
                lat=lat,
                minutes=simulated_travel_time(distance, options.average_speed_kmh) * factor,
            )
        )
    return samples


def find_nearest_samples(
    lon: float,
    lat: float,
    samples: List[TravelTimeSample],
    n: int = 5,
) -> List[TravelTimeSample]:
    ranked = sorted(samples, key=lambda s: haversine_km(lon, lat, s.lon, s.lat))
    return ranked[:n]
