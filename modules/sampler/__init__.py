from .anchored import AnchoredField
from .radial import (
    find_nearest_samples,
    generate_perturbed_samples,
    generate_radial_samples,
    simulated_travel_time,
)
from .schemas import SamplerOptions, TravelTimeSample

__all__ = [
    "AnchoredField",
    "SamplerOptions",
    "TravelTimeSample",
    "find_nearest_samples",
    "generate_perturbed_samples",
    "generate_radial_samples",
    "simulated_travel_time",
]
