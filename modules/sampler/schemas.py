from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.config import settings


class TravelTimeSample(BaseModel):
    """
    A point (WGS84) tagged with an estimated or exact travel time in minutes.
    """

    model_config = ConfigDict(frozen=True)

    lon: float
    lat: float
    minutes: float = Field(..., ge=0)


class SamplerOptions(BaseModel):
    max_distance_km: float = Field(default_factory=lambda: settings.sampler_max_distance_km, gt=0)
    num_radials: int = Field(default_factory=lambda: settings.sampler_num_radials, ge=1)
    points_per_radial: int = Field(default_factory=lambda: settings.sampler_points_per_radial, ge=1)
    average_speed_kmh: float = Field(default_factory=lambda: settings.sampler_average_speed_kmh, gt=0)
    grid_size: int = Field(default_factory=lambda: settings.sampler_grid_size, ge=0)
    # perturbed radial sampling; leave seed unset only outside of tests
    perturb: bool = False
    seed: Optional[int] = None
