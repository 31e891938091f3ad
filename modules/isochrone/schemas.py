from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from shapely.geometry import Polygon

from modules.schedule.schemas import TransportMode


class IsochroneRegion(BaseModel):
    """
    One reachable area for one threshold. Polygon rings are (lon, lat), WGS84.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    threshold: float
    polygon: Polygon
    stop_id: str
    stop_name: str = ""
    color: str
    method: str


class ThresholdError(BaseModel):
    threshold: float
    error: str


class IsochroneBatch(BaseModel):
    stop_id: str
    regions: List[IsochroneRegion] = Field(default_factory=list)
    connectivity: Dict[str, float] = Field(default_factory=dict)
    errors: List[ThresholdError] = Field(default_factory=list)
    cancelled: bool = False


class IsochroneRequest(BaseModel):
    """
    Isochrones for one stop of the loaded schedule.
    Thresholds are validated by the service so that bad values come back as
    configuration errors rather than schema errors.
    """
    stop_id: str = Field(..., min_length=1, description="Origin stop id")
    thresholds: List[float] = Field([15, 30, 45, 60], description="Time thresholds (minutes, 5-60)")
    time_budget_min: Optional[int] = Field(None, description="Connectivity time budget (minutes, 5-60)")
    modes: Optional[List[TransportMode]] = Field(None, description="Transport modes to search")
    perturb: bool = Field(False, description="Randomize simulated travel times when no schedule anchors exist")
    seed: Optional[int] = Field(None, description="Seed for perturbed sampling")


class IsochroneFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: Dict[str, Any]
    geometry: Dict[str, Any]


class IsochroneResponse(BaseModel):
    """
    GeoJSON FeatureCollection wrapper, largest threshold first
    """
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[IsochroneFeature] = Field(default_factory=list)
    connectivity: Dict[str, float] = Field(default_factory=dict)
    errors: List[ThresholdError] = Field(default_factory=list)
    cancelled: bool = False
