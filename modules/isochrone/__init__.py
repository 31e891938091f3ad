from .adapter import batch_to_feature_collection, region_to_feature
from .core import compute_isochrones, validate_request

__all__ = [
    "batch_to_feature_collection",
    "compute_isochrones",
    "region_to_feature",
    "validate_request",
]
