from typing import Any, Dict, List, Literal, Optional

from .base import StrictBaseModel


class Geometry(StrictBaseModel):
    type: str
    coordinates: List[Any]


class Feature(StrictBaseModel):
    properties: Optional[Dict[str, Any]]
    type: Literal["Feature"] = "Feature"
    geometry: Optional[Geometry]


class FeatureCollection(StrictBaseModel):
    features: List[Feature]
    type: Literal["FeatureCollection"] = "FeatureCollection"
