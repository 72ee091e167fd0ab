from typing import Any, Dict, List, Optional, Tuple

from fastapi.logger import logger
from pydantic import BaseModel, Field, ValidationError, root_validator
from shapely.geometry.base import BaseGeometry

from .base import BaseORMRecord, CamelCaseModel, StrictBaseModel
from .responses import Response


class OverlapObservation(StrictBaseModel):
    """One overlap found by the overlapping validator between a polygon and
    a counterpart polygon."""

    counterpart: str
    percentage: float
    area_ha: float

    @root_validator(pre=True)
    def from_extra_info(cls, values):
        # Validators have written both snake and camel case keys over time
        if "counterpart" not in values:
            values = {
                "counterpart": values.get("poly_uuid", values.get("polyUuid")),
                "percentage": values.get("percentage"),
                "area_ha": values.get(
                    "intersection_area", values.get("intersectionArea")
                ),
            }
        return values


def parse_observations(extra_info: Any) -> List[OverlapObservation]:
    """Read the overlapping criteria payload.

    Anything that is not a list of well formed observations with a
    counterpart is dropped, as missing overlap data means nothing to fix.
    """
    if not isinstance(extra_info, list):
        return []

    observations: List[OverlapObservation] = []
    for item in extra_info:
        if not isinstance(item, dict):
            continue
        try:
            observations.append(OverlapObservation.parse_obj(item))
        except ValidationError as e:
            logger.debug(f"Skipping malformed overlap observation {item}: {e}")
    return observations


class CriteriaRecord(StrictBaseModel):
    polygon_id: str
    observations: List[OverlapObservation] = []


class OverlapPair(StrictBaseModel):
    polygon_id: str
    counterpart_id: str
    percentage: float
    area_ha: float

    @property
    def key(self) -> Tuple[str, str]:
        """Order independent identity of the pair."""
        return tuple(sorted((self.polygon_id, self.counterpart_id)))  # type: ignore


class GeometryRecord(BaseModel):
    uuid: str
    geometry: BaseGeometry
    area: float
    name: Optional[str] = None

    class Config:
        arbitrary_types_allowed = True


class SitePolygonRecord(BaseORMRecord):
    uuid: str
    primary_uuid: str
    poly_id: Optional[str]
    site_id: Optional[str]
    poly_name: Optional[str]
    is_active: bool = True
    version_name: Optional[str] = None
    calc_area: Optional[float] = None
    status: Optional[str] = None
    created_by: Optional[int] = None


class SiteRecord(BaseORMRecord):
    uuid: str
    name: Optional[str]
    project_id: Optional[int]


class ProjectRecord(BaseORMRecord):
    id: int
    uuid: Optional[str]
    name: Optional[str]


class Actor(StrictBaseModel):
    user_id: int
    full_name: Optional[str] = None


class BatchMeta(StrictBaseModel):
    source: str = "polygon-clipping"
    site_uuid: Optional[str] = None


class ClippedPolygon(BaseModel):
    poly_id: str
    poly_name: str
    geometry: BaseGeometry
    original_area: float
    new_area: float
    area_removed: float

    class Config:
        arbitrary_types_allowed = True


class ClippedVersion(CamelCaseModel):
    id: str
    poly_name: Optional[str]
    original_area: float
    new_area: float
    area_removed: float


class ClippingSummary(CamelCaseModel):
    total_polygons_processed: int
    polygons_clipped: int
    total_polygons_requested: Optional[int] = None
    message: str


class ClippingPreview(CamelCaseModel):
    original_geometries: Dict[str, Any]
    clipped_geometries: Dict[str, Any]
    summary: ClippingSummary


class ClippingRequestIn(CamelCaseModel):
    site_uuid: Optional[str] = None
    project_site_uuid: Optional[str] = None
    polygon_uuids: Optional[List[str]] = None


class PolygonListIn(CamelCaseModel):
    polygon_uuids: List[str] = Field(..., title="Polygon UUIDs")


class ClippedVersionResponse(Response):
    data: ClippedVersion


class ClippingPreviewResponse(Response):
    data: ClippingPreview
