"""Preview clipping results without writing anything."""
from fastapi import APIRouter, Depends, Path
from fastapi.responses import ORJSONResponse

from ...authentication.token import get_user
from ...errors import (
    BadRequestError,
    InternalError,
    RecordNotFoundError,
    to_http_exception,
)
from ...models.pydantic.authentication import User
from ...models.pydantic.polygons import ClippingPreviewResponse, PolygonListIn
from ...tasks.clipping.service import ClippingService
from . import get_clipping_service

router = APIRouter()


@router.post(
    "/sites/{site_uuid}/clippedPolygons",
    response_class=ORJSONResponse,
    tags=["Polygon Clipping"],
    response_model=ClippingPreviewResponse,
)
async def preview_site_clipping(
    *,
    site_uuid: str = Path(..., title="Site UUID"),
    user: User = Depends(get_user),
    service: ClippingService = Depends(get_clipping_service),
) -> ClippingPreviewResponse:
    """Clip all fixable overlapping polygons of a site in memory and return
    original and clipped geometries as GeoJSON."""
    try:
        preview = await service.preview_site(site_uuid)
    except (RecordNotFoundError, InternalError) as e:
        raise to_http_exception(e)
    return ClippingPreviewResponse(data=preview)


@router.post(
    "/projects/{site_uuid}/clippedPolygons",
    response_class=ORJSONResponse,
    tags=["Polygon Clipping"],
    response_model=ClippingPreviewResponse,
)
async def preview_project_clipping(
    *,
    site_uuid: str = Path(..., title="UUID of any site in the project"),
    user: User = Depends(get_user),
    service: ClippingService = Depends(get_clipping_service),
) -> ClippingPreviewResponse:
    """Same as the site preview, for every site of the project the given site
    belongs to."""
    try:
        preview = await service.preview_project(site_uuid)
    except (RecordNotFoundError, InternalError) as e:
        raise to_http_exception(e)
    return ClippingPreviewResponse(data=preview)


@router.post(
    "/polygons",
    response_class=ORJSONResponse,
    tags=["Polygon Clipping"],
    response_model=ClippingPreviewResponse,
)
async def preview_polygon_clipping(
    *,
    request: PolygonListIn,
    user: User = Depends(get_user),
    service: ClippingService = Depends(get_clipping_service),
) -> ClippingPreviewResponse:
    try:
        preview = await service.preview_polygons(request.polygon_uuids)
    except (BadRequestError, RecordNotFoundError, InternalError) as e:
        raise to_http_exception(e)
    return ClippingPreviewResponse(data=preview)
