"""Clip small overlaps between site polygons.

Overlaps of at most 3.5% of a polygon and at most 0.1 ha are removed from
the larger polygon of each overlapping pair. Every clipped polygon gets a new
version. Larger requests run as a job which can be polled under `/jobs`.
"""
from typing import Union

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from fastapi.logger import logger
from fastapi.responses import ORJSONResponse

from ...authentication.token import get_user
from ...errors import (
    BadRequestError,
    InternalError,
    JobFailureError,
    RecordNotFoundError,
    to_http_exception,
)
from ...models.pydantic.authentication import User
from ...models.pydantic.jobs import JobHandleResponse
from ...models.pydantic.polygons import ClippedVersionResponse, ClippingRequestIn
from ...tasks.clipping.jobs import JobRunner
from ...tasks.clipping.service import ClippingService
from . import get_clipping_service, get_job_runner

router = APIRouter()


@router.post(
    "/clippedVersions",
    response_class=ORJSONResponse,
    tags=["Polygon Clipping"],
    response_model=Union[ClippedVersionResponse, JobHandleResponse],
    status_code=200,
)
async def create_clipped_versions(
    *,
    request: ClippingRequestIn,
    response: Response,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_user),
    service: ClippingService = Depends(get_clipping_service),
    job_runner: JobRunner = Depends(get_job_runner),
) -> Union[ClippedVersionResponse, JobHandleResponse]:
    """Create clipped versions for a site, all sites of a project or a list
    of polygons.

    Give exactly one of `siteUuid`, `projectSiteUuid` or `polygonUuids`. A
    single fixable polygon is clipped right away. Otherwise a job is created
    and its id returned with status 202.
    """
    try:
        result, job = await service.submit(request, user.to_actor())
    except (
        BadRequestError,
        RecordNotFoundError,
        JobFailureError,
        InternalError,
    ) as e:
        raise to_http_exception(e)

    if job is None:
        return ClippedVersionResponse(data=result)

    logger.info(f"Scheduling clipping job {job.job_id}")
    background_tasks.add_task(job_runner.run, job)
    response.status_code = 202
    return JobHandleResponse(data=result)
