"""Clipping jobs run in the background. Poll a job until its status is
`succeeded` or `failed`; the payload then holds the clipped versions or the
failure message."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.responses import ORJSONResponse

from ...errors import RecordNotFoundError
from ...models.pydantic.jobs import DelayedJobResponse
from . import get_job_store

router = APIRouter()


@router.get(
    "/{job_id}",
    response_class=ORJSONResponse,
    tags=["Jobs"],
    response_model=DelayedJobResponse,
)
async def get_job(
    *, job_id: UUID = Path(...), job_store=Depends(get_job_store)
) -> DelayedJobResponse:
    """Get job status, progress and result."""
    try:
        job = await job_store.get_job(job_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DelayedJobResponse(data=job)
