from datetime import datetime
from uuid import UUID

from asyncpg import UniqueViolationError
from fastapi.encoders import jsonable_encoder

from ..application import db
from ..errors import RecordAlreadyExistsError, RecordNotFoundError
from ..models.orm.delayed_jobs import DelayedJob as ORMDelayedJob
from ..models.pydantic.jobs import DelayedJob
from . import update_data


async def _get_row(job_id: UUID, bind=None) -> ORMDelayedJob:
    row: ORMDelayedJob = await ORMDelayedJob.get(job_id, bind=bind)
    if row is None:
        raise RecordNotFoundError(f"Job with uuid {job_id} does not exist.")
    return row


async def get_job(job_id: UUID) -> DelayedJob:
    row = await _get_row(job_id)
    job = DelayedJob.from_orm(row)
    if job.is_expired():
        raise RecordNotFoundError(f"Job with uuid {job_id} does not exist.")
    return job


async def create_job(job_id: UUID, **data) -> DelayedJob:
    await purge_expired_jobs()

    jsonable_data = jsonable_encoder(data)
    try:
        row: ORMDelayedJob = await ORMDelayedJob.create(uuid=job_id, **jsonable_data)
    except UniqueViolationError:
        raise RecordAlreadyExistsError(f"Job with uuid {job_id} already exists.")
    return DelayedJob.from_orm(row)


async def update_job(job_id: UUID, **data) -> DelayedJob:
    jsonable_data = jsonable_encoder(data)
    row = await _get_row(job_id)
    row = await update_data(row, jsonable_data)
    return DelayedJob.from_orm(row)


async def update_job_progress(job_id: UUID, **data) -> None:
    """Write progress on a connection of its own.

    Progress is reported while the clipping transaction is still open and
    has to be visible to clients polling the job before that commits.
    """
    jsonable_data = jsonable_encoder(data)
    async with db.acquire(reuse=False) as connection:
        row = await _get_row(job_id, bind=connection)
        await row.update(**jsonable_data).apply(bind=connection)


async def purge_expired_jobs() -> None:
    """Delete finished jobs past their retention time."""
    await ORMDelayedJob.delete.where(
        ORMDelayedJob.expires_on <= datetime.utcnow()
    ).gino.status()
