from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from clipping_api.crud import delayed_jobs
from clipping_api.errors import RecordNotFoundError
from clipping_api.models.orm.delayed_jobs import DelayedJob as ORMDelayedJob


class FakeDatabase:
    def __init__(self, connection):
        self.connection = connection
        self.acquired = list()

    @asynccontextmanager
    async def acquire(self, **kwargs):
        self.acquired.append(kwargs)
        yield self.connection


def job_row(job_id, **kwargs):
    now = datetime.utcnow()
    values = dict(
        uuid=job_id,
        status="succeeded",
        status_code=200,
        payload=[],
        total_content=2,
        processed_content=2,
        progress_message="Completed clipping of 1 polygons",
        name="Polygon Clipping",
        entity_name="North Field",
        created_by=7,
        is_acknowledged=False,
        expires_on=None,
        created_on=now,
        updated_on=now,
    )
    values.update(kwargs)
    return SimpleNamespace(**values)


@pytest.mark.asyncio
async def test_progress_uses_its_own_connection(monkeypatch):
    job_id = uuid4()
    connection = Mock()
    database = FakeDatabase(connection)
    row = Mock()
    row.update.return_value.apply = AsyncMock()
    get = AsyncMock(return_value=row)
    monkeypatch.setattr(delayed_jobs, "db", database)
    monkeypatch.setattr(ORMDelayedJob, "get", get)

    await delayed_jobs.update_job_progress(
        job_id, processed_content=20, progress_message="Processed 20 of 40 polygons"
    )

    assert database.acquired == [{"reuse": False}]
    get.assert_awaited_once_with(job_id, bind=connection)
    row.update.assert_called_once_with(
        processed_content=20, progress_message="Processed 20 of 40 polygons"
    )
    row.update.return_value.apply.assert_awaited_once_with(bind=connection)


@pytest.mark.asyncio
async def test_expired_job_is_not_found(monkeypatch):
    job_id = uuid4()
    expired = job_row(job_id, expires_on=datetime.utcnow() - timedelta(minutes=1))
    monkeypatch.setattr(ORMDelayedJob, "get", AsyncMock(return_value=expired))

    with pytest.raises(RecordNotFoundError):
        await delayed_jobs.get_job(job_id)


@pytest.mark.asyncio
async def test_job_within_retention_time_is_returned(monkeypatch):
    job_id = uuid4()
    row = job_row(job_id, expires_on=datetime.utcnow() + timedelta(hours=1))
    monkeypatch.setattr(ORMDelayedJob, "get", AsyncMock(return_value=row))

    job = await delayed_jobs.get_job(job_id)

    assert job.uuid == job_id
    assert job.entity_name == "North Field"
