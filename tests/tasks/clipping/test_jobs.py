import asyncio
import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from clipping_api.errors import RecordNotFoundError
from clipping_api.models.enum.jobs import JobStatus
from clipping_api.models.pydantic.jobs import ClippingJobData
from clipping_api.tasks.clipping.jobs import ClippingJob, JobRunner
from tests.fakes import add_neighbours


async def new_job(job_store, workflow, polygon_uuids, notify=None, logger=None):
    job_id = uuid4()
    await job_store.create_job(job_id, name="Polygon Clipping", created_by=7)
    data = ClippingJobData(
        job_id=job_id,
        polygon_uuids=polygon_uuids,
        user_id=7,
        user_full_name="Jane Doe",
        site_uuid="site-1",
    )
    kwargs = dict(notify=notify)
    if logger is not None:
        kwargs["logger"] = logger
    return ClippingJob(data, workflow, job_store, **kwargs)


@pytest.mark.asyncio
async def test_job_succeeds_with_payload(
    workflow, job_store, geometry_store, criteria_store, site_polygon_store, logger
):
    ids = list(add_neighbours(geometry_store, criteria_store, site_polygon_store))
    notify = AsyncMock()
    job = await new_job(job_store, workflow, ids, notify=notify, logger=logger)

    result = await job.run()

    assert result.status == JobStatus.succeeded
    assert result.status_code == 200
    assert len(result.payload) == 1
    version = result.payload[0]
    assert set(version) == {"id", "polyName", "originalArea", "newArea", "areaRemoved"}
    assert version["areaRemoved"] == pytest.approx(
        version["originalArea"] - version["newArea"]
    )

    statuses = [data.get("status") for _, data in job_store.history]
    assert statuses[0] == JobStatus.running
    assert statuses[-1] == JobStatus.succeeded
    assert job_store.history[0][1]["total_content"] == 2

    notify.assert_awaited_once()
    assert notify.call_args.args[:3] == (7, "site-1", ids)


@pytest.mark.asyncio
async def test_empty_polygon_list_fails_with_400(workflow, job_store):
    job = await new_job(job_store, workflow, [])

    result = await job.run()

    assert result.status == JobStatus.failed
    assert result.status_code == 400
    assert result.payload == {"message": "No polygon UUIDs provided"}
    # the job never started
    assert all(
        data.get("status") != JobStatus.running for _, data in job_store.history
    )


@pytest.mark.asyncio
async def test_nothing_clipped_fails_with_404(
    workflow, job_store, geometry_store, criteria_store, site_polygon_store
):
    ids = list(
        add_neighbours(
            geometry_store, criteria_store, site_polygon_store, percentage=4.0
        )
    )
    notify = AsyncMock()
    job = await new_job(job_store, workflow, ids, notify=notify)

    result = await job.run()

    assert result.status == JobStatus.failed
    assert result.status_code == 404
    assert result.payload == {
        "message": "No fixable overlapping polygons found or clipping failed"
    }
    notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_error_fails_with_500_and_is_logged(
    workflow, job_store, logger
):
    workflow.clip_and_version = AsyncMock(side_effect=ValueError("boom"))
    job = await new_job(job_store, workflow, ["a", "b"], logger=logger)

    result = await job.run()

    assert result.status == JobStatus.failed
    assert result.status_code == 500
    assert result.payload == {"message": "boom"}

    logged = json.loads(logger.error.call_args.args[0])
    assert logged["event"] == "clipping_failure"
    assert logged["job_id"] == str(job.job_id)
    assert logged["error_type"] == "ValueError"
    assert "stack_trace" in logged


@pytest.mark.asyncio
async def test_notification_failure_does_not_change_outcome(
    workflow, job_store, geometry_store, criteria_store, site_polygon_store, logger
):
    ids = list(add_neighbours(geometry_store, criteria_store, site_polygon_store))
    notify = AsyncMock(side_effect=ConnectionError("mail server down"))
    job = await new_job(job_store, workflow, ids, notify=notify, logger=logger)

    result = await job.run()

    assert result.status == JobStatus.succeeded
    assert (await job_store.get_job(job.job_id)).status == JobStatus.succeeded
    logger.error.assert_called_once()


@pytest.mark.asyncio
async def test_runner_bounds_concurrency():
    runner = JobRunner(concurrency=2, use_engine=False)
    running = 0
    peak = 0

    class SlowJob:
        async def run(self):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return "done"

    results = await asyncio.gather(*(runner.run(SlowJob()) for _ in range(6)))

    assert results == ["done"] * 6
    assert peak == 2


@pytest.mark.asyncio
async def test_progress_is_written_outside_the_clipping_transaction(
    workflow, job_store, geometry_store, criteria_store, site_polygon_store
):
    ids = list(add_neighbours(geometry_store, criteria_store, site_polygon_store))
    job = await new_job(job_store, workflow, ids)

    await job.run()

    messages = [data.get("progress_message") for _, data in job_store.history]
    assert "Processed 2 of 2 polygons" in messages
    assert ("update_job_progress", 1) in job_store.writes
    # writes through update_job would only become visible once the run commits
    assert all(depth == 0 for method, depth in job_store.writes if method == "update_job")


@pytest.mark.asyncio
async def test_finished_jobs_expire_after_retention_time(
    workflow, job_store, geometry_store, criteria_store, site_polygon_store
):
    ids = list(add_neighbours(geometry_store, criteria_store, site_polygon_store))
    job = await new_job(job_store, workflow, ids)
    job.keep_for = 3600

    before = datetime.utcnow()
    result = await job.run()

    assert result.expires_on is not None
    assert before + timedelta(seconds=3600) <= result.expires_on
    assert result.expires_on <= datetime.utcnow() + timedelta(seconds=3600)
    assert not result.is_expired()
    assert result.is_expired(result.expires_on + timedelta(seconds=1))


@pytest.mark.asyncio
async def test_failed_jobs_expire_too(workflow, job_store):
    job = await new_job(job_store, workflow, [])
    job.keep_for = 0

    result = await job.run()

    assert result.status == JobStatus.failed
    assert result.expires_on is not None
    with pytest.raises(RecordNotFoundError):
        await job_store.get_job(job.job_id)
