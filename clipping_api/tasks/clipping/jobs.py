"""Asynchronous clipping jobs.

A job moves from pending to running and ends as succeeded or failed. Its
state lives in the job store so clients can poll it while the job runs in
the background.
"""
import asyncio
import json
import traceback
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, List, Optional

from fastapi.logger import logger as default_logger

from ...application import ContextEngine
from ...errors import JobFailureError
from ...models.enum.jobs import JobStatus
from ...models.pydantic.jobs import ClippingJobData, DelayedJob
from ...models.pydantic.polygons import Actor, BatchMeta, ClippedVersion
from ...settings.globals import CLIPPING_CONCURRENCY, KEEP_JOBS_TIMEOUT
from .stores import JobStore
from .versioning import ClippingWorkflow

Notifier = Callable[[int, Optional[str], List[str], datetime], Awaitable[Any]]

NO_POLYGONS_MESSAGE = "No polygon UUIDs provided"
NOTHING_CLIPPED_MESSAGE = "No fixable overlapping polygons found or clipping failed"


class ClippingJob:
    def __init__(
        self,
        data: ClippingJobData,
        workflow: ClippingWorkflow,
        job_store: JobStore,
        notify: Optional[Notifier] = None,
        logger=default_logger,
        keep_for: int = KEEP_JOBS_TIMEOUT,
    ):
        self.data = data
        self.workflow = workflow
        self.job_store = job_store
        self.notify = notify
        self.logger = logger
        self.keep_for = keep_for

    @property
    def job_id(self):
        return self.data.job_id

    async def report_progress(self, processed: int, total: int) -> None:
        await self.job_store.update_job_progress(
            self.job_id,
            processed_content=processed,
            progress_message=f"Processed {processed} of {total} polygons",
        )

    async def run(self) -> DelayedJob:
        polygon_uuids = self.data.polygon_uuids
        try:
            if not polygon_uuids:
                raise JobFailureError(400, NO_POLYGONS_MESSAGE)

            await self.job_store.update_job(
                self.job_id,
                status=JobStatus.running,
                total_content=len(polygon_uuids),
                processed_content=0,
                progress_message=f"Starting clipping of {len(polygon_uuids)} polygons...",
            )

            results: List[ClippedVersion] = await self.workflow.clip_and_version(
                polygon_uuids,
                Actor(user_id=self.data.user_id, full_name=self.data.user_full_name),
                BatchMeta(source=self.data.source, site_uuid=self.data.site_uuid),
                progress=self.report_progress,
            )

            if not results:
                raise JobFailureError(404, NOTHING_CLIPPED_MESSAGE)

            job = await self.job_store.update_job(
                self.job_id,
                status=JobStatus.succeeded,
                status_code=200,
                processed_content=len(results),
                progress_message=f"Completed clipping of {len(results)} polygons",
                payload=[result.dict(by_alias=True) for result in results],
                expires_on=self._expires_on(),
            )

        except JobFailureError as e:
            self.logger.warning(f"Clipping job {self.job_id} failed: {e.message}")
            return await self._fail(e.status_code, e.message)

        except Exception as e:
            # Query in log insights with
            # `filter event="clipping_failure" | sort @timestamp desc | limit 20`
            self.logger.error(
                json.dumps(
                    {
                        "event": "clipping_failure",
                        "severity": "high",
                        "job_id": str(self.job_id),
                        "user_id": self.data.user_id,
                        "polygon_count": len(polygon_uuids),
                        "error_type": e.__class__.__name__,
                        "error_details": str(e),
                        "stack_trace": traceback.format_exc(),
                    }
                )
            )
            return await self._fail(500, str(e))

        await self._send_notification()
        return job

    async def _fail(self, status_code: int, message: str) -> DelayedJob:
        return await self.job_store.update_job(
            self.job_id,
            status=JobStatus.failed,
            status_code=status_code,
            payload={"message": message},
            expires_on=self._expires_on(),
        )

    def _expires_on(self) -> datetime:
        return datetime.utcnow() + timedelta(seconds=self.keep_for)

    async def _send_notification(self) -> None:
        if self.notify is None:
            return
        try:
            await self.notify(
                self.data.user_id,
                self.data.site_uuid,
                self.data.polygon_uuids,
                datetime.now(timezone.utc),
            )
        except Exception as e:
            self.logger.error(
                f"Failed to send clipping complete email for user {self.data.user_id}: {e}"
            )


class JobRunner:
    """Run clipping jobs with bounded concurrency.

    Each job gets its own write engine context, so it can outlive the request
    which submitted it.
    """

    def __init__(self, concurrency: int = CLIPPING_CONCURRENCY, use_engine=True):
        self.concurrency = concurrency
        self.use_engine = use_engine
        self._semaphore: Optional[asyncio.Semaphore] = None

    @property
    def semaphore(self) -> asyncio.Semaphore:
        # Created lazily so it binds to the running event loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.concurrency)
        return self._semaphore

    async def run(self, job: ClippingJob) -> DelayedJob:
        async with self.semaphore:
            if not self.use_engine:
                return await job.run()
            async with ContextEngine("WRITE"):
                return await job.run()


runner = JobRunner()
