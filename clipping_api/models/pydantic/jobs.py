from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from ..enum.jobs import JobStatus
from .base import BaseRecord, StrictBaseModel
from .responses import Response


class ClippingJobData(StrictBaseModel):
    job_id: UUID
    polygon_uuids: List[str]
    user_id: int
    user_full_name: Optional[str] = None
    source: str = "polygon-clipping"
    site_uuid: Optional[str] = None


class DelayedJob(BaseRecord):
    uuid: UUID
    status: JobStatus
    status_code: Optional[int]
    payload: Optional[Any]
    total_content: Optional[int]
    processed_content: Optional[int]
    progress_message: Optional[str]
    name: Optional[str]
    entity_name: Optional[str]
    created_by: Optional[int]
    is_acknowledged: bool = False
    expires_on: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Finished jobs are only kept until `expires_on`."""
        if self.expires_on is None:
            return False
        return self.expires_on <= (now or datetime.utcnow())


class DelayedJobResponse(Response):
    data: DelayedJob


class JobHandle(StrictBaseModel):
    id: UUID
    status: JobStatus


class JobHandleResponse(Response):
    data: JobHandle
