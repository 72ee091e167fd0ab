"""Storage interfaces the clipping workflow depends on.

The CRUD modules in clipping_api.crud implement these as module level
functions, so a module can be passed wherever a store is expected.
"""
from typing import Any, Dict, Iterable, List, Optional, Protocol
from uuid import UUID

from shapely.geometry.base import BaseGeometry

from ...models.pydantic.jobs import DelayedJob
from ...models.pydantic.polygons import (
    Actor,
    CriteriaRecord,
    GeometryRecord,
    ProjectRecord,
    SitePolygonRecord,
    SiteRecord,
)


class GeometryStore(Protocol):
    async def get_geometries(self, polygon_ids: List[str]) -> Dict[str, GeometryRecord]:
        ...

    async def create_geometry(
        self, geometry: BaseGeometry, created_by: Optional[int]
    ) -> str:
        ...


class CriteriaStore(Protocol):
    async def get_overlap_criteria(self, polygon_ids: List[str]) -> List[CriteriaRecord]:
        ...

    async def delete_criteria(self, polygon_id: str) -> None:
        ...

    async def remove_observations(
        self, polygon_id: str, counterpart_ids: Iterable[str]
    ) -> None:
        ...


class SitePolygonStore(Protocol):
    async def get_active_site_polygon(
        self, poly_id: str, for_update: bool = False
    ) -> Optional[SitePolygonRecord]:
        ...

    async def get_active_site_polygons(
        self, poly_ids: List[str]
    ) -> List[SitePolygonRecord]:
        ...

    async def get_active_polygon_ids_for_sites(self, site_uuids: List[str]) -> List[str]:
        ...

    async def create_version(
        self,
        base: SitePolygonRecord,
        polygon_uuid: str,
        calc_area: float,
        actor: Actor,
        change_reason: str,
    ) -> SitePolygonRecord:
        ...


class SiteStore(Protocol):
    async def get_site(self, site_uuid: str) -> SiteRecord:
        ...

    async def get_sites(self, site_uuids: List[str]) -> List[SiteRecord]:
        ...

    async def get_project_sites(self, site_uuid: str) -> List[SiteRecord]:
        ...

    async def get_project(self, project_id: int) -> Optional[ProjectRecord]:
        ...


class JobStore(Protocol):
    async def create_job(self, job_id: UUID, **data: Any) -> DelayedJob:
        ...

    async def get_job(self, job_id: UUID) -> DelayedJob:
        ...

    async def update_job(self, job_id: UUID, **data: Any) -> DelayedJob:
        ...

    async def update_job_progress(self, job_id: UUID, **data: Any) -> None:
        """Persist progress outside of any open clipping transaction."""
        ...
