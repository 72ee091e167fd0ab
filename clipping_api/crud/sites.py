from typing import List, Optional

from ..errors import RecordNotFoundError
from ..models.orm.sites import Project as ORMProject
from ..models.orm.sites import Site as ORMSite
from ..models.pydantic.polygons import ProjectRecord, SiteRecord


async def get_site(site_uuid: str) -> SiteRecord:
    row: ORMSite = await ORMSite.get(site_uuid)
    if row is None:
        raise RecordNotFoundError(f"Site with uuid {site_uuid} does not exist.")
    return SiteRecord.from_orm(row)


async def get_sites(site_uuids: List[str]) -> List[SiteRecord]:
    if not site_uuids:
        return list()
    rows: List[ORMSite] = await ORMSite.query.where(
        ORMSite.uuid.in_(site_uuids)
    ).gino.all()
    return [SiteRecord.from_orm(row) for row in rows]


async def get_project_sites(site_uuid: str) -> List[SiteRecord]:
    """All sites of the project the given site belongs to."""
    site = await get_site(site_uuid)
    if site.project_id is None:
        raise RecordNotFoundError(f"Project not found for site {site_uuid}.")

    rows: List[ORMSite] = (
        await ORMSite.query.where(ORMSite.project_id == site.project_id)
        .order_by(ORMSite.uuid)
        .gino.all()
    )
    return [SiteRecord.from_orm(row) for row in rows]


async def get_project(project_id: int) -> Optional[ProjectRecord]:
    row: Optional[ORMProject] = await ORMProject.get(project_id)
    if row is None:
        return None
    return ProjectRecord.from_orm(row)
