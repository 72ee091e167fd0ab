"""Versioning store for site polygons.

Every version of a polygon shares a primary_uuid. Exactly one version per
lineage is active; older versions are deactivated, never deleted.
"""
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from fastapi.logger import logger

from ..models.orm.site_polygons import PolygonUpdate as ORMPolygonUpdate
from ..models.orm.site_polygons import SitePolygon as ORMSitePolygon
from ..models.pydantic.polygons import Actor, SitePolygonRecord

# Columns which are never copied into a new version
_VERSION_EXCLUDED_FIELDS = {
    "uuid",
    "deleted_at",
    "created_on",
    "updated_on",
}


def generate_version_name(
    poly_name: Optional[str],
    user_full_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Build a version name such as
    ``North_Field_10_November_2025_14_30_45_Jane Doe``."""
    now = now or datetime.now()
    date = f"{now.day}_{now.strftime('%B')}_{now.year}"
    time = now.strftime("%H_%M_%S")
    name = poly_name if poly_name is not None else "Unnamed"
    user = f"_{user_full_name}" if user_full_name else ""
    return f"{name}_{date}_{time}{user}"


def _active_query(poly_ids: List[str]):
    return (
        ORMSitePolygon.query.where(ORMSitePolygon.poly_id.in_(poly_ids))
        .where(ORMSitePolygon.is_active.is_(True))
        .where(ORMSitePolygon.deleted_at.is_(None))
    )


async def get_active_site_polygon(
    poly_id: str, for_update: bool = False
) -> Optional[SitePolygonRecord]:
    """Active site polygon pointing at a geometry.

    With for_update the row stays locked until the surrounding transaction
    ends, so concurrent runs on the same lineage queue up.
    """
    query = _active_query([poly_id]).order_by(ORMSitePolygon.created_on.desc())
    if for_update:
        query = query.with_for_update()
    row: Optional[ORMSitePolygon] = await query.gino.first()
    if row is None:
        return None
    return SitePolygonRecord.from_orm(row)


async def get_active_site_polygons(poly_ids: List[str]) -> List[SitePolygonRecord]:
    if not poly_ids:
        return list()
    rows: List[ORMSitePolygon] = await _active_query(poly_ids).gino.all()
    return [SitePolygonRecord.from_orm(row) for row in rows]


async def get_active_polygon_ids_for_sites(site_uuids: List[str]) -> List[str]:
    """Geometry ids of all active polygons in the given sites."""
    if not site_uuids:
        return list()
    rows: List[ORMSitePolygon] = (
        await ORMSitePolygon.query.where(ORMSitePolygon.site_id.in_(site_uuids))
        .where(ORMSitePolygon.is_active.is_(True))
        .where(ORMSitePolygon.deleted_at.is_(None))
        .where(ORMSitePolygon.poly_id.isnot(None))
        .order_by(ORMSitePolygon.created_on, ORMSitePolygon.uuid)
        .gino.all()
    )
    return [row.poly_id for row in rows]


async def create_version(
    base: SitePolygonRecord,
    polygon_uuid: str,
    calc_area: float,
    actor: Actor,
    change_reason: str,
) -> SitePolygonRecord:
    """Create the next active version of a lineage pointing at a new
    geometry, deactivate the other versions and record the change."""
    base_row: Optional[ORMSitePolygon] = await ORMSitePolygon.get(base.uuid)
    values = (
        {
            key: value
            for key, value in base_row.to_dict().items()
            if key not in _VERSION_EXCLUDED_FIELDS
        }
        if base_row is not None
        else base.dict(exclude=_VERSION_EXCLUDED_FIELDS)
    )

    version_name = generate_version_name(base.poly_name, actor.full_name)
    values.update(
        uuid=str(uuid4()),
        primary_uuid=base.primary_uuid,
        poly_id=polygon_uuid,
        calc_area=calc_area,
        version_name=version_name,
        is_active=True,
        status="draft",
        created_by=actor.user_id,
    )
    new_version: ORMSitePolygon = await ORMSitePolygon.create(**values)

    await ORMSitePolygon.update.values(is_active=False).where(
        ORMSitePolygon.primary_uuid == base.primary_uuid
    ).where(ORMSitePolygon.uuid != new_version.uuid).gino.status()

    await ORMPolygonUpdate.create(
        site_polygon_uuid=base.primary_uuid,
        version_name=version_name,
        change=change_reason,
        updated_by_id=actor.user_id,
        type="update",
    )

    logger.info(
        f"Created version {new_version.uuid} from {base.uuid} "
        f"(lineage {base.primary_uuid})"
    )
    return SitePolygonRecord.from_orm(new_version)
