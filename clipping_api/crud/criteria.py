from typing import Iterable, List

from ..models.enum.criteria import CriteriaId
from ..models.orm.criteria_site import CriteriaSite as ORMCriteriaSite
from ..models.pydantic.polygons import CriteriaRecord, parse_observations
from . import update_data


async def get_overlap_criteria(polygon_ids: List[str]) -> List[CriteriaRecord]:
    """Failed overlapping criteria for the given polygons."""
    if not polygon_ids:
        return list()

    rows: List[ORMCriteriaSite] = (
        await ORMCriteriaSite.query.where(ORMCriteriaSite.polygon_id.in_(polygon_ids))
        .where(ORMCriteriaSite.criteria_id == CriteriaId.overlapping)
        .where(ORMCriteriaSite.valid.is_(False))
        .order_by(ORMCriteriaSite.created_on)
        .gino.all()
    )

    return [
        CriteriaRecord(
            polygon_id=row.polygon_id, observations=parse_observations(row.extra_info)
        )
        for row in rows
    ]


async def delete_criteria(polygon_id: str) -> None:
    await ORMCriteriaSite.delete.where(
        ORMCriteriaSite.polygon_id == polygon_id
    ).where(ORMCriteriaSite.criteria_id == CriteriaId.overlapping).gino.status()


async def remove_observations(polygon_id: str, counterpart_ids: Iterable[str]) -> None:
    """Drop observations pointing at resolved counterparts.

    A criteria row left without observations becomes valid.
    """
    resolved = set(counterpart_ids)
    rows: List[ORMCriteriaSite] = (
        await ORMCriteriaSite.query.where(ORMCriteriaSite.polygon_id == polygon_id)
        .where(ORMCriteriaSite.criteria_id == CriteriaId.overlapping)
        .gino.all()
    )

    for row in rows:
        if not isinstance(row.extra_info, list):
            continue
        remaining = [
            item
            for item in row.extra_info
            if not (
                isinstance(item, dict)
                and (item.get("poly_uuid") or item.get("polyUuid")) in resolved
            )
        ]
        if len(remaining) == len(row.extra_info):
            continue
        if remaining:
            await update_data(row, {"extra_info": remaining})
        else:
            await update_data(row, {"extra_info": None, "valid": True})
