"""Geometry store backed by the polygon_geometry table."""
from typing import Dict, List, Optional
from uuid import uuid4

from geoalchemy2.shape import from_shape
from shapely.geometry.base import BaseGeometry
from sqlalchemy import and_, func

from ..application import db
from ..errors import GeometryError
from ..models.orm.polygon_geometry import PolygonGeometry as ORMPolygonGeometry
from ..models.orm.site_polygons import SitePolygon as ORMSitePolygon
from ..models.pydantic.polygons import GeometryRecord
from ..utils.geometry import area, from_geojson


async def get_geometries(polygon_ids: List[str]) -> Dict[str, GeometryRecord]:
    """Load geometries with the name of their active site polygon.

    Unknown ids and rows without a geometry are left out of the result.
    """
    if not polygon_ids:
        return dict()

    active_version = and_(
        ORMSitePolygon.poly_id == ORMPolygonGeometry.uuid,
        ORMSitePolygon.is_active.is_(True),
        ORMSitePolygon.deleted_at.is_(None),
    )
    rows = (
        await db.select(
            [
                ORMPolygonGeometry.uuid,
                func.ST_AsGeoJSON(ORMPolygonGeometry.geom).label("geojson"),
                ORMSitePolygon.poly_name,
            ]
        )
        .select_from(
            ORMPolygonGeometry.__table__.outerjoin(
                ORMSitePolygon.__table__, active_version
            )
        )
        .where(ORMPolygonGeometry.uuid.in_(polygon_ids))
        .where(ORMPolygonGeometry.deleted_at.is_(None))
        .gino.all()
    )

    geometries: Dict[str, GeometryRecord] = dict()
    for row in rows:
        if row.geojson is None:
            continue
        geometry: BaseGeometry = from_geojson(row.geojson)
        geometries[row.uuid] = GeometryRecord(
            uuid=row.uuid,
            geometry=geometry,
            area=area(geometry),
            name=row.poly_name or "Unnamed",
        )
    return geometries


async def create_geometry(geometry: BaseGeometry, created_by: Optional[int]) -> str:
    """Insert a new geometry record and return its uuid."""
    if geometry.is_empty:
        raise GeometryError("Cannot store an empty geometry")

    new_geometry: ORMPolygonGeometry = await ORMPolygonGeometry.create(
        uuid=str(uuid4()),
        geom=from_shape(geometry, srid=4326),
        created_by=created_by,
    )
    return new_geometry.uuid
