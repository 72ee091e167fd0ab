from .base import Base, db


class PolygonGeometry(Base):
    """Immutable geometry record. Edits, including clipping, always create a
    new row."""

    __tablename__ = "polygon_geometry"

    uuid = db.Column(db.String, primary_key=True)
    geom = db.Column(db.Geometry(geometry_type="GEOMETRY", srid=4326))
    created_by = db.Column(db.Integer)
    deleted_at = db.Column(db.DateTime)

    _polygon_geometry_geom_idx = db.Index(
        "polygon_geometry_geom_idx", "geom", postgresql_using="gist"
    )
