from .base import Base, db


class SitePolygon(Base):
    __tablename__ = "site_polygon"

    uuid = db.Column(db.String, primary_key=True)
    # Shared by every version of the same polygon
    primary_uuid = db.Column(db.String, nullable=False)
    poly_id = db.Column(db.String)
    site_id = db.Column(db.String)
    poly_name = db.Column(db.String)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_name = db.Column(db.String)
    calc_area = db.Column(db.Numeric)
    status = db.Column(db.String)
    created_by = db.Column(db.Integer)
    deleted_at = db.Column(db.DateTime)

    _site_polygon_poly_id_idx = db.Index(
        "site_polygon_poly_id_idx", "poly_id", postgresql_using="btree"
    )
    _site_polygon_primary_uuid_idx = db.Index(
        "site_polygon_primary_uuid_idx", "primary_uuid", postgresql_using="btree"
    )
    _site_polygon_site_id_idx = db.Index(
        "site_polygon_site_id_idx", "site_id", postgresql_using="btree"
    )


class PolygonUpdate(Base):
    """Audit trail, keyed by the lineage so all versions share a history."""

    __tablename__ = "polygon_updates"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    site_polygon_uuid = db.Column(db.String, nullable=False)
    version_name = db.Column(db.String)
    change = db.Column(db.String)
    updated_by_id = db.Column(db.Integer)
    comment = db.Column(db.String)
    type = db.Column(db.String, nullable=False, default="update")
    old_status = db.Column(db.String)
    new_status = db.Column(db.String)
