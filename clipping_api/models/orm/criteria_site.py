from .base import Base, db


class CriteriaSite(Base):
    __tablename__ = "criteria_site"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    polygon_id = db.Column(db.String, nullable=False)
    criteria_id = db.Column(db.Integer, nullable=False)
    valid = db.Column(db.Boolean, nullable=False)
    extra_info = db.Column(db.JSONB)

    _criteria_site_polygon_id_idx = db.Index(
        "criteria_site_polygon_id_idx", "polygon_id", "criteria_id"
    )
