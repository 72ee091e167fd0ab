from datetime import datetime

from geoalchemy2 import Geometry
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy_utils import generic_repr

from ...application import db

db.JSONB, db.UUID, db.Geometry = (
    JSONB,
    UUID,
    Geometry,
)


@generic_repr
class Base(db.Model):  # type: ignore
    __abstract__ = True
    created_on = db.Column(
        db.DateTime, default=datetime.utcnow, server_default=db.func.now()
    )
    updated_on = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        server_default=db.func.now(),
    )
