from .base import Base, db


class DelayedJob(Base):
    __tablename__ = "delayed_jobs"

    uuid = db.Column(db.UUID, primary_key=True)
    status = db.Column(db.String, nullable=False, default="pending")
    status_code = db.Column(db.Integer)
    payload = db.Column(db.JSONB)
    total_content = db.Column(db.Integer)
    processed_content = db.Column(db.Integer)
    progress_message = db.Column(db.String)
    name = db.Column(db.String)
    entity_name = db.Column(db.String)
    created_by = db.Column(db.Integer)
    is_acknowledged = db.Column(db.Boolean, nullable=False, default=False)
    expires_on = db.Column(db.DateTime)
