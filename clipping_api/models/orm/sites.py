from .base import Base, db


class Project(Base):
    __tablename__ = "v2_projects"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    uuid = db.Column(db.String, unique=True)
    name = db.Column(db.String)


class Site(Base):
    __tablename__ = "v2_sites"

    uuid = db.Column(db.String, primary_key=True)
    name = db.Column(db.String)
    project_id = db.Column(db.Integer)

    fk = db.ForeignKeyConstraint(
        ["project_id"],
        ["v2_projects.id"],
        name="fk",
        onupdate="CASCADE",
        ondelete="CASCADE",
    )
