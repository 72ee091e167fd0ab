"""Site polygon clipping tables.

Revision ID: 3c1f0b7a9d21
Revises:
Create Date: 2025-11-12 10:04:31.118204
"""
import geoalchemy2
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3c1f0b7a9d21"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_on", sa.DateTime(), server_default=sa.text("now()"), nullable=True
        ),
        sa.Column(
            "updated_on", sa.DateTime(), server_default=sa.text("now()"), nullable=True
        ),
    ]


def upgrade():
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis;")

    op.create_table(
        "v2_projects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_table(
        "v2_sites",
        sa.Column("uuid", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("project_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["project_id"],
            ["v2_projects.id"],
            name="fk",
            onupdate="CASCADE",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_table(
        "polygon_geometry",
        sa.Column("uuid", sa.String(), nullable=False),
        sa.Column(
            "geom",
            geoalchemy2.types.Geometry(geometry_type="GEOMETRY", srid=4326),
            nullable=True,
        ),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_table(
        "site_polygon",
        sa.Column("uuid", sa.String(), nullable=False),
        sa.Column("primary_uuid", sa.String(), nullable=False),
        sa.Column("poly_id", sa.String(), nullable=True),
        sa.Column("site_id", sa.String(), nullable=True),
        sa.Column("poly_name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("version_name", sa.String(), nullable=True),
        sa.Column("calc_area", sa.Numeric(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index("site_polygon_poly_id_idx", "site_polygon", ["poly_id"])
    op.create_index("site_polygon_primary_uuid_idx", "site_polygon", ["primary_uuid"])
    op.create_index("site_polygon_site_id_idx", "site_polygon", ["site_id"])
    op.create_table(
        "polygon_updates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("site_polygon_uuid", sa.String(), nullable=False),
        sa.Column("version_name", sa.String(), nullable=True),
        sa.Column("change", sa.String(), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("comment", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("old_status", sa.String(), nullable=True),
        sa.Column("new_status", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "criteria_site",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("polygon_id", sa.String(), nullable=False),
        sa.Column("criteria_id", sa.Integer(), nullable=False),
        sa.Column("valid", sa.Boolean(), nullable=False),
        sa.Column("extra_info", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "criteria_site_polygon_id_idx", "criteria_site", ["polygon_id", "criteria_id"]
    )
    op.create_table(
        "delayed_jobs",
        sa.Column("uuid", postgresql.UUID(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("payload", postgresql.JSONB(), nullable=True),
        sa.Column("total_content", sa.Integer(), nullable=True),
        sa.Column("processed_content", sa.Integer(), nullable=True),
        sa.Column("progress_message", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("entity_name", sa.String(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("is_acknowledged", sa.Boolean(), nullable=False),
        sa.Column("expires_on", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(
        "delayed_jobs_expires_on_idx", "delayed_jobs", ["expires_on"], unique=False
    )


def downgrade():
    op.drop_index("delayed_jobs_expires_on_idx", table_name="delayed_jobs")
    op.drop_table("delayed_jobs")
    op.drop_index("criteria_site_polygon_id_idx", table_name="criteria_site")
    op.drop_table("criteria_site")
    op.drop_table("polygon_updates")
    op.drop_index("site_polygon_site_id_idx", table_name="site_polygon")
    op.drop_index("site_polygon_primary_uuid_idx", table_name="site_polygon")
    op.drop_index("site_polygon_poly_id_idx", table_name="site_polygon")
    op.drop_table("site_polygon")
    op.drop_table("polygon_geometry")
    op.drop_table("v2_sites")
    op.drop_table("v2_projects")
