"""env.py.

Alembic ENV module isort:skip_file
"""

# Native libraries
import sys

sys.path.extend(["./"])

######################## --- MODELS FOR MIGRATIONS --- ########################
from clipping_api.application import db

# To include a model in migrations, add a line here.
from clipping_api.models.orm.criteria_site import CriteriaSite  # noqa: F401
from clipping_api.models.orm.delayed_jobs import DelayedJob  # noqa: F401
from clipping_api.models.orm.polygon_geometry import PolygonGeometry  # noqa: F401
from clipping_api.models.orm.site_polygons import PolygonUpdate, SitePolygon  # noqa: F401
from clipping_api.models.orm.sites import Project, Site  # noqa: F401

###############################################################################

# Third party packages
from alembic import context
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool


# App imports
from clipping_api.settings.globals import ALEMBIC_CONFIG


config = context.config
fileConfig(config.config_file_name)
target_metadata = db


def run_migrations_offline():
    """Run migrations in 'offline' mode.

    This configures the context with just a URL and not an Engine, so no
    DBAPI is needed. Calls to context.execute() here emit the given string
    to the script output.
    """
    context.configure(
        url=ALEMBIC_CONFIG.url.__to_string__(hide_password=False),
        target_metadata=target_metadata,
        literal_binds=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        {"sqlalchemy.url": ALEMBIC_CONFIG.url.__to_string__(hide_password=False)},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction() as transaction:
            context.run_migrations()
            if "dry-run" in context.get_x_argument():
                print("Dry-run succeeded; now rolling back transaction")
                transaction.rollback()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
