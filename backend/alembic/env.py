"""
Alembic migration environment.
DATABASE_URL comes from app settings (.env or environment); models drive autogenerate.
Run from backend/: alembic upgrade head
"""
import sys
from logging.config import fileConfig
from pathlib import Path

# alembic/ is in backend/, the "backend" package lives one level above
_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_root))

from sqlalchemy import create_engine, pool
from alembic import context

from backend.app.core.config import settings
from backend.app.db.base import Base

# Import all models so they register with Base.metadata
import backend.app.models  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite cannot ALTER most columns; batch mode recreates the table instead
_RENDER_AS_BATCH = settings.database_url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations against the configured database."""
    connectable = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=_RENDER_AS_BATCH,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
