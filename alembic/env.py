# alembic/env.py
import asyncio
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

# --- Make 'contentops.' imports work when running Alembic from the project root ---
cwd = os.getcwd()
if cwd not in sys.path:
    sys.path.insert(0, cwd)

# contentops.core.config loads .env on import
from contentops.db.base import Base
from contentops.db.session import make_engine
import contentops.models  # noqa: F401  (populate metadata)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Same URL as the application
engine = make_engine()
config.set_main_option("sqlalchemy.url", engine.url.render_as_string(hide_password=False))

target_metadata = Base.metadata


def _is_sqlite() -> bool:
    return engine.url.get_backend_name() == "sqlite"


def include_object(object, name, type_, reflected, compare_to):
    """
    - Skip Alembic's own version table.
    - Never propose DROP for objects that exist in the DB but not in the ORM.
    """
    if type_ == "table" and name == "alembic_version":
        return False
    if reflected and compare_to is None and type_ in {
        "table", "index", "unique_constraint", "foreign_key"
    }:
        return False
    return True


def process_revision_directives(context, revision, directives):
    """Drop empty autogenerate revisions."""
    if getattr(context.config.cmd_opts, "autogenerate", False):
        script = directives[0]
        if script.upgrade_ops.is_empty():
            directives[:] = []


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
        render_as_batch=_is_sqlite(),  # SQLite-friendly ALTER TABLE
        process_revision_directives=process_revision_directives,
        **kwargs,
    )


def run_migrations_offline():
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    async with engine.connect() as connection:
        await connection.run_sync(_run_sync)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
