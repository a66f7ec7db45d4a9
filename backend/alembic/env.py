"""
Alembic migration environment for the event registry schema.

Migrations always run over a sync driver (DATABASE_URL_SYNC). PostgreSQL is
the production target; a sqlite:/// URL also works for local runs, with
ALTERs rendered in batch mode because SQLite cannot alter constraints.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from event_registry.db.base import Base
from event_registry.models import User, Event, Registration  # noqa: F401 - Import models for autogenerate
from event_registry.core.config import get_settings

config = context.config
settings = get_settings()

# Migrations run over the sync driver; the app uses DATABASE_URL (asyncpg)
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _configure_kwargs(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        # flag column type drift (Uuid, timezone-aware DateTime) on autogenerate
        "compare_type": True,
        "render_as_batch": _is_sqlite(url),
    }


def run_migrations_offline() -> None:
    """Generate SQL script without connecting to the database."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live database connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(str(connection.engine.url)))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
