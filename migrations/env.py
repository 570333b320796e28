"""Alembic environment: target metadata comes from the app's models and the
URL from ``settings.DATABASE_URL``."""
from logging.config import fileConfig
import os
import sys

from sqlalchemy import pool, create_engine
from alembic import context

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.core.config import settings  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.models import user, connection, remote_session, session  # noqa: F401,E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    ini_url = config.get_main_option("sqlalchemy.url")
    if not ini_url or ini_url.strip() == "DATABASE_URL":
        raise RuntimeError("DATABASE_URL not found in .env, environment variables, or settings.")
    return ini_url


def _configure_options(url: str) -> dict:
    # SQLite cannot ALTER most things in place; batch mode recreates tables
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline():
    """Emit SQL to stdout without a live connection."""
    url = get_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    url = get_url()
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
