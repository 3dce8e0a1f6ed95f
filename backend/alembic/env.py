"""Alembic environment for the CV Builder schema.

``main._run_migrations`` passes the URL explicitly; running ``alembic``
by hand falls back to ``DATABASE_URL``.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from cvbuilder.config import settings

# Every model module must be imported so autogenerate sees its table
from cvbuilder.database.base import Base
from cvbuilder.auth.models import User  # noqa: F401
from cvbuilder.cv.models import CV  # noqa: F401
from cvbuilder.audit.models import AuditLog  # noqa: F401
from cvbuilder.notifications.models import NotificationLog  # noqa: F401
from cvbuilder.subscription.models import WebhookEvent  # noqa: F401

config = context.config
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, literal_binds=True, **_configure_options(url))
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = config.get_main_option("sqlalchemy.url")
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
