from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from config import Settings
from database import Base, make_engine
import models  # noqa: F401  registers the tables on Base.metadata

# Alembic Config object
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


# --- DATABASE URL ---
def get_url():
    # an explicit sqlalchemy.url wins; otherwise DATABASE_URL / .env
    return config.get_main_option("sqlalchemy.url") or Settings.from_env().database_url


def run_migrations_offline():
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,      # detect column type changes
        render_as_batch=True,   # sqlite cannot ALTER most constraints
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    url = get_url()
    if url.startswith("sqlite"):
        # keeps the foreign_keys pragma on for migrations too
        connectable = make_engine(url)
    else:
        connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
