from pathlib import Path

from alembic import command
from alembic.config import Config

from quizhub.log import get_logger

log = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def get_alembic_config(database_url: str) -> Config:
    """
    Build an Alembic config pointing at the packaged migration scripts.

    Parameters:
        database_url (str): Target database URL.

    Returns:
        Config: Alembic configuration usable with ``alembic.command``.
    """
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    # configparser interpolation treats % specially
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def upgrade_database(database_url: str, revision: str = "head") -> None:
    """Apply schema migrations up to ``revision``."""
    log.info("Upgrading database schema to %s", revision)
    command.upgrade(get_alembic_config(database_url), revision)


def downgrade_database(database_url: str, revision: str) -> None:
    log.info("Downgrading database schema to %s", revision)
    command.downgrade(get_alembic_config(database_url), revision)
