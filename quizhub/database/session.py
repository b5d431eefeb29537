from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from quizhub.config import Settings


def build_sqlalchemy_database_url_from_settings(_settings: Settings) -> str:
    """
    Builds a SQLAlchemy URL based on the provided settings.

    Parameters:
        _settings (Settings): An instance of the Settings class.

    Returns:
        str: The database URL. A bare file path is turned into a SQLite URL.
    """
    url = _settings.DATABASE_URL.strip()
    if "://" not in url:
        url = f"sqlite:///{url}"
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(database_url: str, echo=False, **kwargs) -> Engine:
    """
    Creates and returns a SQLAlchemy Engine object for connecting to a database.

    SQLite engines get foreign-key enforcement switched on for every
    connection, and the directory holding a file database is created.

    Parameters:
        database_url (str): The URL of the database to connect to.
        echo (bool): Whether or not to enable echoing of SQL statements.
        Defaults to False.
        **kwargs: Passed through to ``create_engine``.

    Returns:
        Engine: A SQLAlchemy Engine object representing the database connection.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 1800)

    engine = create_engine(database_url, echo=echo, future=True, **kwargs)
    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_local_session(engine: Engine) -> sessionmaker:
    """
    Create and return a sessionmaker bound to ``engine``.

    Parameters:
        engine (Engine): The engine sessions will use.

    Returns:
        sessionmaker: A sessionmaker object configured for request sessions.
    """
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )
