"""
Database connection management for yomitori.

Engines are SQLite; file databases get the same read-heavy pragmas the
lookup path benefits from, in-memory databases share one connection so
every session sees the same data.
"""

from pathlib import Path
from typing import Optional, Union

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yomitori.db.models import Base
from yomitori.settings import DB_PATH, DEBUG, ensure_data_dirs


def get_db_path(db_path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the database path, defaulting to settings.DB_PATH."""
    if db_path is None:
        return DB_PATH
    return Path(db_path)


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.execute("PRAGMA synchronous = NORMAL")
    cursor.execute("PRAGMA cache_size = -64000")  # 64MB cache
    cursor.close()


def create_db_engine(db_path: Optional[Union[str, Path]] = None) -> Engine:
    """
    Create an engine for a SQLite database file.

    Args:
        db_path: Path to the database file. Defaults to settings.DB_PATH.
    """
    path = get_db_path(db_path)
    ensure_data_dirs(path)

    engine = create_engine(
        f"sqlite:///{path}",
        echo=DEBUG,
        connect_args={'check_same_thread': False},
    )
    event.listen(engine, 'connect', _set_sqlite_pragmas)
    return engine


def create_memory_engine() -> Engine:
    """Create an in-memory engine usable from worker threads."""
    return create_engine(
        "sqlite://",
        echo=DEBUG,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)

