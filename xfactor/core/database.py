"""
Database configuration and session management.
"""
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

# Engine and session factory are created on first use so tests and scripts
# can point settings.DATABASE_URL elsewhere before anything connects.
_engine = None
_SessionLocal = None


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """
    Let SQLAlchemy own transaction boundaries on pysqlite connections.

    pysqlite's implicit BEGIN handling breaks SAVEPOINT semantics, which the
    repositories' find-or-create depends on. See "Serializable isolation /
    Savepoints / Transactional DDL" in the SQLAlchemy SQLite dialect docs.
    """
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine():
    """Get or create the database engine."""
    global _engine, _SessionLocal

    if _engine is None:
        from xfactor.core.config import settings

        is_sqlite = settings.DATABASE_URL.startswith("sqlite")
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,  # Verify connections before using
            connect_args={"check_same_thread": False} if is_sqlite else {},
            echo=settings.SQL_ECHO
        )
        if is_sqlite:
            enable_sqlite_savepoints(_engine)
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _engine


def SessionLocal() -> Session:
    """Create a new session bound to the configured engine."""
    get_engine()
    return _SessionLocal()


def get_db() -> Generator[Session, None, None]:
    """
    Provide a database session and close it afterwards.

    Usage:
    ```python
    for db in get_db():
        DirtyScheduler(db, provider).update_dirty_players()
    ```
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables."""
    from xfactor.models.models import Base
    # checkfirst=True will only create tables that don't exist
    Base.metadata.create_all(bind=get_engine(), checkfirst=True)
