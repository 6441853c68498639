"""Engine, session factory and the transaction scope used by the services."""
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from mutual_aid.config import Settings


class Base(DeclarativeBase):
    pass


def _configure_sqlite(engine: Engine) -> None:
    """Make SQLite behave like a locking store.

    pysqlite's own transaction handling is switched off so that every
    transaction starts with ``BEGIN IMMEDIATE``: the write lock is taken before
    the first read, which serializes concurrent accept attempts.

    Read-only calls take the lock as well: the identity lookup autobegins a
    transaction that lasts until ``get_db`` closes the session at the end of
    the call. SQLite here is a single-process dev/test store; readers queue
    behind one another for at most ``timeout`` seconds.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(settings: Settings) -> Engine:
    if settings.DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            settings.DATABASE_URL,
            echo=settings.SQL_ECHO,
            connect_args={"check_same_thread": False, "timeout": 15},
        )
        _configure_sqlite(engine)
        return engine
    return create_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Scope a unit of work: commit when the block exits, roll back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding a session from the app's session factory."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
