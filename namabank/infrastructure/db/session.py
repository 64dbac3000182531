"""
Ledger database wiring: declarative base, engine, sessions and the readiness probe.

PostgreSQL in production; the same engine factory builds the in-memory
SQLite database the tests run against.
"""
import psycopg
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from namabank.config import get_settings


class Base(DeclarativeBase):
    """Base class of every ledger table"""
    pass


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def make_engine(url: str) -> Engine:
    """
    Engine for a database URL.

    In-memory SQLite gets a single shared connection so that request
    threads and the test body see the same data.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = make_engine(get_settings().get_sqlalchemy_url())
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Session:
    """
    FastAPI dependency: one session per request, closed afterwards.

    Use cases commit themselves; anything left uncommitted is discarded
    when the session closes.
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness probe. PostgreSQL is asked directly through psycopg so the
    probe does not depend on the pool; other backends go through the engine.

    Raises:
        psycopg.OperationalError / sqlalchemy.exc.OperationalError: database unreachable
    """
    settings = get_settings()
    if make_url(settings.DATABASE_URL).get_backend_name() == "postgresql":
        with psycopg.connect(settings.DATABASE_URL, connect_timeout=3) as conn:
            conn.execute("SELECT 1").fetchone()
        return
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
