"""
Pytest fixtures for testing
"""

import pytest
from sqlalchemy.orm import sessionmaker, Session

from namabank.infrastructure.db.session import Base, make_engine
from namabank.utils.clock import FixedClock

from tests.factories import TODAY, add_user, add_account, link


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every connection (API tests run in a worker thread)"""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock():
    """Clock pinned to TODAY"""
    return FixedClock(TODAY)


@pytest.fixture
def devotee(db_session):
    return add_user(db_session, name="Radha", city="Chennai")


@pytest.fixture
def account(db_session):
    return add_account(db_session)


@pytest.fixture
def linked_account(db_session, devotee, account):
    link(db_session, devotee, account)
    db_session.commit()
    return account
