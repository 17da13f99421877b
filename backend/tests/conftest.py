"""
Brokerage back-office - test configuration

Points the app at SQLite before anything imports the database module.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SPLIT_FETCH_MAX_WORKERS", "4")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from brokerage.core.database import Base
import brokerage.models  # noqa: F401  register models on Base


@pytest.fixture
def session_factory(tmp_path):
    """File-backed SQLite so worker threads each get a working connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
