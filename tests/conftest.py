"""Shared fixtures: a throwaway SQLite database per test and small builders for events/types."""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "stallhub-test-logs"))

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from stallhub.database import create_tables
from stallhub.services import event_service, stall_type_service


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'stallhub.db'}",
                        connect_args={"check_same_thread": False})
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_event(db):
    def _make(stall_count=10, **fields):
        data = {
            "event_name": "Pune Property Expo",
            "city": "Pune",
            "start_date": date(2026, 11, 20),
            "end_date": date(2026, 11, 22),
            "stall_count": stall_count,
        }
        data.update(fields)
        return event_service.create_event(db, data)
    return _make


@pytest.fixture
def make_stall_type(db):
    def _make(event_id, name="Standard", unit_price=2000, quantity=4):
        return stall_type_service.create_stall_type(db, event_id, name, unit_price, quantity)
    return _make
