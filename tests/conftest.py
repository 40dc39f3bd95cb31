"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from datetime import date
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL") or "sqlite://"

from fuel_ledger.logging_config import configure_logging

configure_logging()

from fuel_ledger.database import Base, get_db
from fuel_ledger.main import app
from fuel_ledger.models import database_models  # noqa: F401
from fuel_ledger.models.ledger_types import LedgerDay


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """Provide a FastAPI test client."""

    return TestClient(app)


@pytest.fixture()
def db_session() -> Iterator[Session]:
    """Fresh in-memory database per test."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def api_client(db_session: Session) -> Iterator[TestClient]:
    """Test client whose requests share the test's database session."""

    def override_get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


def build_ledger_day(**overrides: Any) -> LedgerDay:
    """LedgerDay at full stores with no training; override any field."""

    values: dict[str, Any] = {
        "date": date(2025, 3, 1),
        "capacity_g": 490,
        "supercomp_cap_g": 588,
        "store_start_g": 490,
        "store_end_g": 490,
        "deficit_start_g": 0,
        "surplus_start_g": 0,
        "fill_pct_start": 100,
        "deficit_end_g": 0,
        "surplus_end_g": 0,
        "fill_pct": 100,
        "debt_start_g": 0,
        "debt_end_g": 0,
        "depletion_total_g": 0,
        "repletion_g": 0,
        "has_intake": True,
        "intake_type": "logged",
        "intake_confidence": "high",
        "carbs_logged_g": 210.0,
        "protein_logged_g": 126.0,
        "estimated_intake_g": None,
        "carb_target_g": 210,
        "protein_target_g": 126,
        "alignment_score": 100,
        "readiness_score": 95,
        "risk_flag": "green",
        "is_hard_day": False,
        "is_rest_day": True,
        "total_tss": 0,
        "total_duration_min": 0,
    }
    values.update(overrides)
    return LedgerDay(**values)


@pytest.fixture()
def make_day():
    """Factory fixture for hand-built ledger days."""

    return build_ledger_day
