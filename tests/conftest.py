"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from topicscout.db.models import create_tables
from topicscout.rules.store import MemoryRulesPersistence, RulesStore

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def db_session():
    """In-memory SQLite session for tests."""
    engine = create_engine("sqlite:///:memory:")
    create_tables(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def persistence() -> MemoryRulesPersistence:
    return MemoryRulesPersistence()


@pytest.fixture()
def store(persistence) -> RulesStore:
    """Initialised memory-backed rules store with a frozen clock."""
    rules_store = RulesStore(persistence, clock=lambda: FIXED_NOW)
    rules_store.initialize()
    return rules_store
