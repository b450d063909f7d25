"""SQLAlchemy ORM models for persisted categorization rules."""

from __future__ import annotations

import json

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text, types
from sqlalchemy.orm import DeclarativeBase


class JSONListType(types.TypeDecorator):
    """Store a Python list as a JSON string."""

    impl = types.Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return json.loads(value)


class Base(DeclarativeBase):
    pass


class RuleRecord(Base):
    __tablename__ = "categorization_rules"

    id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False, default=0)  # collection order
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")

    weight_relevance = Column(Float, nullable=False)
    weight_quality = Column(Float, nullable=False)
    weight_freshness = Column(Float, nullable=False)
    weight_external_score = Column(Float, nullable=False)

    expand_threshold = Column(Float, nullable=False)
    min_word_count = Column(Integer, nullable=False)
    max_days_for_fresh = Column(Integer, nullable=False)

    preferred_domains = Column(JSONListType)
    keyword_bonus = Column(JSONListType)
    minimum_content_length = Column(Integer, nullable=False)

    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self) -> str:
        return f"<RuleRecord(id={self.id!r}, name={self.name!r}, active={self.is_active})>"


class RulesState(Base):
    """Single-row table holding the active rule pointer."""

    __tablename__ = "rules_state"

    id = Column(Integer, primary_key=True, default=1)
    active_rule_id = Column(String(64), nullable=False)


def create_tables(engine) -> None:
    """Create all tables (idempotent)."""
    Base.metadata.create_all(engine)
