"""Data access for categorization rules.

Rules cross this boundary as the flat camelCase dicts produced by
``CategorizationRule.to_dict``; the rules store never sees ORM rows.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from topicscout.db.engine import get_session
from topicscout.db.models import RuleRecord, RulesState
from topicscout.rules.models import Weights

logger = logging.getLogger(__name__)

_STATE_ROW_ID = 1


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

def rule_to_row(data: dict[str, Any], position: int = 0) -> RuleRecord:
    weights = Weights.from_dict(data.get("weights", {}))
    thresholds = data.get("thresholds", {})
    factors = data.get("qualityFactors", {})
    return RuleRecord(
        id=data["id"],
        position=position,
        name=data.get("name", ""),
        description=data.get("description", ""),
        weight_relevance=weights.relevance,
        weight_quality=weights.quality,
        weight_freshness=weights.freshness,
        weight_external_score=weights.external_score,
        expand_threshold=thresholds.get("expandThreshold", 85),
        min_word_count=thresholds.get("minWordCount", 100),
        max_days_for_fresh=thresholds.get("maxDaysForFresh", 30),
        preferred_domains=list(factors.get("preferredDomains", [])),
        keyword_bonus=list(factors.get("keywordBonus", [])),
        minimum_content_length=factors.get("minimumContentLength", 100),
        is_active=bool(data.get("isActive", False)),
        created_at=_to_utc_naive(data.get("createdAt")),
        updated_at=_to_utc_naive(data.get("updatedAt")),
    )


def row_to_dict(row: RuleRecord) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "description": row.description or "",
        "weights": {
            "relevance": row.weight_relevance,
            "quality": row.weight_quality,
            "freshness": row.weight_freshness,
            "externalScore": row.weight_external_score,
        },
        "thresholds": {
            "expandThreshold": row.expand_threshold,
            "minWordCount": row.min_word_count,
            "maxDaysForFresh": row.max_days_for_fresh,
        },
        "qualityFactors": {
            "preferredDomains": list(row.preferred_domains or []),
            "keywordBonus": list(row.keyword_bonus or []),
            "minimumContentLength": row.minimum_content_length,
        },
        "isActive": bool(row.is_active),
        "createdAt": _to_iso(row.created_at),
        "updatedAt": _to_iso(row.updated_at),
    }


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def load_rules(session: Session) -> list[dict[str, Any]]:
    """Return all stored rules in collection order."""
    rows = session.execute(
        select(RuleRecord).order_by(RuleRecord.position, RuleRecord.id)
    ).scalars().all()
    return [row_to_dict(row) for row in rows]


def get_active_rule_id(session: Session) -> str | None:
    state = session.get(RulesState, _STATE_ROW_ID)
    return state.active_rule_id if state else None


def replace_rules(session: Session, rules: list[dict[str, Any]], active_rule_id: str) -> None:
    """Replace the whole rule collection and the active pointer."""
    session.execute(delete(RuleRecord))
    session.add_all(rule_to_row(data, position) for position, data in enumerate(rules))
    state = session.get(RulesState, _STATE_ROW_ID)
    if state is None:
        session.add(RulesState(id=_STATE_ROW_ID, active_rule_id=active_rule_id))
    else:
        state.active_rule_id = active_rule_id
    session.flush()


class SqlRulesPersistence:
    """Rules persistence backed by the configured SQL database.

    Each ``save`` runs in a single transaction, so readers never observe a
    half-written collection.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractContextManager[Session]] = get_session,
    ) -> None:
        self._session_factory = session_factory

    def load(self) -> tuple[list[dict[str, Any]], str | None]:
        with self._session_factory() as session:
            return load_rules(session), get_active_rule_id(session)

    def save(self, rules: list[dict[str, Any]], active_rule_id: str) -> None:
        with self._session_factory() as session:
            replace_rules(session, rules, active_rule_id)
        logger.debug("Saved %d categorization rules (active=%s)", len(rules), active_rule_id)


def _to_utc_naive(value: Any) -> datetime | None:
    if not value:
        return None
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
