"""SQL persistence for categorization rules."""

from topicscout.db.engine import get_session, init_engine
from topicscout.db.repository import SqlRulesPersistence

__all__ = ["SqlRulesPersistence", "get_session", "init_engine"]
