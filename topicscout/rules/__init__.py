"""Configurable categorization rules: value objects, presets and the rules store."""

from topicscout.rules.models import (
    CategorizationPreset,
    CategorizationRule,
    QualityFactors,
    RuleBody,
    Thresholds,
    Weights,
)
from topicscout.rules.presets import DEFAULT_RULE_ID, PRESETS
from topicscout.rules.store import MemoryRulesPersistence, RulesPersistence, RulesStore

__all__ = [
    "CategorizationPreset",
    "CategorizationRule",
    "QualityFactors",
    "RuleBody",
    "Thresholds",
    "Weights",
    "DEFAULT_RULE_ID",
    "PRESETS",
    "MemoryRulesPersistence",
    "RulesPersistence",
    "RulesStore",
]
