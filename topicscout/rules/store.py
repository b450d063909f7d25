"""Rules store: named categorization rules plus the single active-rule pointer.

The store owns the rule collection.  Every mutation goes through
``_commit``, which rewrites the ``is_active`` flags from ``active_rule_id``,
persists the result and only then installs it, so the collection always
holds exactly one active rule once initialised.  The default rule can never
be deleted.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Protocol

from topicscout.errors import (
    ConfigurationError,
    PresetNotFoundError,
    ProtectedRuleError,
    RuleNotFoundError,
)
from topicscout.rules.models import (
    CategorizationPreset,
    CategorizationRule,
    QualityFactors,
    RuleBody,
    Thresholds,
    Weights,
)
from topicscout.rules.presets import DEFAULT_RULE_BODY, DEFAULT_RULE_ID, PRESETS

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"name", "description", "weights", "thresholds", "quality_factors"}


class RulesPersistence(Protocol):
    """Synchronous key-value persistence for the rule collection."""

    def load(self) -> tuple[list[dict[str, Any]], str | None]:
        """Return saved rule dicts and the saved active id (empty/None if nothing saved)."""
        ...

    def save(self, rules: list[dict[str, Any]], active_rule_id: str) -> None:
        ...


class MemoryRulesPersistence:
    """Process-local persistence, used as the zero-configuration default."""

    def __init__(
        self,
        rules: list[dict[str, Any]] | None = None,
        active_rule_id: str | None = None,
    ) -> None:
        self._rules = copy.deepcopy(rules or [])
        self._active_rule_id = active_rule_id
        self.save_count = 0

    def load(self) -> tuple[list[dict[str, Any]], str | None]:
        return copy.deepcopy(self._rules), self._active_rule_id

    def save(self, rules: list[dict[str, Any]], active_rule_id: str) -> None:
        self._rules = copy.deepcopy(rules)
        self._active_rule_id = active_rule_id
        self.save_count += 1


class RulesStore:
    """Manage categorization rules and which one is active.

    Construct once per process or session and inject it where needed.
    Unknown ids raise :class:`RuleNotFoundError` / :class:`PresetNotFoundError`.
    """

    def __init__(
        self,
        persistence: RulesPersistence | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._persistence = persistence or MemoryRulesPersistence()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rules: dict[str, CategorizationRule] = {}
        self._active_id = DEFAULT_RULE_ID
        self._lock = threading.RLock()
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load persisted rules, seeding the default rule when nothing is saved."""
        with self._lock:
            self.load()
            self._initialized = True

    def load(self) -> None:
        """(Re)load the collection from persistence."""
        with self._lock:
            raw_rules, saved_active = self._persistence.load()
            rules: dict[str, CategorizationRule] = {}
            try:
                for data in raw_rules:
                    rule = CategorizationRule.from_dict(data)
                    rules[rule.id] = rule
            except (KeyError, TypeError, ValueError):
                logger.exception("Saved categorization rules are unreadable, reseeding defaults")
                rules = {}

            if not rules:
                logger.info("No saved categorization rules, seeding the default rule")
            seeded = DEFAULT_RULE_ID not in rules
            if seeded:
                rules = {DEFAULT_RULE_ID: self._seed_default(), **rules}

            active_id = saved_active if saved_active in rules else None
            if active_id is None:
                flagged = [r.id for r in rules.values() if r.is_active]
                active_id = flagged[0] if flagged else DEFAULT_RULE_ID

            # only write back when seeding or flag repair changed the saved state
            changed = (
                seeded
                or active_id != saved_active
                or any(r.is_active != (r.id == active_id) for r in rules.values())
            )
            self._commit(rules, active_id, persist=changed)

    def save(self) -> None:
        """Persist the current collection."""
        with self._lock:
            self._ensure_initialized()
            self._persistence.save(
                [r.to_dict() for r in self._rules.values()], self._active_id,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def presets(self) -> list[CategorizationPreset]:
        return list(PRESETS.values())

    @property
    def active_rule_id(self) -> str:
        with self._lock:
            self._ensure_initialized()
            return self._active_id

    def list_rules(self) -> list[CategorizationRule]:
        with self._lock:
            self._ensure_initialized()
            return list(self._rules.values())

    def get_rule(self, rule_id: str) -> CategorizationRule:
        with self._lock:
            self._ensure_initialized()
            try:
                return self._rules[rule_id]
            except KeyError:
                raise RuleNotFoundError(rule_id) from None

    def get_active_rule(self) -> CategorizationRule:
        """Return the active rule, falling back to the default rule."""
        with self._lock:
            self._ensure_initialized()
            rule = self._rules.get(self._active_id)
            return rule if rule is not None else self._rules[DEFAULT_RULE_ID]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_rule(self, body: RuleBody | Mapping[str, Any]) -> CategorizationRule:
        """Add a new custom rule.  It is not activated."""
        if not isinstance(body, RuleBody):
            body = _body_from_mapping(body)
        body.validate()
        with self._lock:
            self._ensure_initialized()
            now = self._now()
            rule = CategorizationRule(
                id=self._new_id(),
                name=body.name,
                description=body.description,
                weights=body.weights,
                thresholds=body.thresholds,
                quality_factors=body.quality_factors,
                is_active=False,
                created_at=now,
                updated_at=now,
            )
            self._commit({**self._rules, rule.id: rule}, self._active_id)
            logger.info("Created categorization rule %s (%s)", rule.id, rule.name)
            return self._rules[rule.id]

    def update_rule(self, rule_id: str, **changes: Any) -> CategorizationRule:
        """Merge *changes* into a rule and bump its ``updated_at``.

        ``weights``, ``thresholds`` and ``quality_factors`` accept either a
        value object or a (possibly partial) mapping merged onto the current
        values.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ConfigurationError(f"Cannot update rule fields: {', '.join(sorted(unknown))}")
        with self._lock:
            current = self.get_rule(rule_id)
            merged = _merge_changes(current, changes)
            merged.validate()
            updated = merged.with_changes(updated_at=self._now(after=current.updated_at))
            self._commit({**self._rules, rule_id: updated}, self._active_id)
            logger.info("Updated categorization rule %s", rule_id)
            return self._rules[rule_id]

    def delete_rule(self, rule_id: str, *, strict: bool = False) -> CategorizationRule | None:
        """Remove a rule.  Deleting the active rule re-activates the default.

        Deleting the default rule is ignored (or raises
        :class:`ProtectedRuleError` when *strict*).
        """
        with self._lock:
            if rule_id == DEFAULT_RULE_ID:
                logger.warning("Refusing to delete the default categorization rule")
                if strict:
                    raise ProtectedRuleError(rule_id)
                return None
            removed = self.get_rule(rule_id)
            remaining = {k: v for k, v in self._rules.items() if k != rule_id}
            active_id = DEFAULT_RULE_ID if self._active_id == rule_id else self._active_id
            self._commit(remaining, active_id)
            logger.info("Deleted categorization rule %s", rule_id)
            return removed

    def activate_rule(self, rule_id: str) -> CategorizationRule:
        """Make *rule_id* the single active rule."""
        with self._lock:
            self.get_rule(rule_id)
            self._commit(dict(self._rules), rule_id)
            logger.info("Activated categorization rule %s", rule_id)
            return self._rules[rule_id]

    def apply_preset(self, preset_id: str) -> CategorizationRule:
        """Create a custom rule from a built-in preset and activate it."""
        preset = PRESETS.get(preset_id)
        if preset is None:
            raise PresetNotFoundError(preset_id)
        with self._lock:
            rule = self.create_rule(RuleBody(
                name=f"{preset.name} (custom)",
                description=f"Based on preset: {preset.description}",
                weights=preset.body.weights,
                thresholds=preset.body.thresholds,
                quality_factors=preset.body.quality_factors,
            ))
            return self.activate_rule(rule.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(
        self,
        rules: dict[str, CategorizationRule],
        active_id: str,
        persist: bool = True,
    ) -> None:
        """Persist a new collection, re-deriving the active flags, then install it.

        State is only swapped in after ``save`` returns, so a failed save
        leaves the store unchanged.
        """
        if active_id not in rules:
            raise RuleNotFoundError(active_id)
        new_rules = {
            rule_id: rule if rule.is_active == (rule_id == active_id)
            else rule.with_changes(is_active=rule_id == active_id)
            for rule_id, rule in rules.items()
        }
        if persist:
            self._persistence.save([r.to_dict() for r in new_rules.values()], active_id)
        self._rules = new_rules
        self._active_id = active_id

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    def _seed_default(self) -> CategorizationRule:
        now = self._now()
        return CategorizationRule(
            id=DEFAULT_RULE_ID,
            name=DEFAULT_RULE_BODY.name,
            description=DEFAULT_RULE_BODY.description,
            weights=DEFAULT_RULE_BODY.weights,
            thresholds=DEFAULT_RULE_BODY.thresholds,
            quality_factors=DEFAULT_RULE_BODY.quality_factors,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    def _now(self, after: datetime | None = None) -> datetime:
        now = self._clock()
        if after is not None and now <= after:
            now = after + timedelta(microseconds=1)
        return now

    def _new_id(self) -> str:
        while True:
            rule_id = f"custom-{uuid.uuid4().hex[:12]}"
            if rule_id not in self._rules:
                return rule_id


def _merge_changes(rule: CategorizationRule, changes: Mapping[str, Any]) -> CategorizationRule:
    merged: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "weights" and not isinstance(value, Weights):
            value = Weights.from_dict({**rule.weights.to_dict(), **value})
        elif key == "thresholds" and not isinstance(value, Thresholds):
            value = Thresholds.from_dict({**rule.thresholds.to_dict(), **value})
        elif key == "quality_factors" and not isinstance(value, QualityFactors):
            value = QualityFactors.from_dict({**rule.quality_factors.to_dict(), **value})
        merged[key] = value
    return rule.with_changes(**merged)


def _body_from_mapping(data: Mapping[str, Any]) -> RuleBody:
    return RuleBody(
        name=str(data.get("name", "")),
        description=str(data.get("description", "")),
        weights=Weights.from_dict(data.get("weights", {})),
        thresholds=Thresholds.from_dict(data.get("thresholds", {})),
        quality_factors=QualityFactors.from_dict(
            data.get("qualityFactors", data.get("quality_factors", {}))
        ),
    )
