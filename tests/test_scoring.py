"""Tests for the scoring modules and the decision engine."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from topicscout.fetchers.base import CandidateRecord
from topicscout.rules.models import CategorizationRule, QualityFactors, Thresholds, Weights
from topicscout.rules.presets import BALANCED
from topicscout.scoring.engine import (
    REASON_SEPARATOR,
    Category,
    build_reasoning,
    categorize_record,
    compute_breakdown,
    to_priority,
    weighted_score,
    ScoreBreakdown,
)
from topicscout.scoring.freshness import score_freshness
from topicscout.scoring.quality import score_quality
from topicscout.scoring.relevance import score_relevance, tokenize_topic

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _make_record(**kwargs) -> CandidateRecord:
    defaults = dict(
        title="Untitled",
        url="https://example.org/article",
        published_date=None,
        author=None,
        external_score=None,
        text="",
    )
    defaults.update(kwargs)
    return CandidateRecord(**defaults)


def _make_rule(**kwargs) -> CategorizationRule:
    body = BALANCED.body
    defaults = dict(
        id="test",
        name="Test rule",
        description="",
        weights=body.weights,
        thresholds=body.thresholds,
        quality_factors=body.quality_factors,
        is_active=True,
    )
    defaults.update(kwargs)
    return CategorizationRule(**defaults)


class TestRelevance:
    def test_tokenize_drops_short_and_duplicate_tokens(self):
        assert tokenize_topic("AI in the AI world") == ["the", "world"]

    def test_no_match_scores_sixty(self):
        assert score_relevance("nothing here", "Other", "quantum computing") == 60.0

    def test_body_only_match(self):
        # one of two tokens in the body, none in the title
        assert score_relevance("about quantum stuff", "Other", "quantum computing") == 87.5

    def test_title_match_adds_bonus_and_clamps(self):
        score = score_relevance("", "Quantum computing today", "quantum computing")
        assert score == 100.0

    def test_empty_topic(self):
        assert score_relevance("text", "title", "") == 60.0

    def test_case_insensitive(self):
        assert score_relevance("QUANTUM", "", "quantum") == 95.0


class TestQuality:
    def setup_method(self):
        self.factors = QualityFactors(
            preferred_domains=("nature.com",),
            keyword_bonus=("study",),
            minimum_content_length=100,
        )

    def test_empty_text_gets_base(self):
        assert score_quality("", "https://blog.example", self.factors, 100) == 85.0

    @pytest.mark.parametrize("words,expected", [
        (40, 85.0),
        (51, 87.0),
        (101, 89.0),
        (201, 91.0),
        (501, 93.0),
    ])
    def test_length_tiers(self, words, expected):
        text = " ".join(["word"] * words)
        assert score_quality(text, "https://blog.example", self.factors, 100) == expected

    def test_numbers_count_as_data(self):
        assert score_quality("Sales grew 12% last year", "", self.factors, 100) == 89.0

    def test_keyword_counts_as_data(self):
        assert score_quality("A new STUDY shows", "", self.factors, 100) == 89.0

    def test_empty_keyword_list_does_not_match_everything(self):
        factors = QualityFactors(keyword_bonus=())
        assert score_quality("plain words only", "", factors, 100) == 85.0

    def test_keywords_are_literal(self):
        factors = QualityFactors(keyword_bonus=("c++",))
        assert score_quality("we like cxx", "", factors, 100) == 85.0
        assert score_quality("we like c++", "", factors, 100) == 89.0

    def test_preferred_domain(self):
        assert score_quality("", "https://www.Nature.com/x", self.factors, 100) == 88.0

    def test_clamped_to_100(self):
        text = " ".join(["study"] * 600) + " 42"
        assert score_quality(text, "https://nature.com", self.factors, 100) == 100.0


class TestFreshness:
    @pytest.mark.parametrize("days,expected", [
        (0, 98.0),
        (7, 98.0),
        (8, 95.0),
        (30, 95.0),
        (90, 90.0),
        (360, 85.0),
        (361, 80.0),
    ])
    def test_tiers(self, days, expected):
        published = NOW - timedelta(days=days)
        assert score_freshness(published, 30, now=NOW) == expected

    def test_undated(self):
        assert score_freshness(None, 30, now=NOW) == 85.0

    def test_future_date_is_freshest(self):
        assert score_freshness(NOW + timedelta(days=10), 30, now=NOW) == 98.0

    def test_naive_datetimes_are_utc(self):
        published = (NOW - timedelta(days=2)).replace(tzinfo=None)
        assert score_freshness(published, 30, now=NOW.replace(tzinfo=None)) == 98.0


class TestWeights:
    @pytest.mark.parametrize("weights", [
        Weights(50, 25, 20, 5),
        Weights(1, 1, 1, 1),
        Weights(0.3, 0, 7, 11),
        Weights(0, 0, 0, 3),
    ])
    def test_normalized_sum_to_one(self, weights):
        assert math.isclose(sum(weights.normalized().as_tuple()), 1.0)

    def test_zero_total_normalizes_to_zero(self):
        assert Weights(0, 0, 0, 0).normalized().as_tuple() == (0, 0, 0, 0)


class TestDecisionEngine:
    def test_ai_topic_is_expand_worthy(self):
        record = _make_record(
            title="Inteligencia artificial en la industria",
            text="La inteligencia artificial transforma la industria según nuevos datos.",
            published_date=NOW - timedelta(days=2),
            external_score=0.9,
        )
        result = categorize_record(record, "Inteligencia Artificial", _make_rule(), now=NOW)

        assert result.category is Category.EXPAND
        assert 85 <= result.priority <= 100
        assert result.priority == 96
        assert result.reasoning == "High topical relevance (principal factor)"

    def test_empty_record_exact_weighted_sum(self):
        record = _make_record(text="", external_score=0)
        result = categorize_record(record, "quantum computing", _make_rule(), now=NOW)

        assert result.breakdown == ScoreBreakdown(60.0, 85.0, 85.0, 0.0)
        expected = 0.50 * 60 + 0.25 * 85 + 0.20 * 85 + 0.05 * 0
        assert result.priority == round(expected) == 68
        assert result.final_score == pytest.approx(0.68)
        assert result.category is Category.DO_NOT_EXPAND
        assert result.reasoning == "Score 68/100 below the threshold of 85"

    def test_missing_fields_never_raise(self):
        record = CandidateRecord(title="", url="")
        result = categorize_record(record, "", _make_rule(), now=NOW)
        assert 0 <= result.priority <= 100

    @pytest.mark.parametrize("threshold,expected", [
        (67, Category.EXPAND),
        (68, Category.EXPAND),
        (69, Category.DO_NOT_EXPAND),
    ])
    def test_threshold_boundary(self, threshold, expected):
        rule = _make_rule(thresholds=Thresholds(expand_threshold=threshold))
        result = categorize_record(_make_record(), "quantum computing", rule, now=NOW)
        assert result.priority == 68
        assert result.category is expected

    def test_zero_weights_score_zero(self, caplog):
        rule = _make_rule(weights=Weights(0, 0, 0, 0))
        with caplog.at_level("WARNING"):
            result = categorize_record(_make_record(), "topic", rule, now=NOW)

        assert result.priority == 0
        assert not math.isnan(result.final_score)
        assert result.category is Category.DO_NOT_EXPAND
        assert "no positive weight" in caplog.text

    def test_weighted_score_uses_normalized_weights(self):
        breakdown = ScoreBreakdown(100, 0, 0, 0)
        rule = _make_rule(weights=Weights(2, 2, 0, 0))
        assert weighted_score(breakdown, rule) == pytest.approx(50.0)

    def test_external_score_scaled_to_percent(self):
        record = _make_record(external_score=0.42)
        assert compute_breakdown(record, "t", _make_rule(), NOW).external_score == pytest.approx(42.0)


class TestPriority:
    @pytest.mark.parametrize("score,expected", [
        (84.5, 85),
        (84.49, 84),
        (-3.0, 0),
        (120.0, 100),
    ])
    def test_rounding_and_clamping(self, score, expected):
        assert to_priority(score) == expected


class TestReasoning:
    def test_principal_tie_breaks_in_dimension_order(self):
        rule = _make_rule(weights=Weights(10, 10, 10, 10))
        breakdown = ScoreBreakdown(90, 95, 98, 50)
        assert build_reasoning(breakdown, rule, 90) == "High topical relevance (principal factor)"

    def test_principal_below_bar_falls_back(self):
        rule = _make_rule(weights=Weights(10, 50, 10, 10))
        breakdown = ScoreBreakdown(90, 89, 98, 50)
        assert build_reasoning(breakdown, rule, 90) == REASON_SEPARATOR.join([
            "Good topical relevance", "Recent content", "Good search score",
        ])

    def test_freshness_principal(self):
        rule = _make_rule(weights=Weights(10, 10, 60, 10))
        breakdown = ScoreBreakdown(60, 85, 95, 0)
        assert build_reasoning(breakdown, rule, 80) == "Very recent content (principal factor)"

    def test_generic_message_when_expanding(self):
        rule = _make_rule(thresholds=Thresholds(expand_threshold=50))
        breakdown = ScoreBreakdown(60, 85, 85, 0)
        assert build_reasoning(breakdown, rule, 68) == "Score 68/100 meets the threshold of 50"
