"""
Unit tests for tag-boost fusion and the strong-match override.
"""

import pytest

from faq_matcher.bm25.fusion import hybrid_score, is_strong_match, tag_boost
from faq_matcher.config import StrongMatchOverride

pytestmark = pytest.mark.unit


class TestTagBoost:
    """Test capped tag overlap bonus"""

    def test_exact_matches(self):
        boost = tag_boost(["registration", "fee"], ["registration", "fee", "cost"])
        assert boost == pytest.approx(0.2)

    def test_capped(self):
        boost = tag_boost(["registration", "fee", "cost"], ["registration", "fee", "cost"])
        assert boost == pytest.approx(0.2)

    def test_custom_cap(self):
        boost = tag_boost(["registration", "fee", "cost"], ["registration", "fee", "cost"], cap=1.0)
        assert boost == pytest.approx(0.3)

    def test_substring_either_direction(self):
        """Query bigram contains a FAQ tag, or a FAQ phrase contains a query word"""
        assert tag_boost(["registration cost"], ["registration"]) == pytest.approx(0.05)
        assert tag_boost(["fee"], ["registration fee"]) == pytest.approx(0.05)

    def test_mixed(self):
        boost = tag_boost(["registration", "fee", "registration fee"], ["registration fee", "cost"])
        assert boost == pytest.approx(0.2)

    def test_one_bonus_per_query_tag(self):
        """A query tag matching several FAQ tags counts once"""
        boost = tag_boost(["abstract"], ["abstract", "abstract submission", "abstract deadline"], cap=1.0)
        assert boost == pytest.approx(0.1)

    def test_case_insensitive(self):
        assert tag_boost(["Abstract"], ["ABSTRACT"]) == pytest.approx(0.1)

    def test_no_faq_tags(self):
        assert tag_boost(["abstract"], []) == 0.0
        assert tag_boost(["abstract"], None) == 0.0

    def test_no_overlap(self):
        assert tag_boost(["parking"], ["abstract", "summary"]) == 0.0

    def test_blank_tags_ignored(self):
        assert tag_boost(["", "  "], ["", "fee"]) == 0.0


class TestHybridScore:
    """Test base score + boost"""

    def test_adds_boost(self):
        assert hybrid_score(0.4, ["fee"], ["fee"]) == pytest.approx(0.5)

    def test_no_tags(self):
        assert hybrid_score(0.4, ["fee"], []) == pytest.approx(0.4)


class TestStrongMatch:
    """Test strong-match override"""

    def test_fires_above_threshold(self):
        assert is_strong_match(0.6, StrongMatchOverride())

    def test_strict_comparison(self):
        assert not is_strong_match(0.5, StrongMatchOverride(threshold=0.5))

    def test_disabled(self):
        assert not is_strong_match(1.0, StrongMatchOverride(enabled=False))

    def test_missing_signal(self):
        assert not is_strong_match(None, StrongMatchOverride())
