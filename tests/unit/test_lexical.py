"""
Unit tests for lexical similarity (Jaccard + Levenshtein + keyword match).
"""

import pytest

from faq_matcher.lexical import (
    jaccard,
    keyword_match,
    levenshtein_ratio,
    text_similarity,
)

pytestmark = pytest.mark.unit


class TestPrimitives:
    """Test Jaccard and Levenshtein ratio"""

    def test_jaccard(self):
        assert jaccard(["a", "b"], ["b", "c"]) == pytest.approx(1 / 3)
        assert jaccard(["fee"], ["fee"]) == 1.0

    def test_jaccard_empty(self):
        assert jaccard([], ["fee"]) == 0.0

    def test_levenshtein_ratio(self):
        assert levenshtein_ratio("abstract", "abstract") == 1.0
        # One insertion over 19 chars
        assert levenshtein_ratio("what s an abstract", "what is an abstract") == pytest.approx(18 / 19)

    def test_levenshtein_empty_strings(self):
        assert levenshtein_ratio("", "") == 1.0


class TestTextSimilarity:
    """Test combined text similarity"""

    def test_paraphrase(self):
        """Same keywords; edit distance 3 over the raw lowercased texts"""
        score = text_similarity("what's an abstract", "What is an abstract?")
        assert score == pytest.approx(0.7 + 0.3 * 17 / 20)

    def test_substring_shortcut(self):
        assert text_similarity("abstract", "What is an abstract?") == 1.0

    def test_no_overlap(self):
        score = text_similarity("parking", "Is travel funding available for students?")
        assert score < 0.1

    def test_empty_text(self):
        assert text_similarity("", "What is an abstract?") == 0.0
        assert text_similarity("the a an", "What is an abstract?") == 0.0

    def test_long_texts_skip_levenshtein(self):
        """Texts of 100+ chars only use Jaccard"""
        long_a = "registration fee " * 8
        long_b = "registration deadline " * 8
        score = text_similarity(long_a, long_b)
        assert score == pytest.approx(0.7 * (1 / 3))

    def test_long_raw_text_with_punctuation_skips_levenshtein(self):
        """Length limit applies before punctuation is stripped"""
        query = " ".join(word + "!" * 10 for word in "what is the abstract deadline please tell me".split())
        question = "When is the abstract submission deadline?"
        assert len(query) > 100

        jaccard_only = text_similarity(query, question, jaccard_weight=0.7, levenshtein_weight=0.0)
        assert text_similarity(query, question) == pytest.approx(jaccard_only)

        # Without the punctuation the query is short enough for Levenshtein
        plain = "what is the abstract deadline please tell me"
        assert text_similarity(plain, question) > jaccard_only

    def test_weights_must_not_exceed_one(self):
        with pytest.raises(ValueError):
            text_similarity("a", "b", jaccard_weight=0.8, levenshtein_weight=0.3)


class TestKeywordMatch:
    """Test tag/keyword matching"""

    def test_tag_named_in_query(self):
        """Verbatim tag + exact keyword + fuzzy self-match saturate at 1.0"""
        assert keyword_match("parking", ["parking"]) == 1.0

    def test_fuzzy_misspelling(self):
        score = keyword_match("accomodation options", ["accommodation"])
        assert score == pytest.approx(12 / 13 * 0.5)

    def test_partial_match(self):
        """Keyword contained in a tag counts as partial"""
        score = keyword_match("poster", ["e-poster"])
        assert score == pytest.approx(0.4)

    def test_no_tags(self):
        assert keyword_match("parking", []) == 0.0

    def test_no_match(self):
        assert keyword_match("visa letter", ["parking", "wifi"]) == 0.0

    def test_score_capped(self):
        score = keyword_match("registration fee registration", ["registration", "fee", "registration fee"])
        assert score == 1.0
