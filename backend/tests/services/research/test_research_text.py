"""
Tests for reelforge.services.research.text
"""

import pytest

from reelforge.services.research.text import chunk_content, jaccard_similarity, tokenize


class TestTokenize:

    def test_drops_short_tokens_and_punctuation(self):
        assert tokenize("The cat, a dog! On volcanoes.") == frozenset({"the", "cat", "dog", "volcanoes"})

    def test_min_length_override(self):
        assert tokenize("A cat, a Dog!", min_length=1) == frozenset({"a", "cat", "dog"})

    def test_keeps_arabic_words(self):
        assert "البراكين" in tokenize("عن البراكين")

    def test_empty(self):
        assert tokenize("") == frozenset()
        assert tokenize(None) == frozenset()


class TestJaccardSimilarity:

    def test_identical_and_disjoint(self):
        assert jaccard_similarity({"a"}, {"a"}) == 1.0
        assert jaccard_similarity({"a"}, {"b"}) == 0.0

    def test_partial_overlap(self):
        assert jaccard_similarity({"a", "b", "c"}, {"b", "c", "d"}) == pytest.approx(0.5)

    def test_empty_sets(self):
        assert jaccard_similarity(set(), set()) == 1.0
        assert jaccard_similarity(set(), {"a"}) == 0.0


class TestChunkContent:

    def test_short_content_is_one_chunk(self):
        assert chunk_content("hello world", 100) == ["hello world"]

    def test_breaks_on_last_space(self):
        chunks = chunk_content("alpha beta gamma delta", 12)

        assert chunks == ["alpha beta", "gamma delta"]
        assert all(len(c) <= 12 for c in chunks)

    def test_long_word_is_cut(self):
        assert chunk_content("abcdefghij", 4) == ["abcd", "efgh", "ij"]

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunk_content("text", 0)
