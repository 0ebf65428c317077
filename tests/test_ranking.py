"""Tests for merging and ranking extracted terms."""

from repo_glossary.models import BatchResult, BatchStatus, ExtractedTerm
from repo_glossary.terminology.ranking import merge_and_rank, merge_batch_results


def term(name: str, confidence: float, definition: str = "") -> ExtractedTerm:
    return ExtractedTerm(term=name, definition=definition or f"About {name}", confidence=confidence)


class TestMergeAndRank:
    def test_first_occurrence_wins_across_batches(self):
        # Pins current behavior: a later, more confident duplicate is discarded
        batch1 = [term("Foo", 0.9, "first")]
        batch2 = [term("foo", 0.95, "second")]

        (result,) = merge_and_rank([batch1, batch2])

        assert result.term == "Foo"
        assert result.confidence == 0.9
        assert result.definition == "first"

    def test_low_confidence_filtered_before_dedup(self):
        # The filtered-out first spelling does not shadow a later valid one
        result = merge_and_rank([[term("Bar", 0.1)], [term("BAR", 0.6)]])
        assert [(t.term, t.confidence) for t in result] == [("BAR", 0.6)]

    def test_threshold_is_inclusive(self):
        result = merge_and_rank([[term("Edge", 0.3), term("Below", 0.29)]])
        assert [t.term for t in result] == ["Edge"]

    def test_sorted_descending_and_stable(self):
        result = merge_and_rank([[term("a", 0.5), term("b", 0.9)], [term("c", 0.5), term("d", 0.7)]])
        assert [t.term for t in result] == ["b", "d", "a", "c"]

    def test_truncated_to_max_terms(self):
        terms = [term(f"t{i}", 0.3 + (i % 70) / 100) for i in range(250)]
        result = merge_and_rank([terms])

        assert len(result) == 100
        confidences = [t.confidence for t in result]
        assert confidences == sorted(confidences, reverse=True)
        assert len({t.term.lower() for t in result}) == len(result)
        assert all(c >= 0.3 for c in confidences)

    def test_custom_limits(self):
        result = merge_and_rank([[term("a", 0.9), term("b", 0.5)]], min_confidence=0.6, max_terms=1)
        assert [t.term for t in result] == ["a"]

    def test_empty(self):
        assert merge_and_rank([]) == []
        assert merge_and_rank([[], []]) == []


class TestMergeBatchResults:
    def test_failed_batches_ignored(self):
        ok = BatchResult(index=0, paths=["a"], status=BatchStatus.ACCUMULATED, terms=[term("A", 0.8)])
        failed = BatchResult(index=1, paths=["b"], status=BatchStatus.FAILED, error="boom")
        assert [t.term for t in merge_batch_results([ok, failed])] == ["A"]
