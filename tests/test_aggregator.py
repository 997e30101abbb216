"""Tests for pagealign.aggregator module."""
from __future__ import annotations

import pytest

from pagealign.aggregator import (
    IDENTICAL,
    UNMATCHED,
    AlignmentBatch,
    Identical,
    Unmatched,
    Weak,
    align_all,
    compare_indexes,
    compare_strings,
    find_rare_elements,
)
from pagealign.aligner import AlignmentArgumentError, AlignmentResult, align
from pagealign.part_types import Document

MIN_LEN = 3
LOOKAHEAD = 5


def _page(article: str, image: str = "<img id=1>", doc_id: str = "") -> Document:
    return Document.from_texts(
        [
            "<html>", "<body>", "<div class=header>", "Site title",
            "<div class=main>", image, article, "</div>", "</body>", "</html>",
        ],
        doc_id=doc_id,
    )


@pytest.fixture
def base() -> Document:
    return _page("Article body text", doc_id="base")


@pytest.fixture
def others() -> list[Document]:
    pages = [_page(f"Article body other {k}", doc_id=f"p{k}") for k in range(1, 5)]
    pages.append(_page("Article body changed", image="<img id=2>", doc_id="p5"))
    return pages


class TestMatchStates:
    def test_singletons_compare_by_value(self) -> None:
        assert IDENTICAL == Identical()
        assert UNMATCHED == Unmatched()
        assert Weak(3) == Weak(3)
        assert Weak(3) != Weak("3")

    def test_pattern_matching(self) -> None:
        def describe(state: object) -> str:
            match state:
                case Identical():
                    return "same"
                case Weak(value=v):
                    return f"weak:{v}"
                case Unmatched():
                    return "none"
            return "?"

        assert [describe(s) for s in (IDENTICAL, Weak(7), UNMATCHED)] == [
            "same", "weak:7", "none",
        ]


class TestAlignAll:
    def test_order_preserved(self, base: Document, others: list[Document]) -> None:
        results = align_all(base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD)
        assert results == [align(base, o, MIN_LEN, LOOKAHEAD) for o in others]

    def test_parallel_matches_sequential(self, base: Document, others: list[Document]) -> None:
        sequential = align_all(base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD)
        parallel = align_all(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD, workers=2,
        )
        assert parallel == sequential

    def test_empty_collection(self, base: Document) -> None:
        assert align_all(base, []) == []

    def test_invalid_workers(self, base: Document, others: list[Document]) -> None:
        with pytest.raises(AlignmentArgumentError):
            align_all(base, others, workers=0)

    def test_invalid_thresholds_rejected_without_others(self, base: Document) -> None:
        with pytest.raises(AlignmentArgumentError):
            align_all(base, [], min_anchor_len=-1)


class TestCompareIndexes:
    def test_identical_and_weak(self, base: Document, others: list[Document]) -> None:
        result = compare_indexes(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        # Only the two real text parts are reported, in base order.
        assert list(result) == [3, 6]
        assert result[3] == [IDENTICAL] * 5
        assert result[6] == [Weak(6)] * 5

    def test_unmatched_when_other_is_short(self, base: Document) -> None:
        short = Document.from_texts(["<html>"])
        result = compare_indexes(base, [short], min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD)
        assert result == {3: [UNMATCHED], 6: [UNMATCHED]}

    def test_no_others(self, base: Document) -> None:
        assert compare_indexes(base, []) == {3: [], 6: []}

    def test_precomputed_results(self, base: Document, others: list[Document]) -> None:
        results = align_all(base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD)
        assert compare_indexes(base, others, results) == compare_indexes(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )

    def test_precomputed_count_mismatch(self, base: Document, others: list[Document]) -> None:
        results = align_all(base, others[:2], min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD)
        with pytest.raises(AlignmentArgumentError):
            compare_indexes(base, others, results)

    def test_precomputed_length_mismatch(self, base: Document, others: list[Document]) -> None:
        bad = [AlignmentResult(strong_offsets=(0,))] * len(others)
        with pytest.raises(AlignmentArgumentError):
            compare_indexes(base, others, bad)


class TestCompareStrings:
    def test_weak_carries_other_text(self, base: Document, others: list[Document]) -> None:
        result = compare_strings(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        assert result[3] == [IDENTICAL] * 5
        assert result[6] == [
            Weak("Article body other 1"),
            Weak("Article body other 2"),
            Weak("Article body other 3"),
            Weak("Article body other 4"),
            Weak("Article body changed"),
        ]

    def test_same_shape_as_indexes(self, base: Document, others: list[Document]) -> None:
        batch = AlignmentBatch.build(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        indexes = batch.text_indexes()
        strings = batch.text_strings()
        assert list(indexes) == list(strings)
        for idx in indexes:
            assert [type(s) for s in indexes[idx]] == [type(s) for s in strings[idx]]


class TestRareElements:
    def test_common_image_excluded(self, base: Document, others: list[Document]) -> None:
        rare = find_rare_elements(
            base, others, "img", 3, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        assert rare == []

    def test_image_below_threshold_is_rare(self, base: Document, others: list[Document]) -> None:
        rare = find_rare_elements(
            base, others, "img", 5, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        assert rare == [5]

    def test_threshold_above_collection_size(self, base: Document, others: list[Document]) -> None:
        rare = find_rare_elements(
            base, others, "img", 6, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        assert rare == [5]

    def test_other_tags(self, base: Document, others: list[Document]) -> None:
        batch = AlignmentBatch.build(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        assert batch.rare_elements("DIV", 5) == []
        assert batch.rare_elements("table", 1) == []

    def test_no_others_everything_rare(self, base: Document) -> None:
        assert find_rare_elements(base, [], "div", 1) == [2, 4]

    def test_zero_threshold_rejected(self, base: Document, others: list[Document]) -> None:
        with pytest.raises(AlignmentArgumentError):
            find_rare_elements(base, others, "img", 0)


class TestAlignmentBatch:
    def test_result_for(self, base: Document, others: list[Document]) -> None:
        batch = AlignmentBatch.build(
            base, others, min_anchor_len=MIN_LEN, max_lookahead=LOOKAHEAD,
        )
        assert batch.result_for("p5").strong_offsets[5] is None
        assert batch.result_for("p1").strong_offsets[5] == 0
        with pytest.raises(KeyError):
            batch.result_for("missing")

    def test_rejects_mismatched_results(self, base: Document, others: list[Document]) -> None:
        with pytest.raises(AlignmentArgumentError):
            AlignmentBatch(base=base, others=tuple(others), results=())
