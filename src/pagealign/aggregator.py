"""Multi-document queries over a batch of alignments.

One base document is aligned against every other document of a batch
(pages believed to share a template). The per-pair results are then
folded per base part to answer:

- ``compare_indexes``: where each real text part landed in every other page;
- ``compare_strings``: the counterpart texts, for a real diff only where
  the text is not already known to be identical;
- ``find_rare_elements``: elements (images by default) with too few exact
  repeats to be template furniture.

Matches are reported with explicit tagged states::

    match state:
        case Identical(): ...          # exact counterpart, no need to compare
        case Weak(value=v): ...        # v is an index or a text
        case Unmatched(): ...
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from functools import partial

from pagealign.aligner import (
    DEFAULT_MAX_LOOKAHEAD,
    DEFAULT_MIN_ANCHOR_LEN,
    AlignConfig,
    AlignmentArgumentError,
    AlignmentResult,
    align,
    check_common_threshold,
)
from pagealign.part_types import Document, PartKind

# ---------------------------------------------------------------------------
# Match states
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Identical:
    """The other document holds an exactly equal part (strong match)."""


@dataclass(frozen=True, slots=True)
class Weak[T]:
    """Plausible, unverified counterpart; value is an index or a text."""

    value: T


@dataclass(frozen=True, slots=True)
class Unmatched:
    """No counterpart was found in the other document."""


IDENTICAL = Identical()
UNMATCHED = Unmatched()

type MatchState[T] = Identical | Weak[T] | Unmatched


# ---------------------------------------------------------------------------
# Running the aligner over a batch
# ---------------------------------------------------------------------------

def align_all(
    base: Document,
    others: Sequence[Document],
    *,
    min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN,
    max_lookahead: int = DEFAULT_MAX_LOOKAHEAD,
    workers: int = 1,
) -> list[AlignmentResult]:
    """Align *base* against each of *others*, preserving input order.

    Pairs are independent, so ``workers > 1`` fans them out over a
    process pool. The result is identical to the sequential run.
    """
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise AlignmentArgumentError(f"workers must be an int >= 1, got {workers!r}")
    AlignConfig(min_anchor_len=min_anchor_len, max_lookahead=max_lookahead)
    run = partial(
        align, base, min_anchor_len=min_anchor_len, max_lookahead=max_lookahead,
    )
    if workers == 1 or len(others) < 2:
        return [run(other) for other in others]
    with ProcessPoolExecutor(max_workers=min(workers, len(others))) as pool:
        return list(pool.map(run, others))


@dataclass(frozen=True, slots=True)
class AlignmentBatch:
    """A base document, its comparison set, and one alignment per other.

    Build it once and run several queries against it; alignments are
    never recomputed.
    """

    base: Document
    others: tuple[Document, ...]
    results: tuple[AlignmentResult, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.others, tuple):
            object.__setattr__(self, "others", tuple(self.others))
        if not isinstance(self.results, tuple):
            object.__setattr__(self, "results", tuple(self.results))
        _check_results(self.base, self.others, self.results)

    @classmethod
    def build(
        cls,
        base: Document,
        others: Sequence[Document],
        *,
        min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN,
        max_lookahead: int = DEFAULT_MAX_LOOKAHEAD,
        workers: int = 1,
    ) -> AlignmentBatch:
        results = align_all(
            base,
            others,
            min_anchor_len=min_anchor_len,
            max_lookahead=max_lookahead,
            workers=workers,
        )
        return cls(base=base, others=tuple(others), results=tuple(results))

    def result_for(self, doc_id: str) -> AlignmentResult:
        """Alignment against the other document with the given doc_id."""
        for other, result in zip(self.others, self.results, strict=True):
            if other.doc_id == doc_id:
                return result
        raise KeyError(doc_id)

    def text_indexes(self) -> dict[int, list[MatchState[int]]]:
        return _fold_text_matches(self.base, self.results, lambda _k, idx: idx)

    def text_strings(self) -> dict[int, list[MatchState[str]]]:
        others = self.others
        return _fold_text_matches(
            self.base, self.results, lambda k, idx: others[k].parts[idx].text,
        )

    def rare_elements(self, tag_name: str = "img", common_threshold: int = 2) -> list[int]:
        return _rare_elements(self.base, self.results, tag_name, common_threshold)


def _check_results(
    base: Document,
    others: Sequence[Document],
    results: Sequence[AlignmentResult],
) -> None:
    if len(results) != len(others):
        raise AlignmentArgumentError(
            f"expected one alignment per other document: "
            f"{len(results)} results for {len(others)} documents"
        )
    for k, result in enumerate(results):
        if len(result.strong_offsets) != len(base.parts):
            raise AlignmentArgumentError(
                f"result {k} covers {len(result.strong_offsets)} parts, "
                f"base has {len(base.parts)}"
            )


def _batch(
    base: Document,
    others: Sequence[Document],
    results: Sequence[AlignmentResult] | None,
    min_anchor_len: int,
    max_lookahead: int,
) -> AlignmentBatch:
    if results is None:
        return AlignmentBatch.build(
            base, others, min_anchor_len=min_anchor_len, max_lookahead=max_lookahead,
        )
    return AlignmentBatch(base=base, others=tuple(others), results=tuple(results))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _fold_text_matches[T](
    base: Document,
    results: Sequence[AlignmentResult],
    payload: Callable[[int, int], T],
) -> dict[int, list[MatchState[T]]]:
    """Per real-text base index, one match state per other document.

    *payload* maps (other position, absolute other index) of a weak match
    to the value carried by ``Weak``.
    """
    out: dict[int, list[MatchState[T]]] = {}
    for index, part in enumerate(base.parts):
        if part.kind is not PartKind.TEXT_REAL:
            continue
        states: list[MatchState[T]] = []
        for k, result in enumerate(results):
            if result.strong_offsets[index] is not None:
                states.append(IDENTICAL)
                continue
            offset = result.weak_offsets.get(index)
            if offset is None:
                states.append(UNMATCHED)
            else:
                states.append(Weak(payload(k, index + offset)))
        out[index] = states
    return out


def compare_indexes(
    base: Document,
    others: Sequence[Document],
    results: Sequence[AlignmentResult] | None = None,
    *,
    min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN,
    max_lookahead: int = DEFAULT_MAX_LOOKAHEAD,
) -> dict[int, list[MatchState[int]]]:
    """Counterpart indices of every real text part across *others*.

    Args:
        base: The document being explained.
        others: The comparison set, in the order lists are reported.
        results: Precomputed alignments (one per other, same order). When
            omitted they are computed with the given thresholds.

    Returns:
        Insertion-ordered mapping of base index -> one state per other:
        ``IDENTICAL``, ``Weak(absolute_other_index)`` or ``UNMATCHED``.
    """
    return _batch(base, others, results, min_anchor_len, max_lookahead).text_indexes()


def compare_strings(
    base: Document,
    others: Sequence[Document],
    results: Sequence[AlignmentResult] | None = None,
    *,
    min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN,
    max_lookahead: int = DEFAULT_MAX_LOOKAHEAD,
) -> dict[int, list[MatchState[str]]]:
    """Like compare_indexes, but weak matches carry the other part's text.

    Identical matches stay ``IDENTICAL`` so callers can skip comparing
    strings already known to be equal.
    """
    return _batch(base, others, results, min_anchor_len, max_lookahead).text_strings()


def _rare_elements(
    base: Document,
    results: Sequence[AlignmentResult],
    tag_name: str,
    common_threshold: int,
) -> list[int]:
    check_common_threshold(common_threshold)
    wanted = tag_name.lower()
    # Not enough documents to ever reach the threshold: everything is rare.
    reachable = common_threshold <= len(results)

    rare: list[int] = []
    for index, part in enumerate(base.parts):
        if part.kind is not PartKind.HTML_ELEMENT or part.tag_name != wanted:
            continue
        identical = 0
        if reachable:
            for result in results:
                if result.strong_offsets[index] is not None:
                    identical += 1
                    if identical >= common_threshold:
                        break
        if identical < common_threshold:
            rare.append(index)
    return rare


def find_rare_elements(
    base: Document,
    others: Sequence[Document],
    tag_name: str = "img",
    common_threshold: int = 2,
    results: Sequence[AlignmentResult] | None = None,
    *,
    min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN,
    max_lookahead: int = DEFAULT_MAX_LOOKAHEAD,
) -> list[int]:
    """Indices of *tag_name* elements repeated exactly in too few others.

    An element matched exactly (strong) in at least ``common_threshold``
    other documents is template furniture and is left out; every other
    element of that tag is reported, in base order.

    Raises:
        AlignmentArgumentError: If common_threshold is not a positive int.
    """
    check_common_threshold(common_threshold)
    batch = _batch(base, others, results, min_anchor_len, max_lookahead)
    return batch.rare_elements(tag_name, common_threshold)
