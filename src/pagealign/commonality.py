"""Common vs. unique text classification from aggregated string matches.

Consumes the output of ``compare_strings``: a text part matched exactly in
enough other pages is template text. For the rest, individual words that
also show up in enough of the weakly matched counterparts are still
template words (e.g. "Posted by" in "Posted by alice"); what remains is
the page's own content.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pagealign.aggregator import Identical, MatchState, Weak
from pagealign.aligner import check_common_threshold
from pagealign.html_utils import contains_token, split_tokens
from pagealign.part_types import Document


def identical_count[T](states: Sequence[MatchState[T]], limit: int | None = None) -> int:
    """Count Identical states, stopping early once *limit* is reached."""
    count = 0
    for state in states:
        if isinstance(state, Identical):
            count += 1
            if limit is not None and count >= limit:
                break
    return count


def find_common_text[T](
    matches: Mapping[int, Sequence[MatchState[T]]],
    common_threshold: int,
) -> list[int]:
    """Base text indices matched exactly in at least *common_threshold* others."""
    check_common_threshold(common_threshold)
    return [
        index
        for index, states in matches.items()
        if identical_count(states, common_threshold) >= common_threshold
    ]


def find_unique_text[T](
    matches: Mapping[int, Sequence[MatchState[T]]],
    common_threshold: int,
) -> list[int]:
    """Base text indices that are not common (see find_common_text)."""
    check_common_threshold(common_threshold)
    return [
        index
        for index, states in matches.items()
        if identical_count(states, common_threshold) < common_threshold
    ]


def _is_common_short_token(token: str) -> bool:
    # Lower-case "a" only; "I" in either case.
    return token == "a" or token.lower() == "i"


def _token_is_common(token: str, others: Sequence[str], needed: int, matched: int) -> bool:
    if len(token) < 2:
        # Counted as present in every matched counterpart, nothing more.
        return _is_common_short_token(token) and matched >= needed
    found = 0
    for other in others:
        if contains_token(other, token):
            found += 1
            if found >= needed:
                return True
    return False


def find_unique_tokens(
    base: Document,
    string_matches: Mapping[int, Sequence[MatchState[str]]],
    common_threshold: int,
) -> dict[int, list[str]]:
    """Words of non-common text parts that too few counterparts contain.

    For a base text part with ``n`` identical matches (``n`` below the
    threshold), a token is common when it appears, whitespace-delimited,
    in at least ``common_threshold - n`` of the weakly matched texts. One-letter
    tokens are unique, except lower-case "a" and "I" (either case), which
    are common when at least ``common_threshold - n`` counterparts matched
    at all (identical or weak).

    Args:
        base: The base document the matches were computed for.
        string_matches: Output of ``compare_strings`` for *base*.
        common_threshold: Instances needed to call a text or token common.

    Returns:
        Base index -> unique tokens in text order. Parts whose tokens are
        all common are left out.
    """
    check_common_threshold(common_threshold)
    out: dict[int, list[str]] = {}
    for index, states in string_matches.items():
        identical = identical_count(states, common_threshold)
        if identical >= common_threshold:
            continue
        needed = common_threshold - identical
        weak_texts = [s.value for s in states if isinstance(s, Weak)]
        matched = identical + len(weak_texts)
        unique = [
            token
            for token in split_tokens(base.parts[index].text)
            if not _token_is_common(token, weak_texts, needed, matched)
        ]
        if unique:
            out[index] = unique
    return out
