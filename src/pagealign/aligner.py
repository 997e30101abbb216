"""Part-level alignment of a base document against one other document.

Pages rendered from a shared template emit long runs of byte-identical
parts. The aligner walks the base document once, keeping a forward-only
cursor into the other document, and records for every base part either:

- a *strong* offset: an exact match confirmed at ``other[i + offset]``;
- a *weak* offset: a plausible text counterpart that is not identical
  (changed prose between two confirmed anchors, or a short text that was
  not worth certifying);
- nothing.

Anchor search is bounded by a lookahead window (in parts), so the cost
stays near-linear for documents sharing a template instead of the
O(n*m) of a full diff.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pagealign.part_types import Document, PartKind


class AlignmentArgumentError(ValueError):
    """Raised for invalid thresholds or mismatched precomputed results."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_MIN_ANCHOR_LEN = 5
DEFAULT_MAX_LOOKAHEAD = 40


def _check_non_negative(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise AlignmentArgumentError(f"{name} must be an int, got {value!r}")
    if value < 0:
        raise AlignmentArgumentError(f"{name} must be >= 0, got {value}")


def check_common_threshold(common_threshold: int) -> None:
    """Reject a non-positive (or non-int) common-instances threshold."""
    _check_non_negative("common_threshold", common_threshold)
    if common_threshold == 0:
        raise AlignmentArgumentError("common_threshold must be > 0, got 0")


@dataclass(frozen=True, slots=True)
class AlignConfig:
    """Tunable thresholds for one alignment batch."""

    min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN
    max_lookahead: int = DEFAULT_MAX_LOOKAHEAD

    def __post_init__(self) -> None:
        _check_non_negative("min_anchor_len", self.min_anchor_len)
        _check_non_negative("max_lookahead", self.max_lookahead)


PROFILE_PRESETS: dict[str, AlignConfig] = {
    # Long anchors, short window: only near-identical pages line up.
    "strict": AlignConfig(min_anchor_len=10, max_lookahead=15),
    "balanced": AlignConfig(),
    # Short anchors, wide window: tolerates big inserted blocks (ads, widgets).
    "loose": AlignConfig(min_anchor_len=2, max_lookahead=200),
}


def resolve_config(
    profile: str = "balanced",
    *,
    min_anchor_len: int | None = None,
    max_lookahead: int | None = None,
) -> AlignConfig:
    """Resolve a profile preset with explicit per-field overrides."""
    try:
        preset = PROFILE_PRESETS[profile]
    except KeyError:
        known = ", ".join(sorted(PROFILE_PRESETS))
        raise AlignmentArgumentError(
            f"unknown profile {profile!r} (expected one of: {known})"
        ) from None
    return AlignConfig(
        min_anchor_len=preset.min_anchor_len if min_anchor_len is None else min_anchor_len,
        max_lookahead=preset.max_lookahead if max_lookahead is None else max_lookahead,
    )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AlignmentResult:
    """Outcome of aligning one base document against one other document.

    Invariants:
        - len(strong_offsets) == number of base parts
        - an index has a weak offset only if its strong offset is None
        - strong_offsets[i] == d implies other.parts[i + d] == base.parts[i]
    """

    strong_offsets: tuple[int | None, ...]
    weak_offsets: Mapping[int, int] = field(default_factory=dict[int, int])
    identical_text_count: int = 0
    other_text_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.strong_offsets, tuple):
            object.__setattr__(self, "strong_offsets", tuple(self.strong_offsets))
        object.__setattr__(self, "weak_offsets", dict(self.weak_offsets))
        size = len(self.strong_offsets)
        for idx in self.weak_offsets:
            if not 0 <= idx < size:
                raise ValueError(
                    f"weak offset index {idx} outside base range [0, {size})"
                )
            if self.strong_offsets[idx] is not None:
                raise ValueError(
                    f"index {idx} has both a strong and a weak offset"
                )
        if self.identical_text_count < 0 or self.other_text_count < 0:
            raise ValueError("match counters must be >= 0")

    def __len__(self) -> int:
        return len(self.strong_offsets)

    def is_strong(self, index: int) -> bool:
        return self.strong_offsets[index] is not None

    def other_index(self, index: int) -> int | None:
        """Absolute index in the other document for a strong or weak match."""
        offset = self.strong_offsets[index]
        if offset is None:
            offset = self.weak_offsets.get(index)
        return None if offset is None else index + offset

    def text_similarity(self, base: Document) -> float:
        """Fraction of the base's real text parts matched exactly."""
        total = base.text_real_count()
        if total == 0:
            return 0.0
        return self.identical_text_count / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "strong_offsets": list(self.strong_offsets),
            "weak_offsets": {str(k): v for k, v in sorted(self.weak_offsets.items())},
            "identical_text_count": self.identical_text_count,
            "other_text_count": self.other_text_count,
        }


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------

def align(
    base: Document,
    other: Document,
    min_anchor_len: int = DEFAULT_MIN_ANCHOR_LEN,
    max_lookahead: int = DEFAULT_MAX_LOOKAHEAD,
) -> AlignmentResult:
    """Map every base part to its counterpart in *other*, if any.

    Args:
        base: The document being explained. The result has exactly one
            strong slot per base part.
        other: The document to match against.
        min_anchor_len: Parts shorter than this (and empty text runs) are
            never searched for; they only match 1:1 while in strong sync.
        max_lookahead: How many parts past the cursor an anchor search may
            look in *other*.

    Returns:
        AlignmentResult with strong and weak offsets plus text counters.

    Raises:
        AlignmentArgumentError: If a threshold is negative or not an int.
    """
    _check_non_negative("min_anchor_len", min_anchor_len)
    _check_non_negative("max_lookahead", max_lookahead)

    base_parts = base.parts
    other_parts = other.parts
    other_len = len(other_parts)

    strong: list[int | None] = []
    weak: dict[int, int] = {}
    identical_text = 0
    other_text = 0

    other_cursor = 0
    # Two pages of one template usually open identically ("<html><head>...").
    in_strong_sync = True
    last_strong_offset = -1
    last_break_index = -1

    for index, part in enumerate(base_parts):
        if other_cursor >= other_len:
            strong.append(None)
            continue

        if part.kind is PartKind.TEXT_EMPTY or len(part.text) < min_anchor_len:
            if in_strong_sync:
                cursor_part = other_parts[other_cursor]
                if part == cursor_part:
                    last_strong_offset = other_cursor - index
                    strong.append(last_strong_offset)
                    other_cursor += 1
                    if part.kind is PartKind.TEXT_REAL:
                        identical_text += 1
                    continue
                if (
                    part.kind is PartKind.TEXT_REAL
                    and cursor_part.kind is PartKind.TEXT_REAL
                    and index not in weak
                ):
                    weak[index] = other_cursor - index
                    other_text += 1
            in_strong_sync = False
            strong.append(None)
            continue

        found = -1
        stop = min(other_cursor + max_lookahead, other_len - 1)
        for j in range(other_cursor, stop + 1):
            if other_parts[j] == part:
                found = j
                break

        if found >= 0:
            offset = found - index
            strong.append(offset)
            if part.kind is PartKind.TEXT_REAL:
                identical_text += 1
            in_strong_sync = True
            other_cursor = found + 1

            if offset == last_strong_offset:
                # Same shift on both sides of the gap: pair up the changed
                # texts in between, but never across the last hard break.
                for k in range(last_break_index + 1, index):
                    if strong[k] is not None or k in weak:
                        continue
                    target = k + offset
                    if not 0 <= target < other_len:
                        continue
                    if (
                        base_parts[k].kind is PartKind.TEXT_REAL
                        and other_parts[target].kind is PartKind.TEXT_REAL
                    ):
                        weak[k] = offset
                        other_text += 1
            else:
                last_strong_offset = offset
            last_break_index = index
            continue

        # No anchor: keep the cursor where it is.
        if (
            in_strong_sync
            and part.kind is PartKind.TEXT_REAL
            and other_parts[other_cursor].kind is PartKind.TEXT_REAL
            and index not in weak
        ):
            # Paired with whatever text sits at the cursor, unchecked.
            weak[index] = other_cursor - index
            other_text += 1
        if part.kind is PartKind.HTML_ELEMENT:
            last_break_index = index
        strong.append(None)
        in_strong_sync = False

    return AlignmentResult(
        strong_offsets=tuple(strong),
        weak_offsets=weak,
        identical_text_count=identical_text,
        other_text_count=other_text,
    )
