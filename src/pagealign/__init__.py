"""Part-level alignment of tokenized web pages for template detection."""

from pagealign.aggregator import (
    IDENTICAL,
    UNMATCHED,
    AlignmentBatch,
    Identical,
    MatchState,
    Unmatched,
    Weak,
    align_all,
    compare_indexes,
    compare_strings,
    find_rare_elements,
)
from pagealign.aligner import (
    PROFILE_PRESETS,
    AlignConfig,
    AlignmentArgumentError,
    AlignmentResult,
    align,
    resolve_config,
)
from pagealign.commonality import (
    find_common_text,
    find_unique_text,
    find_unique_tokens,
    identical_count,
)
from pagealign.part_types import Document, Part, PartKind

__all__ = [
    "IDENTICAL",
    "PROFILE_PRESETS",
    "UNMATCHED",
    "AlignConfig",
    "AlignmentArgumentError",
    "AlignmentBatch",
    "AlignmentResult",
    "Document",
    "Identical",
    "MatchState",
    "Part",
    "PartKind",
    "Unmatched",
    "Weak",
    "align",
    "align_all",
    "compare_indexes",
    "compare_strings",
    "find_common_text",
    "find_rare_elements",
    "find_unique_text",
    "find_unique_tokens",
    "identical_count",
    "resolve_config",
]
