"""Core types shared by the aligner and the aggregation queries.

A tokenizer (not part of this package) turns each fetched page into an
ordered sequence of typed parts. Everything downstream works on these
immutable values; order is load-bearing because alignment scans forward.

Type hierarchy:
  PartKind : Closed set of part variants
  Part     : One typed token (kind + exact text)
  Document : Ordered, immutable sequence of parts for one page
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from pagealign.html_utils import is_blank_text, tag_name


class PartKind(Enum):
    """Variant of a part, assigned by the producing tokenizer."""

    HTML_ELEMENT = "html_element"  # "<" ... ">"
    TEXT_EMPTY = "text_empty"      # whitespace / &nbsp; only
    TEXT_REAL = "text_real"        # anything meaningful, even a lone comma
    STYLE = "style"                # text that is really inline style source
    SCRIPT = "script"              # text that is really inline script source

    @classmethod
    def coerce(cls, value: PartKind | str) -> PartKind:
        """Accept a PartKind, its value ("text_real") or its name ("TEXT_REAL")."""
        if isinstance(value, PartKind):
            return value
        key = str(value).strip()
        try:
            return cls(key.lower())
        except ValueError:
            pass
        try:
            return cls[key.upper()]
        except KeyError:
            raise ValueError(f"unknown part kind: {value!r}") from None


# ---------------------------------------------------------------------------
# Part
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Part:
    """A typed token. Equal iff kind and text are exactly equal."""

    kind: PartKind
    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, PartKind):
            raise ValueError(f"Part.kind must be a PartKind, got {self.kind!r}")
        if not isinstance(self.text, str):
            raise ValueError(f"Part.text must be a str, got {type(self.text).__name__}")

    @classmethod
    def from_text(cls, text: str) -> Part:
        """Build a part, inferring the basic kind from the raw text.

        Style and script are never inferred; a tokenizer has to assign
        them explicitly since they look like plain text.
        """
        if text.startswith("<"):
            return cls(PartKind.HTML_ELEMENT, text)
        if is_blank_text(text):
            return cls(PartKind.TEXT_EMPTY, text)
        return cls(PartKind.TEXT_REAL, text)

    @property
    def tag_name(self) -> str | None:
        """Lower-cased tag name for HTML elements, None otherwise."""
        if self.kind is not PartKind.HTML_ELEMENT:
            return None
        return tag_name(self.text)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Document:
    """Ordered parts of one page, in source order."""

    parts: tuple[Part, ...]
    doc_id: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.parts, tuple):
            # Frozen dataclass: normalize lists and generators once.
            object.__setattr__(self, "parts", tuple(self.parts))
        for idx, part in enumerate(self.parts):
            if not isinstance(part, Part):
                raise ValueError(
                    f"Document.parts[{idx}] must be a Part, got {type(part).__name__}"
                )

    def __len__(self) -> int:
        return len(self.parts)

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[tuple[PartKind | str, str]],
        *,
        doc_id: str = "",
    ) -> Document:
        """Build from ``(kind, text)`` pairs as emitted by a tokenizer."""
        return cls(
            tuple(Part(PartKind.coerce(kind), text) for kind, text in pairs),
            doc_id=doc_id,
        )

    @classmethod
    def from_texts(cls, texts: Iterable[str], *, doc_id: str = "") -> Document:
        """Build from raw part texts, classifying each with Part.from_text."""
        return cls(tuple(Part.from_text(t) for t in texts), doc_id=doc_id)

    def kind_counts(self) -> dict[PartKind, int]:
        """Number of parts per kind (kinds that never occur are 0)."""
        counts = Counter(p.kind for p in self.parts)
        return {kind: counts.get(kind, 0) for kind in PartKind}

    def text_real_count(self) -> int:
        return sum(1 for p in self.parts if p.kind is PartKind.TEXT_REAL)

    def html_element_count(self) -> int:
        return sum(1 for p in self.parts if p.kind is PartKind.HTML_ELEMENT)

    def tag_count(self, name: str) -> int:
        """Count HTML elements whose tag name equals *name* (case-insensitive)."""
        wanted = name.lower()
        return sum(1 for p in self.parts if p.tag_name == wanted)
