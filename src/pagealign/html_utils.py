"""Small text helpers for tokenized HTML parts.

These work on the text of a single part (a tag or a text run) and never
parse a whole page; splitting a page into parts is the tokenizer's job.

- ``tag_name``: lower-cased element name of a tag part.
- ``is_blank_text``: whitespace / ``&nbsp;`` only runs.
- ``split_tokens`` / ``contains_token``: whitespace tokenization used when
  looking for unique words inside a text part.
"""
from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Tag names
# ---------------------------------------------------------------------------

# Closing tags ("</p>") and comments have no leading letter and yield None.
_TAG_NAME_RE = re.compile(r"<\s*([a-zA-Z]+)", re.DOTALL)


def tag_name(html_text: str | None) -> str | None:
    """Return the lower-cased tag name of ``<name ...>``, or None.

    Args:
        html_text: Text of one HTML element part.

    Returns:
        Tag name such as ``"img"``; None for closing tags, comments,
        doctype declarations and anything that is not a tag.
    """
    if not html_text:
        return None
    match = _TAG_NAME_RE.match(html_text)
    if match is None:
        return None
    return match.group(1).lower()


# ---------------------------------------------------------------------------
# Blank text
# ---------------------------------------------------------------------------

_NBSP_RE = re.compile(r"&nbsp;", re.IGNORECASE)


def replace_nbsp(text: str) -> str:
    """Replace ``&nbsp;`` entities (any case) with a plain space."""
    return _NBSP_RE.sub(" ", text)


def is_blank_text(text: str) -> bool:
    """True when *text* holds only whitespace and ``&nbsp;`` entities."""
    return not replace_nbsp(text).strip()


# ---------------------------------------------------------------------------
# Whitespace tokens
# ---------------------------------------------------------------------------

_TOKEN_SPLIT_RE = re.compile(r"[ \n\t]+")
_TOKEN_BOUNDARY = frozenset(" \t\n")


def split_tokens(text: str) -> list[str]:
    """Split a text part into whitespace-separated tokens."""
    stripped = replace_nbsp(text).strip()
    if not stripped:
        return []
    return _TOKEN_SPLIT_RE.split(stripped)


def contains_token(haystack: str, token: str) -> bool:
    """True if *token* occurs in *haystack* delimited by whitespace or edges."""
    if not token:
        return False
    start = haystack.find(token)
    while start >= 0:
        end = start + len(token)
        left_ok = start == 0 or haystack[start - 1] in _TOKEN_BOUNDARY
        right_ok = end >= len(haystack) or haystack[end] in _TOKEN_BOUNDARY
        if left_ok and right_ok:
            return True
        start = haystack.find(token, start + 1)
    return False
