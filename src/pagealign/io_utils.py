"""JSON / JSONL I/O for pre-tokenized documents and reports.

A document file is either a bare list of ``[kind, text]`` pairs or an
object ``{"doc_id": ..., "parts": [[kind, text], ...]}``. A JSONL file
holds one such object per line (blank lines skipped).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson

from pagealign.aggregator import Identical, MatchState, Unmatched, Weak
from pagealign.part_types import Document


class DocumentFormatError(ValueError):
    """Raised when a document file does not hold a valid part sequence."""


def document_from_obj(obj: Any, *, default_id: str = "") -> Document:
    """Build a Document from a decoded JSON value."""
    if isinstance(obj, dict):
        doc_id = str(obj.get("doc_id") or default_id)
        pairs = obj.get("parts")
    else:
        doc_id = default_id
        pairs = obj
    if not isinstance(pairs, list):
        raise DocumentFormatError(
            f"document {doc_id or '?'}: expected a list of [kind, text] pairs"
        )
    checked: list[tuple[str, str]] = []
    for idx, pair in enumerate(pairs):
        if (
            not isinstance(pair, (list, tuple))
            or len(pair) != 2
            or not isinstance(pair[1], str)
        ):
            raise DocumentFormatError(
                f"document {doc_id or '?'}: part {idx} is not a [kind, text] pair"
            )
        checked.append((pair[0], pair[1]))
    try:
        return Document.from_pairs(checked, doc_id=doc_id)
    except ValueError as exc:
        raise DocumentFormatError(f"document {doc_id or '?'}: {exc}") from exc


def document_to_obj(doc: Document) -> dict[str, Any]:
    return {
        "doc_id": doc.doc_id,
        "parts": [[p.kind.value, p.text] for p in doc.parts],
    }


def load_document(path: Path) -> Document:
    """Load one document; its doc_id defaults to the file stem."""
    try:
        obj = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        raise DocumentFormatError(f"{path}: invalid JSON ({exc})") from exc
    return document_from_obj(obj, default_id=path.stem)


def load_documents_jsonl(path: Path) -> list[Document]:
    """Load one document per non-blank line; ids default to ``<stem>:<line>``."""
    docs: list[Document] = []
    for lineno, line in enumerate(path.read_bytes().split(b"\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = orjson.loads(line)
        except orjson.JSONDecodeError as exc:
            raise DocumentFormatError(
                f"{path}:{lineno}: invalid JSON ({exc})"
            ) from exc
        docs.append(document_from_obj(obj, default_id=f"{path.stem}:{lineno}"))
    return docs


def save_documents_jsonl(docs: list[Document], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(document_to_obj(d)) for d in docs]
    path.write_bytes(b"\n".join(lines) + b"\n")


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON (sorted keys, optionally indented)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    path.write_bytes(orjson.dumps(obj, option=opts))


def match_state_to_json[T](state: MatchState[T]) -> Any:
    """Encode a match state: "identical", null, or {"weak": payload}."""
    match state:
        case Identical():
            return "identical"
        case Weak(value=v):
            return {"weak": v}
        case Unmatched():
            return None
    raise TypeError(f"not a match state: {state!r}")
