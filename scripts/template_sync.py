#!/usr/bin/env python3
"""Align one tokenized page against pages of the same template.

Reads pre-tokenized documents (JSON lists of [kind, text] pairs), aligns
the base against every other page and emits a JSON report:
- per-other alignment summary (strong/weak counts, text similarity)
- rare element indices (e.g. images not repeated across the template)
- common / unique text part indices and unique tokens

Usage:
    python3 scripts/template_sync.py --base page0.json \
      --others page1.json page2.json page3.json --common-threshold 2
    python3 scripts/template_sync.py --base page0.json \
      --others-jsonl same_site.jsonl --profile loose --output report.json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import orjson

from pagealign.aggregator import AlignmentBatch
from pagealign.aligner import (
    PROFILE_PRESETS,
    AlignmentArgumentError,
    check_common_threshold,
    resolve_config,
)
from pagealign.commonality import find_common_text, find_unique_text, find_unique_tokens
from pagealign.io_utils import (
    DocumentFormatError,
    load_document,
    load_documents_jsonl,
    match_state_to_json,
    save_json,
)
from pagealign.part_types import Document

log = logging.getLogger("template_sync")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Align a tokenized page against same-template pages."
    )
    parser.add_argument(
        "--base", required=True, type=Path, help="Base document (JSON)"
    )
    parser.add_argument(
        "--others", nargs="*", type=Path, default=[],
        help="Other documents (one JSON file each)",
    )
    parser.add_argument(
        "--others-jsonl", type=Path, default=None,
        help="Other documents, one JSON object per line",
    )
    parser.add_argument(
        "--profile", choices=sorted(PROFILE_PRESETS), default="balanced",
        help="Threshold preset (default: balanced)",
    )
    parser.add_argument(
        "--min-anchor-len", type=int, default=None,
        help="Override the profile's minimal anchor length",
    )
    parser.add_argument(
        "--max-lookahead", type=int, default=None,
        help="Override the profile's lookahead window (in parts)",
    )
    parser.add_argument(
        "--tag", default="img", help="Element checked for rarity (default: img)"
    )
    parser.add_argument(
        "--common-threshold", type=int, default=2,
        help="Identical instances needed to call a part common (default: 2)",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Processes used to align the other documents (default: 1)",
    )
    parser.add_argument(
        "--with-matches", action="store_true",
        help="Include per-text-part match strings in the report",
    )
    parser.add_argument(
        "--output", type=Path, default=None,
        help="Write the report to this file instead of stdout",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def _load_others(args: argparse.Namespace) -> list[Document]:
    others = [load_document(p) for p in args.others]
    if args.others_jsonl is not None:
        others.extend(load_documents_jsonl(args.others_jsonl))
    return others


def build_report(
    batch: AlignmentBatch,
    *,
    tag: str,
    common_threshold: int,
    with_matches: bool = False,
) -> dict[str, Any]:
    """Summarize one batch as a JSON-ready dict."""
    base = batch.base
    strings = batch.text_strings()

    alignments: list[dict[str, Any]] = []
    for other, result in zip(batch.others, batch.results, strict=True):
        alignments.append({
            "doc_id": other.doc_id,
            "parts": len(other.parts),
            "strong": sum(1 for d in result.strong_offsets if d is not None),
            "weak": len(result.weak_offsets),
            "identical_text_count": result.identical_text_count,
            "other_text_count": result.other_text_count,
            "text_similarity": round(result.text_similarity(base), 4),
        })

    report: dict[str, Any] = {
        "base": {
            "doc_id": base.doc_id,
            "parts": len(base.parts),
            "kind_counts": {k.value: v for k, v in base.kind_counts().items()},
        },
        "alignments": alignments,
        "rare_elements": {
            "tag": tag,
            "common_threshold": common_threshold,
            "indexes": batch.rare_elements(tag, common_threshold),
        },
        "common_text": find_common_text(strings, common_threshold),
        "unique_text": find_unique_text(strings, common_threshold),
        "unique_tokens": {
            str(k): v
            for k, v in find_unique_tokens(base, strings, common_threshold).items()
        },
    }
    if with_matches:
        report["text_matches"] = {
            str(k): [match_state_to_json(s) for s in states]
            for k, states in strings.items()
        }
    return report


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = resolve_config(
            args.profile,
            min_anchor_len=args.min_anchor_len,
            max_lookahead=args.max_lookahead,
        )
        check_common_threshold(args.common_threshold)
        base = load_document(args.base)
        others = _load_others(args)
    except (AlignmentArgumentError, DocumentFormatError) as exc:
        log.error("%s", exc)
        return 2
    except OSError as exc:
        log.error("Cannot read input: %s", exc)
        return 2

    if not others:
        log.warning("No other documents given; every element will be reported rare")
    log.info(
        "Aligning %s (%d parts) against %d documents "
        "(min_anchor_len=%d, max_lookahead=%d, workers=%d)",
        base.doc_id, len(base.parts), len(others),
        config.min_anchor_len, config.max_lookahead, args.workers,
    )

    try:
        batch = AlignmentBatch.build(
            base,
            others,
            min_anchor_len=config.min_anchor_len,
            max_lookahead=config.max_lookahead,
            workers=args.workers,
        )
    except AlignmentArgumentError as exc:
        log.error("%s", exc)
        return 2

    for other, result in zip(batch.others, batch.results, strict=True):
        log.debug(
            "%s: identical_text=%d other_text=%d",
            other.doc_id, result.identical_text_count, result.other_text_count,
        )

    report = build_report(
        batch,
        tag=args.tag,
        common_threshold=args.common_threshold,
        with_matches=args.with_matches,
    )
    if args.output is not None:
        try:
            save_json(report, args.output)
        except OSError as exc:
            log.error("Cannot write report: %s", exc)
            return 2
        log.info("Report: %s", args.output)
    else:
        sys.stdout.buffer.write(orjson.dumps(report, option=orjson.OPT_INDENT_2))
        sys.stdout.buffer.write(b"\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
