"""Tests for scripts/template_sync.py CLI."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
import pytest

from pagealign.io_utils import document_to_obj, save_documents_jsonl
from pagealign.part_types import Document
from scripts.template_sync import main


def _page(article: str, image: str = "<img id=1>", doc_id: str = "") -> Document:
    return Document.from_texts(
        [
            "<html>", "<body>", "<div class=header>", "Site title",
            "<div class=main>", image, article, "</div>", "</body>", "</html>",
        ],
        doc_id=doc_id,
    )


@pytest.fixture
def corpus(tmp_path: Path) -> dict[str, Any]:
    base_path = tmp_path / "base.json"
    base_path.write_bytes(orjson.dumps(document_to_obj(_page("Article body text", doc_id="base"))))
    other_paths: list[str] = []
    for k in range(1, 5):
        path = tmp_path / f"p{k}.json"
        path.write_bytes(orjson.dumps(document_to_obj(_page(f"Article body other {k}", doc_id=f"p{k}"))))
        other_paths.append(str(path))
    jsonl = tmp_path / "more.jsonl"
    save_documents_jsonl([_page("Article body changed", image="<img id=2>", doc_id="p5")], jsonl)
    return {"base": str(base_path), "others": other_paths, "jsonl": str(jsonl), "dir": tmp_path}


def _run(corpus: dict[str, Any], *extra: str) -> dict[str, Any]:
    out = corpus["dir"] / "report.json"
    argv = [
        "--base", corpus["base"],
        "--others", *corpus["others"],
        "--others-jsonl", corpus["jsonl"],
        "--min-anchor-len", "3",
        "--max-lookahead", "5",
        "--output", str(out),
        *extra,
    ]
    assert main(argv) == 0
    return orjson.loads(out.read_bytes())


class TestTemplateSync:
    def test_report(self, corpus: dict[str, Any]) -> None:
        report = _run(corpus, "--common-threshold", "3")
        assert report["base"]["doc_id"] == "base"
        assert report["base"]["parts"] == 10
        assert report["base"]["kind_counts"]["text_real"] == 2
        assert [a["doc_id"] for a in report["alignments"]] == ["p1", "p2", "p3", "p4", "p5"]
        assert report["alignments"][0]["strong"] == 9
        assert report["alignments"][0]["weak"] == 1
        assert report["alignments"][0]["text_similarity"] == 0.5
        assert report["rare_elements"]["indexes"] == []
        assert report["common_text"] == [3]
        assert report["unique_text"] == [6]
        assert report["unique_tokens"] == {"6": ["text"]}
        assert "text_matches" not in report

    def test_rare_image_with_high_threshold(self, corpus: dict[str, Any]) -> None:
        report = _run(corpus, "--common-threshold", "5")
        assert report["rare_elements"] == {"tag": "img", "common_threshold": 5, "indexes": [5]}

    def test_with_matches(self, corpus: dict[str, Any]) -> None:
        report = _run(corpus, "--with-matches")
        assert report["text_matches"]["3"] == ["identical"] * 5
        assert report["text_matches"]["6"][0] == {"weak": "Article body other 1"}

    def test_parallel_workers(self, corpus: dict[str, Any]) -> None:
        assert _run(corpus, "--workers", "2") == _run(corpus)

    def test_stdout(self, corpus: dict[str, Any], capsysbinary: pytest.CaptureFixture[bytes]) -> None:
        assert main(["--base", corpus["base"], "--others", *corpus["others"]]) == 0
        report = orjson.loads(capsysbinary.readouterr().out)
        assert len(report["alignments"]) == 4

    def test_invalid_threshold(self, corpus: dict[str, Any]) -> None:
        assert main(["--base", corpus["base"], "--common-threshold", "0"]) == 2

    def test_negative_override(self, corpus: dict[str, Any]) -> None:
        assert main(["--base", corpus["base"], "--max-lookahead", "-1"]) == 2

    def test_missing_file(self, corpus: dict[str, Any]) -> None:
        missing = str(corpus["dir"] / "nope.json")
        assert main(["--base", missing]) == 2

    def test_unwritable_output(self, corpus: dict[str, Any]) -> None:
        # An existing directory cannot be written as a file.
        argv = ["--base", corpus["base"], "--others", *corpus["others"], "--output", str(corpus["dir"])]
        assert main(argv) == 2

    def test_malformed_document(self, corpus: dict[str, Any]) -> None:
        bad = corpus["dir"] / "bad.json"
        bad.write_bytes(b'[["paragraph", "x"]]')
        assert main(["--base", str(bad)]) == 2
