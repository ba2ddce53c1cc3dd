"""Tests for plan and result serialization."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml  # type: ignore[import-untyped]

from polybook import serialize
from polybook.book.build_result import BuildResult
from polybook.book.document import Document, ResolvedChapter


def _document() -> Document:
    return Document(
        locale="ja",
        chapters=[
            ResolvedChapter(key="000", name="preface", path=Path("text/000-preface.tex")),
            ResolvedChapter(
                key="001",
                name="how-to-dive",
                path=Path("text/001-how-to-dive.ja.tex"),
                suffix="ja",
            ),
        ],
        preamble=Path("preamble.tex"),
    )


def test_dumps_json_converts_paths() -> None:
    """Paths become POSIX strings in JSON output."""

    data = json.loads(serialize.dumps(_document(), "json"))
    assert data["locale"] == "ja"
    assert data["preamble"] == "preamble.tex"
    assert data["chapters"][1] == {
        "key": "001",
        "name": "how-to-dive",
        "path": "text/001-how-to-dive.ja.tex",
        "suffix": "ja",
    }


def test_dumps_yaml_keeps_unicode() -> None:
    """YAML output keeps non-ASCII text readable."""

    result = BuildResult(locale="ja", diagnostics="飛び込み方")
    text = serialize.dumps(result, "yaml")
    assert "飛び込み方" in text
    assert yaml.safe_load(text)["locale"] == "ja"


def test_dumps_list_of_results() -> None:
    """Lists of attrs instances serialize element by element."""

    results = [BuildResult(locale="en", success=True, artifact=Path("dist/a.pdf"))]
    assert json.loads(serialize.dumps(results))[0]["artifact"] == "dist/a.pdf"


def test_unsupported_format() -> None:
    """Unknown formats are rejected."""

    with pytest.raises(ValueError):
        serialize.dumps({}, "xml")


def test_write_picks_format_from_suffix(tmp_path: Path) -> None:
    """``.yaml`` files get YAML, anything else JSON."""

    serialize.write(BuildResult(locale="en"), tmp_path / "r.yaml")
    serialize.write(BuildResult(locale="en"), tmp_path / "r.json")
    assert yaml.safe_load((tmp_path / "r.yaml").read_text())["locale"] == "en"
    assert json.loads((tmp_path / "r.json").read_text())["locale"] == "en"
