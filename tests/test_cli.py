"""Tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import yaml  # type: ignore[import-untyped]
from click.testing import CliRunner, Result

from polybook import cli
from polybook.book.build_result import BuildResult


def _invoke(root: Path, *args: str) -> Result:
    """Run the CLI against the manifest in ``root``."""

    runner = CliRunner()
    return runner.invoke(cli.cli, ["--manifest", str(root / "book.yaml"), *args])


def test_build_default_locale(book, engine) -> None:
    """``build`` without a locale publishes the default artifact."""

    result = _invoke(book.root, "build")

    assert result.exit_code == 0
    assert "en: " in result.output
    assert (book.output_dir / "anger-en.pdf").is_file()


def test_build_named_locale(book, engine) -> None:
    """``build ja`` publishes the Japanese artifact."""

    result = _invoke(book.root, "build", "ja")

    assert result.exit_code == 0
    assert (book.output_dir / "anger-ja.pdf").is_file()
    assert not (book.output_dir / "anger-en.pdf").exists()


def test_build_unknown_locale_exits_non_zero(book, engine) -> None:
    """An unknown locale fails with a non-zero exit."""

    result = _invoke(book.root, "build", "fr")

    assert result.exit_code == 1
    assert "Unknown locale 'fr'" in result.output
    assert engine.calls == []


def test_build_prints_engine_log_verbatim(book, engine) -> None:
    """Render failures show the engine output untouched."""

    engine.returncode = 1
    engine.output = "! LaTeX Error: File `recon.sty' not found.\n"

    result = _invoke(book.root, "build")

    assert result.exit_code == 1
    assert "failed during render" in result.output
    assert engine.output in result.output


def test_build_writes_report(book, engine, tmp_path: Path) -> None:
    """``--report`` stores the build result."""

    report = tmp_path / "report.yaml"
    result = _invoke(book.root, "build", "ja", "--report", str(report))

    assert result.exit_code == 0
    data = yaml.safe_load(report.read_text(encoding="utf-8"))
    assert data["locale"] == "ja"
    assert data["success"] is True
    assert data["artifact"].endswith("dist/anger-ja.pdf")


def test_build_passes_timeout(book) -> None:
    """The timeout option reaches the pipeline."""

    with patch(
        "polybook.book.build.build_locale",
        return_value=BuildResult(locale="en", success=True, artifact=Path("a.pdf")),
    ) as build_locale:
        result = _invoke(book.root, "build", "--timeout", "30")

    assert result.exit_code == 0
    assert build_locale.call_args.kwargs["timeout"] == 30.0


def test_build_all(book, engine, tmp_path: Path) -> None:
    """``build-all`` builds every locale and reports all results."""

    report = tmp_path / "report.json"
    result = _invoke(book.root, "build-all", "--jobs", "2", "--report", str(report))

    assert result.exit_code == 0
    assert [r["locale"] for r in json.loads(report.read_text())] == ["en", "ja"]
    assert sorted(p.name for p in book.output_dir.iterdir()) == [
        "anger-en.pdf",
        "anger-ja.pdf",
    ]


def test_build_all_fails_if_any_locale_fails(book, engine) -> None:
    """``build-all`` exits non-zero when one locale fails."""

    (book.root / "text" / "001-how-to-dive.ja.tex").write_text(
        "\\includegraphics{nowhere}\n", encoding="utf-8"
    )
    result = _invoke(book.root, "build-all")

    assert result.exit_code == 1
    assert "ja: failed during validate" in result.output
    assert (book.output_dir / "anger-en.pdf").is_file()


def test_plan_outputs_json(book) -> None:
    """``plan`` prints the resolved chapters without rendering."""

    result = _invoke(book.root, "plan", "ja")

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [Path(c["path"]).name for c in data["chapters"]] == [
        "000-preface.tex",
        "001-how-to-dive.ja.tex",
    ]
    assert not book.build_dir.exists()


def test_plan_writes_yaml_file(book, tmp_path: Path) -> None:
    """``plan --output`` writes the plan to a file."""

    out_file = tmp_path / "plan.yaml"
    result = _invoke(
        book.root, "plan", "--format", "yaml", "--output", str(out_file)
    )

    assert result.exit_code == 0
    assert yaml.safe_load(out_file.read_text(encoding="utf-8"))["locale"] == "en"


def test_plan_unknown_locale(book) -> None:
    """``plan`` reports unknown locales as usage errors."""

    result = _invoke(book.root, "plan", "fr")
    assert result.exit_code == 1
    assert "Unknown locale 'fr'" in result.output


def test_locales_shows_coverage(book) -> None:
    """``locales`` lists each locale with its translated chapter count."""

    result = _invoke(book.root, "locales")

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].split() == ["*", "en", "0/2", "chapters", "translated"]
    assert lines[1].split() == ["ja", "1/2", "chapters", "translated"]


def test_clean(book, engine) -> None:
    """``clean`` removes scratch directories of the given locales."""

    _invoke(book.root, "build", "ja")
    result = _invoke(book.root, "clean", "ja")

    assert result.exit_code == 0
    assert "Cleaned ja" in result.output
    assert not (book.build_dir / "ja").exists()


def test_missing_manifest(tmp_path: Path) -> None:
    """A missing manifest is reported before anything runs."""

    result = _invoke(tmp_path, "build")
    assert result.exit_code == 1
    assert "Manifest not found" in result.output


def test_manifest_from_environment(book, engine) -> None:
    """``POLYBOOK_MANIFEST`` selects the manifest."""

    runner = CliRunner()
    result = runner.invoke(
        cli.cli, ["build"], env={"POLYBOOK_MANIFEST": str(book.root / "book.yaml")}
    )
    assert result.exit_code == 0
    assert (book.output_dir / "anger-en.pdf").is_file()


def test_version() -> None:
    """``--version`` prints the program name."""

    result = CliRunner().invoke(cli.cli, ["--version"])
    assert result.exit_code == 0
    assert "polybook" in result.output
