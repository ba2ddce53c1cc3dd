"""Shared fixtures: a small two-locale book and a fake typesetting engine."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml  # type: ignore[import-untyped]

from polybook.book.manifest import Manifest, load_manifest

MANIFEST = {
    "name": "anger",
    "chapters_dir": "text",
    "preamble": "preamble.tex",
    "graphics_path": ["static"],
    "default_locale": "en",
    "locales": {
        "en": {"engine": "pdflatex"},
        "ja": {"suffix": "ja", "engine": "uplatex"},
    },
}


def write_book(root: Path, manifest: dict[str, Any] | None = None) -> Path:
    """Create a book tree under ``root`` and return the manifest path."""

    (root / "text").mkdir(parents=True)
    (root / "static").mkdir()
    (root / "code").mkdir()
    (root / "preamble.tex").write_text(
        "\\documentclass{book}\n", encoding="utf-8"
    )
    (root / "text" / "000-preface.tex").write_text(
        "\\chapter{Preface}\n", encoding="utf-8"
    )
    (root / "text" / "001-how-to-dive.tex").write_text(
        "\\chapter{How to Dive}\n"
        "\\includegraphics[width=\\textwidth]{app-deps.pdf}\n"
        "\\lstinputlisting[language=Erlang]{code/recon.erl}\n",
        encoding="utf-8",
    )
    (root / "text" / "001-how-to-dive.ja.tex").write_text(
        "\\chapter{飛び込み方}\n\\includegraphics{app-deps}\n",
        encoding="utf-8",
    )
    (root / "static" / "app-deps.pdf").write_bytes(b"%PDF-1.4 figure")
    (root / "code" / "recon.erl").write_text("-module(recon).\n", encoding="utf-8")

    path = root / "book.yaml"
    path.write_text(
        yaml.safe_dump(manifest or MANIFEST, allow_unicode=True), encoding="utf-8"
    )
    return path


@pytest.fixture
def book(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Manifest:
    """Manifest of a freshly written sample book."""

    monkeypatch.delenv("SOURCE_DATE_EPOCH", raising=False)
    return load_manifest(write_book(tmp_path))


class FakeEngine:
    """Stand-in for ``subprocess.run`` recording every invocation.

    By default each engine call writes ``<job>.pdf`` into the output
    directory whose bytes are the generated master document, so identical
    inputs give identical artifacts.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.returncode = 0
        self.output = "This is pdfTeX\nOutput written on anger.pdf\n"
        self.produce = True
        self.on_call: Callable[[list[str]], None] | None = None

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        if self.on_call is not None:
            self.on_call(list(cmd))
        options = dict(
            arg[1:].split("=", 1) for arg in cmd if arg.startswith("-") and "=" in arg
        )
        if self.produce and self.returncode == 0 and "output-directory" in options:
            scratch = Path(options["output-directory"])
            master = Path(cmd[-1])
            (scratch / f"{options['jobname']}.pdf").write_bytes(master.read_bytes())
            (scratch / f"{options['jobname']}.log").write_text(self.output)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.output)


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> FakeEngine:
    """Replace the typesetting toolchain with a ``FakeEngine``."""

    fake = FakeEngine()
    monkeypatch.setattr("polybook.book.render.subprocess.run", fake)
    monkeypatch.setattr(
        "polybook.book.assets.shutil.which", lambda tool: f"/usr/bin/{tool}"
    )
    return fake
