"""Outcome of one locale build."""

from __future__ import annotations

from pathlib import Path

from attrs import define, field

from .types import StrList


@define(slots=True)
class BuildResult:
    """Outcome of one build invocation.

    Attributes:
        locale: Locale that was built.
        success: Whether every stage completed.
        artifact: Published artifact, ``None`` on failure.
        diagnostics: Captured output explaining a failure. Engine logs are
            kept verbatim.
        stage: Last stage reached; on failure, the stage that failed.
        stages: Stages completed in order.
        scratch: Scratch directory used for intermediate files.
    """

    locale: str
    success: bool = False
    artifact: Path | None = None
    diagnostics: str = field(default="", repr=False)
    stage: str = "discover"
    stages: StrList = field(factory=list)
    scratch: Path | None = None
