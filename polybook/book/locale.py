"""Locale selection rule and its rendering toolchain."""

from __future__ import annotations

from pathlib import Path

from attrs import define, field

from .types import StrList

DEFAULT_ENGINE = "pdflatex"
DEFAULT_ENGINE_ARGS = [
    "-interaction=nonstopmode",
    "-halt-on-error",
    "-file-line-error",
]
DEFAULT_PASSES = 2


@define(slots=True)
class Locale:
    """Target language of one build.

    Attributes:
        code: Locale identifier such as "en" or "ja".
        suffix: File name suffix selecting translated chapters. ``None``
            selects only canonical sources.
        engine: Typesetting executable invoked for every render pass.
        engine_args: Flags passed to the engine before the job options.
        passes: Number of engine runs needed to settle cross-references.
        postprocess: Optional command run in the scratch directory after the
            last pass. ``{job}`` is replaced by the job name.
        preamble: Preamble file included before ``\\begin{document}``.
        artifact_ext: Extension of the produced artifact.
        output_name: File name of the published artifact, overriding the
            manifest's output template.
    """

    code: str
    suffix: str | None = None
    engine: str = DEFAULT_ENGINE
    engine_args: StrList = field(factory=lambda: list(DEFAULT_ENGINE_ARGS))
    passes: int = DEFAULT_PASSES
    postprocess: StrList = field(factory=list)
    preamble: Path | None = None
    artifact_ext: str = "pdf"
    output_name: str | None = None

    @property
    def tools(self) -> StrList:
        """Executables that must be on ``PATH`` to build this locale."""
        tools = [self.engine]
        if self.postprocess:
            tools.append(self.postprocess[0])
        return tools
