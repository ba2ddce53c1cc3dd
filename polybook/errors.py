"""Error taxonomy for the build pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from polybook.book.asset_ref import AssetRef


class BuildError(Exception):
    """Base class for every failure that terminates a build invocation.

    Attributes:
        stage: Name of the pipeline stage that raised the error.
    """

    stage = "build"

    @property
    def diagnostics(self) -> str:
        """Text shown to the user when the build fails."""
        return str(self)


class ManifestError(BuildError):
    """The book manifest or the chapter tree is malformed."""

    stage = "discover"


class MissingChapter(ManifestError):
    """A chapter named by the manifest has no file on disk."""

    def __init__(self, name: str, chapters_dir: Path) -> None:
        self.name = name
        self.chapters_dir = chapters_dir
        super().__init__(f"Chapter '{name}' has no source file in {chapters_dir}")


class UnknownLocale(BuildError):
    """The requested locale has no registered selection rule."""

    stage = "resolve"

    def __init__(self, locale: str, known: Sequence[str] = ()) -> None:
        self.locale = locale
        self.known = list(known)
        known_txt = ", ".join(self.known) if self.known else "none"
        super().__init__(f"Unknown locale '{locale}' (registered: {known_txt})")


class MissingAsset(BuildError):
    """One or more asset references do not resolve to an existing file.

    ``chapter`` and ``asset`` name the first unresolved reference;
    ``missing`` holds all of them in discovery order.
    """

    stage = "validate"

    def __init__(self, missing: Sequence["AssetRef"]) -> None:
        self.missing = list(missing)
        first = self.missing[0]
        self.chapter = first.chapter
        self.asset = first.reference
        lines = [f"Missing asset '{first.reference}' in chapter {first.chapter}"]
        for ref in self.missing[1:]:
            lines.append(f"  also missing: '{ref.reference}' in chapter {ref.chapter}")
        super().__init__("\n".join(lines))


class MissingTool(BuildError):
    """An executable required by the locale is not on ``PATH``."""

    stage = "validate"

    def __init__(self, tool: str, locale: str) -> None:
        self.tool = tool
        self.locale = locale
        super().__init__(
            f"'{tool}' is required to build locale '{locale}' but was not "
            "found on PATH"
        )


class RenderFailure(BuildError):
    """The typesetting engine exited non-zero or produced no artifact.

    The captured engine output is kept verbatim in ``log``.
    """

    stage = "render"

    def __init__(
        self,
        log: str,
        command: Sequence[str] = (),
        pass_number: int | None = None,
        reason: str = "",
    ) -> None:
        self.log = log
        self.command = list(command)
        self.pass_number = pass_number
        self.reason = reason
        where = f" (pass {pass_number})" if pass_number else ""
        super().__init__(f"Render failed{where}: {reason or ' '.join(self.command)}")

    @property
    def diagnostics(self) -> str:
        return f"{self}\n{self.log}"


class PublishFailure(BuildError):
    """The artifact could not be written to the output directory."""

    stage = "publish"

    def __init__(self, destination: Path, artifact: Path, reason: str) -> None:
        self.destination = destination
        self.artifact = artifact
        super().__init__(
            f"Cannot publish to {destination}: {reason}. "
            f"The rendered artifact is still available at {artifact}"
        )
