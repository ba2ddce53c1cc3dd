"""Ordered, locale-resolved chapter list for one build."""

from __future__ import annotations

from pathlib import Path

from attrs import define, field

from .types import AssetList, PathList, ResolvedChapterList


@define(slots=True)
class ResolvedChapter:
    """Chapter variant selected for a locale.

    Attributes:
        key: Ordering key of the chapter.
        name: Base name of the chapter.
        path: Source file included in the document.
        suffix: Locale suffix of the selected file, ``None`` when canonical.
    """

    key: str
    name: str
    path: Path
    suffix: str | None = None

    @property
    def translated(self) -> bool:
        return self.suffix is not None


@define(slots=True)
class Document:
    """Book resolved for one locale.

    Attributes:
        locale: Locale code the document was resolved for.
        chapters: Resolved chapters in ordering-key order.
        preamble: Preamble file placed before ``\\begin{document}``.
        assets: Asset references found during validation.
    """

    locale: str
    chapters: ResolvedChapterList = field(factory=list)
    preamble: Path | None = None
    assets: AssetList = field(factory=list, repr=False)

    @property
    def sources(self) -> PathList:
        """Chapter source files in inclusion order."""
        return [chapter.path for chapter in self.chapters]

    @property
    def translated_count(self) -> int:
        return sum(1 for chapter in self.chapters if chapter.translated)
