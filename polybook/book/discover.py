"""Discover ordered chapters and their locale variants."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from polybook.errors import ManifestError, MissingChapter

from .chapter import Chapter
from .types import ChapterList

logger = logging.getLogger(__name__)

# ``001-how-to-dive.tex`` or ``001-how-to-dive.ja.tex``.
CHAPTER_RE = re.compile(
    r"^(?P<key>\d+)-(?P<name>[^.]+)(?:\.(?P<suffix>[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]+)?))?\.tex$"
)


def discover_chapters(
    chapters_dir: Path, include: Iterable[str] | None = None
) -> ChapterList:
    """Return chapters found in ``chapters_dir`` sorted by ordering key.

    Args:
        chapters_dir: Directory holding ``NNN-name[.suffix].tex`` files.
        include: Optional chapter stems to keep. Every listed stem must exist.

    Returns:
        Chapters in ordering-key order.

    Raises:
        ManifestError: If the directory is missing, two chapters share an
            ordering key or a translation has no canonical source.
        MissingChapter: If an included stem has no file at all.
    """
    if not chapters_dir.is_dir():
        raise ManifestError(f"Chapter directory not found: {chapters_dir}")

    canonical: dict[str, Path] = {}
    variants: dict[str, dict[str, Path]] = {}

    for path in sorted(chapters_dir.iterdir()):
        if not path.is_file():
            continue
        match = CHAPTER_RE.match(path.name)
        if match is None:
            logger.debug("Ignoring %s: not a chapter source", path.name)
            continue

        stem = f"{match['key']}-{match['name']}"
        suffix = match["suffix"]
        if suffix is None:
            canonical[stem] = path
        else:
            variants.setdefault(stem, {})[suffix] = path

    orphans = sorted(set(variants) - set(canonical))
    if orphans:
        raise ManifestError(
            "Translated chapters without a canonical source: " + ", ".join(orphans)
        )

    if include is not None:
        wanted = list(include)
        for stem in wanted:
            if stem not in canonical:
                raise MissingChapter(stem, chapters_dir)
        skipped = sorted(set(canonical) - set(wanted))
        for stem in skipped:
            logger.debug("Skipping %s: not listed in the manifest", stem)
        stems = wanted
    else:
        stems = list(canonical)

    chapters: ChapterList = []
    seen: dict[int, str] = {}
    for stem in stems:
        key, _, name = stem.partition("-")
        order = int(key)
        if order in seen:
            raise ManifestError(
                f"Chapters '{seen[order]}' and '{stem}' share ordering key {order}"
            )
        seen[order] = stem
        chapters.append(
            Chapter(
                key=key,
                name=name,
                canonical=canonical[stem],
                variants=variants.get(stem, {}),
            )
        )

    chapters.sort(key=lambda chapter: chapter.order)
    logger.debug("Discovered %d chapters in %s", len(chapters), chapters_dir)
    return chapters
