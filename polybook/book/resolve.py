"""Select the chapter variants included for a locale."""

from __future__ import annotations

import logging

from .document import Document, ResolvedChapter
from .manifest import Manifest
from .types import ChapterList

logger = logging.getLogger(__name__)


def resolve_document(
    manifest: Manifest, locale_code: str | None, chapters: ChapterList
) -> Document:
    """Build the ordered document for ``locale_code``.

    Each chapter contributes its variant for the locale's suffix when one
    exists and its canonical source otherwise. Nothing is written to disk.

    Args:
        manifest: Book manifest holding the registered locales.
        locale_code: Locale to resolve, ``None`` for the default locale.
        chapters: Discovered chapters.

    Returns:
        Document with one resolved chapter per input chapter.

    Raises:
        UnknownLocale: If the locale is not registered.
    """
    locale = manifest.locale(locale_code)

    resolved = []
    for chapter in sorted(chapters, key=lambda item: item.order):
        variant = chapter.variant_for(locale.suffix)
        if variant is not None:
            resolved.append(
                ResolvedChapter(
                    key=chapter.key,
                    name=chapter.name,
                    path=variant,
                    suffix=locale.suffix,
                )
            )
        else:
            resolved.append(
                ResolvedChapter(key=chapter.key, name=chapter.name, path=chapter.canonical)
            )

    document = Document(
        locale=locale.code,
        chapters=resolved,
        preamble=manifest.preamble_for(locale),
    )
    logger.debug(
        "Resolved %d chapters for '%s' (%d translated)",
        len(resolved),
        locale.code,
        document.translated_count,
    )
    return document
