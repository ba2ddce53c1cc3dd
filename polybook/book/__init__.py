"""Book sources, locale resolution and the build pipeline."""

from .build import build_all, build_locale, clean, coverage
from .discover import discover_chapters
from .manifest import Manifest, load_manifest
from .resolve import resolve_document

__all__ = [
    "Manifest",
    "build_all",
    "build_locale",
    "clean",
    "coverage",
    "discover_chapters",
    "load_manifest",
    "resolve_document",
]
