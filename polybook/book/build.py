"""Drive one locale build through every pipeline stage."""

from __future__ import annotations

import concurrent.futures
import logging
import shutil
from typing import Iterable

from polybook.errors import BuildError

from .assets import check_toolchain, validate_assets
from .build_result import BuildResult
from .discover import discover_chapters
from .manifest import Manifest
from .publish import publish_artifact
from .render import render_document
from .resolve import resolve_document
from .types import ChapterList, ResultList, StrList

logger = logging.getLogger(__name__)


def build_locale(
    manifest: Manifest,
    locale_code: str | None = None,
    timeout: float | None = None,
) -> BuildResult:
    """Build the artifact for one locale.

    Stages run in order: discover, resolve, validate, render, publish.
    The first failing stage ends the build and later stages are skipped.

    Args:
        manifest: Book manifest.
        locale_code: Locale to build, ``None`` for the default locale.
        timeout: Optional limit in seconds for each engine invocation.

    Returns:
        Result of the build. Failures are reported in the result rather
        than raised.
    """
    result = BuildResult(locale=locale_code or manifest.default_locale)

    def _enter(stage: str) -> None:
        result.stage = stage
        logger.debug("[%s] %s", result.locale, stage)

    def _done() -> None:
        result.stages.append(result.stage)

    try:
        _enter("discover")
        chapters = discover_chapters(manifest.chapters_dir, manifest.include)
        _done()

        _enter("resolve")
        locale = manifest.locale(locale_code)
        document = resolve_document(manifest, locale.code, chapters)
        _done()

        _enter("validate")
        validate_assets(document, manifest.root, manifest.graphics_path)
        check_toolchain(locale)
        _done()

        _enter("render")
        scratch = manifest.scratch_dir(locale)
        result.scratch = scratch
        artifact = render_document(
            document,
            locale,
            manifest.root,
            scratch,
            manifest.job_name(locale),
            timeout=timeout,
            source_date_epoch=manifest.source_date_epoch,
            graphics_path=manifest.graphics_path,
        )
        _done()

        _enter("publish")
        result.artifact = publish_artifact(
            artifact, manifest.output_dir, manifest.artifact_name(locale)
        )
        _done()
    except BuildError as exc:
        logger.error("Build of '%s' failed during %s: %s", result.locale, result.stage, exc)
        result.diagnostics = exc.diagnostics
        return result

    result.stage = "done"
    result.success = True
    return result


def build_all(
    manifest: Manifest,
    locales: Iterable[str] | None = None,
    jobs: int = 1,
    timeout: float | None = None,
) -> ResultList:
    """Build several locales independently.

    Each locale renders in its own scratch directory, so builds may run in
    parallel threads; results come back in the requested order.
    """
    codes = list(locales) if locales is not None else list(manifest.locales)
    if jobs <= 1 or len(codes) <= 1:
        return [build_locale(manifest, code, timeout) for code in codes]

    with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
        futures = [
            executor.submit(build_locale, manifest, code, timeout) for code in codes
        ]
        return [future.result() for future in futures]


def clean(manifest: Manifest, locales: Iterable[str] | None = None) -> StrList:
    """Remove scratch directories and return the codes that were cleaned."""
    codes = list(locales) if locales else list(manifest.locales)
    cleaned: StrList = []
    for code in codes:
        scratch = manifest.scratch_dir(manifest.locale(code))
        if scratch.is_dir():
            shutil.rmtree(scratch)
            logger.info("Removed %s", scratch)
            cleaned.append(code)
    return cleaned


def coverage(manifest: Manifest, chapters: ChapterList | None = None) -> dict[str, tuple[int, int]]:
    """Return ``(translated, total)`` chapter counts per registered locale."""
    if chapters is None:
        chapters = discover_chapters(manifest.chapters_dir, manifest.include)
    report = {}
    for code in manifest.locales:
        document = resolve_document(manifest, code, chapters)
        report[code] = (document.translated_count, len(document.chapters))
    return report
