"""Book manifest describing sources, locales and output layout."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml  # type: ignore[import-untyped]
from attrs import define, field

from polybook.errors import ManifestError, UnknownLocale

from .locale import DEFAULT_ENGINE, DEFAULT_ENGINE_ARGS, DEFAULT_PASSES, Locale
from .types import LocaleMap, PathList, StrList

logger = logging.getLogger(__name__)

JSONDict = Dict[str, Any]

DEFAULT_MANIFEST = "book.yaml"
DEFAULT_OUTPUT_TEMPLATE = "{name}-{locale}.{ext}"


@define(slots=True)
class Manifest:
    """Book-wide build configuration.

    Attributes:
        root: Book root; relative paths resolve here and the engine runs here.
        name: Base name of the produced artifacts.
        chapters_dir: Directory holding the chapter sources.
        preamble: Shared preamble used by locales without their own.
        locales: Registered locales by code.
        default_locale: Locale built when none is requested.
        include: Optional inclusion list of chapter stems.
        graphics_path: Extra search roots for figures.
        build_dir: Scratch root, one subdirectory per locale.
        output_dir: Directory receiving published artifacts.
        output_template: File name template for published artifacts.
        source_date_epoch: Timestamp exported for reproducible output.
    """

    root: Path
    name: str
    chapters_dir: Path
    preamble: Path | None = None
    locales: LocaleMap = field(factory=dict)
    default_locale: str = "en"
    include: StrList | None = None
    graphics_path: PathList = field(factory=list)
    build_dir: Path = Path("build")
    output_dir: Path = Path("dist")
    output_template: str = DEFAULT_OUTPUT_TEMPLATE
    source_date_epoch: str | None = None

    def locale(self, code: str | None = None) -> Locale:
        """Return the locale registered for ``code`` or the default one.

        Raises:
            UnknownLocale: If ``code`` has no registered selection rule.
        """
        code = code or self.default_locale
        try:
            return self.locales[code]
        except KeyError:
            raise UnknownLocale(code, sorted(self.locales)) from None

    def scratch_dir(self, locale: Locale) -> Path:
        """Scratch directory owned by ``locale`` builds."""
        return self.build_dir / locale.code

    def job_name(self, locale: Locale) -> str:
        return f"{self.name}-{locale.code}"

    def artifact_name(self, locale: Locale) -> str:
        """File name of the published artifact for ``locale``."""
        if locale.output_name:
            return locale.output_name
        return self.output_template.format(
            name=self.name, locale=locale.code, ext=locale.artifact_ext
        )

    def preamble_for(self, locale: Locale) -> Path | None:
        return locale.preamble or self.preamble


def load_manifest(path: Path) -> Manifest:
    """Read the YAML manifest at ``path``.

    Args:
        path: Location of the manifest file. Its directory becomes the book
            root.

    Returns:
        Parsed ``Manifest``.

    Raises:
        ManifestError: If the file is missing or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"Manifest not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ManifestError(f"Cannot parse manifest {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} must be a mapping")

    root = path.resolve().parent
    logger.debug("Loading manifest %s (root %s)", path, root)
    return manifest_from_dict(data, root)


def manifest_from_dict(data: JSONDict, root: Path) -> Manifest:
    """Build a ``Manifest`` from decoded YAML ``data`` rooted at ``root``."""

    def _path(value: Any) -> Path:
        candidate = Path(str(value))
        return candidate if candidate.is_absolute() else root / candidate

    name = data.get("name")
    if not name:
        raise ManifestError("Manifest must define 'name'")

    locales_data = data.get("locales") or {}
    if not isinstance(locales_data, dict):
        raise ManifestError("'locales' must be a mapping of locale code to settings")

    locales: LocaleMap = {}
    for code, settings in locales_data.items():
        locales[str(code)] = _locale_from_dict(str(code), settings or {}, _path)

    default_locale = str(data.get("default_locale", "en"))
    if not locales:
        # A book without explicit locales still builds its canonical text.
        locales[default_locale] = Locale(code=default_locale)
    if default_locale not in locales:
        raise ManifestError(
            f"Default locale '{default_locale}' is not listed under 'locales'"
        )

    include = data.get("chapters")
    if include is not None:
        if not isinstance(include, list):
            raise ManifestError("'chapters' must be a list of chapter stems")
        include = [Path(str(item)).name.removesuffix(".tex") for item in include]

    graphics = data.get("graphics_path") or []
    if isinstance(graphics, str):
        graphics = [graphics]

    epoch = os.environ.get("SOURCE_DATE_EPOCH") or data.get("source_date_epoch")

    return Manifest(
        root=root,
        name=str(name),
        chapters_dir=_path(data.get("chapters_dir", "text")),
        preamble=_path(data["preamble"]) if data.get("preamble") else None,
        locales=locales,
        default_locale=default_locale,
        include=include,
        graphics_path=[_path(item) for item in graphics],
        build_dir=_path(data.get("build_dir", "build")),
        output_dir=_path(data.get("output_dir", "dist")),
        output_template=str(data.get("output_template", DEFAULT_OUTPUT_TEMPLATE)),
        source_date_epoch=str(epoch) if epoch is not None else None,
    )


def _locale_from_dict(code: str, settings: JSONDict, to_path: Any) -> Locale:
    """Build a ``Locale`` from its manifest entry."""
    if not isinstance(settings, dict):
        raise ManifestError(f"Settings for locale '{code}' must be a mapping")

    postprocess = settings.get("postprocess") or []
    if isinstance(postprocess, str):
        postprocess = postprocess.split()

    engine_args = settings.get("engine_args")
    if engine_args is None:
        engine_args = list(DEFAULT_ENGINE_ARGS)
    elif isinstance(engine_args, str):
        engine_args = engine_args.split()

    try:
        passes = int(settings.get("passes", DEFAULT_PASSES))
    except (TypeError, ValueError) as exc:
        raise ManifestError(f"Locale '{code}': 'passes' must be an integer") from exc
    if passes < 1:
        raise ManifestError(f"Locale '{code}': 'passes' must be at least 1")

    suffix = settings.get("suffix")
    return Locale(
        code=code,
        suffix=str(suffix) if suffix else None,
        engine=str(settings.get("engine", DEFAULT_ENGINE)),
        engine_args=[str(arg) for arg in engine_args],
        passes=passes,
        postprocess=[str(arg) for arg in postprocess],
        preamble=to_path(settings["preamble"]) if settings.get("preamble") else None,
        artifact_ext=str(settings.get("artifact_ext", "pdf")),
        output_name=settings.get("output"),
    )
