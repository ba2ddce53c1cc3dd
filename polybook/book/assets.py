"""Find and check files referenced by chapter sources."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Iterable, Iterator

from polybook.errors import MissingAsset, MissingTool

from .asset_ref import AssetRef
from .document import Document
from .locale import Locale
from .types import AssetList, PathList

logger = logging.getLogger(__name__)

# ``%`` after an even run of backslashes starts a comment running to the end
# of the line; ``\\%`` is a line break followed by a comment.
COMMENT_RE = re.compile(r"(?<!\\)((?:\\\\)*)%.*$", re.MULTILINE)
GRAPHICSPATH_RE = re.compile(r"\\graphicspath\{((?:\{[^}]*\})+)\}")
GROUP_RE = re.compile(r"\{([^}]*)\}")

OPTIONS = r"(?:\[[^\]]*\])?"
REFERENCE_PATTERNS = [
    ("figure", re.compile(r"\\includegraphics\*?" + OPTIONS + r"\{([^}]+)\}")),
    ("listing", re.compile(r"\\lstinputlisting" + OPTIONS + r"\{([^}]+)\}")),
    ("listing", re.compile(r"\\inputminted" + OPTIONS + r"\{[^}]*\}\{([^}]+)\}")),
    ("source", re.compile(r"\\(?:input|include|subfile)\{([^}]+)\}")),
]

FIGURE_EXTENSIONS = [".pdf", ".png", ".jpg", ".jpeg", ".eps"]
SOURCE_EXTENSIONS = [".tex"]


def strip_comments(text: str) -> str:
    """Remove LaTeX comments, keeping line breaks written before them."""
    return COMMENT_RE.sub(r"\1", text)


def graphics_dirs(text: str, root: Path) -> PathList:
    """Return the directories named by ``\\graphicspath`` in ``text``."""
    dirs: PathList = []
    for match in GRAPHICSPATH_RE.finditer(strip_comments(text)):
        for entry in GROUP_RE.findall(match.group(1)):
            if entry.strip():
                dirs.append(root / entry.strip())
    return dirs


def scan_references(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(kind, reference)`` pairs found in LaTeX ``text``.

    Commented-out lines are ignored. References are yielded in the order
    they appear in the text.
    """
    text = strip_comments(text)
    found = []
    for kind, pattern in REFERENCE_PATTERNS:
        for match in pattern.finditer(text):
            found.append((match.start(), kind, match.group(1).strip()))
    for _, kind, reference in sorted(found):
        yield kind, reference


def resolve_reference(
    kind: str, reference: str, root: Path, search_path: Iterable[Path] = ()
) -> Path | None:
    """Return the file ``reference`` points to, or ``None``.

    Args:
        kind: Reference kind; figures and sources may omit their extension.
        reference: Path as written in the source.
        root: Book root, the working directory of the engine.
        search_path: Extra roots searched for figures.
    """
    candidate = Path(reference)
    if candidate.is_absolute():
        bases = [Path("/")]
    else:
        bases = [root]
        if kind == "figure":
            bases.extend(search_path)

    if kind == "figure":
        extensions = FIGURE_EXTENSIONS
    elif kind == "source":
        extensions = SOURCE_EXTENSIONS
    else:
        extensions = []

    for base in bases:
        path = base / candidate
        if path.is_file():
            return path
        if not candidate.suffix or kind == "source":
            for ext in extensions:
                with_ext = path.with_name(path.name + ext)
                if with_ext.is_file():
                    return with_ext
    return None


def collect_assets(
    document: Document, root: Path, search_path: Iterable[Path] = ()
) -> AssetList:
    """Return every asset reference reachable from the document.

    The preamble is scanned first under the key ``"preamble"``, then each
    chapter. Sources pulled in with ``\\input`` and friends are scanned as
    well; each file is read at most once per starting point. Directories
    named by ``\\graphicspath`` join the figure search path.
    """
    search_path = list(search_path)
    assets: AssetList = []

    starts = [(chapter.key, chapter.path) for chapter in document.chapters]
    if document.preamble is not None:
        starts.insert(0, ("preamble", document.preamble))

    for key, start in starts:
        pending: PathList = [start]
        visited: set[Path] = set()
        while pending:
            current = pending.pop(0)
            if current in visited:
                continue
            visited.add(current)

            text = current.read_text(encoding="utf-8", errors="replace")
            search_path.extend(graphics_dirs(text, root))
            for kind, reference in scan_references(text):
                path = resolve_reference(kind, reference, root, search_path)
                assets.append(
                    AssetRef(chapter=key, kind=kind, reference=reference, path=path)
                )
                if kind == "source" and path is not None:
                    pending.append(path)

    return assets


def validate_assets(
    document: Document, root: Path, search_path: Iterable[Path] = ()
) -> AssetList:
    """Check that every asset of ``document`` exists.

    The found references are stored on ``document.assets``.

    Raises:
        MissingAsset: Naming the first unresolved reference and listing all.
    """
    for chapter in document.chapters:
        if not chapter.path.is_file():
            raise MissingAsset(
                [AssetRef(chapter=chapter.key, kind="source", reference=str(chapter.path))]
            )
    if document.preamble is not None and not document.preamble.is_file():
        raise MissingAsset(
            [AssetRef(chapter="preamble", kind="source", reference=str(document.preamble))]
        )

    assets = collect_assets(document, root, search_path)
    document.assets = assets

    missing = [asset for asset in assets if not asset.resolved]
    if missing:
        for asset in missing:
            logger.error(
                "Chapter %s references missing %s '%s'",
                asset.chapter,
                asset.kind,
                asset.reference,
            )
        raise MissingAsset(missing)

    logger.debug("All %d asset references resolved", len(assets))
    return assets


def check_toolchain(locale: Locale) -> None:
    """Ensure the executables needed by ``locale`` are on ``PATH``.

    Raises:
        MissingTool: For the first executable that cannot be found.
    """
    for tool in locale.tools:
        if shutil.which(tool) is None:
            raise MissingTool(tool, locale.code)
