"""Common type aliases for book structures."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from .asset_ref import AssetRef  # noqa: F401
    from .build_result import BuildResult  # noqa: F401
    from .chapter import Chapter  # noqa: F401
    from .document import ResolvedChapter  # noqa: F401
    from .locale import Locale  # noqa: F401


ChapterList = list["Chapter"]
ResolvedChapterList = list["ResolvedChapter"]
AssetList = list["AssetRef"]
LocaleMap = Dict[str, "Locale"]
VariantMap = Dict[str, Path]
ResultList = list["BuildResult"]
StrList = list[str]
PathList = list[Path]
