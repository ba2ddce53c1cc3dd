"""Reference from a chapter to a file it needs at render time."""

from __future__ import annotations

from pathlib import Path

from attrs import define


@define(slots=True, frozen=True)
class AssetRef:
    """Asset referenced by chapter content.

    Attributes:
        chapter: Ordering key of the chapter holding the reference.
        kind: One of "figure", "listing" or "source".
        reference: Reference exactly as written in the source.
        path: Resolved file, or ``None`` when nothing matched.
    """

    chapter: str
    kind: str
    reference: str
    path: Path | None = None

    @property
    def resolved(self) -> bool:
        return self.path is not None
