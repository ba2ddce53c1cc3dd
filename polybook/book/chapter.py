"""Chapter with its canonical source and locale variants."""

from __future__ import annotations

from pathlib import Path

from attrs import define, field

from .types import VariantMap


@define(slots=True)
class Chapter:
    """One ordered unit of book content.

    Attributes:
        key: Numeric ordering prefix as written in the file name, e.g. "001".
        name: Base name following the prefix, e.g. "how-to-dive".
        canonical: Path of the original, untranslated source file.
        variants: Mapping of locale suffix to translated source file.
    """

    key: str
    name: str
    canonical: Path
    variants: VariantMap = field(factory=dict, repr=False)

    @property
    def order(self) -> int:
        """Integer value of the ordering key."""
        return int(self.key)

    @property
    def stem(self) -> str:
        """File stem shared by every variant, e.g. "001-how-to-dive"."""
        return f"{self.key}-{self.name}"

    def variant_for(self, suffix: str | None) -> Path | None:
        """Return the source translated for ``suffix`` if one exists."""
        if suffix is None:
            return None
        return self.variants.get(suffix)
