"""Serialize build plans and results to JSON or YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import attrs
import orjson
import yaml  # type: ignore[import-untyped]

FORMATS = ("json", "yaml")


def _plain(inst: Any, field: Any, value: Any) -> Any:
    """Replace values the encoders do not know with plain ones."""
    if isinstance(value, Path):
        return value.as_posix()
    return value


def to_data(obj: Any) -> Any:
    """Convert attrs instances (or lists of them) to plain structures.

    Args:
        obj: An attrs instance, a list of them, or a plain value.

    Returns:
        Dictionaries, lists and scalars only.
    """
    if attrs.has(type(obj)):
        return attrs.asdict(obj, value_serializer=_plain)
    if isinstance(obj, (list, tuple)):
        return [to_data(item) for item in obj]
    if isinstance(obj, dict):
        return {key: to_data(value) for key, value in obj.items()}
    return _plain(None, None, obj)


def dumps(obj: Any, output_format: str = "json") -> str:
    """Serialize ``obj`` in ``output_format``.

    Args:
        obj: Data to serialize; attrs instances are converted first.
        output_format: Either ``"json"`` or ``"yaml"``.

    Returns:
        Serialized text.
    """
    data = to_data(obj)
    if output_format == "json":
        return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()
    if output_format == "yaml":
        return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
    raise ValueError(f"Unsupported format: {output_format}")


def write(obj: Any, path: Path) -> None:
    """Write ``obj`` to ``path``; ``.yaml``/``.yml`` selects YAML, else JSON."""
    output_format = "yaml" if path.suffix in (".yaml", ".yml") else "json"
    path.write_text(dumps(obj, output_format), encoding="utf-8")
