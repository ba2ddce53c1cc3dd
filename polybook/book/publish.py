"""Move rendered artifacts to the output directory."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from polybook.errors import PublishFailure

logger = logging.getLogger(__name__)


def publish_artifact(artifact: Path, output_dir: Path, file_name: str) -> Path:
    """Place ``artifact`` at ``output_dir / file_name``.

    The file is copied next to its destination and then renamed over any
    earlier artifact, so readers never see a partial file. The scratch copy
    is removed only once the destination is in place.

    Args:
        artifact: Rendered file in the scratch directory.
        output_dir: Directory receiving published artifacts.
        file_name: Name of the published file.

    Returns:
        Path of the published artifact.

    Raises:
        PublishFailure: If the destination cannot be written. The scratch
            artifact is left untouched.
    """
    destination = output_dir / file_name
    staging = output_dir / f".{file_name}.partial"

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(artifact, staging)
        os.replace(staging, destination)
    except OSError as exc:
        _discard(staging)
        raise PublishFailure(destination, artifact, exc.strerror or str(exc)) from exc

    artifact.unlink(missing_ok=True)
    logger.info("Published %s", destination)
    return destination


def _discard(path: Path) -> None:
    """Remove a leftover staging file, keeping the original error visible."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("Could not remove %s: %s", path, exc)
