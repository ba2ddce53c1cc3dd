"""Run the external typesetting engine over a resolved document."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from polybook.errors import RenderFailure

from .document import Document
from .locale import Locale
from .types import StrList

logger = logging.getLogger(__name__)

MASTER_HEADER = "% Generated by polybook. Edit the chapter sources instead.\n"


def _tex_path(path: Path, root: Path) -> str:
    """Return ``path`` as the engine should see it from ``root``."""
    try:
        path = path.resolve().relative_to(root.resolve())
    except ValueError:
        path = path.resolve()
    return path.as_posix()


def write_master(
    document: Document,
    scratch: Path,
    root: Path,
    job: str,
    graphics_path: Iterable[Path] = (),
) -> Path:
    """Write the top-level document including every chapter in order.

    Args:
        document: Resolved document.
        scratch: Scratch directory receiving the file.
        root: Book root the engine runs in.
        job: Job name, also the file stem.
        graphics_path: Figure directories handed to ``\\graphicspath`` so
            the engine searches where validation did.

    Returns:
        Path of the written ``<job>.tex``.
    """
    scratch.mkdir(parents=True, exist_ok=True)
    lines = [MASTER_HEADER]
    if document.preamble is not None:
        lines.append(f"\\input{{{_tex_path(document.preamble, root)}}}\n")
    dirs = "".join(f"{{{_tex_path(path, root)}/}}" for path in graphics_path)
    if dirs:
        lines.append(f"\\ifdefined\\graphicspath\\graphicspath{{{dirs}}}\\fi\n")
    lines.append("\\begin{document}\n")
    for chapter in document.chapters:
        lines.append(f"\\input{{{_tex_path(chapter.path, root)}}}\n")
    lines.append("\\end{document}\n")

    master = scratch / f"{job}.tex"
    master.write_text("".join(lines), encoding="utf-8")
    logger.debug("Wrote %s with %d chapters", master, len(document.chapters))
    return master


def engine_command(locale: Locale, master: Path, scratch: Path, job: str) -> StrList:
    """Command line for one render pass."""
    return [
        locale.engine,
        *locale.engine_args,
        f"-output-directory={scratch.resolve()}",
        f"-jobname={job}",
        str(master.resolve()),
    ]


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def run_tool(
    command: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    pass_number: int | None = None,
) -> str:
    """Run an external tool and return its merged output.

    Raises:
        RenderFailure: On non-zero exit, timeout, or if the tool cannot be
            started. The captured output is kept verbatim.
    """
    logger.debug("Running %s in %s", " ".join(command), cwd)
    try:
        result = subprocess.run(
            list(command),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise RenderFailure(
            _decode(exc.output),
            command,
            pass_number,
            reason=f"{command[0]} timed out after {timeout}s",
        ) from exc
    except OSError as exc:
        raise RenderFailure("", command, pass_number, reason=str(exc)) from exc

    if result.returncode != 0:
        raise RenderFailure(
            result.stdout or "",
            command,
            pass_number,
            reason=f"{command[0]} exited with status {result.returncode}",
        )
    return result.stdout or ""


def render_environment(source_date_epoch: str | None = None) -> dict[str, str]:
    """Environment for engine runs, pinned for reproducible output."""
    env = dict(os.environ)
    if source_date_epoch is not None:
        env["SOURCE_DATE_EPOCH"] = source_date_epoch
        env["FORCE_SOURCE_DATE"] = "1"
    return env


def render_document(
    document: Document,
    locale: Locale,
    root: Path,
    scratch: Path,
    job: str,
    timeout: float | None = None,
    source_date_epoch: str | None = None,
    graphics_path: Iterable[Path] = (),
) -> Path:
    """Render ``document`` and return the artifact left in ``scratch``.

    The engine runs ``locale.passes`` times in a row over the same scratch
    directory so auxiliary files from one pass feed the next. The optional
    post-processing command runs afterwards.

    Raises:
        RenderFailure: If any invocation fails or no artifact is produced.
    """
    master = write_master(document, scratch, root, job, graphics_path)
    env = render_environment(source_date_epoch)
    command = engine_command(locale, master, scratch, job)

    for pass_number in range(1, locale.passes + 1):
        logger.info("Render pass %d/%d for '%s'", pass_number, locale.passes, locale.code)
        run_tool(command, root, env=env, timeout=timeout, pass_number=pass_number)

    producer = command
    output = ""
    if locale.postprocess:
        producer = [arg.format(job=job) for arg in locale.postprocess]
        logger.info("Post-processing '%s' with %s", locale.code, producer[0])
        output = run_tool(producer, scratch, env=env, timeout=timeout)

    artifact = scratch / f"{job}.{locale.artifact_ext}"
    if not artifact.is_file():
        log_file = scratch / f"{job}.log"
        log = output
        if not locale.postprocess and log_file.is_file():
            log = log_file.read_text(encoding="utf-8", errors="replace")
        raise RenderFailure(log, producer, reason=f"{artifact.name} was not produced")
    return artifact
