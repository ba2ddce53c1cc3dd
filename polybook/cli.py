import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional, Tuple

import click
from dotenv import load_dotenv

from polybook import serialize
from polybook.book import build as pipeline
from polybook.book.discover import discover_chapters
from polybook.book.manifest import DEFAULT_MANIFEST, Manifest, load_manifest
from polybook.book.resolve import resolve_document
from polybook.errors import BuildError

try:
    __version__ = version("polybook")
except PackageNotFoundError:
    __version__ = "0.0.1-dev"


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.option("--trace/--no-trace", default=False)
@click.option(
    "--log-file",
    type=click.Path(file_okay=True, dir_okay=False),
    envvar="POLYBOOK_LOG_FILE",
)
@click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(file_okay=True, dir_okay=False),
    envvar="POLYBOOK_MANIFEST",
    default=DEFAULT_MANIFEST,
    show_default=True,
    help="Book manifest describing chapters and locales.",
)
@click.version_option(__version__, prog_name="polybook")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    trace: bool,
    log_file: Optional[str] = None,
    manifest_path: str = DEFAULT_MANIFEST,
) -> None:
    """Configure logging and load environment variables.

    Args:
        ctx: Click context object.
        debug: Toggle debug logging.
        trace: Toggle trace logging.
        log_file: Optional path to the log file.
        manifest_path: Location of the book manifest.
    """
    if trace:
        level = 1
    elif debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        filename=log_file,
        level=level,
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if trace:
        logging.debug("Trace mode is on")
    if debug:
        logging.debug("Debug mode is on")
    load_dotenv()

    # The manifest is loaded lazily so ``--help`` works anywhere.
    ctx.ensure_object(dict)
    ctx.obj["manifest_path"] = Path(manifest_path)


def _manifest(ctx: click.Context) -> Manifest:
    """Load the manifest selected on the command group.

    Throws:
        click.ClickException: If the manifest cannot be loaded.
    """
    if "manifest" not in ctx.obj:
        try:
            ctx.obj["manifest"] = load_manifest(ctx.obj["manifest_path"])
        except BuildError as exc:
            raise click.ClickException(str(exc)) from exc
    return ctx.obj["manifest"]


def _report_results(
    results: list, report_path: Optional[str], as_list: bool = False
) -> None:
    """Print each result and optionally save them all to ``report_path``."""
    for result in results:
        if result.success:
            click.echo(f"{result.locale}: {result.artifact}")
        else:
            # Engine logs go out untouched so the offending line is visible.
            click.echo(
                f"{result.locale}: failed during {result.stage}\n{result.diagnostics}",
                err=True,
            )

    if report_path:
        serialize.write(results if as_list else results[0], Path(report_path))


timeout_option = click.option(
    "--timeout",
    type=float,
    envvar="POLYBOOK_RENDER_TIMEOUT",
    default=None,
    help="Seconds allowed for each engine invocation.",
)
report_option = click.option(
    "--report",
    "report_path",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Write the build result to FILE (.json or .yaml).",
)


@cli.command()
@click.argument("locale", required=False)
@timeout_option
@report_option
@click.pass_context
def build(
    ctx: click.Context,
    locale: Optional[str] = None,
    timeout: Optional[float] = None,
    report_path: Optional[str] = None,
) -> None:
    """Build the artifact for LOCALE, or for the default locale.

    Args:
        ctx: Click context object.
        locale: Locale code to build.
        timeout: Limit in seconds for each engine invocation.
        report_path: Optional file receiving the build result.
    """
    result = pipeline.build_locale(_manifest(ctx), locale, timeout=timeout)
    _report_results([result], report_path)
    if not result.success:
        ctx.exit(1)


@cli.command("build-all")
@click.option(
    "--jobs",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of locales built at the same time.",
)
@timeout_option
@report_option
@click.pass_context
def build_all(
    ctx: click.Context,
    jobs: int = 1,
    timeout: Optional[float] = None,
    report_path: Optional[str] = None,
) -> None:
    """Build every locale registered in the manifest."""

    results = pipeline.build_all(_manifest(ctx), jobs=jobs, timeout=timeout)
    _report_results(results, report_path, as_list=True)
    if not all(result.success for result in results):
        ctx.exit(1)


@cli.command()
@click.argument("locale", required=False)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(serialize.FORMATS),
    default="json",
    help="Output format.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Write the plan to FILE instead of the console.",
)
@click.pass_context
def plan(
    ctx: click.Context,
    locale: Optional[str] = None,
    output_format: str = "json",
    output_path: Optional[str] = None,
) -> None:
    """Show the chapters LOCALE would include, without rendering.

    Args:
        ctx: Click context object.
        locale: Locale code to resolve.
        output_format: Format of the printed plan.
        output_path: Optional file receiving the plan.
    """
    manifest = _manifest(ctx)
    try:
        chapters = discover_chapters(manifest.chapters_dir, manifest.include)
        document = resolve_document(manifest, locale, chapters)
    except BuildError as exc:
        raise click.ClickException(str(exc)) from exc

    content = serialize.dumps(document, output_format)
    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
    else:
        click.echo(content)


@cli.command()
@click.pass_context
def locales(ctx: click.Context) -> None:
    """List registered locales and how much of the book each translates."""

    manifest = _manifest(ctx)
    try:
        report = pipeline.coverage(manifest)
    except BuildError as exc:
        raise click.ClickException(str(exc)) from exc

    for code, (translated, total) in report.items():
        marker = "*" if code == manifest.default_locale else " "
        click.echo(f"{marker} {code:<8} {translated:>3}/{total} chapters translated")


@cli.command()
@click.argument("locale_codes", nargs=-1)
@click.pass_context
def clean(ctx: click.Context, locale_codes: Tuple[str, ...]) -> None:
    """Remove scratch directories of LOCALE_CODES, or of every locale."""

    try:
        cleaned = pipeline.clean(_manifest(ctx), locale_codes)
    except BuildError as exc:
        raise click.ClickException(str(exc)) from exc

    for code in cleaned:
        click.echo(f"Cleaned {code}")
