"""Typer-based CLI that runs clang-tidy over a file or a source tree."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .config import load_tidy_config
from .exceptions import ConfigurationError, DuneTidyError, UsageError
from .logging import configure_logging
from .pipeline import USAGE, LintPipeline
from .report_manager import ReportManager

app = typer.Typer(
    help="dune-tidy - run clang-tidy with the DUNE check set over a file or directory",
    add_completion=False,
)
console = Console(stderr=True)

INTERRUPTED_EXIT_CODE = 130


def _fail(exc: DuneTidyError) -> None:
    if isinstance(exc, UsageError):
        console.print(str(exc), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}; exiting...", soft_wrap=True)
    raise typer.Exit(code=exc.exit_code)


@app.command()
def lint(
    paths: Optional[List[str]] = typer.Argument(
        None,
        metavar="COMPILE_COMMANDS TARGET",
        help="compile_commands.json for your build, then a .cc file or a directory to scan",
        show_default=False,
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="JSON or YAML config file"),
    tag: str = typer.Option("default", "--tag", help="Config entry to use when the config file holds a list"),
    products_dir: Optional[Path] = typer.Option(None, "--products-dir", help="UPS products directory providing clang"),
    clang_version: Optional[str] = typer.Option(None, "--clang-version", help="Use this clang version instead of the newest"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", help="Number of clang-tidy processes to run at once"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds before a single clang-tidy run is killed"),
    fail_fast: Optional[bool] = typer.Option(
        None, "--fail-fast/--keep-going", help="Stop at the first file clang-tidy could not be run on"
    ),
    summary: Optional[Path] = typer.Option(None, "--summary", help="Write a JSON summary of the run to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Apply clang-tidy to a single source file, or to every *.cc file under a directory."""

    arguments = list(paths or [])
    if len(arguments) != 2:
        _fail(UsageError(USAGE))

    configure_logging(verbose=verbose, console=console)

    try:
        settings = load_tidy_config(config, tag=tag).with_overrides(
            products_dir=products_dir,
            clang_version=clang_version,
            jobs=jobs,
            timeout_seconds=timeout,
            fail_fast=fail_fast,
        )
    except FileNotFoundError as exc:
        _fail(ConfigurationError(str(exc)))
    except DuneTidyError as exc:
        _fail(exc)

    pipeline = LintPipeline(config=settings)
    report = ReportManager()
    try:
        exit_code = pipeline.run(arguments, report)
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted; stopped running clang-tidy.[/yellow]")
        raise typer.Exit(code=INTERRUPTED_EXIT_CODE)

    if summary is not None:
        report.persist_summary(summary, pipeline.toolchain, exit_code)

    if pipeline.error is not None:
        _fail(pipeline.error)

    failures = [entry for entry in report.sections if entry["error"]]
    if failures:
        console.print(
            f"[yellow]clang-tidy could not be run on {len(failures)} of {len(report.sections)} file(s).[/yellow]"
        )
    raise typer.Exit(code=exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
