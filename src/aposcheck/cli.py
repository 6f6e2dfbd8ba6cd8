"""CLI interface for aposcheck."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from aposcheck.cleanup import lifecycle_ops
from aposcheck.client import ApostropheClient
from aposcheck.config import SETUP_HINT, AposcheckConfig, load_config, merge_cli_overrides
from aposcheck.errors import ConfigError
from aposcheck.lifecycle import ContentKind, ContentRef, RetireStatus, retire
from aposcheck.reporting import CheckReporter
from aposcheck.suites import SUITES, create_suite

app = typer.Typer(
    name="aposcheck",
    help="Run integration checks against an ApostropheCMS REST API.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from aposcheck import __version__

        console.print(f"aposcheck {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """aposcheck - exercise an ApostropheCMS site through its REST API."""
    pass


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _load(config_path: Optional[Path], **overrides: object) -> AposcheckConfig:
    config = load_config(config_path)
    config = merge_cli_overrides(config, **overrides)
    try:
        config.apostrophe.require_api_key()
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        console.print(SETUP_HINT, markup=False)
        raise typer.Exit(1) from exc
    return config


ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a .aposcheck.toml file."),
]
BaseUrlOption = Annotated[
    Optional[str],
    typer.Option("--base-url", help="API base URL (e.g. http://localhost:3000/api/v1)."),
]
ApiKeyOption = Annotated[
    Optional[str],
    typer.Option("--api-key", help="API key; overrides APOSTROPHE_API_KEY."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log HTTP requests and debug output."),
]


@app.command()
def run(
    suites: Annotated[
        Optional[list[str]],
        typer.Argument(help="Suites to run (default: all, or [run].suites from config)."),
    ] = None,
    base_url: BaseUrlOption = None,
    api_key: ApiKeyOption = None,
    pace: Annotated[
        Optional[float],
        typer.Option("--pace", help="Seconds to wait between API calls."),
    ] = None,
    image: Annotated[
        Optional[str],
        typer.Option("--image", help="Test image used by the upload checks."),
    ] = None,
    password_reset: Annotated[
        Optional[bool],
        typer.Option(
            "--password-reset/--no-password-reset",
            help="Also run the password reset checks.",
        ),
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Run check suites and print a pass/fail summary.

    Exits with status 1 when any check failed.
    """
    _setup_logging(verbose)
    config = _load(
        config_path,
        base_url=base_url,
        api_key=api_key,
        pace=pace,
        image=image,
        password_reset=password_reset,
    )

    selected = list(suites or config.run.suites or SUITES)
    unknown = [name for name in selected if name not in SUITES]
    if unknown:
        console.print(f"[red]Error:[/red] Unknown suite(s): {', '.join(unknown)}")
        console.print(f"Available: {', '.join(SUITES)}")
        raise typer.Exit(1)

    console.print(f"🔑 API Key: {config.apostrophe.masked_api_key}")
    console.print(f"🌐 Base URL: {config.apostrophe.base_url}")

    client = ApostropheClient(config.apostrophe)
    reporter = CheckReporter(console=console, pace_seconds=config.run.pace_seconds)
    for name in selected:
        create_suite(name, client, reporter, config).execute()

    summary = reporter.print_summary()
    if not summary.ok:
        raise typer.Exit(1)
    console.print("\n🎉 All checks passed")


@app.command(name="suites")
def list_suites() -> None:
    """List the available check suites."""
    table = Table(title="Check suites")
    table.add_column("Name", style="cyan")
    table.add_column("Title")
    for name, suite_cls in SUITES.items():
        table.add_row(name, suite_cls.title)
    console.print(table)


@app.command(name="retire")
def retire_cmd(
    raw_id: Annotated[str, typer.Argument(help="Document id, plain or doc:locale:mode.")],
    kind: Annotated[
        ContentKind,
        typer.Option("--kind", "-k", help="Kind of content the id refers to."),
    ],
    apos_doc_id: Annotated[
        Optional[str],
        typer.Option("--apos-doc-id", help="Locale/mode independent document id, if known."),
    ] = None,
    base_url: BaseUrlOption = None,
    api_key: ApiKeyOption = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Unpublish and delete one piece of content, trying every id form it may have.

    Exits with status 1 when the content could not be removed.
    """
    _setup_logging(verbose)
    config = _load(config_path, base_url=base_url, api_key=api_key)
    client = ApostropheClient(config.apostrophe)

    try:
        ref = ContentRef(raw_id=raw_id, kind=kind, apos_doc_id=apos_doc_id)
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] invalid content id {raw_id!r}")
        raise typer.Exit(1) from exc
    outcome = retire(ref, lifecycle_ops(client, kind))

    if outcome.status == RetireStatus.DELETED:
        console.print(f"[green]Deleted[/green] {kind} using id {outcome.candidate}")
    elif outcome.status == RetireStatus.ALREADY_ABSENT:
        console.print(f"[green]Already gone:[/green] {kind} {outcome.candidate}")
    else:
        console.print(f"[red]Failed[/red] to delete {kind} {raw_id}")
        for candidate, reason in zip(outcome.attempted, outcome.reasons, strict=False):
            console.print(f"  {candidate}: {reason}", markup=False)
        raise typer.Exit(1)
