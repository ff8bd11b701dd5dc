"""Command-line interface for keysentry."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.logging import RichHandler

from keysentry.config import CheckConfig, ConfigurationError, parse_plugin_list, resolve_config
from keysentry.core.batch import BatchParser, InputValidationError
from keysentry.engine import CheckCancelled, CheckEngine
from keysentry.output import (
    console,
    format_json,
    print_error,
    render_batch,
    render_privacy,
    render_report,
)
from keysentry.prompt import EmptySecretError, read_secret

if TYPE_CHECKING:
    from keysentry.verification.base import KeyVerifier

app = typer.Typer(
    name="keysentry",
    help="Privacy-preserving credential exposure checker using k-anonymity.",
    no_args_is_help=True,
)

EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(
    config_path: Path | None,
    offline: bool | None = None,
    enable_plugins: str | None = None,
    disable_plugins: str | None = None,
) -> CheckConfig:
    try:
        config = resolve_config(config_path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_USAGE) from None

    if offline is not None:
        config.offline = offline
    if enable_plugins is not None:
        config.enabled_plugins = parse_plugin_list(enable_plugins)
    if disable_plugins is not None:
        config.disabled_plugins = parse_plugin_list(disable_plugins)
    return config


def _build_engine(config: CheckConfig, **kwargs) -> CheckEngine:
    try:
        return CheckEngine(config, **kwargs)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_USAGE) from None


def _confirm_verification(verifier: KeyVerifier) -> bool:
    console.print(
        f"\nVerification will send your key to: {verifier.endpoint}\n"
        f"Purpose: {verifier.description}"
    )
    if not sys.stdin.isatty():
        console.print("(skipped, non-interactive mode)")
        return False
    return typer.confirm("Proceed?", default=False, err=True)


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to keysentry.toml (default: auto-detect)"),
]
OfflineOption = Annotated[
    bool | None,
    typer.Option("--offline/--online", help="Local analysis only, skip every network check"),
]
JsonOption = Annotated[
    bool, typer.Option("--json", "-j", help="Write JSON to stdout (human report still goes to stderr)")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show every check and debug logs")]


@app.command()
def check(
    offline: OfflineOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    verify: Annotated[
        bool,
        typer.Option("--verify", help="Attempt active key verification (sends the key to its provider)"),
    ] = False,
    enable_plugins: Annotated[
        str | None,
        typer.Option("--enable-plugins", help="Comma-separated plugin ids to run exclusively"),
    ] = None,
    disable_plugins: Annotated[
        str | None,
        typer.Option("--disable-plugins", help="Comma-separated plugin ids to skip"),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Check a secret read from stdin (or a hidden prompt) for exposure."""
    configure_logging(verbose)
    config = _load_config(config_path, offline, enable_plugins, disable_plugins)
    config.verify = config.verify or verify

    engine = _build_engine(config, confirm_verification=_confirm_verification)

    secret = None
    try:
        secret = read_secret()
        if not config.offline:
            console.print("Checking breach data (k-anonymity)...")
        report = engine.check(secret)
    except (KeyboardInterrupt, CheckCancelled):
        engine.cancel()
        print_error("Cancelled")
        raise typer.Exit(code=EXIT_INTERRUPTED) from None
    except (EmptySecretError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_USAGE) from None
    finally:
        if secret is not None:
            secret.dispose()

    render_report(report, verbose=verbose)
    if json_output:
        typer.echo(format_json(report))

    raise typer.Exit(code=report.verdict.exit_code)


@app.command("check-batch")
def check_batch(
    file: Annotated[Path, typer.Argument(help="A .env or .json file of NAME=secret entries")],
    offline: OfflineOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-w", min=1, help="Entries checked concurrently (default: 1)"),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Check every secret in a .env or JSON file."""
    configure_logging(verbose)
    config = _load_config(config_path, offline)
    if workers is not None:
        config.batch_workers = workers

    engine = _build_engine(config)
    try:
        batch = BatchParser().parse(file)
    except (FileNotFoundError, InputValidationError) as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_USAGE) from None

    with batch:
        if not batch.entries:
            console.print("No secrets found in input file.")
            raise typer.Exit(code=0)
        console.print(f"Checking {len(batch)} secret(s)...")
        try:
            result = engine.check_batch(batch)
        except (KeyboardInterrupt, CheckCancelled):
            engine.cancel()
            print_error("Cancelled")
            raise typer.Exit(code=EXIT_INTERRUPTED) from None

    render_batch(result)
    if json_output:
        typer.echo(format_json(result))

    raise typer.Exit(code=result.exit_code)


@app.command()
def plugins(config_path: ConfigOption = None) -> None:
    """Show every check and what data it sends where."""
    config = _load_config(config_path)
    engine = _build_engine(config)
    render_privacy(engine.registry, engine.breach_checker)


@app.command()
def version() -> None:
    """Show keysentry version."""
    from keysentry import __version__

    console.print(f"keysentry [bold green]{__version__}[/bold green]")


if __name__ == "__main__":
    app()
