"""Click-based CLI for vaultsync."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from vaultsync import __version__
from vaultsync.config import (
    BackendChoice,
    SyncConfiguration,
    ensure_config_exists,
    get_config_path,
    get_history_path,
    load_config,
    validate_config_file,
)
from vaultsync.errors import ConfigError, SyncError
from vaultsync.output.console import Console, create_console
from vaultsync.sync import AutoSyncScheduler, HostCapabilities, SyncHistory, SyncOrchestrator
from vaultsync.vault import LocalVault

console = create_console()

# The embedded backend needs a git toolkit supplied by a host application
_BACKEND_CHOICES = [choice.value for choice in BackendChoice if choice != BackendChoice.EMBEDDED]


def _load(
    vault: Optional[Path] = None,
    backend: Optional[str] = None,
    verbose: bool = False,
) -> tuple[SyncConfiguration, Console]:
    """Load configuration with command-line overrides, exiting on error."""
    try:
        config = load_config()
    except (FileNotFoundError, ConfigError) as e:
        console.error(str(e))
        sys.exit(1)
    if config.backend == BackendChoice.EMBEDDED and backend is None:
        console.error("The embedded backend needs a git toolkit from the host application; use native or content_api")
        sys.exit(1)

    updates: dict = {}
    if vault is not None:
        updates["vault_path"] = str(vault)
    if backend is not None:
        updates["backend"] = BackendChoice(backend)
    if verbose:
        updates["verbose"] = True
    if updates:
        config = config.model_copy(update=updates)

    out = create_console(verbose=config.verbose, colored=config.colored)
    return config, out


def _orchestrator(config: SyncConfiguration, out: Console) -> SyncOrchestrator:
    return SyncOrchestrator(
        config,
        LocalVault(config.vault_path),
        out,
        capabilities=HostCapabilities.detect(),
        history=SyncHistory(get_history_path(config)),
    )


def _common_options(func):
    func = click.option("--verbose", "-v", is_flag=True, help="Show detailed output")(func)
    func = click.option("--backend", "-b", type=click.Choice(_BACKEND_CHOICES), help="Override backend selection")(
        func
    )
    func = click.option(
        "--vault",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        help="Override vault directory",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="vaultsync")
def cli() -> None:
    """vaultsync - sync a document vault with a remote git repository.

    \b
    Backends:
      auto         native when git can run, otherwise content_api
      native       git binary (desktop)
      content_api  one-way overwrite through the hosting provider API
    """


@cli.command()
@_common_options
def sync(vault: Optional[Path], backend: Optional[str], verbose: bool) -> None:
    """Commit local changes, pull from the remote, then push.

    Steps: status, stage+commit, configure remote, fetch, pull, push.
    A failing step stops the sync; nothing is retried.
    """
    config, out = _load(vault, backend, verbose)
    result = _orchestrator(config, out).sync()
    out.print_sync_result(result)
    if not result.success:
        sys.exit(1)


@cli.command()
@_common_options
def status(vault: Optional[Path], backend: Optional[str], verbose: bool) -> None:
    """Show local changes and ahead/behind counts (no network access)."""
    config, out = _load(vault, backend, verbose)
    try:
        tree = _orchestrator(config, out).make_backend().status()
    except SyncError as e:
        out.error(str(e))
        sys.exit(1)
    out.print_status(tree)


@cli.command()
@_common_options
def check(vault: Optional[Path], backend: Optional[str], verbose: bool) -> None:
    """Fetch and report how far the vault is behind the remote."""
    config, out = _load(vault, backend, verbose)
    try:
        tree = _orchestrator(config, out).check_remote()
    except SyncError as e:
        out.error(str(e))
        sys.exit(1)

    if tree is None:
        out.info("Remote divergence is not tracked by this backend")
        return
    out.print_status(tree)


@cli.command()
@_common_options
def watch(vault: Optional[Path], backend: Optional[str], verbose: bool) -> None:
    """Check the remote at startup, then sync every sync_interval minutes.

    Runs until interrupted with Ctrl-C.
    """
    config, out = _load(vault, backend, verbose)
    scheduler = AutoSyncScheduler(_orchestrator(config, out), config, out)

    if scheduler.interval_minutes == 0:
        scheduler.on_load()
        out.info("Auto sync disabled (sync_interval is 0)")
        return

    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        scheduler.stop()
        out.info("Auto sync stopped")


@cli.command()
@click.option("--lines", "-n", default=50, help="Number of entries to show")
def log(lines: int) -> None:
    """Show recent sync attempts."""
    try:
        config = load_config()
    except (FileNotFoundError, ConfigError):
        config = None

    entries = SyncHistory(get_history_path(config)).tail(lines)
    if not entries:
        console.info("No sync history found. Run 'vaultsync sync' first.")
        return
    console.print("\n".join(entries), markup=False, highlight=False)


@cli.group()
def config() -> None:
    """Configuration file commands."""


@config.command("init")
def config_init() -> None:
    """Create the default configuration file."""
    path, created = ensure_config_exists()
    if created:
        console.success(f"Created configuration: {path}")
        console.info("Set remote_url and vault_path, then run 'vaultsync sync'.")
    else:
        console.warning(f"Configuration already exists: {path}")


@config.command("show")
def config_show() -> None:
    """Show the active configuration (token hidden)."""
    config_obj, out = _load()
    out.print_config_summary(str(get_config_path()), config_obj.remote_url, config_obj.backend.value)

    data = config_obj.model_dump(mode="json")
    if data.get("token"):
        data["token"] = "********"
    for key, value in data.items():
        out.print(f"  [cyan]{key}[/cyan]: {escape(str(value))}")


@config.command("check")
@click.argument("file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def config_check(file: Optional[Path]) -> None:
    """Validate a configuration file."""
    path = file or get_config_path()
    valid, errors = validate_config_file(path)
    if valid:
        console.success(f"Configuration is valid: {path}")
        return

    console.error(f"Configuration has problems: {path}")
    for error in errors:
        console.print(f"  • {error}", markup=False)
    sys.exit(1)


@config.command("path")
def config_path() -> None:
    """Print the configuration file path."""
    click.echo(str(get_config_path()))


if __name__ == "__main__":
    cli()
