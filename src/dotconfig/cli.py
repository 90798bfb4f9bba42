"""Command-line interface for dotconfig."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Iterable

import tomli_w
import typer
from rich.console import Console
from rich.table import Table

from . import log
from .config import DEFAULT_CONFIG, DEFAULT_CONFIG_FILENAME, Config, ConfigError, load_config, resolve_repo_root
from .errors import ConflictError, DotconfigError
from .git import GitRepository
from .manager import DotconfigManager
from .models import InstallStatus, LinkResult, LinkState, LinkStatus, SetupReport, UpdateStatus
from .notifier import UpdateCheckThrottle, collect_update_messages, schedule_update_check
from .update import run_update

app = typer.Typer(help="Link, patch and install a dotconfig checkout into your home directory")
console = Console()

RepoOption = typer.Option(
    None,
    "--repo",
    "-r",
    help="Path to the dotconfig repository (default: $DOTCONFIG_DIR, the ~/.config link target, or cwd)",
)
ConfigOption = typer.Option(None, "--config", "-c", help="Path to dotconfig.toml")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Show external commands as they run")


def _load_manager(config: Path | None, repo: Path | None) -> DotconfigManager:
    return DotconfigManager(load_config(config, repo=repo))


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, PermissionError):
        log.error("Permission denied. Re-run the command with elevated privileges (e.g. `sudo`).")
        raise typer.Exit(code=1)
    if isinstance(exc, ConflictError):
        log.error(str(exc))
        log.error("Remove it manually and re-run this command.")
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        message = str(exc)
        log.error(message)
        if "Expected to find" in message:
            log.warn("Point --config at the directory containing dotconfig.toml, or at the file itself.")
        raise typer.Exit(code=1)
    if isinstance(exc, DotconfigError):
        log.error(str(exc))
        raise typer.Exit(code=1)
    raise exc


def _format_link_results(results: Iterable[LinkResult]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Target", overflow="fold")
    table.add_column("Action", no_wrap=True, min_width=20)
    table.add_column("Backup", overflow="fold")

    for result in results:
        table.add_row(
            str(result.target),
            result.action.value,
            str(result.backup) if result.backup else (result.details or ""),
        )

    console.print(table)


def _format_setup_report(report: SetupReport) -> None:
    _format_link_results(report.links)
    console.print(f"zshrc: {report.patch.action.value} ({report.patch.path})", markup=False)

    install = report.install
    line = f"packages: {install.status.value}"
    if install.reason:
        line = f"{line} ({install.reason})"
    style = "yellow" if install.status is InstallStatus.COMPLETED_WITH_ERRORS else None
    console.print(line, style=style, markup=False)


def _format_status(entries: Iterable[LinkStatus]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Target", overflow="fold")
    table.add_column("State", no_wrap=True, min_width=9)
    table.add_column("Details", overflow="fold")

    status_styles = {
        LinkState.LINKED: "green",
        LinkState.MISSING: "yellow",
        LinkState.UNMANAGED: "yellow",
        LinkState.CONFLICT: "red",
        LinkState.SKIPPED: "dim",
    }

    for entry in entries:
        style = status_styles.get(entry.state, "white")
        table.add_row(
            str(entry.target),
            f"[{style}]{entry.state.value}[/{style}]",
            entry.details or "",
        )

    console.print(table)


def _render_init_config() -> str:
    buffer = io.StringIO()
    buffer.write("# dotconfig configuration\n\n")
    buffer.write(tomli_w.dumps(DEFAULT_CONFIG))
    return buffer.getvalue()


def _run_setup(manager: DotconfigManager) -> SetupReport:
    report = manager.setup()
    _format_setup_report(report)
    log.info("Setup complete!")
    return report


@app.command()
def init(
    repo: Path | None = RepoOption,
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to write the configuration file"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Write a starter dotconfig.toml describing the default layout."""

    try:
        config_path = config or resolve_repo_root(repo) / DEFAULT_CONFIG_FILENAME
        if config_path.is_dir():
            config_path = config_path / DEFAULT_CONFIG_FILENAME
        if config_path.exists() and not force:
            log.error(f"Configuration '{config_path}' already exists. Use --force to overwrite.")
            raise typer.Exit(code=1)

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_render_init_config(), encoding="utf-8")
        log.info(f"Created '{config_path}'.")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def setup(
    repo: Path | None = RepoOption,
    config: Path | None = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Link config directories, patch ~/.zshrc and install packages."""

    log.set_verbose(verbose)
    try:
        manager = _load_manager(config, repo)
        _run_setup(manager)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def status(
    repo: Path | None = RepoOption,
    config: Path | None = ConfigOption,
) -> None:
    """Show every configured link and its current state."""

    try:
        manager = _load_manager(config, repo)
        entries = manager.status()
        _format_status(entries)
        if any(entry.state in (LinkState.MISSING, LinkState.UNMANAGED, LinkState.CONFLICT) for entry in entries):
            log.warn("Some links are not in place. Run 'dotconfig setup' to fix them.")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def update(
    repo: Path | None = RepoOption,
    config: Path | None = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Pull the latest dotconfig from its remote, asking before each step."""

    log.set_verbose(verbose)
    try:
        loaded = load_config(config, repo=repo)
        settings = loaded.settings
        result = run_update(
            GitRepository(settings.repo_root),
            remote=settings.remote,
            branch=settings.branch,
            confirm=lambda question: typer.confirm(question, default=False),
            rerun_setup=lambda: _run_setup(DotconfigManager(load_config(config, repo=repo))),
        )
        if result.status is UpdateStatus.SKIPPED:
            log.warn("git is required for updates")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def _background_argv(loaded: Config, config: Path | None) -> list[str]:
    argv = [
        sys.executable,
        "-m",
        "dotconfig",
        "check-updates",
        "--foreground",
        "--repo",
        str(loaded.settings.repo_root),
    ]
    if config is not None:
        argv.extend(["--config", str(config)])
    return argv


@app.command("check-updates")
def check_updates(
    repo: Path | None = RepoOption,
    config: Path | None = ConfigOption,
    foreground: bool = typer.Option(False, "--foreground", help="Run the checks now instead of in the background"),
    force: bool = typer.Option(False, "--force", help="Ignore the once-a-day throttle"),
    verbose: bool = VerboseOption,
) -> None:
    """Check for dotconfig and package updates at most once a day."""

    log.set_verbose(verbose)
    try:
        loaded = load_config(config, repo=repo)
        settings = loaded.settings
        git_repo = GitRepository(settings.repo_root)

        if foreground:
            messages = collect_update_messages(
                git_repo,
                remote=settings.remote,
                branch=settings.branch,
                tool=loaded.packages.tool,
            )
            for message in messages:
                console.print(message, style="bold yellow", markup=False)
            return

        throttle = UpdateCheckThrottle(settings.cache_file, settings.check_interval)
        schedule_update_check(throttle, git_repo, _background_argv(loaded, config), force=force)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
