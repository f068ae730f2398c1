"""
GIT ASSIST CLI: The Interface

Modes:
  1. gitassist menu                 (pick steps from the numbered menu)
  2. gitassist menu --loop          (keep returning to the menu until 'q')
  3. gitassist ship                 (stage, commit, push)
  4. gitassist prune                (delete remote branches merged into base)
  5. gitassist run-app              (JVM options, build, run newest jar)

Plus utilities:
  - gitassist status        (check tools + config)
  - gitassist init          (bootstrap .gitassist in a repo)
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table

from gitassist.audit_logger import SessionLog
from gitassist.config_loader import GitAssistConfig, load_config
from gitassist.controller import Controller
from gitassist.errors import ConfigurationError
from gitassist.identity import BANNER, __codename__, __tagline__, __version__
from gitassist.prompts import ConsolePrompter
from gitassist.state import StepResult
from gitassist.steps import StepContext
from gitassist.steps.launcher import AppLauncher
from gitassist.workspace import GitWorkspace
from gitassist.workspace.tools import BuildTool, JavaRunner, LineEditor, ScanTool

load_dotenv()

app = typer.Typer(
    name="gitassist",
    help=f"{__codename__}: {__tagline__}\nGated change submission for git projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__codename__} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    pass


# ---------------------------------------------------------------------------
# Banner
# ---------------------------------------------------------------------------


def _print_banner():
    console.print(f"[bright_blue]{BANNER}[/]")
    console.print(f"  [dim]v{__version__} · {__tagline__}[/]\n")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def menu(
    repo: Path = typer.Option(Path("."), "--repo", "-r", help="Path to the git repository"),
    select: Optional[str] = typer.Option(None, "--select", "-s", help="Selection line, e.g. '2 3 4' or 'a'"),
    loop: bool = typer.Option(False, "--loop", "-l", help="Return to the menu after each round"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Pick steps from the numbered menu."""
    _print_banner()
    _configure_logging(verbose)
    _run_session(_require_git_repo(repo), selection=select, loop=loop)


@app.command()
def ship(
    repo: Path = typer.Option(Path("."), "--repo", "-r", help="Path to the git repository"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Stage, commit and push in one go."""
    _print_banner()
    _configure_logging(verbose)
    _run_session(_require_git_repo(repo), selection="3 4")


@app.command()
def prune(
    repo: Path = typer.Option(Path("."), "--repo", "-r", help="Path to the git repository"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Delete remote branches already merged into the base branch."""
    _print_banner()
    _configure_logging(verbose)
    _run_session(_require_git_repo(repo), selection="5")


@app.command("run-app")
def run_app(
    repo: Path = typer.Option(Path("."), "--repo", "-r", help="Path to the project"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Load JAVA_OPTS, build, and run the newest jar."""
    _print_banner()
    _configure_logging(verbose)

    repo = repo.resolve()
    ctx = _build_context(repo)
    try:
        outcome = Controller(ctx).run_steps([AppLauncher()], label="run-app")
    finally:
        ctx.log.close()
    _finish(outcome)


@app.command()
def status(
    repo: Path = typer.Option(Path("."), "--repo", "-r"),
):
    """Check GIT ASSIST configuration and readiness."""
    _print_banner()

    repo = repo.resolve()
    config = _load_config_or_exit(repo)

    tools_table = Table(title="System Tools", border_style="cyan")
    tools_table.add_column("Tool")
    tools_table.add_column("Status")

    editor = config.tools.resolve_editor().split()[0]
    for tool in ["git", config.tools.build_command[0], config.tools.scan_command[0],
                 config.tools.java_command[0], editor]:
        found = shutil.which(tool)
        s = f"[green]✓ {found}[/]" if found else "[dim]✗ Not found[/]"
        tools_table.add_row(tool, s)

    console.print(tools_table)

    console.print(f"\n[bold]Ticket:[/]          {config.ticket.prefix}-###")
    console.print(f"[bold]Remote:[/]          {config.branches.remote}")
    console.print(f"[bold]Protected:[/]       {', '.join(config.branches.protected)}")
    console.print(f"[bold]Base preference:[/] {', '.join(config.branches.base_preference)}")

    console.print(f"\n[bold]Reports:[/]")
    console.print(f"  Log:      {config.reports.log_file}")
    console.print(f"  JSON:     {config.reports.json_report}")
    console.print(f"  Markdown: {config.reports.markdown_report}")


@app.command()
def init(
    repo: Optional[Path] = typer.Argument(None, help="Path to repository"),
):
    """Initialize .gitassist directory in a repository."""
    _print_banner()

    repo = (repo or Path.cwd()).resolve()
    ga_dir = repo / ".gitassist"
    ga_dir.mkdir(exist_ok=True)

    config_path = ga_dir / "config.yaml"
    if not config_path.exists():
        config_path.write_text("""# GIT ASSIST repo-level config overrides
# These merge with the built-in defaults.

# Ticket prefix expected in branch names and commit messages:
# ticket:
#   prefix: FINDATA

# Branches that need confirmation before a direct push:
# branches:
#   protected: [main, master, develop, dev]

# Build and scan commands:
# tools:
#   build_command: [mvn, clean, install]
#   scan_command: [snyk, test, --json]
#   editor: vim
""")

    config = _load_config_or_exit(repo)
    gitignore = repo / ".gitignore"
    ignore_entries = [
        config.reports.log_file,
        config.reports.json_report,
        config.reports.markdown_report,
    ]
    if gitignore.exists():
        content = gitignore.read_text()
        additions = [e for e in ignore_entries if e not in content.splitlines()]
        if additions:
            with open(gitignore, "a") as f:
                f.write("\n# GIT ASSIST\n")
                for e in additions:
                    f.write(f"{e}\n")
    else:
        gitignore.write_text("# GIT ASSIST\n" + "\n".join(ignore_entries) + "\n")

    console.print(f"[green]✅ Initialized GIT ASSIST in {ga_dir}[/]")
    console.print(f"  Config:  {config_path}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _run_session(repo: Path, selection: str | None = None, loop: bool = False) -> None:
    ctx = _build_context(repo)
    try:
        outcome = Controller(ctx, loop=loop).run(selection)
    finally:
        ctx.log.close()
    _finish(outcome)


def _build_context(repo: Path) -> StepContext:
    config = _load_config_or_exit(repo)
    return StepContext(
        repo_path=repo,
        config=config,
        log=SessionLog(repo / config.reports.log_file, console=console),
        prompter=ConsolePrompter(console),
        vcs=GitWorkspace(repo),
        builder=BuildTool(config.tools.build_command, repo),
        scanner=ScanTool(config.tools.scan_command, repo),
        editor=LineEditor(config.tools.resolve_editor()),
        app_runner=JavaRunner(config.tools.java_command, repo),
    )


def _load_config_or_exit(repo: Path) -> GitAssistConfig:
    try:
        return load_config(repo)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)


def _require_git_repo(repo: Path) -> Path:
    repo = repo.resolve()
    if not repo.exists():
        console.print(f"[red]Repository not found: {repo}[/]")
        raise typer.Exit(1)
    if not (repo / ".git").exists():
        console.print(f"[red]Not a git repository: {repo}[/]")
        raise typer.Exit(1)
    return repo


def _finish(outcome: StepResult) -> None:
    color = {"success": "green", "finished": "green", "aborted": "yellow"}.get(outcome.status, "red")
    console.print(f"\n[bold {color}]Status: {outcome.status}[/]")
    if outcome.status in ("aborted", "fatal"):
        raise typer.Exit(1)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    level = "DEBUG" if verbose else "WARNING"
    fmt = "{time:HH:mm:ss} | {level:<7} | {message}" if verbose else "{message}"
    logger.add(
        lambda msg: console.print(msg, style="dim", markup=False, highlight=False, end=""),
        level=level,
        format=fmt,
        filter=lambda record: "session" not in record["extra"],
    )


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
