"""RuleKit command-line interface."""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import default_templates_dir, load_kit_config
from .exceptions import RuleKitError
from .generator import DEFAULT_RULES_SUBDIR, RuleGenerator
from .install import INSTALL_TARGETS, install_rules
from .models import ProjectContext, WriteResult
from .stacks import available_architectures, available_stacks
from .tracing import configure_logging
from .versions import (
    available_versions,
    detect_stack_version,
    detect_version,
    format_version_name,
    map_version_to_range,
)

app = typer.Typer(
    name="rulekit",
    help="RuleKit: Stack-aware rule scaffolding for AI coding assistants",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _get_version_string() -> str:
    """Get version string from package metadata."""
    try:
        return get_version("rulekit")
    except PackageNotFoundError:
        return f"{__version__} (development)"


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"RuleKit version {_get_version_string()}")
        raise typer.Exit


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """RuleKit: Stack-aware rule scaffolding for AI coding assistants."""


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def _relative(path: Path, base: Path) -> str:
    try:
        return str(path.relative_to(base))
    except ValueError:
        return str(path)


@app.command()
def generate(
    stack: str | None = typer.Option(
        None,
        "--stack",
        "-s",
        help="Stack to generate rules for (prompted if omitted)",
    ),
    architecture: str | None = typer.Option(
        None,
        "--architecture",
        "-a",
        help="Architecture overlay, e.g. atomic or app",
    ),
    state_management: str | None = typer.Option(
        None,
        "--state-management",
        help="State management library overlay (react)",
    ),
    signals: bool = typer.Option(
        False,
        "--signals",
        help="Include signals rules (angular)",
    ),
    stack_version: str | None = typer.Option(
        None,
        "--stack-version",
        help="Framework version, overrides manifest detection",
    ),
    project_path: str = typer.Option(
        ".",
        "--project-path",
        "-p",
        help="Project location relative to the repository root",
    ),
    root: Path = typer.Option(
        Path("."),
        "--root",
        help="Repository root the rules are written into",
    ),
    templates: Path | None = typer.Option(
        None,
        "--templates",
        envvar="RULEKIT_TEMPLATES_DIR",
        help="Template library directory (defaults to the bundled one)",
    ),
    include_global: bool = typer.Option(
        True,
        "--global/--no-global",
        help="Include global rules",
    ),
    mcp_tool: list[str] | None = typer.Option(
        None,
        "--mcp-tool",
        help="MCP tool whose rules are included (repeatable)",
    ),
    mirror_docs: bool = typer.Option(
        False,
        "--mirror-docs",
        help="Also write rule bodies as plain docs under docs/",
    ),
    backup: bool = typer.Option(
        False,
        "--backup",
        help="Back up an existing rules directory first",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show the rules that would be written",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Trace every pipeline step to stderr",
    ),
) -> None:
    """Generate stack-specific rules into the project's rules directory."""
    configure_logging(debug)
    templates_dir = templates or default_templates_dir()
    kit_config = load_kit_config(templates_dir)
    stacks = available_stacks(templates_dir, kit_config)

    if stack is None:
        stack = typer.prompt(f"Stack ({', '.join(stacks)})")
    if stack not in stacks:
        raise _fail(f"Unknown stack: {stack}")

    if stack_version:
        detected = detect_version(stack_version)
    else:
        detected = detect_stack_version(stack, root / project_path, debug=debug)
    version_range = map_version_to_range(stack, detected, kit_config)

    context = ProjectContext(
        stack=stack,
        project_path=project_path,
        detected_version=detected,
        version_range=version_range,
        architecture=architecture,
        state_management=state_management,
        signals=signals,
        debug=debug,
    )
    generator = RuleGenerator(context, templates_dir, kit_config)
    rules_dir = root / DEFAULT_RULES_SUBDIR

    try:
        report = generator.plan(
            rules_dir,
            include_global=include_global,
            mcp_tools=mcp_tool or [],
        )
    except RuleKitError as e:
        raise _fail(str(e)) from e

    if detected:
        version_name = format_version_name(stack, version_range, kit_config)
        console.print(
            f"[blue]Detected[/blue] {stack} {detected}"
            + (f" ({version_name})" if version_name else ""),
        )
    for warning in report.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")

    if dry_run:
        table = Table(title=f"Planned rules for {stack}")
        table.add_column("Tier", style="cyan")
        table.add_column("Template", style="white")
        table.add_column("Destination", style="green")
        for rule in report.rules:
            table.add_row(
                rule.tier,
                _relative(rule.source, templates_dir),
                _relative(rule.destination, root),
            )
        console.print(table)
        console.print(f"{len(report.rules)} rules would be written")
        return

    docs_dir = root / "docs" if mirror_docs else None
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Generating rules...", total=len(report.rules))
        generator.execute(
            report,
            docs_dir=docs_dir,
            backup=backup,
            progress=lambda _rule: progress.advance(task),
        )

    if report.backup_path is not None:
        console.print(f"[blue]Backup[/blue] {report.backup_path}")
    console.print(f"[green]✓[/green] {len(report.rules)} rules written to {rules_dir}")
    for tier, count in report.count_by_tier().items():
        console.print(f"  • {tier}: {count}")
    if report.docs_written:
        console.print(f"  • docs: {report.docs_written}")


@app.command()
def install(
    target: str | None = typer.Option(
        None,
        "--target",
        "--ide",
        "-t",
        help=f"Install target ({', '.join(INSTALL_TARGETS)})",
    ),
    src: Path | None = typer.Option(
        None,
        "--src",
        help="Source rules directory (default: rules)",
    ),
    project_dir: Path | None = typer.Option(
        None,
        "--project-dir",
        help="Project directory (default: current directory)",
    ),
    no_backup: bool = typer.Option(
        False,
        "--no-backup",
        help="Do not keep .bak copies of replaced files",
    ),
) -> None:
    """Install a rules directory into an IDE or agent layout."""
    if target is None:
        raise _fail(f"No target given, choose one of: {', '.join(INSTALL_TARGETS)}")

    try:
        report = install_rules(
            target,
            project_dir or Path.cwd(),
            src=src,
            backup=not no_backup,
        )
    except RuleKitError as e:
        raise _fail(str(e)) from e

    console.print(
        f"[green]✓[/green] Installed rules for {INSTALL_TARGETS[target].name} "
        f"to {report.destination}",
    )
    for result in WriteResult:
        count = report.count(result)
        if count:
            console.print(f"  • {result.value}: {count}")
    for backup_path in report.backups:
        console.print(f"  [dim]Backup {backup_path}[/dim]")


@app.command("stacks")
def list_stacks(
    templates: Path | None = typer.Option(
        None,
        "--templates",
        envvar="RULEKIT_TEMPLATES_DIR",
        help="Template library directory (defaults to the bundled one)",
    ),
) -> None:
    """List available stacks with their architectures and versions."""
    templates_dir = templates or default_templates_dir()
    kit_config = load_kit_config(templates_dir)

    table = Table(title="RuleKit Stacks")
    table.add_column("Stack", style="cyan")
    table.add_column("Architectures", style="green")
    table.add_column("Versions", style="white")
    for name in available_stacks(templates_dir, kit_config):
        architectures = available_architectures(name, templates_dir, kit_config)
        table.add_row(
            name,
            ", ".join(key for key, _ in architectures) or "-",
            ", ".join(available_versions(name, kit_config)) or "-",
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show RuleKit version."""
    console.print(f"RuleKit version {_get_version_string()}")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
