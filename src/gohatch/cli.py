"""
gohatch.cli - Command Line Interface
====================================

This module provides the command-line interface for gohatch using Typer.
It collects options, builds a :class:`~gohatch.models.VariableContext`,
and hands it to :func:`~gohatch.generator.create_project`. Everything the
user sees (progress bar, summaries, error hints) is rendered here with Rich.

Architecture
------------
    app (main entry point)
    ├── new       - Create a new Go web project
    ├── manifest  - Show which files a project variant contains
    └── version   - Print the version

Usage Examples
--------------
    $ gohatch new myapp
    $ gohatch new myapp --module github.com/acme/myapp --database postgres --no-redis
    $ gohatch manifest --no-metrics

See Also
--------
- generator.py: Generation engine
- models.py: Variable context
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Annotated

import questionary
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from gohatch import __version__
from gohatch.errors import GohatchError, classify_error
from gohatch.generator import ProgressEvent, create_project
from gohatch.logging import configure_logging
from gohatch.manifest import select_manifest
from gohatch.models import DatabaseType, FeaturesConfig, VariableContext


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="gohatch",
    help="Scaffold Go web services with clean architecture.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold green]gohatch[/] version [cyan]{__version__}[/]")
        raise typer.Exit()


# =============================================================================
# Author Lookup
# =============================================================================


def read_git_config(key: str) -> str:
    """
    Read a value from the global git configuration.

    Returns an empty string if git is not installed or the key is unset.
    """
    try:
        result = subprocess.run(
            ["git", "config", "--global", key],
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return ""  # Git not installed
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def with_git_identity(context: VariableContext) -> VariableContext:
    """
    Fill an empty author name or email from the global git configuration.

    Values given on the command line or in a config file are kept.

    Raises
    ------
    pydantic.ValidationError
        If git holds an email address that fails validation.
    """
    author = context.author
    identity: dict[str, str] = {}
    if not author.name:
        identity["author_name"] = read_git_config("user.name")
    if not author.email:
        identity["author_email"] = read_git_config("user.email")
    if not any(identity.values()):
        return context

    values = context.model_dump(exclude={"project_name"})
    values.update(identity)
    return VariableContext.for_project(context.project_name, **values)


# =============================================================================
# Interactive Prompts
# =============================================================================


def prompt_database(default: DatabaseType) -> DatabaseType:
    """Interactively select the database backend."""
    result = questionary.select(
        "Which database?",
        choices=[questionary.Choice(title=db.value, value=db) for db in DatabaseType],
        default=default,
    ).ask()

    if result is None:
        raise typer.Abort()

    return result


def prompt_features(current: FeaturesConfig) -> FeaturesConfig:
    """Interactively toggle optional infrastructure."""
    selected = questionary.checkbox(
        "Include optional features:",
        choices=[
            questionary.Choice("Redis cache", value="redis", checked=current.redis),
            questionary.Choice("Prometheus metrics", value="metrics", checked=current.metrics),
            questionary.Choice("pprof profiling", value="pprof", checked=current.pprof),
        ],
    ).ask()

    if selected is None:
        raise typer.Abort()

    return FeaturesConfig(
        redis="redis" in selected,
        metrics="metrics" in selected,
        pprof="pprof" in selected,
    )


# =============================================================================
# Output Helpers
# =============================================================================


def print_next_steps(context: VariableContext, project_dir: Path) -> None:
    """Show the success panel with follow-up commands."""
    steps = [
        f"cd {project_dir}",
        "edit config/conf.yml (database credentials, JWT secret)",
        "go mod tidy",
        "wire ./logic",
        "go run ./cmd",
    ]
    lines = "\n".join(f"  {number}. {step}" for number, step in enumerate(steps, start=1))
    features = ", ".join(context.features.enabled_features) or "none"
    database = context.database_type
    reminders = ["Change the JWT secret before deploying"]
    if context.redis_enabled:
        reminders.append("Start a Redis server")
    if context.database_type is not DatabaseType.SQLITE:
        reminders.append(f"Create the '{context.project_name}' {context.database_type.value} database")

    console.print()
    console.print(
        Panel(
            f"[bold green]Project '{context.project_name}' created successfully![/]\n\n"
            f"[bold]Database:[/] {database.value} ({database.gorm_driver})\n"
            f"[bold]Features:[/] {features}\n\n"
            f"[bold]Next steps:[/]\n{lines}\n\n"
            f"[bold yellow]Don't forget to:[/]\n"
            + "\n".join(f"  - {item}" for item in reminders),
            title="[bold green]Success[/]",
            border_style="green",
        )
    )


def report_failure(error: Exception, project_name: str) -> None:
    """Print an error and a hint chosen by its category."""
    category = classify_error(error)
    rprint(f"[bold red]Error:[/] Failed to create project '{project_name}'")
    rprint(f"  {escape(str(error))}")
    rprint(f"[yellow]Hint:[/] {category.hint}")


# =============================================================================
# Main Application Callback
# =============================================================================


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]gohatch[/] - Go web project scaffolding.

    Generates a gin + gorm service with JWT auth, structured logging and
    optional Redis, Prometheus and pprof wiring.
    """


@app.command()
def version() -> None:
    """Print the version number of gohatch."""
    console.print(f"gohatch v{__version__}")


# =============================================================================
# New Command
# =============================================================================


@app.command()
def new(
    name: Annotated[str, typer.Argument(help="Name of the project to create")],
    module: Annotated[
        str | None,
        typer.Option("--module", "-m", help="Go module path (default: github.com/user/NAME)"),
    ] = None,
    author: Annotated[
        str | None,
        typer.Option("--author", "-a", help="Author name (default: git config user.name)"),
    ] = None,
    email: Annotated[
        str | None,
        typer.Option("--email", "-e", help="Author email (default: git config user.email)"),
    ] = None,
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="Short project description"),
    ] = None,
    database: Annotated[
        DatabaseType | None,
        typer.Option("--database", help="Database backend (default: mysql)"),
    ] = None,
    no_redis: Annotated[bool, typer.Option("--no-redis", help="Disable Redis cache")] = False,
    no_metrics: Annotated[
        bool, typer.Option("--no-metrics", help="Disable Prometheus metrics")
    ] = False,
    no_pprof: Annotated[bool, typer.Option("--no-pprof", help="Disable pprof profiling")] = False,
    target: Annotated[
        Path | None,
        typer.Option("--target", "-o", help="Directory to create the project in (default: .)"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="TOML file with default values"),
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option("--interactive", "-i", help="Prompt for database and features"),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write logs to this file"),
    ] = None,
) -> None:
    """
    Create a new Go web project.

    [bold]Examples:[/]

        gohatch new myapp

        gohatch new myapp --module github.com/acme/myapp --database postgres

        gohatch new myapp --no-redis --no-pprof --target ./services
    """
    configure_logging(verbose=verbose, log_file=log_file)

    overrides: dict[str, object] = {
        "module_path": module,
        "author_name": author,
        "author_email": email,
        "description": description,
        "database_type": database,
        # Only explicit --no-* flags override values from a config file
        "redis_enabled": False if no_redis else None,
        "metrics_enabled": False if no_metrics else None,
        "pprof_enabled": False if no_pprof else None,
    }

    try:
        if config_file is not None:
            context = VariableContext.from_toml(config_file, name, **overrides)
        else:
            context = VariableContext.for_project(name, **overrides)
        context = with_git_identity(context)

        if interactive:
            db = prompt_database(context.database_type)
            features = prompt_features(context.features)
            context = context.model_copy(
                update={
                    "database_type": db,
                    "redis_enabled": features.redis,
                    "metrics_enabled": features.metrics,
                    "pprof_enabled": features.pprof,
                }
            )
    except GohatchError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)
    except ValidationError as e:
        rprint(f"[red]Error:[/] Invalid option value\n{escape(str(e))}")
        raise typer.Exit(1)
    except (OSError, ValueError) as e:
        rprint(f"[red]Error:[/] Could not read config file: {escape(str(e))}")
        raise typer.Exit(1)

    target_dir = target if target is not None else Path.cwd()
    console.print(f"[bold cyan]Creating project {context.project_name}...[/]")

    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("files"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Writing files", total=None)

            def on_progress(event: ProgressEvent) -> None:
                progress.update(
                    task,
                    total=event.total,
                    completed=event.completed,
                    description=f"Writing {event.entry.destination}",
                )

            result = create_project(context, target_dir, on_progress=on_progress)
    except GohatchError as e:
        report_failure(e, context.project_name)
        raise typer.Exit(1)

    console.print(f"[green]✓[/] Wrote {len(result.files_created)} files to {result.project_path}")
    print_next_steps(context, result.project_path)


# =============================================================================
# Manifest Command
# =============================================================================


@app.command()
def manifest(
    no_redis: Annotated[bool, typer.Option("--no-redis", help="Without Redis cache")] = False,
    no_metrics: Annotated[
        bool, typer.Option("--no-metrics", help="Without Prometheus metrics")
    ] = False,
    no_pprof: Annotated[bool, typer.Option("--no-pprof", help="Without pprof profiling")] = False,
) -> None:
    """
    Show the files a project variant contains, in generation order.
    """
    context = VariableContext.for_project(
        "example",
        redis_enabled=not no_redis,
        metrics_enabled=not no_metrics,
        pprof_enabled=not no_pprof,
    )
    selected = select_manifest(context)

    table = Table(title="Project Manifest")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Template", style="cyan")
    table.add_column("Destination", style="green")
    table.add_column("Requires", style="yellow")

    for index, entry in enumerate(selected, start=1):
        table.add_row(
            str(index),
            entry.template,
            str(entry.destination),
            entry.requires or "",
        )

    console.print(table)


if __name__ == "__main__":
    app()
