"""claude-cmd command line interface."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, TypeVar

import typer
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from claude_cmd import __version__
from claude_cmd.app import CommandServices, create_services
from claude_cmd.config import Settings, get_settings
from claude_cmd.constants import KNOWN_LANGUAGES
from claude_cmd.core.exceptions import ClaudeCmdError
from claude_cmd.core.logging.logger import configure_logging
from claude_cmd.interaction import ConsoleConfirmer, StaticConfirmer
from claude_cmd.status import SystemStatus
from claude_cmd.types import Command, EnrichedCommand
from claude_cmd.ui.console import console, error_console

T = TypeVar("T")

app = typer.Typer(
    help="Install and manage Claude slash commands from the shared command repository.",
    add_completion=False,
    no_args_is_help=True,
)


def build_services(settings: Settings, *, assume_yes: bool = False) -> CommandServices:
    confirmer = StaticConfirmer(True) if assume_yes else ConsoleConfirmer(console)
    return create_services(settings, confirmer=confirmer)


def _ctx_object(ctx: typer.Context) -> dict[str, Any]:
    if isinstance(ctx.obj, dict):
        return ctx.obj
    if ctx.obj is None:
        ctx.obj = {}
        return ctx.obj
    return {}


def _run(
    ctx: typer.Context,
    operation: Callable[[CommandServices, str], Awaitable[T]],
    *,
    assume_yes: bool = False,
) -> T:
    state = _ctx_object(ctx)
    settings = get_settings()

    async def runner() -> T:
        services = build_services(settings, assume_yes=assume_yes)
        try:
            language = services.resolve_language(state.get("language"))
            return await operation(services, language)
        finally:
            await services.aclose()

    try:
        return asyncio.run(runner())
    except ClaudeCmdError as exc:
        error_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc


def _print_hint(message: str) -> None:
    console.print(f"[dim]▎• {escape(message)}[/dim]")


def _format_path(path: Path | str) -> str:
    path = Path(path)
    for base, label in ((Path.cwd(), ""), (Path.home(), "~/")):
        try:
            return f"{label}{path.relative_to(base)}"
        except ValueError:
            continue
    return str(path)


def _tools_label(command: Command) -> str:
    return ", ".join(command.allowed_tools) if command.allowed_tools else "—"


def _commands_table(commands: list[Command]) -> Table:
    table = Table(show_header=True, box=None)
    table.add_column("Name", style="cyan", header_style="bold bright_white")
    table.add_column("Description", style="white", header_style="bold bright_white")
    table.add_column("Tools", style="dim", header_style="bold bright_white")
    for command in commands:
        table.add_row(command.name, command.description, _tools_label(command))
    return table


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    language: Annotated[
        str | None,
        typer.Option("--language", "-l", help="Command language (two-letter code, e.g. en, fr)."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    version: Annotated[bool, typer.Option("--version", help="Show version and exit.")] = False,
) -> None:
    """claude-cmd - browse, install and remove Claude slash commands."""
    if version:
        console.print(f"claude-cmd v{__version__}")
        raise typer.Exit()

    settings = get_settings()
    configure_logging("debug" if verbose else settings.logging.level)
    state = _ctx_object(ctx)
    state["language"] = language

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


@app.command("list")
def list_commands(
    ctx: typer.Context,
    refresh: Annotated[bool, typer.Option("--refresh", help="Bypass the cache.")] = False,
    namespace: Annotated[
        str | None,
        typer.Option("--namespace", "-n", help="Only show commands in this namespace."),
    ] = None,
) -> None:
    """List commands available in the repository."""

    async def operation(services: CommandServices, language: str) -> tuple[str, list[Command]]:
        commands = await services.catalog.list_commands(language, force_refresh=refresh)
        if namespace:
            prefix = services.namespaces.normalize(namespace)
            commands = [
                command
                for command in commands
                if command.namespace is not None
                and (
                    services.namespaces.normalize(command.namespace) == prefix
                    or services.namespaces.is_parent_of(prefix, command.namespace)
                )
            ]
        return language, commands

    language, commands = _run(ctx, operation)
    if not commands:
        console.print(f"[yellow]No commands found for language '{language}'.[/yellow]")
        return
    console.print(_commands_table(commands))
    _print_hint(f"{len(commands)} commands ({language}). Install with: claude-cmd add <name>")


@app.command("search")
def search_commands(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to look for in names and descriptions.")],
) -> None:
    """Search repository commands by name or description."""

    async def operation(services: CommandServices, language: str) -> list[Command]:
        return await services.catalog.search_commands(query, language)

    matches = _run(ctx, operation)
    if not matches:
        console.print(f"[yellow]No commands match '{escape(query)}'.[/yellow]")
        return
    console.print(_commands_table(matches))


@app.command("info")
def command_info(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Command name, e.g. frontend:component.")],
) -> None:
    """Show a command's details, where it is available and whether it is installed."""

    async def operation(services: CommandServices, language: str) -> EnrichedCommand:
        return await services.enrichment.get_enhanced_command_info(name, language)

    info = _run(ctx, operation)
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="white")
    table.add_row("Name", Text(info.name, style="cyan"))
    table.add_row("Description", info.description)
    table.add_row("File", info.file)
    table.add_row("Allowed tools", _tools_label(info))
    if info.argument_hint:
        table.add_row("Arguments", info.argument_hint)
    if info.namespace:
        table.add_row("Namespace", info.namespace)
    table.add_row("Source", info.source)
    table.add_row("Available in", ", ".join(info.available_in_sources))

    status = info.installation_status
    if status is not None:
        if status.is_installed:
            table.add_row("Installed", f"yes ({status.install_location})")
            if status.install_path:
                table.add_row("Path", _format_path(status.install_path))
        else:
            table.add_row("Installed", "no")
    console.print(table)

    if status is not None and status.has_local_changes:
        console.print(
            "[yellow]The installed copy differs from the repository version and takes precedence.[/yellow]"
        )
        _print_hint(f"Reinstall with: claude-cmd add {info.name} --force")


@app.command("add")
def add_command(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Command name to install.")],
    project: Annotated[
        bool,
        typer.Option("--project", "-p", help="Install into ./.claude/commands instead of ~/.claude/commands."),
    ] = False,
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing file.")] = False,
) -> None:
    """Install a command from the repository."""

    async def operation(services: CommandServices, language: str):
        return await services.installer.install_command(
            name,
            target="project" if project else "personal",
            force=force,
            language=language,
        )

    record = _run(ctx, operation)
    console.print(f"[green]Installed {escape(record.name)}[/green] → {escape(_format_path(record.file_path))}")


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Installed command name.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
) -> None:
    """Remove an installed command."""

    async def operation(services: CommandServices, language: str):
        return await services.installer.remove_command(name, yes=yes)

    result = _run(ctx, operation, assume_yes=yes)
    if result.cancelled:
        console.print("[yellow]Removal cancelled.[/yellow]")
        return
    console.print(f"[green]Removed {escape(result.name)}[/green] ({escape(_format_path(result.path))})")


@app.command("installed")
def installed_commands(ctx: typer.Context) -> None:
    """List commands installed in the personal and project directories."""

    async def operation(services: CommandServices, language: str):
        records = await services.installer.get_all_installation_info()
        summary = await services.installer.get_installation_summary()
        return records, summary

    records, summary = _run(ctx, operation)
    if not records:
        console.print("[yellow]No commands installed.[/yellow]")
        _print_hint("Install with: claude-cmd add <name>")
        return

    table = Table(show_header=True, box=None)
    table.add_column("Name", style="cyan", header_style="bold bright_white")
    table.add_column("Location", style="white", header_style="bold bright_white")
    table.add_column("Source", style="dim", header_style="bold bright_white")
    table.add_column("Installed", style="green", header_style="bold bright_white")
    table.add_column("Path", style="dim", header_style="bold bright_white")
    for record in records:
        source = record.source
        if record.provenance_version:
            source = f"{source} (v{record.provenance_version})"
        table.add_row(
            record.name,
            record.location,
            source,
            record.installed_at.strftime("%Y-%m-%d %H:%M"),
            _format_path(record.file_path),
        )
    console.print(table)
    _print_hint(
        f"{summary.total_commands} installed: "
        f"{summary.personal_count} personal, {summary.project_count} project"
    )


@app.command("update")
def update_cache(ctx: typer.Context) -> None:
    """Refresh the cached manifest and show what changed."""

    async def operation(services: CommandServices, language: str):
        return await services.catalog.update_cache(language)

    result = _run(ctx, operation)
    console.print(
        f"[green]Updated {result.language} manifest[/green]: {result.command_count} commands"
    )
    if not result.has_changes:
        _print_hint("No changes since the last update.")
        return

    console.print(
        f"[green]+{result.added}[/green] [red]-{result.removed}[/red] [yellow]~{result.modified}[/yellow]"
    )
    for change in result.comparison.changes:
        marker = {"added": "[green]+[/green]", "removed": "[red]-[/red]", "modified": "[yellow]~[/yellow]"}[
            change.type
        ]
        fields = ""
        if change.field_diffs:
            fields = f" [dim]({', '.join(diff.field for diff in change.field_diffs)})[/dim]"
        console.print(f"  {marker} {escape(change.name)}{fields}")


@app.command("languages")
def list_languages(
    ctx: typer.Context,
    probe: Annotated[
        bool,
        typer.Option("--probe", help="Check every known language against the repository."),
    ] = False,
) -> None:
    """Show languages with cached manifests, or probe the repository for all known ones."""

    async def operation(services: CommandServices, language: str):
        if probe:
            return language, await services.remote.probe_languages(KNOWN_LANGUAGES)
        return language, services.remote.get_available_languages()

    current, languages = _run(ctx, operation)
    if not languages:
        console.print("[yellow]No cached languages yet.[/yellow]")
        _print_hint("Run `claude-cmd list` or `claude-cmd languages --probe` first.")
        return

    table = Table(show_header=True, box=None)
    table.add_column("Code", style="cyan", header_style="bold bright_white")
    table.add_column("Name", style="white", header_style="bold bright_white")
    table.add_column("Commands", justify="right", header_style="bold bright_white")
    table.add_column("Status", header_style="bold bright_white")
    for info in languages:
        if not info.available:
            status = "[dim]unavailable[/dim]"
        elif info.code == current:
            status = "[green]current[/green]"
        else:
            status = ""
        table.add_row(info.code, info.name, str(info.command_count), status)
    console.print(table)


@app.command("cache-clear")
def cache_clear(
    ctx: typer.Context,
    all_languages: Annotated[
        bool, typer.Option("--all", help="Clear cached data for every language.")
    ] = False,
) -> None:
    """Delete cached manifests and command files."""

    async def operation(services: CommandServices, language: str) -> int:
        return services.catalog.clear_cache(None if all_languages else language)

    removed = _run(ctx, operation)
    console.print(f"[green]Removed {removed} cache entries.[/green]")


STATUS_FORMATS = ("default", "compact", "json")

_HEALTH_STYLES = {"healthy": "green", "degraded": "yellow", "error": "red"}


def _yes_no(value: bool, *, warn: bool = False) -> str:
    if value:
        return "[yellow]yes[/yellow]" if warn else "[green]yes[/green]"
    return "[green]no[/green]" if warn else "[red]no[/red]"


def _format_duration(ms: int) -> str:
    seconds = ms // 1000
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400
    if days:
        return f"{days}d {hours % 24}h"
    if hours:
        return f"{hours}h {minutes % 60}m"
    if minutes:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _print_status(status: SystemStatus) -> None:
    health = status.health
    style = _HEALTH_STYLES[health.status]
    console.print("[bold]claude-cmd system status[/bold]")
    _print_hint(f"Collected at {status.timestamp.astimezone().strftime('%Y-%m-%d %H:%M:%S %Z')}")
    console.print()

    overview = Table(show_header=False, box=None)
    overview.add_column("Field", style="dim")
    overview.add_column("Value")
    overview.add_row("Status", f"[{style}]{health.status.upper()}[/{style}]")
    overview.add_row("Cache accessible", _yes_no(health.cache_accessible))
    overview.add_row("Installation possible", _yes_no(health.installation_possible))
    console.print(overview)
    for message in health.messages:
        console.print(f"[yellow]⚠ {escape(message)}[/yellow]")
    console.print()

    if status.cache:
        cache_table = Table(show_header=True, box=None)
        cache_table.add_column("Language", style="cyan", header_style="bold bright_white")
        cache_table.add_column("Expired", header_style="bold bright_white")
        cache_table.add_column("Age", justify="right", header_style="bold bright_white")
        cache_table.add_column("Size", justify="right", header_style="bold bright_white")
        cache_table.add_column("Commands", justify="right", header_style="bold bright_white")
        cache_table.add_column("Path", style="dim", header_style="bold bright_white")
        for info in status.cache:
            if not info.exists:
                cache_table.add_row(info.language, "[red]unreadable[/red]", "", "", "", _format_path(info.path))
                continue
            cache_table.add_row(
                info.language,
                _yes_no(info.is_expired, warn=True),
                _format_duration(info.age_ms) if info.age_ms is not None else "",
                _format_size(info.size_bytes) if info.size_bytes is not None else "",
                str(info.command_count) if info.command_count is not None else "",
                _format_path(info.path),
            )
        console.print(cache_table)
    else:
        console.print("[yellow]No cached manifests.[/yellow]")
    console.print()

    install_table = Table(show_header=True, box=None)
    install_table.add_column("Directory", style="cyan", header_style="bold bright_white")
    install_table.add_column("Exists", header_style="bold bright_white")
    install_table.add_column("Writable", header_style="bold bright_white")
    install_table.add_column("Commands", justify="right", header_style="bold bright_white")
    install_table.add_column("Path", style="dim", header_style="bold bright_white")
    for info in status.installations:
        install_table.add_row(
            info.kind,
            _yes_no(info.exists),
            _yes_no(info.writable),
            str(info.command_count),
            _format_path(info.path),
        )
    console.print(install_table)


def _compact_status(status: SystemStatus) -> str:
    parts = [
        f"Status: {status.health.status.upper()}",
        f"Cache: {status.valid_cache_count}/{len(status.cache)} valid",
        f"Installs: {status.writable_installation_count}/{len(status.installations)} writable, "
        f"{status.installed_command_count} commands",
    ]
    if status.health.messages:
        parts.append(f"Warnings: {len(status.health.messages)}")
    return " | ".join(parts)


@app.command("status")
def system_status(
    ctx: typer.Context,
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Output format: default, compact or json."),
    ] = "default",
) -> None:
    """Show cache and installation health."""
    if output not in STATUS_FORMATS:
        typer.echo(f"Invalid format: {output}. Must be one of: {', '.join(STATUS_FORMATS)}", err=True)
        raise typer.Exit(1)

    async def operation(services: CommandServices, language: str) -> SystemStatus:
        return await services.status.get_system_status()

    status = _run(ctx, operation)
    if output == "json":
        typer.echo(json.dumps(status.to_dict(), indent=2))
    elif output == "compact":
        typer.echo(_compact_status(status))
    else:
        _print_status(status)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
