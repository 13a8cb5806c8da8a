#!/usr/bin/env python3
"""
Command-line interface for the achievement watcher.
"""

import sys
import json
import asyncio
import signal
import click
import logging
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.logging import RichHandler

from .config.settings import get_settings
from .config.paths import resolve_log_path
from .parser.parser import LogEventParser
from .achievements.sources import JsonSnapshotSource, no_achievements
from .notify.sinks import ConsolePresenter
from .monitor import AchievementMonitor


# Set up rich console for pretty output
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)


def _load_settings(config_path):
    try:
        settings = get_settings(config_path)
    except ValueError as e:
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(1)

    # --verbose wins over the configured level
    if not logging.getLogger().isEnabledFor(logging.DEBUG):
        settings.setup_logging()
    return settings


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose):
    """Achievement Watch - Steam game session and achievement notifier"""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.option("--config", "config_path", type=click.Path(), help="Configuration file")
@click.option("--log-path", type=click.Path(), help="Steam console log to follow")
@click.option(
    "--snapshots",
    type=click.Path(exists=True),
    help="JSON file with achievement records per AppID (default: session notifications only)",
)
def watch(config_path, log_path, snapshots):
    """Follow the Steam console log and send notifications."""
    settings = _load_settings(config_path)
    settings.log_configuration()

    path = resolve_log_path(log_path or settings.tailer.log_path)
    if path is None:
        console.print("[bold red]Steam console log not found[/bold red] - use --log-path")
        sys.exit(1)

    source = JsonSnapshotSource(snapshots) if snapshots else no_achievements
    if not snapshots:
        logger.info("No achievement snapshots given, sending session notifications only")

    console.print(f"[bold green]Watching:[/bold green] {path}")
    try:
        asyncio.run(_run_monitor(settings, path, source))
    except KeyboardInterrupt:
        pass
    console.print("[yellow]Stopped[/yellow]")


async def _run_monitor(settings, path, source):
    monitor = AchievementMonitor(
        settings,
        snapshot_source=source,
        presenter=ConsolePresenter(console),
    )

    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; Ctrl-C raises instead
            pass

    def unavailable(_path):
        stop_requested.set()

    monitor.on_tail_unavailable = unavailable

    if not await monitor.start(path):
        await monitor.stop()
        return

    try:
        await stop_requested.wait()
    finally:
        await monitor.stop()
        stats = monitor.get_stats()
        console.print(
            f"[cyan]Lines:[/cyan] {stats['tailer']['lines_emitted']}  "
            f"[cyan]Sessions:[/cyan] {stats['tracker']['sessions_started']}  "
            f"[cyan]Unlocks:[/cyan] {stats['engine']['unlocks_emitted']}"
        )


@cli.command()
@click.argument("log_file", type=click.Path(exists=True))
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
def parse(log_file, output_format):
    """Parse a console log file and list game process events."""
    parser = LogEventParser()
    events = list(parser.parse_file(log_file))

    if output_format == "json":
        for event in events:
            click.echo(json.dumps({
                "type": event.kind.value,
                "appid": event.appid,
                "exe_name": event.exe_name,
                "procid": event.procid,
            }))
        return

    table = Table(title=f"Game process events in {Path(log_file).name}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("AppID", justify="right", style="green")
    table.add_column("Executable")
    table.add_column("ProcID", justify="right")

    for i, event in enumerate(events, 1):
        table.add_row(str(i), event.kind.value, str(event.appid), event.exe_name, str(event.procid))

    console.print(table)
    stats = parser.get_stats()
    console.print(f"[cyan]{stats['events_parsed']} events in {stats['lines_seen']} lines[/cyan]")


@cli.command()
@click.option("--config", "config_path", type=click.Path(), help="Configuration file")
def config(config_path):
    """Show the resolved configuration."""
    settings = _load_settings(config_path)

    table = Table(title=f"Configuration ({settings.source or 'defaults'})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    resolved = resolve_log_path(settings.tailer.log_path)
    table.add_row("log_path", str(resolved) if resolved else "[red]not found[/red]")
    table.add_row("watch backend", "polling" if settings.tailer.use_polling else "native")
    table.add_row("rotation grace", f"{settings.tailer.rotation_grace_seconds}s")
    table.add_row(
        "app filter",
        f"{'include' if settings.session.inclusion_mode else 'exclude'} {sorted(settings.session.exclusions)}",
    )
    ach = settings.achievements
    table.add_row("poll interval", f"{max(ach.poll_interval_ms, ach.min_poll_interval_ms)}ms")
    table.add_row("rarity", f"rare <= {ach.rarity_threshold}%, semi-rare <= {ach.semi_rarity_threshold}%")
    table.add_row("trophy mode", str(ach.trophy_mode))
    table.add_row("suppress popups", str(settings.notify.suppress_popups))
    for sink in settings.notify.sinks:
        state = "[green]enabled[/green]" if sink.enabled else "[dim]disabled[/dim]"
        table.add_row(f"sink {sink.name}", f"{sink.type} {state} {sink.destination or ''}")

    console.print(table)


if __name__ == "__main__":
    cli()
