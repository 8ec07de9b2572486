"""
Command-line interface for the R6 tracker.
Usage examples:
  python -m r6tracker.apps.cli add-player my-group SomePlayer
  python -m r6tracker.apps.cli report SomePlayer --window week
  python -m r6tracker.apps.cli program my-group reports 21:30
  python -m r6tracker.apps.cli serve
"""

import asyncio
import sys
from typing import Any, Awaitable, Callable

import click

from r6tracker.analytics.windows import WINDOW_ALIASES, WINDOW_LABELS, WindowKind, parse_kind
from r6tracker.common.logging_utils import configure_logging
from r6tracker.core.config import Settings
from r6tracker.domain.errors import AcquisitionError, ScheduleValidationError

from .delivery import RankingPayload, ReportPayload, format_ranking, format_report
from .tracker_app import TrackerApp

WINDOW_CHOICES = sorted(list(WINDOW_ALIASES) + [k.value for k in WindowKind])


def _run(fn: Callable[[TrackerApp], Awaitable[Any]]) -> Any:
    async def _main():
        app = TrackerApp(Settings())
        await app.initialize()
        try:
            return await fn(app)
        finally:
            await app.cleanup()

    return asyncio.run(_main())


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
def cli(log_level, json_logs):
    """R6 Siege daily stats tracker"""
    cfg = Settings()
    configure_logging("r6tracker", level=log_level or cfg.log_level, fmt="json" if json_logs else cfg.log_format)


@cli.command(name="add-player")
@click.argument("group_id")
@click.argument("username")
def add_player(group_id: str, username: str):
    """Track USERNAME in GROUP_ID"""
    try:
        added, count = _run(lambda app: app.add_player(group_id, username))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="USERNAME")
    state = "Added" if added else "Already tracked:"
    click.echo(f"{state} {username.strip()} ({count} players in {group_id})")


@cli.command(name="remove-player")
@click.argument("group_id")
@click.argument("username")
def remove_player(group_id: str, username: str):
    """Stop tracking USERNAME in GROUP_ID"""
    removed = _run(lambda app: app.remove_player(group_id, username))
    click.echo(f"Removed {username}" if removed else f"{username} was not tracked in {group_id}")


@cli.command()
@click.argument("group_id")
def players(group_id: str):
    """List tracked players of GROUP_ID"""
    names = _run(lambda app: app.list_players(group_id))
    if not names:
        click.echo(f"No players tracked in {group_id}")
        return
    for name in names:
        click.echo(f"- {name}")


@cli.command()
@click.argument("username")
@click.option("--window", "window", type=click.Choice(WINDOW_CHOICES), default="today", show_default=True)
@click.option("--platform", default=None, help="ubi, psn or xbl")
@click.option("--group", "group_id", default="cli", show_default=True)
def report(username: str, window: str, platform: str, group_id: str):
    """Aggregated stats of one player for a window"""
    kind = parse_kind(window)
    try:
        result = _run(lambda app: app.report(group_id, username, kind, platform=platform))
    except AcquisitionError as e:
        click.echo(f"Could not fetch {username}: {e.reason}", err=True)
        sys.exit(1)
    click.echo(format_report(ReportPayload(window_label=WINDOW_LABELS[kind], result=result)))


@cli.command()
@click.argument("group_id")
@click.option("--window", "window", type=click.Choice(WINDOW_CHOICES), default="today", show_default=True)
def ranking(group_id: str, window: str):
    """Leaderboards for every tracked player of GROUP_ID"""
    payload: RankingPayload = _run(lambda app: app.ranking(group_id, window))
    click.echo(format_ranking(payload))


@cli.command()
@click.argument("group_id")
@click.argument("channel_ref")
@click.argument("time_of_day")
def program(group_id: str, channel_ref: str, time_of_day: str):
    """Schedule daily/weekly/monthly reports of GROUP_ID at TIME_OF_DAY (HH:mm)"""
    try:
        entry = _run(lambda app: app.program(group_id, channel_ref, time_of_day))
    except ScheduleValidationError as e:
        raise click.BadParameter(str(e), param_hint="TIME_OF_DAY")
    click.echo(f"Scheduled {entry.group_id} at {entry.time_of_day} -> {entry.channel_ref}")


@cli.command()
@click.argument("group_id")
def cancel(group_id: str):
    """Remove the schedule of GROUP_ID"""
    cancelled = _run(lambda app: app.cancel(group_id))
    click.echo(f"Schedule of {group_id} cancelled" if cancelled else f"{group_id} had no schedule")


@cli.command()
def schedules():
    """List persisted schedules"""
    entries = _run(lambda app: app.schedules())
    if not entries:
        click.echo("No schedules")
        return
    for entry in entries:
        click.echo(f"- {entry.group_id}: {entry.time_of_day} -> {entry.channel_ref}")


@cli.command()
def serve():
    """Run the scheduler service until SIGINT/SIGTERM"""
    app = TrackerApp(Settings())
    asyncio.run(app.serve())


if __name__ == "__main__":
    cli()
