"""CLI entry point for douban-sync."""
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import click

from douban_sync.classifier import CATEGORY_RULES
from douban_sync.config import load_config
from douban_sync.errors import ConfigError, SyncError, TableError
from douban_sync.logging_config import setup_logging
from douban_sync.pipeline import run_sync
from douban_sync.state import SyncStateStore
from douban_sync.table import count_rows


def format_timestamp(utc_str: str, tz_name: str | None = None) -> str:
    """Render a stored UTC timestamp in local time (or tz_name) for display."""
    if not utc_str:
        return "N/A"
    try:
        utc_dt = datetime.fromisoformat(utc_str.replace("Z", "+00:00"))
    except ValueError:
        return utc_str
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    local_dt = utc_dt.astimezone(ZoneInfo(tz_name)) if tz_name else utc_dt.astimezone()
    return local_dt.strftime("%Y-%m-%d %H:%M:%S")


def get_config(user: str | None, output_dir: str | None, state_file: str | None,
               require_user: bool = True) -> dict:
    """Load config from the environment with CLI options taking precedence."""
    env = dict(os.environ)
    if user:
        env["DOUBAN_USER"] = user
    if output_dir:
        env["OBSIDIAN_DIR"] = output_dir
    if state_file:
        env["STATE_FILE"] = state_file
    try:
        return load_config(env, require_user=require_user)
    except ConfigError as e:
        raise click.UsageError(str(e))


def location_options(f):
    """--user / --output-dir / --state-file, shared by all commands."""
    f = click.option("--state-file", type=click.Path(dir_okay=False),
                     help="Sync cursor file (env STATE_FILE)")(f)
    f = click.option("--output-dir", "-o", type=click.Path(file_okay=False),
                     help="Directory holding the CSV tables (env OBSIDIAN_DIR)")(f)
    f = click.option("--user", "-u", help="Douban user id (env DOUBAN_USER)")(f)
    return f


@click.group()
def cli():
    """Douban interests RSS → CSV archive sync."""
    pass


@cli.command()
@location_options
@click.option("--dry-run", is_flag=True, help="Show what would be added without writing anything")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output on the console")
def sync(user: str | None, output_dir: str | None, state_file: str | None,
         dry_run: bool, verbose: bool):
    """Fetch the feed and append new entries to the collection tables."""
    config = get_config(user, output_dir, state_file)
    setup_logging(config["paths"]["log_dir"], config["logging"]["retention_days"], verbose)
    logger = logging.getLogger(__name__)
    logger.info(f"douban-sync starting for {config['douban']['user']}")

    try:
        result = run_sync(config, dry_run=dry_run)
    except SyncError as e:
        logger.error(f"Sync aborted: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(
        f"Fetched: {result.fetched}, Written: {result.written}, "
        f"Duplicates: {result.duplicates}, Known: {result.known}, "
        f"Unclassified: {result.unclassified}, Failed: {result.failed}"
    )
    if dry_run:
        click.echo("Dry run: nothing was written")

    if not result.ok:
        for raw, error in result.failures:
            click.echo(f"  ✗ {raw.title}: {error}", err=True)
        raise SystemExit(1)


@cli.command()
@location_options
def status(user: str | None, output_dir: str | None, state_file: str | None):
    """Show the last sync, cursor size and rows per collection table."""
    config = get_config(user, output_dir, state_file, require_user=False)
    output_path = Path(config["paths"]["output_dir"])

    cursor = SyncStateStore(config["paths"]["state_file"]).load()
    if cursor.last_sync:
        click.echo(f"Last sync: {format_timestamp(cursor.last_sync)}")
    else:
        click.echo("No previous sync")
    click.echo(f"Known ids: {len(cursor.known_ids)}")

    click.echo(f"Tables in {output_path}:")
    for file in dict.fromkeys(rule.file for rule in CATEGORY_RULES):
        table_path = output_path / file
        if not table_path.exists():
            click.echo(f"  {file}: not created yet")
            continue
        try:
            click.echo(f"  {file}: {count_rows(table_path)} rows")
        except TableError as e:
            click.echo(f"  {file}: unreadable ({e})")


if __name__ == "__main__":
    cli()
