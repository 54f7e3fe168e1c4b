"""
TarPit Command Line Interface
=============================

Usage:
    tarpit --help                            # Show all commands
    tarpit init --db toots.sqlite            # Create the database tables
    tarpit fetch https://host/@user.rss      # Print a feed without storing it
    tarpit store https://host/@user.rss      # Store new toots and record a trace row
    tarpit list --count 10 --timezone UTC    # Print the most recent toots
    tarpit trace --count 5                   # Print the most recent runs
"""

import sys
import logging
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config.settings import TarPitSettings, load_settings, resolve_db_path
from .database.connection import DatabaseConnection
from .database.schema import DatabaseSchema
from .delivery.list_formatter import ListFormatter, resolve_timezone
from .ingestion.feed_manager import FeedManager
from .processing.pipeline import IngestionPipeline
from .storage.toot_repository import TootRepository
from .storage.trace_repository import TraceRepository
from .utils.logging import configure_application_logging
from .utils.exceptions import ConfigurationError, ValidationError, get_user_friendly_message

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

DB_OPTION_HELP = "SQLite database file (default: TAR_PIT_DB_PATH or db_path in the config file)"


def _fail(message: str, exc: Optional[Exception] = None) -> None:
    """Print an error and exit with status 1."""
    if exc is not None:
        message = f"{message}: {exc}"
    err_console.print(f"[bold red]❌ {escape(message)}[/bold red]")
    sys.exit(1)


def _db_path(ctx: click.Context, cli_argument: Optional[str]) -> str:
    """Resolve the database path or exit with a configuration error."""
    settings: TarPitSettings = ctx.obj["settings"]
    try:
        return resolve_db_path(cli_argument, settings)
    except ConfigurationError as e:
        _fail(get_user_friendly_message(e))


@click.group(invoke_without_command=True)
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file path (default: ~/.config/tar_pit/config.yaml)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name="tarpit")
@click.pass_context
def cli(ctx, config_path, debug):
    """TarPit - fetch and store a Mastodon RSS feed."""
    ctx.ensure_object(dict)

    overrides = {"debug": True} if debug else {}
    try:
        settings = load_settings(config_path, **overrides)
    except ConfigurationError as e:
        _fail("Configuration error", e)

    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
    )

    ctx.obj['settings'] = settings

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--db', 'db_path', help=DB_OPTION_HELP)
@click.pass_context
def init(ctx, db_path):
    """Create the SQLite database and table structure."""
    path = _db_path(ctx, db_path)

    try:
        schema = DatabaseSchema(path)
        schema.create_tables()

        if not schema.verify_schema():
            _fail("Database schema verification failed")

        with DatabaseConnection(path) as db:
            toot_count = TootRepository(db).count_toots()
            trace_count = len(TraceRepository(db).get_recent_entries())

    except Exception as e:
        _fail("Database initialization error", e)

    info_table = Table(title="Database Information")
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")

    info_table.add_row("Database Path", path)
    info_table.add_row("Toots", str(toot_count))
    info_table.add_row("Trace Entries", str(trace_count))

    console.print("[bold green]✅ Database initialized successfully![/bold green]")
    console.print(info_table)


@cli.command()
@click.argument('url')
@click.pass_context
def fetch(ctx, url):
    """Fetch a feed and print its items without storing them."""
    settings: TarPitSettings = ctx.obj["settings"]
    manager = FeedManager(settings)

    try:
        feed = manager.fetch_feed(url)
        IngestionPipeline.validate_feed(feed)
    except Exception as e:
        _fail("Feed fetch error", e)

    for item in feed.items:
        click.echo(f"guid: {item.guid or ''}")
        click.echo(f"pubDate: {item.published.isoformat() if item.published else ''}")
        click.echo(f"description: {item.description or ''}")
        click.echo(f"categories: {', '.join(item.categories)}")
        click.echo()


@cli.command()
@click.argument('source')
@click.option('--db', 'db_path', help=DB_OPTION_HELP)
@click.pass_context
def store(ctx, source, db_path):
    """Load a feed from a URL or file and store new toots.

    A failed run is recorded in the trace table and printed; it does not
    change the exit status.
    """
    settings: TarPitSettings = ctx.obj["settings"]
    path = _db_path(ctx, db_path)
    manager = FeedManager(settings)

    with DatabaseConnection(path) as db:
        pipeline = IngestionPipeline(db)
        result = pipeline.run(lambda: manager.load(source))

    click.echo(result.description)
    if not result.trace_recorded:
        err_console.print("[yellow]⚠️ Trace entry could not be recorded[/yellow]")


@cli.command(name="list")
@click.option('--db', 'db_path', help=DB_OPTION_HELP)
@click.option('--count', '-n', type=click.IntRange(min=0), default=None,
              help='Maximum number of toots to print (default: all)')
@click.option('--timezone', '-t', 'timezone_name', default=None,
              help='Timezone for publication dates (default: display.timezone setting)')
@click.pass_context
def list_toots(ctx, db_path, count, timezone_name):
    """Print stored toots, most recent first."""
    settings: TarPitSettings = ctx.obj["settings"]

    try:
        tz = resolve_timezone(timezone_name or settings.display.timezone)
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint="'--timezone'") from e

    path = _db_path(ctx, db_path)

    try:
        with DatabaseConnection(path) as db:
            formatter = ListFormatter(db, max_length=settings.display.max_length)
            rows = formatter.format_output(limit=count, tz=tz)
    except Exception as e:
        _fail("Listing error", e)

    for row in rows:
        click.echo(row)


@cli.command()
@click.option('--db', 'db_path', help=DB_OPTION_HELP)
@click.option('--count', '-n', type=click.IntRange(min=0), default=10, show_default=True,
              help='Maximum number of runs to print')
@click.pass_context
def trace(ctx, db_path, count):
    """Print the most recent ingestion runs."""
    path = _db_path(ctx, db_path)

    try:
        with DatabaseConnection(path) as db:
            entries = TraceRepository(db).get_recent_entries(count)
    except Exception as e:
        _fail("Trace error", e)

    for entry in entries:
        last_build = entry.last_build_date.isoformat() if entry.last_build_date else "-"
        click.echo(f"{entry.timestamp.isoformat()}  {last_build}  {entry.description}")
