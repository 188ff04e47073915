"""Command-line interface for backup warden."""

import logging
import signal
import sys
from datetime import datetime
import click
from typing import Optional

from .config.config_manager import ConfigManager
from .core.change_monitor import ChangeMonitor
from .core.context import WardenContext
from .core.location import DAILY_NAMESPACE, SNAPSHOT_NAMESPACE
from .core.models import CycleResult
from .core.producer import BackupProducer, SnapshotProducer
from .core.pruner import RetentionPruner
from .core.warden import BackupWarden
from .utils.formatters import format_file_size, format_timestamp

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_MONITOR_ERROR = 3

logger = logging.getLogger(__name__)


def setup_logging(level: str, log_file: Optional[str] = None):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')
    
    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    
    # Set up root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    
    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    # Add console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    
    # Add file handler if specified
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


def _load_context(ctx) -> WardenContext:
    """Load configuration and build the application context, exiting on failure."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()
        config = config_manager.get_warden_config()
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    
    # Command-line logging options win over the config file
    logging_config = config_manager.get_logging_config()
    setup_logging(
        ctx.obj.get('log_level') or logging_config.get('level') or 'INFO',
        ctx.obj.get('log_file') or logging_config.get('file')
    )
    
    return WardenContext.from_config(config)


def _echo_cycle(result: CycleResult):
    """Print a per-location summary of a cycle."""
    click.echo(f"🕒 {result.kind.capitalize()} {result.label} started at {format_timestamp(result.started)}")
    for location_result in result.results:
        if location_result.ok:
            click.echo(f"  ✅ {location_result.location}: {location_result.files_copied} files -> {location_result.destination}")
            for name in location_result.pruned:
                click.echo(f"     🗑️  pruned {name}")
        else:
            click.echo(f"  ⚠️  {location_result.location}: {location_result.error}")


def _make_signal_handler(warden: BackupWarden):
    """Build a SIGINT/SIGTERM handler that stops the loop gracefully.
    
    The first signal sets the stop event: the loop wakes within a second,
    any copy in progress is cancelled, and the monitor is shut down. A
    second signal exits immediately.
    """
    def handle_signal(signum, frame):
        if warden.context.stop_event.is_set():
            sys.exit(EXIT_OK)
        logger.info(f"Received signal {signum}, shutting down...")
        warden.stop()
    
    return handle_signal

@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (overrides the config file)')
@click.option('--log-file',
              help='Log file path')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str], log_file: Optional[str]):
    """Backup Warden - Mirror a watched folder into dated backups."""
    
    # Ensure context exists
    ctx.ensure_object(dict)
    
    # Set up logging first
    setup_logging(log_level or 'INFO', log_file)
    
    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command()
@click.pass_context
def run(ctx):
    """Watch the folder and back it up on every change."""
    context = _load_context(ctx)
    config = context.config
    
    monitor = ChangeMonitor(
        config.watch_folder,
        poll_interval=config.poll_interval,
        compare_contents=config.compare_contents
    )
    warden = BackupWarden(context, monitor)
    
    handle_signal = _make_signal_handler(warden)
    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)
    
    click.echo(f"Watching {config.watch_folder} -> {len(config.backup_locations)} backup locations")
    
    try:
        warden.run()
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.error(f"Cannot watch folder: {e}")
        sys.exit(EXIT_MONITOR_ERROR)
    except OSError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(EXIT_FAILURE)
    
    click.echo("Backup warden stopped")


@cli.command()
@click.pass_context
def backup(ctx):
    """Run one backup cycle now."""
    context = _load_context(ctx)
    
    click.echo(f"Backing up {context.watch_folder}...")
    result = BackupProducer(context).run()
    _echo_cycle(result)
    
    sys.exit(EXIT_OK if result.ok else EXIT_FAILURE)


@cli.command()
@click.option('--date', 'snapshot_date', type=click.DateTime(formats=['%Y-%m-%d']),
              help='Snapshot date (default: today)')
@click.pass_context
def snapshot(ctx, snapshot_date: Optional[datetime]):
    """Take a monthly snapshot now."""
    context = _load_context(ctx)
    day = (snapshot_date or context.now()).date()
    
    click.echo(f"Taking snapshot {day.isoformat()} of {context.watch_folder}...")
    result = SnapshotProducer(context).run(day)
    _echo_cycle(result)
    
    sys.exit(EXIT_OK if result.ok else EXIT_FAILURE)


@cli.command()
@click.pass_context
def prune(ctx):
    """Remove daily backups beyond the retention window."""
    context = _load_context(ctx)
    pruner = RetentionPruner(context.config.retention_days)
    failed = False
    
    for location in context.locations:
        if not location.has_namespace(DAILY_NAMESPACE):
            click.echo(f"📭 {location.name}: no daily backups")
            continue
        
        try:
            removed = pruner.prune(location)
        except OSError as e:
            click.echo(f"⚠️  {location.name}: {e}", err=True)
            failed = True
            continue
        
        click.echo(f"🗑️  {location.name}: removed {len(removed)} backups")
        for name in removed:
            click.echo(f"     {name}")
    
    sys.exit(EXIT_FAILURE if failed else EXIT_OK)


@cli.command()
@click.pass_context
def status(ctx):
    """Show backups held at every location."""
    context = _load_context(ctx)
    
    click.echo("\n🗂️  Backup Warden Status")
    click.echo("=" * 50)
    click.echo(f"Watch folder: {context.watch_folder}")
    click.echo(f"Retention: {context.config.retention_days} days")
    
    for location in context.locations:
        click.echo(f"\n📍 {location.name}")
        click.echo("-" * len(location.name))
        
        try:
            daily_count, daily_size = location.usage(DAILY_NAMESPACE)
            snapshot_count, snapshot_size = location.usage(SNAPSHOT_NAMESPACE)
        except OSError as e:
            click.echo(f"   ❌ Not accessible: {e}")
            continue
        
        click.echo(f"   📅 Daily backups: {daily_count} ({format_file_size(daily_size)})")
        if daily_count:
            entries = location.list_entries(DAILY_NAMESPACE)
            click.echo(f"      Oldest: {entries[0]}  Newest: {entries[-1]}")
        click.echo(f"   📦 Monthly snapshots: {snapshot_count} ({format_file_size(snapshot_size)})")


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()
        config = config_manager.get_warden_config()
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    
    click.echo("✅ Configuration loaded successfully")
    
    click.echo(f"\n📊 Configuration Summary:")
    click.echo(f"   Watch folder: {config.watch_folder}")
    click.echo(f"   Retention: {config.retention_days} days")
    click.echo(f"   Backup locations: {len(config.backup_locations)}")
    
    for i, location in enumerate(config.backup_locations, 1):
        click.echo(f"     {i}. {location}")
    
    click.echo(f"   Poll interval: {config.poll_interval:g}s, wait timeout: {config.wait_timeout:g}s")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
