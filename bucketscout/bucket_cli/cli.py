"""BucketScout CLI - Command surface for the passive bucket scanner"""

import asyncio
import time
from dataclasses import replace
from typing import Iterable, List, Optional

import click
from rich.console import Console

from .. import __version__
from ..bucket_core.config import ConfigManager, ScoutConfig, create_cli_overrides, validate_config
from ..bucket_core.database import BucketStore
from ..bucket_core.models import BackpressurePolicy, BucketRecord
from ..bucket_engine.exporters import ExportFormat, ExportManager
from ..bucket_engine.host_filter import normalize_hostname
from ..bucket_engine.session import ScoutSession
from .cli_base import build_bucket_table, get_cli_logger, setup_cli_logging, show_summary
from .cli_exceptions import (
    CLIErrorHandler, CommandError, ConfigurationError, ExportError, handle_cli_error
)

logger = get_cli_logger("cli")
console = Console()


# ===============================================================================
# HELPERS
# ===============================================================================

def _database_url(database: Optional[str]) -> Optional[str]:
    """Accept a SQLAlchemy URL or a plain SQLite file path"""
    if database is None or '://' in database:
        return database
    return f"sqlite:///{database}"


def _check_config(config: ScoutConfig, config_file: Optional[str] = None) -> None:
    errors = validate_config(config)
    if errors:
        raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}", config_file=config_file)


def _get_session(ctx: click.Context, config: Optional[ScoutConfig] = None) -> ScoutSession:
    """Session over the shared store; the store is closed with the context"""
    obj = ctx.ensure_object(dict)
    config = config or obj['config']

    if obj.get('store') is None:
        store = BucketStore(config)
        obj['store'] = store
        ctx.call_on_close(store.close)

    return ScoutSession(config, store=obj['store'])


async def _iter_candidates(lines: Iterable[str]):
    """Candidate stream from text lines; blanks and # comments are skipped"""
    for line in lines:
        candidate = line.strip()
        if candidate and not candidate.startswith('#'):
            yield candidate


async def _run_scan(session: ScoutSession, lines: Iterable[str]) -> List[BucketRecord]:
    found: List[BucketRecord] = []
    session.add_listener(found.append)

    async with session:
        await session.consume(_iter_candidates(lines))
        await session.wait_idle()

    return found


# ===============================================================================
# COMMAND GROUP
# ===============================================================================

@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.version_option(version=__version__, prog_name="bucketscout")
@click.option('-G', '--config', 'config_path', help='Load YAML config file')
@click.option('-B', '--database', help='Database URL or SQLite file (default: sqlite:///buckets.db)')
@click.option('-V', '--verbose', is_flag=True, help='Verbose output (DEBUG level)')
@click.option('-q', '--quiet', is_flag=True, help='Quiet mode (WARNING level, minimal output)')
@click.pass_context
def main_cli(ctx, config_path, database, verbose, quiet):
    """bucketscout - Passive discovery of misconfigured S3-compatible buckets

    \b
    Feed observed URLs or hostnames to 'scan'; every hostname is probed once
    per run with an anonymous listing request and an ACL request, and buckets
    are stored with the permissions they expose.

    \b
    Examples:
        bucketscout record on
        cat urls.txt | bucketscout scan
        bucketscout list
        bucketscout export -o buckets.json
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        raise click.UsageError("Use only one of -V/--verbose or -q/--quiet")

    overrides = create_cli_overrides(verbose=verbose, quiet=quiet, database=_database_url(database))
    manager = ConfigManager(config_path, overrides)
    errors = manager.validate()
    if errors:
        CLIErrorHandler().handle_error(
            ConfigurationError(f"Invalid configuration: {'; '.join(errors)}", config_file=manager.config_path),
            exit_on_error=True
        )

    log_manager = setup_cli_logging(
        manager.config.log_level,
        manager.config.log_file if manager.config.enable_file_logging else None
    )
    ctx.call_on_close(log_manager.close)

    ctx.obj['config_manager'] = manager
    ctx.obj['config'] = manager.config
    ctx.obj['store'] = None


# ===============================================================================
# SCAN
# ===============================================================================

@main_cli.command('scan')
@click.option('-f', '--file', 'input_file', type=click.File('r', encoding='utf-8'), default='-',
              help='File of URLs or hostnames, one per line (default: stdin)')
@click.option('-t', '--threads', type=int, help='Probes in flight at once')
@click.option('-T', '--timeout', type=int, help='Per-request timeout in milliseconds')
@click.option('--max-queue', type=int, help='Bound the probe queue (0 = unbounded)')
@click.option('--policy', type=click.Choice([p.value for p in BackpressurePolicy]),
              help='What a full queue does with new hostnames')
@click.option('--skip-stored', is_flag=True, help='Never probe hostnames already stored')
@click.option('-r', '--record', 'record', is_flag=True, help='Turn recording on before scanning')
@click.pass_context
@handle_cli_error
def scan_command(ctx, input_file, threads, timeout, max_queue, policy, skip_stored, record):
    """Probe every hostname in the input for exposed buckets"""
    overrides = create_cli_overrides(threads=threads, timeout=timeout, max_queue=max_queue, policy=policy)
    config = replace(ctx.obj['config'], **overrides)
    if skip_stored:
        config.skip_stored_hosts = True
    _check_config(config, ctx.obj['config_manager'].config_path)

    session = _get_session(ctx, config)
    if record:
        session.set_recording(True)
    if not session.recording:
        console.print("[yellow]Recording is off; nothing was probed. "
                      "Run 'bucketscout record on' or pass --record.[/yellow]")
        return

    start_time = time.time()
    found = asyncio.run(_run_scan(session, input_file))
    duration = time.time() - start_time

    if found:
        latest = {item.hostname: item for item in found}
        console.print(build_bucket_table(latest.values(), title="Buckets Found"))
    else:
        console.print("[dim]No buckets found.[/dim]")

    stats = session.get_stats()
    show_summary(console, {
        'submitted': stats['submitted'],
        'filtered': stats['filtered'],
        'probed': stats['probed'],
        'buckets_saved': stats['saved'],
        'probe_failures': stats['failed'],
        'dropped': stats['dropped'],
        'rejected': stats['rejected'],
        'peak_concurrency': stats['max_active'],
        'duration': f"{duration:.2f}s"
    })
    logger.info(f"Scan finished in {duration:.2f}s: {stats}")


# ===============================================================================
# STORE MANAGEMENT
# ===============================================================================

@main_cli.command('list')
@click.option('--public-only', is_flag=True, help='Only buckets with an anonymous permission')
@click.pass_context
@handle_cli_error
def list_command(ctx, public_only):
    """Show stored buckets, newest first"""
    records = list(_get_session(ctx).snapshot().values())
    if public_only:
        records = [record for record in records if record.public]

    if not records:
        console.print("[dim]No buckets recorded yet.[/dim]")
        return

    console.print(build_bucket_table(records))
    console.print(f"[dim]{len(records)} bucket(s)[/dim]")


@main_cli.command('export')
@click.option('-o', '--output', 'output_file', help='Output file (default: s3-buckets-<millis>.<format>)')
@click.option('--format', 'format_type', type=click.Choice([f.value for f in ExportFormat]),
              help='Export format (default: from the file extension, else json)')
@click.pass_context
@handle_cli_error
def export_command(ctx, output_file, format_type):
    """Export every stored bucket to a file"""
    records = _get_session(ctx).snapshot()
    result = ExportManager().export(records, output_file, format_type)

    if not result.success:
        raise ExportError(f"Export failed: {result.error_message}",
                          file_path=result.file_path, format_type=result.format_type.value)

    console.print(f"[green]✓ Exported {result.record_count} bucket(s) to {result.file_path}[/green]")


@main_cli.command('delete')
@click.argument('hostname')
@click.pass_context
@handle_cli_error
def delete_command(ctx, hostname):
    """Forget one stored bucket"""
    normalized = normalize_hostname(hostname) or hostname
    if not _get_session(ctx).delete(normalized):
        raise CommandError(f"No bucket stored for {normalized}", command="delete")
    console.print(f"[green]✓ Deleted {normalized}[/green]")


@main_cli.command('clear')
@click.option('-y', '--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@handle_cli_error
def clear_command(ctx, yes):
    """Delete every stored bucket"""
    if not yes and not click.confirm("Delete all stored buckets?"):
        console.print("[dim]Aborted.[/dim]")
        return

    removed = _get_session(ctx).clear()
    console.print(f"[green]✓ Removed {removed} bucket(s)[/green]")


@main_cli.command('record')
@click.argument('state', type=click.Choice(['on', 'off']), required=False)
@click.pass_context
@handle_cli_error
def record_command(ctx, state):
    """Turn recording on or off (shows the current state without an argument)"""
    session = _get_session(ctx)
    if state is not None:
        session.set_recording(state == 'on')

    label = "[green]on[/green]" if session.recording else "[red]off[/red]"
    console.print(f"Recording is {label}")


@main_cli.command('status')
@click.pass_context
@handle_cli_error
def status_command(ctx):
    """Show recording state and store statistics"""
    session = _get_session(ctx)
    stats = {'recording': session.recording}
    stats.update(session.store.get_statistics())
    show_summary(console, stats, title="BucketScout Status")
    console.print(f"[dim]Database: {session.store.database_url}[/dim]")


if __name__ == "__main__":
    main_cli(obj={})
