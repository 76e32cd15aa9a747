# stocksync/cli/sync_stocks.py
import asyncio
import logging
import sys

import click

from stocksync.core.config import get_settings
from stocksync.core.exceptions import BaseServiceError
from stocksync.core.logging_config import configure_logging
from stocksync.dependencies import build_sync_service
from stocksync.schemas.stock import SyncOptions

logger = logging.getLogger(__name__)

EXAMPLES = """
Examples:
  stocksync-sync --all --dry-run --concurrency 10
  stocksync-sync ABC123 DEF456 --concurrency 3
  stocksync-sync --all --max-retries 5 --retry-delay 3
"""


@click.command(epilog=EXAMPLES)
@click.argument('skus', nargs=-1)
@click.option('--all', 'sync_all', is_flag=True, help='Sync every MercadoLibre listing that has a SKU')
@click.option('--dry-run', is_flag=True, help='Simulate without changing MercadoLibre')
@click.option('--force', is_flag=True, help='Update even when stocks already match')
@click.option('--concurrency', type=click.IntRange(min=1), default=None, help='SKUs processed in parallel (default: 5)')
@click.option('--max-retries', type=click.IntRange(min=0), default=None, help='Automatic retry rounds (default: 3)')
@click.option('--retry-delay', type=click.FloatRange(min=0), default=None, help='Seconds to wait between retries (default: 2)')
@click.option('--no-retry', is_flag=True, help='Disable automatic retries')
def sync_stocks(skus, sync_all, dry_run, force, concurrency, max_retries, retry_delay, no_retry):
    """Sync stock levels from the ERP to MercadoLibre."""
    if not skus and not sync_all:
        click.echo(click.get_current_context().get_help())
        click.echo("\nError: provide at least one SKU or use --all", err=True)
        sys.exit(1)

    configure_logging()
    settings = get_settings()
    options = SyncOptions.from_settings(
        settings,
        dry_run=dry_run,
        force_update=force,
        concurrency=concurrency,
        max_retries=0 if no_retry else max_retries,
        retry_delay=retry_delay,
    )

    try:
        result = asyncio.run(run_sync(list(skus), sync_all, options, settings))
    except BaseServiceError as e:
        logger.error(f"Fatal error: {e}")
        click.echo(f"Fatal error: {e}", err=True)
        sys.exit(1)

    result.print_summary()


async def run_sync(skus, sync_all, options, settings):
    service = build_sync_service(settings)
    if sync_all:
        return await service.sync_all(options)
    return await service.sync_many(skus, options)


if __name__ == '__main__':
    sync_stocks()
