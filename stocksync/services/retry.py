# stocksync/services/retry.py
import asyncio
import logging
from typing import List

from stocksync.core.enums import ErrorKind
from stocksync.schemas.stock import Decision, SyncOptions
from stocksync.services.executor import BoundedExecutor, Processor
from stocksync.services.run_aggregator import RunAggregator

logger = logging.getLogger(__name__)

MIN_RETRY_CONCURRENCY = 2
TERMINAL_ERROR_PATTERNS = ("not found", "skipped")


def is_retryable(decision: Decision) -> bool:
    """Rate limits, server errors and unclassified errors are retried; not-found never is"""
    if not decision.is_error:
        return False
    if decision.error_kind in (ErrorKind.RATE_LIMITED, ErrorKind.SERVER_UNAVAILABLE):
        return True
    if decision.error_kind == ErrorKind.NOT_FOUND:
        return False
    message = (decision.error or "").lower()
    return not any(pattern in message for pattern in TERMINAL_ERROR_PATTERNS)


def retry_concurrency_for(concurrency: int) -> int:
    """Halved once from the run's concurrency and kept for every attempt"""
    return max(MIN_RETRY_CONCURRENCY, concurrency // 2)


class RetryController:
    """
    Re-runs retryable failures after the initial pass.

    Each attempt waits options.retry_delay seconds first, then re-submits only
    the SKUs still failing. Results replace the originals in place.
    """

    def __init__(self, executor: BoundedExecutor):
        self.executor = executor

    async def run(
        self,
        details: List[Decision],
        processor: Processor,
        concurrency: int,
        options: SyncOptions,
        aggregator: RunAggregator,
    ) -> int:
        """Mutates details in place and returns the number of attempts made"""
        pending = [position for position, decision in enumerate(details) if is_retryable(decision)]
        if not pending or options.dry_run or options.max_retries <= 0:
            return 0

        retry_concurrency = retry_concurrency_for(concurrency)
        logger.info(
            f"Retrying {len(pending)} failed SKUs (max attempts: {options.max_retries}, "
            f"delay: {options.retry_delay:g}s, concurrency: {retry_concurrency})"
        )

        attempts = 0
        while pending and attempts < options.max_retries:
            await asyncio.sleep(options.retry_delay)
            attempts += 1
            logger.info(f"Retry attempt {attempts}/{options.max_retries} for {len(pending)} SKUs")

            skus = [details[position].sku for position in pending]
            retried = await self.executor.run(
                skus,
                processor,
                retry_concurrency,
                label=f"Retry {attempts}/{options.max_retries}",
            )

            still_failing = []
            for position, decision in zip(pending, retried):
                previous = details[position]
                details[position] = decision
                aggregator.record_flip(previous, decision)
                if decision.success:
                    logger.info(f"Retry succeeded: {decision.sku}")
                if is_retryable(decision):
                    still_failing.append(position)
            pending = still_failing
            logger.info(
                f"After retry {attempts}: {aggregator.counts['errors']} errors remaining "
                f"({aggregator.counts['updated']} updated, {aggregator.counts['no_change']} unchanged)"
            )

        if pending:
            logger.warning(f"After {attempts} attempts, {len(pending)} SKUs still fail:")
            for position in pending:
                logger.warning(f"  {details[position].sku}: {details[position].error}")
        else:
            logger.info("All failed SKUs were recovered by retries")

        return attempts
