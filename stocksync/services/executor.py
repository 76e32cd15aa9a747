# stocksync/services/executor.py
"""
Chunked, bounded-concurrency runner for per-SKU sync work.

SKUs are processed in consecutive chunks of ``concurrency`` items. Every item
in a chunk runs concurrently and the next chunk only starts once the whole
chunk has resolved, so at most ``concurrency`` remote calls are in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from stocksync.core.enums import ErrorKind
from stocksync.core.exceptions import RateLimitedError, ValidationError
from stocksync.schemas.stock import Decision

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
MAX_RECOMMENDED_CONCURRENCY = 20
ABSOLUTE_MAX_CONCURRENCY = 50
RATE_LIMIT_COOLDOWN_SECONDS = 2.0
RATE_LIMIT_WARNING_THRESHOLD = 5

Processor = Callable[[str], Awaitable[Decision]]


def clamp_concurrency(requested: Optional[int]) -> Tuple[int, List[str]]:
    """
    Apply the concurrency ceiling.

    Returns the effective value and any warnings to surface to the caller.
    Values above ABSOLUTE_MAX_CONCURRENCY are capped, not rejected.
    """
    if requested is None:
        return DEFAULT_CONCURRENCY, []
    if requested < 1:
        raise ValidationError(f"concurrency must be at least 1 (got {requested})")

    warnings: List[str] = []
    if requested > ABSOLUTE_MAX_CONCURRENCY:
        warnings.append(
            f"Concurrency of {requested} is too high; limiting to {ABSOLUTE_MAX_CONCURRENCY}"
        )
        requested = ABSOLUTE_MAX_CONCURRENCY
    elif requested > MAX_RECOMMENDED_CONCURRENCY:
        warnings.append(
            f"Concurrency of {requested} is high and may trigger rate limiting. Recommended: 5-10"
        )

    for warning in warnings:
        logger.warning(warning)
    return requested, warnings


class BoundedExecutor:
    """
    Runs a processor over SKUs with a chunk barrier.

    The processor is expected to turn per-item failures into error Decisions.
    If it raises RateLimitedError instead, the affected items are recorded as
    rate-limited errors and the executor cools down before the next chunk.
    Any other exception aborts the run.
    """

    def __init__(self, cooldown_seconds: float = RATE_LIMIT_COOLDOWN_SECONDS):
        self.cooldown_seconds = cooldown_seconds
        self.warnings: List[str] = []
        self.rate_limited_count = 0
        self._rate_limit_warned = False

    async def run(
        self,
        skus: Sequence[str],
        processor: Processor,
        concurrency: int,
        label: str = "Processing",
    ) -> List[Decision]:
        concurrency = min(max(1, concurrency), ABSOLUTE_MAX_CONCURRENCY)
        total = len(skus)
        results: List[Decision] = []

        for start in range(0, total, concurrency):
            chunk = list(skus[start:start + concurrency])
            outcomes = await asyncio.gather(*(processor(sku) for sku in chunk), return_exceptions=True)

            chunk_results: List[Decision] = []
            cooldown = False
            for sku, outcome in zip(chunk, outcomes):
                if isinstance(outcome, RateLimitedError):
                    cooldown = True
                    chunk_results.append(Decision.failed(sku, outcome))
                elif isinstance(outcome, BaseException):
                    logger.error(f"Fatal error while processing {sku}: {outcome!r}")
                    raise outcome
                else:
                    chunk_results.append(outcome)

            results.extend(chunk_results)
            self._track_rate_limits(chunk_results, concurrency)

            if cooldown:
                logger.warning(f"Rate limit detected. Waiting {self.cooldown_seconds:g} seconds before continuing...")
                await asyncio.sleep(self.cooldown_seconds)

            logger.info(f"{label}: {min(start + concurrency, total)}/{total} SKUs")

        return results

    def _track_rate_limits(self, decisions: List[Decision], concurrency: int) -> None:
        self.rate_limited_count += sum(1 for d in decisions if d.error_kind == ErrorKind.RATE_LIMITED)
        if self.rate_limited_count >= RATE_LIMIT_WARNING_THRESHOLD and not self._rate_limit_warned:
            self._rate_limit_warned = True
            warning = (
                f"Multiple rate limit errors detected ({self.rate_limited_count}). "
                f"Consider reducing concurrency to {max(1, concurrency // 2)}"
            )
            logger.warning(warning)
            self.warnings.append(warning)
