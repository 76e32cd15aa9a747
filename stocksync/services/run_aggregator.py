# stocksync/services/run_aggregator.py
"""
Tallies sync outcomes into a RunResult.
"""

import time
from typing import Dict, Iterable, List, Optional, Sequence

from stocksync.core.enums import SyncAction
from stocksync.schemas.stock import Decision, RunResult, UnlinkableListing

BUCKETS: Dict[SyncAction, str] = {
    SyncAction.UPDATED: "updated",
    SyncAction.WOULD_UPDATE: "updated",
    SyncAction.NO_CHANGE: "no_change",
    SyncAction.SKIPPED: "skipped",
    SyncAction.ERROR: "errors",
}


def _empty_counts() -> Dict[str, int]:
    return {"updated": 0, "no_change": 0, "skipped": 0, "errors": 0}


def aggregate(
    decisions: Sequence[Decision],
    elapsed_seconds: float = 0.0,
    dry_run: bool = False,
    retry_attempts: int = 0,
    warnings: Iterable[str] = (),
    unlinkable: Iterable[UnlinkableListing] = (),
) -> RunResult:
    """Fold a final list of decisions into a RunResult"""
    counts = _empty_counts()
    for decision in decisions:
        counts[BUCKETS[decision.action]] += 1

    return RunResult(
        total=len(decisions),
        details=list(decisions),
        elapsed_seconds=elapsed_seconds,
        dry_run=dry_run,
        retry_attempts=retry_attempts,
        warnings=list(warnings),
        unlinkable=list(unlinkable),
        **counts,
    )


class RunAggregator:
    """
    Timing and running counters for one sync_many invocation.

    The initial pass is recorded in bulk; retries adjust the counters only
    when an item flips from error to a non-error outcome. The counters feed
    progress logging while retries run; build() folds the final details
    with aggregate() so the report always matches them.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.counts = _empty_counts()
        self._started: Optional[float] = None
        self._finished: Optional[float] = None

    def start(self) -> None:
        self._started = time.perf_counter()
        self._finished = None

    def finish(self) -> None:
        self._finished = time.perf_counter()

    @property
    def elapsed_seconds(self) -> float:
        if self._started is None:
            return 0.0
        end = self._finished if self._finished is not None else time.perf_counter()
        return max(0.0, end - self._started)

    def record(self, decisions: Iterable[Decision]) -> None:
        for decision in decisions:
            self.counts[BUCKETS[decision.action]] += 1

    def record_flip(self, previous: Decision, current: Decision) -> None:
        if previous.is_error and not current.is_error:
            self.counts["errors"] -= 1
            self.counts[BUCKETS[current.action]] += 1

    def build(
        self,
        details: List[Decision],
        retry_attempts: int = 0,
        warnings: Iterable[str] = (),
        unlinkable: Iterable[UnlinkableListing] = (),
    ) -> RunResult:
        """Final report, folded from the spliced details with the run's timing"""
        return aggregate(
            details,
            elapsed_seconds=self.elapsed_seconds,
            dry_run=self.dry_run,
            retry_attempts=retry_attempts,
            warnings=warnings,
            unlinkable=unlinkable,
        )
