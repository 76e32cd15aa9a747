# stocksync/schemas/stock.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stocksync.core.config import Settings, get_settings
from stocksync.core.enums import ErrorKind, SyncAction
from stocksync.core.exceptions import error_kind_for


class SinkListingSummary(BaseModel):
    """What the catalog index keeps for each linked marketplace listing"""
    model_config = ConfigDict(frozen=True)

    sku: str
    item_id: str
    current_quantity: int = Field(0, ge=0)
    title: Optional[str] = None
    status: Optional[str] = None


class UnlinkableListing(BaseModel):
    """A listing left out of the index: missing_sku, fetch_failed or invalid_quantity"""
    model_config = ConfigDict(frozen=True)

    item_id: str
    title: Optional[str] = None
    reason: str = "missing_sku"


class SourceProduct(BaseModel):
    sku: str
    quantity_on_hand: int = Field(0, ge=0)
    name: str = ""
    unit: str = ""
    price: float = 0.0
    raw: Dict[str, Any] = Field(default_factory=dict)


class SyncOptions(BaseModel):
    dry_run: bool = False
    force_update: bool = False
    concurrency: int = 5
    max_retries: int = Field(3, ge=0)
    retry_delay: float = Field(2.0, ge=0)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "SyncOptions":
        settings = settings or get_settings()
        values = {
            "concurrency": settings.SYNC_CONCURRENCY,
            "max_retries": settings.SYNC_MAX_RETRIES,
            "retry_delay": settings.SYNC_RETRY_DELAY_SECONDS,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


class Decision(BaseModel):
    """Result of reconciling one SKU"""
    model_config = ConfigDict(frozen=True)

    sku: str
    action: SyncAction
    source_quantity: Optional[int] = None
    sink_quantity: Optional[int] = None
    new_quantity: Optional[int] = None
    message: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def success(self) -> bool:
        return self.action.is_success

    @property
    def is_error(self) -> bool:
        return self.action == SyncAction.ERROR

    @classmethod
    def skipped(cls, sku: str, reason: str, **kwargs) -> "Decision":
        return cls(sku=sku, action=SyncAction.SKIPPED, message=reason, **kwargs)

    @classmethod
    def failed(cls, sku: str, exc: BaseException, **kwargs) -> "Decision":
        return cls(
            sku=sku,
            action=SyncAction.ERROR,
            error=str(exc) or exc.__class__.__name__,
            error_kind=error_kind_for(exc),
            **kwargs,
        )


class RunResult(BaseModel):
    """Summary of a sync_many / sync_all run"""
    model_config = ConfigDict(frozen=True)

    total: int
    updated: int = 0
    no_change: int = 0
    skipped: int = 0
    errors: int = 0
    details: List[Decision] = Field(default_factory=list)
    elapsed_seconds: float = 0.0
    dry_run: bool = False
    retry_attempts: int = 0
    warnings: List[str] = Field(default_factory=list)
    unlinkable: List[UnlinkableListing] = Field(default_factory=list)

    @property
    def throughput(self) -> float:
        """SKUs processed per second"""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total / self.elapsed_seconds

    @property
    def failures(self) -> List[Decision]:
        return [d for d in self.details if d.is_error]

    def print_summary(self):
        """Prints a formatted report to the console."""
        print("\n" + "=" * 60)
        print("STOCK SYNC SUMMARY")
        print("=" * 60)
        print(f"Mode          : {'Dry Run' if self.dry_run else 'Live Run'}")
        print(f"- Updated      : {self.updated}")
        print(f"- No change    : {self.no_change}")
        print(f"- Skipped      : {self.skipped}")
        print(f"- Final errors : {self.errors}")
        print(f"- Retry rounds : {self.retry_attempts}")
        print(f"- Elapsed      : {self.elapsed_seconds:.2f}s")
        print(f"- Throughput   : {self.throughput:.2f} SKUs/second")

        if self.failures:
            print("\n## Still failing ##")
            for failure in self.failures:
                print(f"- {failure.sku}: {failure.error}")

        missing_sku = [u for u in self.unlinkable if u.reason == "missing_sku"]
        unreadable = [u for u in self.unlinkable if u.reason != "missing_sku"]
        if missing_sku:
            print(f"\n{len(missing_sku)} listings have no SKU configured and were not synced.")
        if unreadable:
            print(f"{len(unreadable)} listings could not be read and were not synced.")
        print("=" * 60)
