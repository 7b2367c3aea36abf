"""Scan -> collect keys -> resolve -> update, run once against one store handle."""

from typing import Any, Dict, List, Optional, Set

from backfill.dao.base import DocumentStore
from backfill.schemas.records import (
    BackfillReport,
    FieldMapping,
    PipelineState,
    PlannedUpdate,
    Record,
)
from backfill.stages.key_collector import collect_owner_keys
from backfill.stages.resolver import resolve_owner_keys
from backfill.stages.scanner import scan_records
from backfill.stages.updater import apply_updates, plan_updates
from backfill.utils.logger import get_logger

logger = get_logger(__name__)

_NEXT_STATE = {
    PipelineState.INIT: PipelineState.SCANNED,
    PipelineState.SCANNED: PipelineState.KEYS_COLLECTED,
    PipelineState.KEYS_COLLECTED: PipelineState.RESOLVED,
    PipelineState.RESOLVED: PipelineState.UPDATED,
    PipelineState.UPDATED: PipelineState.DONE,
}


class BackfillPipeline:
    """Single-use backfill run.

    The store handle is passed in by the caller, who owns its lifecycle
    (see `backfill.db.open_store`). Each stage finishes before the next one
    starts; a failure in any stage moves the run to ERROR and re-raises.
    """

    def __init__(
        self,
        store: DocumentStore,
        source_collection: str,
        reference_collection: str,
        mapping: Optional[FieldMapping] = None,
        max_workers: int = 1,
        dry_run: bool = False,
    ):
        self.store = store
        self.source_collection = source_collection
        self.reference_collection = reference_collection
        self.mapping = mapping or FieldMapping()
        self.max_workers = max_workers
        self.dry_run = dry_run
        self.state = PipelineState.INIT

        self.records: List[Record] = []
        self.keys: Set[Any] = set()
        self.resolved: Dict[Any, str] = {}
        self.planned: List[PlannedUpdate] = []

    def _advance(self):
        nxt = _NEXT_STATE[self.state]
        logger.debug("Pipeline state %s -> %s", self.state.value, nxt.value)
        self.state = nxt

    def run(self) -> BackfillReport:
        if self.state != PipelineState.INIT:
            raise RuntimeError(f"pipeline already ran (state={self.state.value})")
        report = BackfillReport(dry_run=self.dry_run)
        try:
            self.records = scan_records(self.store, self.source_collection, self.mapping)
            report.scanned = len(self.records)
            self._advance()

            self.keys, report.qualifying = collect_owner_keys(self.records)
            report.unique_keys = len(self.keys)
            self._advance()

            self.resolved = resolve_owner_keys(
                self.store,
                self.reference_collection,
                self.keys,
                self.mapping,
                max_workers=self.max_workers,
            )
            report.resolved_keys = len(self.resolved)
            self._advance()

            self.planned = plan_updates(self.records, self.resolved)
            if self.dry_run:
                logger.info("Dry run: %d updates not committed", len(self.planned))
            else:
                report.updated = apply_updates(
                    self.store, self.source_collection, self.mapping.target_field, self.planned
                )
            self._advance()
        except Exception as e:
            self.state = PipelineState.ERROR
            logger.error("Error during backfill: %s", e)
            raise

        self._advance()
        report.state = self.state
        logger.info("Backfill completed successfully.")
        return report
