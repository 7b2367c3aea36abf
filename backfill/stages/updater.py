from typing import Any, Dict, Iterable, List

from backfill.dao.base import DocumentStore
from backfill.schemas.records import PlannedUpdate, Record
from backfill.stages.key_collector import needs_backfill
from backfill.utils.logger import get_logger

logger = get_logger(__name__)


def plan_updates(records: Iterable[Record], resolved: Dict[Any, str]) -> List[PlannedUpdate]:
    planned = []
    for record in records:
        if not needs_backfill(record):
            continue
        value = resolved.get(record.owner_key)
        if not value:
            continue
        planned.append(PlannedUpdate(record_id=record.id, owner_key=record.owner_key, value=value))
        logger.info("%s : %s : %s", record.id, record.owner_key, value)
    return planned


def apply_updates(store: DocumentStore, collection: str, target_field: str, planned: List[PlannedUpdate]) -> int:
    """Commit every planned update in one bulk write. Raises `CommitFailure`."""
    if not planned:
        logger.info("No records to update in %s", collection)
        return 0
    applied = store.commit_updates(
        collection, [(u.record_id, {target_field: u.value}) for u in planned]
    )
    logger.info("Committed %d updates to %s.%s", applied, collection, target_field)
    return applied
