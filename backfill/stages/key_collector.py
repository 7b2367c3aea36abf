from typing import Any, Iterable, Set, Tuple

from backfill.schemas.records import Record
from backfill.utils.helpers import is_blank
from backfill.utils.logger import get_logger

logger = get_logger(__name__)


def needs_backfill(record: Record) -> bool:
    """A record qualifies when it lacks the target value but has an owner key."""
    return is_blank(record.target_value) and not is_blank(record.owner_key)


def collect_owner_keys(records: Iterable[Record]) -> Tuple[Set[Any], int]:
    keys: Set[Any] = set()
    count = 0
    for record in records:
        if needs_backfill(record):
            keys.add(record.owner_key)
            count += 1
    logger.info("Found %d records without the target attribute, linked to %d owners", count, len(keys))
    return keys, count
