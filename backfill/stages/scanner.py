from typing import List

from backfill.dao.base import DocumentStore
from backfill.schemas.records import FieldMapping, Record, StoredDocument
from backfill.utils.logger import get_logger

logger = get_logger(__name__)


def to_record(doc: StoredDocument, mapping: FieldMapping) -> Record:
    # owner key is kept as stored; the reference lookup compares by value and type
    return Record(
        id=doc.id,
        owner_key=doc.data.get(mapping.owner_key_field),
        target_value=doc.data.get(mapping.target_field),
        data=doc.data,
    )


def scan_records(store: DocumentStore, collection: str, mapping: FieldMapping) -> List[Record]:
    """Read the whole source collection into memory.

    The missing-attribute filter is applied afterwards by the key collector;
    Firestore cannot query for absent fields, so the scan stays unfiltered.
    Store errors propagate as `ReadFailure`.
    """
    docs = store.fetch_all(collection)
    records = [to_record(d, mapping) for d in docs]
    logger.info("Scanned %d documents from %s", len(records), collection)
    return records
