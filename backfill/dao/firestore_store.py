from typing import Any, List, Sequence

from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter

from backfill.dao.base import DocumentStore, FieldUpdates
from backfill.errors import CommitFailure, ReadFailure
from backfill.schemas.records import StoredDocument
from backfill.utils.logger import get_logger

logger = get_logger(__name__)

# Firestore refuses write batches above this size
MAX_BATCH_WRITES = 500


def _to_stored(snapshot) -> StoredDocument:
    return StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})


class FirestoreDocumentStore(DocumentStore):
    """Firestore-backed store using a single `WriteBatch` for the commit."""

    name = "firestore"

    def __init__(self, client, on_close=None):
        self.client = client
        self._on_close = on_close

    def fetch_all(self, collection: str) -> List[StoredDocument]:
        try:
            return [_to_stored(s) for s in self.client.collection(collection).stream()]
        except GoogleAPICallError as e:
            raise ReadFailure(f"failed to read collection {collection!r}: {e}") from e

    def find_in(self, collection: str, field: str, values: Sequence[Any]) -> List[StoredDocument]:
        query = self.client.collection(collection).where(filter=FieldFilter(field, "in", list(values)))
        try:
            return [_to_stored(s) for s in query.stream()]
        except GoogleAPICallError as e:
            raise ReadFailure(f"lookup on {collection}.{field} failed: {e}") from e

    def commit_updates(self, collection: str, updates: FieldUpdates) -> int:
        updates = list(updates)
        if not updates:
            return 0
        if len(updates) > MAX_BATCH_WRITES:
            logger.warning(
                "Committing %d updates in one batch; Firestore accepts at most %d",
                len(updates), MAX_BATCH_WRITES,
            )
        coll = self.client.collection(collection)
        batch = self.client.batch()
        for doc_id, fields in updates:
            batch.update(coll.document(doc_id), fields)
        try:
            batch.commit()
        except GoogleAPICallError as e:
            raise CommitFailure(f"batch commit of {len(updates)} updates to {collection!r} failed: {e}") from e
        return len(updates)

    def close(self) -> None:
        if self._on_close is not None:
            self._on_close()
