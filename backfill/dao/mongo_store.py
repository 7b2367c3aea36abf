from typing import Any, List, Sequence

from pymongo import MongoClient, UpdateOne
from pymongo.errors import PyMongoError

from backfill.dao.base import DocumentStore, FieldUpdates
from backfill.errors import CommitFailure, ReadFailure
from backfill.schemas.records import StoredDocument
from backfill.utils.logger import get_logger

logger = get_logger(__name__)


def _to_stored(doc) -> StoredDocument:
    data = dict(doc)
    return StoredDocument(id=data.get("_id"), data=data)


class MongoDocumentStore(DocumentStore):
    """pymongo-backed store.

    The bulk write runs inside a single session transaction when
    `use_transaction` is set and is committed exactly once, which gives
    all-or-nothing semantics on replica sets and sharded clusters. Without it, an ordered `bulk_write` is issued and a failure can
    leave earlier updates applied.
    """

    name = "mongo"

    def __init__(self, client: MongoClient, db_name: str, use_transaction: bool = True, owns_client: bool = False):
        self.client = client
        self.db = client.get_database(db_name)
        self.use_transaction = use_transaction
        self._owns_client = owns_client

    def fetch_all(self, collection: str) -> List[StoredDocument]:
        try:
            return [_to_stored(d) for d in self.db[collection].find({})]
        except PyMongoError as e:
            raise ReadFailure(f"failed to read collection {collection!r}: {e}") from e

    def find_in(self, collection: str, field: str, values: Sequence[Any]) -> List[StoredDocument]:
        try:
            cursor = self.db[collection].find({field: {"$in": list(values)}})
            return [_to_stored(d) for d in cursor]
        except PyMongoError as e:
            raise ReadFailure(f"lookup on {collection}.{field} failed: {e}") from e

    def commit_updates(self, collection: str, updates: FieldUpdates) -> int:
        ops = [UpdateOne({"_id": doc_id}, {"$set": fields}) for doc_id, fields in updates]
        if not ops:
            return 0
        coll = self.db[collection]
        try:
            if self.use_transaction:
                # single commit attempt, no retry loop
                with self.client.start_session() as session:
                    with session.start_transaction():
                        result = coll.bulk_write(ops, ordered=True, session=session)
            else:
                result = coll.bulk_write(ops, ordered=True)
        except PyMongoError as e:
            raise CommitFailure(f"bulk write of {len(ops)} updates to {collection!r} failed: {e}") from e
        logger.debug("bulk_write matched=%s modified=%s", result.matched_count, result.modified_count)
        return len(ops)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
