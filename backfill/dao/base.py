"""Document store interface consumed by the backfill pipeline."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence, Tuple

from backfill.schemas.records import StoredDocument

# (document id, {field: value}) pairs applied by one bulk write
FieldUpdates = Sequence[Tuple[Any, Dict[str, Any]]]


class DocumentStore(ABC):
    """Minimal surface the pipeline needs from a document database.

    Implementations raise `ReadFailure` / `CommitFailure` instead of their
    client library's native errors.
    """

    name = "abstract"

    @abstractmethod
    def fetch_all(self, collection: str) -> List[StoredDocument]:
        """Return every document of `collection` with its identifier."""

    @abstractmethod
    def find_in(self, collection: str, field: str, values: Sequence[Any]) -> List[StoredDocument]:
        """Return documents whose `field` equals one of `values`."""

    @abstractmethod
    def commit_updates(self, collection: str, updates: FieldUpdates) -> int:
        """Apply all `updates` as one atomic bulk write; return how many were applied."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
