import copy

import pytest

from backfill.dao.base import DocumentStore
from backfill.errors import CommitFailure, ReadFailure
from backfill.schemas.records import StoredDocument


class InMemoryStore(DocumentStore):
    """Dict-backed store that records the queries it receives."""

    name = "memory"

    def __init__(self, collections=None):
        # {collection: {doc_id: data}}
        self.collections = copy.deepcopy(collections or {})
        self.find_in_calls = []
        self.commits = []
        self.closed = False
        self.fail_reads = False
        self.fail_lookups_on = None
        self.fail_commit = False

    def fetch_all(self, collection):
        if self.fail_reads:
            raise ReadFailure("scan unavailable")
        docs = self.collections.get(collection, {})
        return [StoredDocument(id=k, data=dict(v)) for k, v in docs.items()]

    def find_in(self, collection, field, values):
        values = list(values)
        self.find_in_calls.append((collection, field, values))
        assert len(values) <= 30
        if self.fail_lookups_on is not None and self.fail_lookups_on in values:
            raise ReadFailure("lookup unavailable")
        docs = self.collections.get(collection, {})
        return [
            StoredDocument(id=k, data=dict(v))
            for k, v in docs.items()
            if v.get(field) in values
        ]

    def commit_updates(self, collection, updates):
        updates = list(updates)
        if self.fail_commit:
            raise CommitFailure("commit rejected")
        docs = self.collections.setdefault(collection, {})
        for doc_id, fields in updates:
            docs[doc_id].update(fields)
        self.commits.append((collection, updates))
        return len(updates)

    def close(self):
        self.closed = True


@pytest.fixture
def scenario_store():
    return InMemoryStore({
        "howtos": {
            "A": {"_createdBy": "u1", "creatorCountry": None},
            "B": {"_createdBy": "u2", "creatorCountry": "FR"},
            "C": {"_createdBy": "u3", "creatorCountry": ""},
        },
        "users": {
            "user-doc-1": {"userName": "u1", "country": "DE"},
            "user-doc-3": {"userName": "u3", "country": None},
        },
    })


@pytest.fixture
def make_store():
    return InMemoryStore
