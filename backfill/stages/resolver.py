from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List

from backfill.dao.base import DocumentStore
from backfill.schemas.records import FieldMapping, ReferenceEntity, StoredDocument
from backfill.utils.helpers import as_text, chunked, is_blank
from backfill.utils.logger import get_logger

logger = get_logger(__name__)

# Upper bound on values in a single set-membership ("in") query
MAX_IN_QUERY_VALUES = 30


def _sort_key(key: Any):
    # keys may mix types (str, int, ObjectId), which do not compare directly
    return type(key).__name__, str(key)


def chunk_keys(keys: Iterable[Any], size: int = MAX_IN_QUERY_VALUES) -> List[List[Any]]:
    """Partition keys into lists of at most `size`; sorted so runs are reproducible."""
    if size > MAX_IN_QUERY_VALUES:
        raise ValueError(f"chunk size {size} exceeds the {MAX_IN_QUERY_VALUES}-value query limit")
    return list(chunked(sorted(keys, key=_sort_key), size))


def to_reference(doc: StoredDocument, mapping: FieldMapping) -> ReferenceEntity:
    return ReferenceEntity(
        storage_id=doc.id,
        name=doc.data.get(mapping.reference_key_field),
        resolved_value=as_text(doc.data.get(mapping.reference_value_field)),
    )


def _lookup_chunk(store: DocumentStore, collection: str, chunk: List[Any], mapping: FieldMapping) -> Dict[Any, str]:
    found: Dict[Any, str] = {}
    docs = store.find_in(collection, mapping.reference_key_field, chunk)
    for doc in docs:
        entity = to_reference(doc, mapping)
        if is_blank(entity.name) or is_blank(entity.resolved_value):
            continue
        found[entity.name] = entity.resolved_value
    logger.debug("Chunk of %d keys matched %d documents, %d resolved", len(chunk), len(docs), len(found))
    return found


def resolve_owner_keys(
    store: DocumentStore,
    collection: str,
    keys: Iterable[Any],
    mapping: FieldMapping,
    max_workers: int = 1,
    chunk_size: int = MAX_IN_QUERY_VALUES,
) -> Dict[Any, str]:
    """Resolve owner keys to values from the reference collection.

    Returns a map of owner key -> resolved value. Keys without a match, or
    whose match has an empty value, are left out. Any failed chunk query
    aborts the whole resolution; nothing partial is returned.
    """
    chunks = chunk_keys(keys, chunk_size)
    resolved: Dict[Any, str] = {}
    if not chunks:
        return resolved

    if max_workers <= 1 or len(chunks) == 1:
        for chunk in chunks:
            resolved.update(_lookup_chunk(store, collection, chunk, mapping))
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(_lookup_chunk, store, collection, c, mapping) for c in chunks]
            try:
                # merge in submission order so the result does not depend on timing
                for future in futures:
                    resolved.update(future.result())
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    logger.info("Resolved %d of %d keys in %d queries", len(resolved), sum(len(c) for c in chunks), len(chunks))
    return resolved
