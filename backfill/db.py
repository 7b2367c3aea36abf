"""Store handle construction.

There is no module-level client: `open_store` opens one connection per run
and releases it when the run finishes, whether it succeeded or failed.
"""

from contextlib import contextmanager
from typing import Iterator

import firebase_admin
from firebase_admin import credentials, firestore
from google.auth.exceptions import GoogleAuthError
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from backfill.config.settings import Settings
from backfill.dao.base import DocumentStore
from backfill.dao.firestore_store import FirestoreDocumentStore
from backfill.dao.mongo_store import MongoDocumentStore
from backfill.errors import BackfillConfigError
from backfill.utils.logger import get_logger

logger = get_logger(__name__)

FIREBASE_APP_NAME = "backfill"


def _mongo_store(cfg: Settings) -> MongoDocumentStore:
    try:
        client = MongoClient(cfg.MONGODB_URI)
    except PyMongoError as e:
        raise BackfillConfigError(f"cannot create MongoDB client: {e}") from e
    logger.info("Opened MongoDB client for database %s", cfg.MONGODB_DB_NAME)
    return MongoDocumentStore(
        client,
        cfg.MONGODB_DB_NAME,
        use_transaction=cfg.MONGODB_USE_TRANSACTION,
        owns_client=True,
    )


def _firestore_store(cfg: Settings) -> FirestoreDocumentStore:
    try:
        if cfg.FIREBASE_CREDENTIALS_PATH:
            cred = credentials.Certificate(cfg.FIREBASE_CREDENTIALS_PATH)
        else:
            cred = credentials.ApplicationDefault()
        options = {"databaseURL": cfg.FIREBASE_DATABASE_URL} if cfg.FIREBASE_DATABASE_URL else None
        app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
    except (ValueError, OSError, GoogleAuthError) as e:
        raise BackfillConfigError(f"cannot initialize Firebase app: {e}") from e
    logger.info("Initialized Firebase app %s", FIREBASE_APP_NAME)

    try:
        client = firestore.client(app)
    except (ValueError, GoogleAuthError) as e:
        firebase_admin.delete_app(app)
        raise BackfillConfigError(f"cannot create Firestore client: {e}") from e
    return FirestoreDocumentStore(client, on_close=lambda: firebase_admin.delete_app(app))


def build_store(cfg: Settings) -> DocumentStore:
    if cfg.STORE_BACKEND == "mongo":
        return _mongo_store(cfg)
    if cfg.STORE_BACKEND == "firestore":
        return _firestore_store(cfg)
    raise BackfillConfigError(f"unknown store backend: {cfg.STORE_BACKEND!r}")


@contextmanager
def open_store(cfg: Settings) -> Iterator[DocumentStore]:
    store = build_store(cfg)
    try:
        yield store
    finally:
        store.close()
        logger.info("Closed %s store", store.name)
