from unittest.mock import MagicMock

import pytest
from google.auth.exceptions import DefaultCredentialsError
from pymongo.errors import ConfigurationError

from backfill import db
from backfill.config.settings import Settings, load_settings
from backfill.dao.firestore_store import FirestoreDocumentStore
from backfill.dao.mongo_store import MongoDocumentStore
from backfill.errors import BackfillConfigError
from backfill.schemas.records import FieldMapping


def test_settings_defaults(monkeypatch):
    for var in ("SOURCE_COLLECTION", "HOWTOS_COLLECTION", "REFERENCE_COLLECTION", "USERS_COLLECTION"):
        monkeypatch.delenv(var, raising=False)
    cfg = Settings(_env_file=None)

    assert cfg.STORE_BACKEND == "mongo"
    assert cfg.SOURCE_COLLECTION == "howtos"
    assert cfg.REFERENCE_COLLECTION == "users"
    assert cfg.field_mapping == FieldMapping()


def test_settings_accept_legacy_collection_variables(monkeypatch):
    monkeypatch.setenv("HOWTOS_COLLECTION", "guides")
    monkeypatch.setenv("USERS_COLLECTION", "members")
    cfg = Settings(_env_file=None)

    assert cfg.SOURCE_COLLECTION == "guides"
    assert cfg.REFERENCE_COLLECTION == "members"


def test_settings_field_mapping_from_env(monkeypatch):
    monkeypatch.setenv("TARGET_FIELD", "region")
    monkeypatch.setenv("REFERENCE_VALUE_FIELD", "homeRegion")
    mapping = Settings(_env_file=None).field_mapping

    assert mapping.target_field == "region"
    assert mapping.reference_value_field == "homeRegion"
    assert mapping.owner_key_field == "_createdBy"


def test_open_store_mongo_closes_client(monkeypatch):
    fake_client = MagicMock()
    monkeypatch.setattr(db, "MongoClient", MagicMock(return_value=fake_client))
    cfg = Settings(_env_file=None, STORE_BACKEND="mongo", MONGODB_USE_TRANSACTION=False)

    with db.open_store(cfg) as store:
        assert isinstance(store, MongoDocumentStore)
        assert store.use_transaction is False
        fake_client.close.assert_not_called()
    fake_client.close.assert_called_once()


def test_open_store_closes_on_failure(monkeypatch):
    fake_client = MagicMock()
    monkeypatch.setattr(db, "MongoClient", MagicMock(return_value=fake_client))

    with pytest.raises(RuntimeError):
        with db.open_store(Settings(_env_file=None)):
            raise RuntimeError("pipeline blew up")
    fake_client.close.assert_called_once()


def test_open_store_firestore(monkeypatch):
    app = object()
    init = MagicMock(return_value=app)
    delete = MagicMock()
    cert = MagicMock()
    monkeypatch.setattr(db.firebase_admin, "initialize_app", init)
    monkeypatch.setattr(db.firebase_admin, "delete_app", delete)
    monkeypatch.setattr(db.credentials, "Certificate", cert)
    monkeypatch.setattr(db.firestore, "client", MagicMock())
    cfg = Settings(
        _env_file=None,
        STORE_BACKEND="firestore",
        FIREBASE_CREDENTIALS_PATH="key.json",
        FIREBASE_DATABASE_URL="https://example.firebaseio.com",
    )

    with db.open_store(cfg) as store:
        assert isinstance(store, FirestoreDocumentStore)
    cert.assert_called_once_with("key.json")
    init.assert_called_once_with(
        cert.return_value, {"databaseURL": "https://example.firebaseio.com"}, name=db.FIREBASE_APP_NAME
    )
    delete.assert_called_once_with(app)


def test_unknown_backend_rejected(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "redis")
    cfg = load_settings()

    assert cfg.STORE_BACKEND == "redis"
    with pytest.raises(BackfillConfigError):
        db.build_store(cfg)


def test_mongo_client_errors_become_config_errors(monkeypatch):
    monkeypatch.setattr(db, "MongoClient", MagicMock(side_effect=ConfigurationError("bad uri")))

    with pytest.raises(BackfillConfigError) as exc_info:
        db.build_store(Settings(_env_file=None, STORE_BACKEND="mongo"))
    assert isinstance(exc_info.value.__cause__, ConfigurationError)


def test_missing_firebase_key_file_is_config_error(monkeypatch):
    init = MagicMock()
    monkeypatch.setattr(db.credentials, "Certificate", MagicMock(side_effect=FileNotFoundError("key.json")))
    monkeypatch.setattr(db.firebase_admin, "initialize_app", init)
    cfg = Settings(_env_file=None, STORE_BACKEND="firestore", FIREBASE_CREDENTIALS_PATH="key.json")

    with pytest.raises(BackfillConfigError):
        db.build_store(cfg)
    init.assert_not_called()


def test_firestore_client_failure_releases_app(monkeypatch):
    app = object()
    delete = MagicMock()
    monkeypatch.setattr(db.credentials, "ApplicationDefault", MagicMock())
    monkeypatch.setattr(db.firebase_admin, "initialize_app", MagicMock(return_value=app))
    monkeypatch.setattr(db.firebase_admin, "delete_app", delete)
    monkeypatch.setattr(db.firestore, "client", MagicMock(side_effect=DefaultCredentialsError("no project")))

    with pytest.raises(BackfillConfigError):
        db.build_store(Settings(_env_file=None, STORE_BACKEND="firestore"))
    delete.assert_called_once_with(app)
