import os
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from backfill.schemas.records import FieldMapping


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.path.abspath(os.path.join(os.path.dirname(__file__), "../../.env")),
        extra="allow"
    )

    # "mongo" or "firestore"; anything else is rejected when the store is opened
    STORE_BACKEND: str = "mongo"

    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "backfill"
    # multi-document transactions need a replica set; disable for a standalone server
    MONGODB_USE_TRANSACTION: bool = True

    FIREBASE_DATABASE_URL: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None

    SOURCE_COLLECTION: str = Field(
        "howtos", validation_alias=AliasChoices("SOURCE_COLLECTION", "HOWTOS_COLLECTION")
    )
    REFERENCE_COLLECTION: str = Field(
        "users", validation_alias=AliasChoices("REFERENCE_COLLECTION", "USERS_COLLECTION")
    )

    OWNER_KEY_FIELD: str = "_createdBy"
    TARGET_FIELD: str = "creatorCountry"
    REFERENCE_KEY_FIELD: str = "userName"
    REFERENCE_VALUE_FIELD: str = "country"

    RESOLVER_MAX_WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    @property
    def field_mapping(self) -> FieldMapping:
        return FieldMapping(
            owner_key_field=self.OWNER_KEY_FIELD,
            target_field=self.TARGET_FIELD,
            reference_key_field=self.REFERENCE_KEY_FIELD,
            reference_value_field=self.REFERENCE_VALUE_FIELD,
        )


def load_settings() -> Settings:
    """Read settings from the environment and `.env`.

    Not done at import time so that an invalid value surfaces inside the
    CLI, where it is logged and mapped to an exit code.
    """
    return Settings()
