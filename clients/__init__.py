"""Storage clients shared by the auth and licensing packages."""

from clients.json_store_client import (
    StorageError,
    BaseStoreClient,
    JsonStoreClient,
    MemoryStoreClient,
)
