import os
from pathlib import Path

from sitegate.storage.base import KeyValueStorage, StorageFailedError
from sitegate.storage.local import LocalStorage
from sitegate.storage.memory import MemoryStorage
from sitegate.storage.s3 import s3_from_env


def get_storage() -> KeyValueStorage:
    storage_kind = os.getenv("SITEGATE_STORAGE", "local").lower()
    if storage_kind == "local":
        data_dir = Path(os.getenv("DATA_DIR", "./data"))
        return LocalStorage(data_dir=data_dir)
    if storage_kind == "s3":
        return s3_from_env()
    if storage_kind == "memory":
        return MemoryStorage()
    raise StorageFailedError("Storage operation failed.")
