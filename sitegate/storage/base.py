from abc import ABC, abstractmethod
from typing import Any


class StorageFailedError(Exception):
    pass


class KeyValueStorage(ABC):
    @property
    @abstractmethod
    def kind(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_value(self, key: str) -> Any | None:
        """Return the stored value, or None when the key was never written."""
        raise NotImplementedError

    @abstractmethod
    def put_value(self, key: str, value: Any) -> None:
        raise NotImplementedError
