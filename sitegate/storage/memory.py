from copy import deepcopy
from typing import Any

from sitegate.storage.base import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = deepcopy(initial) if initial else {}

    @property
    def kind(self) -> str:
        return "memory"

    def get_value(self, key: str) -> Any | None:
        return deepcopy(self._values.get(key))

    def put_value(self, key: str, value: Any) -> None:
        self._values[key] = deepcopy(value)
