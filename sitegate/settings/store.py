from typing import Any

from sitegate.schemas import DEFAULT_HEADING, DEFAULT_MESSAGE, MaintenanceConfig
from sitegate.storage.base import KeyValueStorage

ENABLED_KEY = "maintenance_mode"
HEADING_KEY = "maintenance_mode_heading"
MESSAGE_KEY = "maintenance_mode_message"
SECRET_PHRASE_KEY = "maintenance_mode_secret_phrase"


class ConfigStore:
    """Typed facade over the key-value backend.

    Every setter persists its key immediately and on its own; there is no
    write spanning several keys, so concurrent editors race per key.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get(self, key: str, default: Any = None) -> Any:
        value = self.storage.get_value(key)
        if value is None:
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        self.storage.put_value(key, value)

    def is_enabled(self) -> bool:
        return bool(self.get(ENABLED_KEY, False))

    def set_enabled(self, enabled: bool) -> None:
        self.set(ENABLED_KEY, bool(enabled))

    def heading(self) -> str:
        return str(self.get(HEADING_KEY, DEFAULT_HEADING))

    def set_heading(self, heading: str) -> None:
        self.set(HEADING_KEY, heading)

    def message(self) -> str:
        return str(self.get(MESSAGE_KEY, DEFAULT_MESSAGE))

    def set_message(self, message: str) -> None:
        self.set(MESSAGE_KEY, message)

    def secret_phrase(self) -> str:
        return str(self.get(SECRET_PHRASE_KEY, ""))

    def set_secret_phrase(self, phrase: str) -> None:
        self.set(SECRET_PHRASE_KEY, phrase)

    def load(self) -> MaintenanceConfig:
        return MaintenanceConfig(
            enabled=self.is_enabled(),
            heading=self.heading(),
            message=self.message(),
            secret_phrase=self.secret_phrase(),
        )
