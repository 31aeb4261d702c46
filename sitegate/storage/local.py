import json
import os
import re
from pathlib import Path
from typing import Any
from uuid import uuid4

from sitegate.storage.base import KeyValueStorage, StorageFailedError

SAFE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class LocalStorage(KeyValueStorage):
    """One JSON file per key, so writes to different keys never touch each other."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self.settings_dir = self.data_dir / "settings"
        self.settings_dir.mkdir(parents=True, exist_ok=True)

    @property
    def kind(self) -> str:
        return "local"

    def _value_path(self, key: str) -> Path:
        if not SAFE_KEY_PATTERN.fullmatch(key):
            raise StorageFailedError("Storage operation failed.")
        return self.settings_dir / f"{key}.json"

    def get_value(self, key: str) -> Any | None:
        path = self._value_path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageFailedError("Storage operation failed.") from exc

    def put_value(self, key: str, value: Any) -> None:
        path = self._value_path(key)
        try:
            data = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageFailedError("Storage operation failed.") from exc
        self._atomic_write_text(path, data)

    def _atomic_write_text(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(f"{path.name}.tmp.{uuid4().hex}")
            with tmp.open("w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except Exception as exc:
            raise StorageFailedError("Storage operation failed.") from exc
