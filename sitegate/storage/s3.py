import json
import os
from typing import Any

from sitegate.storage.base import KeyValueStorage, StorageFailedError


class S3Storage(KeyValueStorage):
    def __init__(
        self,
        bucket: str,
        prefix: str = "sitegate/",
        s3_client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix if prefix.endswith("/") else f"{prefix}/"
        self._s3_client = s3_client

    @property
    def kind(self) -> str:
        return "s3"

    @property
    def client(self):
        if self._s3_client is not None:
            return self._s3_client
        try:
            import boto3  # type: ignore
        except Exception as exc:
            raise StorageFailedError("Storage operation failed.") from exc
        self._s3_client = boto3.client("s3")
        return self._s3_client

    def _value_key(self, key: str) -> str:
        return f"{self.prefix}settings/{key}.json"

    def get_value(self, key: str) -> Any | None:
        if not self.bucket:
            raise StorageFailedError("Storage operation failed.")
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=self._value_key(key))
        except Exception as exc:
            if _is_missing_key(exc):
                return None
            raise StorageFailedError("Storage operation failed.") from exc
        try:
            raw = obj["Body"].read().decode("utf-8")
            return json.loads(raw)
        except Exception as exc:
            raise StorageFailedError("Storage operation failed.") from exc

    def put_value(self, key: str, value: Any) -> None:
        try:
            if not self.bucket:
                raise StorageFailedError("Storage operation failed.")
            body = json.dumps(value, ensure_ascii=False).encode("utf-8")
            self.client.put_object(
                Bucket=self.bucket,
                Key=self._value_key(key),
                Body=body,
                ContentType="application/json",
            )
        except Exception as exc:
            raise StorageFailedError("Storage operation failed.") from exc


def _is_missing_key(exc: Exception) -> bool:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return False
    code = str(response.get("Error", {}).get("Code", ""))
    return code in {"NoSuchKey", "404"}


def s3_from_env() -> "S3Storage":
    bucket = os.getenv("SITEGATE_S3_BUCKET", "")
    prefix = os.getenv("SITEGATE_S3_PREFIX", "sitegate/")
    return S3Storage(bucket=bucket, prefix=prefix)
