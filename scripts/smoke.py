#!/usr/bin/env python3
import os
import sys
from typing import Any

import httpx

KEY_HEADER = "X-Sitegate-Key"
SETTINGS_PATH = "/admin/settings/maintenance-mode"


def _required_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise SystemExit(f"Missing required environment variable: {name}")
    return value


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _assert_status(endpoint: str, response: httpx.Response, expected: int) -> None:
    if response.status_code != expected:
        code = _json_body(response).get("code", "unknown")
        raise SystemExit(f"{endpoint} expected {expected}, got {response.status_code} (code={code})")


def _print_result(endpoint: str, status_code: int, request_id: str = "", extra: str = "") -> None:
    parts = [f"{endpoint} -> {status_code}"]
    if request_id:
        parts.append(f"request_id={request_id}")
    if extra:
        parts.append(extra)
    print(" ".join(parts))


def main() -> int:
    base_url = _required_env("SMOKE_BASE_URL").rstrip("/")
    admin_key = _required_env("SMOKE_ADMIN_KEY")
    timeout_sec = float(os.getenv("SMOKE_TIMEOUT_SEC", "30"))
    auth_headers = {KEY_HEADER: admin_key}

    with httpx.Client(timeout=timeout_sec) as client:
        health = client.get(f"{base_url}/health", headers=auth_headers)
        _assert_status("GET /health", health, 200)
        maintenance = _json_body(health).get("maintenance")
        _print_result(
            "GET /health",
            health.status_code,
            request_id=health.headers.get("X-Request-Id", ""),
            extra=f"maintenance={maintenance}",
        )

        public = client.get(f"{base_url}/")
        _assert_status("GET / (anonymous)", public, 503 if maintenance else 200)
        _print_result("GET / (anonymous)", public.status_code, request_id=public.headers.get("X-Request-Id", ""))

        anonymous_settings = client.get(f"{base_url}{SETTINGS_PATH}")
        _assert_status(f"GET {SETTINGS_PATH} (anonymous)", anonymous_settings, 200)
        if anonymous_settings.text:
            raise SystemExit(f"GET {SETTINGS_PATH} (anonymous) returned settings content")
        _print_result(f"GET {SETTINGS_PATH} (anonymous)", anonymous_settings.status_code)

        settings = client.get(f"{base_url}{SETTINGS_PATH}", headers=auth_headers)
        _assert_status(f"GET {SETTINGS_PATH} (admin)", settings, 200)
        if "Current status:" not in settings.text:
            raise SystemExit(f"GET {SETTINGS_PATH} (admin) did not render the settings form")
        _print_result(f"GET {SETTINGS_PATH} (admin)", settings.status_code)

    print("smoke ok")
    return 0


if __name__ == "__main__":
    sys.exit(main())
