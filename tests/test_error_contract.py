import re

import pytest
from fastapi.testclient import TestClient

REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def _create_client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SITEGATE_ENV", "dev")
    from sitegate.main import create_app

    return TestClient(create_app())


def test_request_id_generated_header_present(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    response = client.get("/")
    assert response.status_code == 200
    assert REQUEST_ID_RE.fullmatch(response.headers.get("X-Request-Id", ""))


def test_request_id_passthrough_on_maintenance_page(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    client.app.state.config_store.set_enabled(True)

    response = client.get("/", headers={"X-Request-Id": "test-req-1234"})
    assert response.status_code == 503
    assert response.headers.get("X-Request-Id") == "test-req-1234"


def test_storage_failed_error_contract(tmp_path, monkeypatch):
    monkeypatch.setenv("SITEGATE_STORAGE", "s3")
    monkeypatch.delenv("SITEGATE_S3_BUCKET", raising=False)
    client = _create_client(tmp_path, monkeypatch)

    response = client.get("/")
    assert response.status_code == 500
    body = response.json()
    assert set(body.keys()) == {"code", "message", "request_id"}
    assert body["code"] == "STORAGE_FAILED"
    assert body["request_id"] == response.headers.get("X-Request-Id")


def test_corrupted_setting_fails_closed(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    (tmp_path / "settings" / "maintenance_mode.json").write_text("{broken", encoding="utf-8")

    response = client.get("/")
    assert response.status_code == 500
    assert response.json()["code"] == "STORAGE_FAILED"


def test_unauthorized_error_contract(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    response = client.get("/admin/extensions")
    assert response.status_code == 401
    body = response.json()
    assert set(body.keys()) == {"code", "message", "request_id"}
    assert body["code"] == "UNAUTHORIZED"
    assert body["request_id"] == response.headers.get("X-Request-Id")


def test_prod_env_requires_admin_key_on_startup(monkeypatch):
    monkeypatch.setenv("SITEGATE_ENV", "prod")
    monkeypatch.delenv("SITEGATE_ADMIN_KEYS", raising=False)
    from sitegate.main import create_app

    with pytest.raises(RuntimeError, match="admin key"):
        create_app()


def test_docs_disabled_in_prod(tmp_path, monkeypatch):
    monkeypatch.setenv("SITEGATE_ENV", "prod")
    monkeypatch.setenv("SITEGATE_ADMIN_KEYS", "k1")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    from sitegate.main import create_app

    client = TestClient(create_app())
    assert client.get("/docs").status_code == 404
    assert client.get("/redoc").status_code == 404
    assert client.get("/openapi.json").status_code == 404
