from fastapi.testclient import TestClient

ADMIN_KEY = "admin-key-123"
MEMBER_KEY = "member-key-456"
SETTINGS_URL = "/admin/settings/maintenance-mode"


def _create_client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SITEGATE_ENV", "dev")
    monkeypatch.setenv("SITEGATE_STORAGE", "local")
    monkeypatch.setenv("SITEGATE_ADMIN_KEYS", ADMIN_KEY)
    monkeypatch.setenv("SITEGATE_MEMBER_KEYS", MEMBER_KEY)
    from sitegate.main import create_app

    return TestClient(create_app())


def _configure(client, **values):
    store = client.app.state.config_store
    if "enabled" in values:
        store.set_enabled(values["enabled"])
    if "heading" in values:
        store.set_heading(values["heading"])
    if "message" in values:
        store.set_message(values["message"])
    if "secret_phrase" in values:
        store.set_secret_phrase(values["secret_phrase"])


def test_site_open_when_maintenance_disabled(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)

    response = client.get("/")
    assert response.status_code == 200
    assert "Welcome." in response.text
    assert "maintenance_mode_secret_phrase" not in response.headers.get("set-cookie", "")


def test_maintenance_page_replaces_content(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True, heading="<b>Hi</b>", message="Back at noon")

    response = client.get("/")
    assert response.status_code == 503
    assert response.headers["content-type"].startswith("text/html")
    assert response.headers.get("Retry-After") == "3600"
    assert "&lt;b&gt;Hi&lt;/b&gt;" in response.text
    assert "Back at noon" in response.text
    assert "Welcome." not in response.text


def test_maintenance_blocks_health(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True)

    assert client.get("/health").status_code == 503
    response = client.get("/health", headers={"X-Sitegate-Key": MEMBER_KEY})
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "maintenance": True}


def test_authenticated_users_pass(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True)

    assert client.get("/", headers={"X-Sitegate-Key": MEMBER_KEY}).status_code == 200
    assert client.get("/", headers={"X-Sitegate-Key": ADMIN_KEY}).status_code == 200
    assert client.get("/", headers={"X-Sitegate-Key": "wrong"}).status_code == 503

    client.cookies.set("sitegate_key", MEMBER_KEY)
    assert client.get("/").status_code == 200


def test_admin_paths_not_gated(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True)

    assert client.get("/admin/menu").status_code == 200
    assert client.get(SETTINGS_URL).status_code == 200


def test_secret_phrase_query_key_sets_bypass_cookie(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True, secret_phrase="xyz")

    response = client.get("/?xyz")
    assert response.status_code == 200
    assert response.cookies.get("maintenance_mode_secret_phrase") == "xyz"
    set_cookie = response.headers["set-cookie"]
    assert "Max-Age=604800" in set_cookie
    assert "Path=/" in set_cookie

    # The cookie alone now carries the visitor through.
    assert client.get("/").status_code == 200


def test_secret_phrase_as_query_value_is_ignored(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True, secret_phrase="xyz")

    assert client.get("/?token=xyz").status_code == 503


def test_changing_phrase_revokes_existing_cookies(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True, secret_phrase="xyz")
    client.cookies.set("maintenance_mode_secret_phrase", "xyz")
    assert client.get("/").status_code == 200

    _configure(client, secret_phrase="rotated")
    assert client.get("/").status_code == 503


def test_empty_phrase_disables_bypass(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True, secret_phrase="")
    client.cookies.set("maintenance_mode_secret_phrase", "")

    assert client.get("/?").status_code == 503
    assert client.get("/?=").status_code == 503


def test_gate_reads_configuration_on_every_request(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)

    assert client.get("/").status_code == 200
    _configure(client, enabled=True)
    assert client.get("/").status_code == 503
    _configure(client, enabled=False)
    assert client.get("/").status_code == 200


def test_non_latin1_phrase_bypasses_via_query_then_cookie(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)
    _configure(client, enabled=True, secret_phrase="暗号")

    response = client.get("/?暗号")
    assert response.status_code == 200
    assert "Welcome." in response.text
    assert response.cookies.get("maintenance_mode_secret_phrase") == "%E6%9A%97%E5%8F%B7"

    # The issued cookie alone now carries the visitor through.
    assert client.get("/").status_code == 200

    _configure(client, secret_phrase="別の")
    assert client.get("/").status_code == 503


def test_less_than_in_heading_renders_once_escaped(tmp_path, monkeypatch):
    client = _create_client(tmp_path, monkeypatch)

    client.post(
        "/admin/settings/maintenance-mode",
        headers={"X-Sitegate-Key": ADMIN_KEY},
        data={
            "save_activate": "1",
            "maintenance_mode_heading": "Back at 5 < 6pm",
            "maintenance_mode_message": "Fish & chips < 5",
        },
    )

    response = client.get("/")
    assert response.status_code == 503
    assert "<h1>Back at 5 &lt; 6pm</h1>" in response.text
    assert "<p>Fish &amp; chips &lt; 5</p>" in response.text
    assert "&amp;lt;" not in response.text
