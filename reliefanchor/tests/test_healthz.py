import reliefanchor.api.health as health_api


def test_healthz_always_ok(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_readyz_ok_with_sqlite(client, sql_storage, sql_engine, monkeypatch):
    monkeypatch.setattr(health_api, "get_engine", lambda: sql_engine)

    resp = client.get("/readyz")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_readyz_reports_missing_table(client, sql_engine, monkeypatch):
    monkeypatch.setattr(health_api, "get_engine", lambda: sql_engine)

    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert "device_storage" in resp.json().get("detail", "")


def test_readyz_handles_db_down(client, monkeypatch):
    def boom():
        raise RuntimeError("db down")

    monkeypatch.setattr(health_api, "get_engine", boom)

    resp = client.get("/readyz")
    body = resp.json()
    assert resp.status_code == 503
    assert body.get("status") == "error"
    assert "database" in body.get("detail", "")
