from fastapi.testclient import TestClient

from storefront import config, main


def test_importing_main_builds_no_app():
    assert not hasattr(main, "app")


def test_get_app_serves_health_and_metrics(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))

    client = TestClient(main.get_app())

    assert client.get("/health").json() == {"status": "healthy", "service": "storefront-backend"}
    assert client.get("/metrics").status_code == 200
    assert (tmp_path / "uploads").is_dir()
