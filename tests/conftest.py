import pytest


@pytest.fixture()
def app_client(tmp_path, monkeypatch):
    """Create an isolated Flask test client backed by a temporary sqlite DB."""
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("SPINWHEEL_DB_PATH", str(db_path))
    monkeypatch.setenv("FLASK_DEBUG", "1")
    monkeypatch.setenv("FLASK_SECRET_KEY", "test-secret-key-0123456789")
    monkeypatch.setenv("CATALOG_CACHE_TTL_SEC", "600")

    # Clear cached catalog snapshots so each test sees only its own fixture data.
    from app.services import catalog as catalog_service

    catalog_service.invalidate()

    from app.app import create_app

    app = create_app()
    app.config.update(TESTING=True)

    with app.test_client() as client:
        yield app, client, db_path

    catalog_service.invalidate()
