# tests/conftest.py
import os
import tempfile
from datetime import datetime, timezone
import importlib
import pytest
from fastapi.testclient import TestClient

@pytest.fixture()
def fixed_now():
    # 2026-03-02 09:15:00 UTC
    return datetime(2026, 3, 2, 9, 15, 0, tzinfo=timezone.utc)

@pytest.fixture()
def app_client(monkeypatch, fixed_now):
    import api
    importlib.reload(api)

    # DB temporário
    tmp_db = tempfile.NamedTemporaryFile(delete=False)
    tmp_db.close()
    monkeypatch.setattr(api, "DB", tmp_db.name, raising=True)

    # Congela o relógio
    monkeypatch.setattr(api, "utc_now", lambda: fixed_now, raising=True)

    api.init_db()
    client = TestClient(api.app)

    yield client

    api.app.dependency_overrides = {}
    os.unlink(tmp_db.name)
