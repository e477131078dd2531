import os
import tempfile

os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "needs-assessment-tests.log"))
os.environ.setdefault("INIT_SCHEMA", "0")

import pytest
from fastapi.testclient import TestClient

from db import ResponseStore, get_store
from main import app


@pytest.fixture
def store(tmp_path):
    s = ResponseStore(f"sqlite:///{tmp_path / 'responses.db'}", "test-key")
    s.init_schema()
    yield s
    s.dispose()


@pytest.fixture
def client_for():
    def make(store):
        app.dependency_overrides[get_store] = lambda: store
        return TestClient(app)

    yield make
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_for, store):
    with client_for(store) as c:
        yield c
