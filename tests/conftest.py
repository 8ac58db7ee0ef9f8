"""Pytest configuration helpers and shared fixtures.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture(params=["document", "indexed"])
def backend_name(request):
    return request.param


@pytest.fixture
def storage(backend_name, tmp_path):
    """An open backend of each variant, closed after the test."""
    from cstore_lib.storage import create_storage

    s = create_storage(backend=backend_name, data_dir=tmp_path)
    s.open()
    yield s
    s.close()


@pytest.fixture
def client(backend_name, tmp_path):
    """TestClient over an app using each backend; the lifespan opens storage."""
    from fastapi.testclient import TestClient
    from cstore_lib.config.config import ServerConfig
    from cstore_lib.main import create_app

    app = create_app(ServerConfig(storage_backend=backend_name, data_dir=str(tmp_path)))
    with TestClient(app) as c:
        yield c
