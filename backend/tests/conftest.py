"""Pytest configuration and fixtures for testing the Bucket CSV Import API."""
import pytest
import tempfile
import shutil
from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from bucket_import.client import ImportServiceClient
from bucket_import.config import ImportSettings
from bucket_import.main import app, get_import_client


class FakeLedgerBackend:
    """In-process stand-in for the ledger backend, served via httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.routes = {
            ("POST", "/imports"): (201, {"id": 42}),
            ("GET", "/imports"): (200, {"data": [{"id": 42, "fileName": "statement.csv"}]}),
            ("GET", "/imports/42"): (200, {"data": {"id": 42, "mappings": []}}),
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(route, Exception):
            raise route
        status_code, payload = route
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def test_settings():
    return ImportSettings(api_url="http://ledger.test")


@pytest.fixture
def fake_backend():
    return FakeLedgerBackend()


@pytest.fixture
def import_client(test_settings, fake_backend):
    """ImportServiceClient wired to the fake backend."""
    http_client = httpx.Client(
        base_url=test_settings.api_url,
        transport=httpx.MockTransport(fake_backend.handle),
    )
    client = ImportServiceClient(test_settings, client=http_client)
    yield client
    client.close()


@pytest.fixture
def temp_drafts_dir():
    """Create a temporary directory for draft files during testing."""
    temp_dir = tempfile.mkdtemp()

    # Patch DRAFTS_DIR in the utils module
    import bucket_import.utils as utils_module
    original_dir = utils_module.DRAFTS_DIR
    utils_module.DRAFTS_DIR = Path(temp_dir)

    yield temp_dir

    # Cleanup: restore original path and remove temp directory
    utils_module.DRAFTS_DIR = original_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def client(temp_drafts_dir, import_client):
    """Create a test client for the FastAPI application."""
    app.dependency_overrides[get_import_client] = lambda: import_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_csv_content():
    """Semicolon separated bank export with quoted fields."""
    return (
        'Date;Amount;Note\n'
        '01.01.2024;"1.234,56";"Rent, monthly"\n'
        '02.01.2024;-50,00;Groceries\n'
    )


@pytest.fixture
def sample_csv_file(sample_csv_content, tmp_path):
    """Create a temporary CSV file for testing."""
    csv_file = tmp_path / "statement.csv"
    csv_file.write_text(sample_csv_content, encoding="utf-8")
    return csv_file


@pytest.fixture
def uploaded_draft(client, sample_csv_file):
    """Upload the sample file and return the draft response body."""
    with open(sample_csv_file, "rb") as f:
        response = client.post(
            "/upload",
            files={"file": ("statement.csv", f, "text/csv")}
        )
    assert response.status_code == 200
    return response.json()
