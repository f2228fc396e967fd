"""
Shared fixtures: an isolated API (tmp dirs) and helpers to upload PDFs.
"""
import pytest
from fastapi.testclient import TestClient

from uniarchive.client.api import ArchiveClient
from uniarchive.client.config import ClientConfig
from uniarchive.main import create_app
from uniarchive.settings import Settings

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        storage_backend="sqlite",
        db_url=f"sqlite:///{tmp_path / 'db' / 'archive.db'}",
        json_data_dir=str(tmp_path / "data"),
        upload_dir=str(tmp_path / "uploads"),
        stats_cache_ttl=60,
        allowed_origins="http://localhost:8501",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def api(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def archive(api) -> ArchiveClient:
    """ArchiveClient talking to the in-process API."""
    return ArchiveClient(ClientConfig(base_url="http://testserver"), http=api)


def upload(api, *, semester="S1", doc_type="cours", subject="Analyse", year="2024",
           filename="cours1.pdf", content=PDF_BYTES, content_type="application/pdf"):
    return api.post(
        "/api/upload",
        data={"semester": semester, "type": doc_type, "subject": subject, "year": year},
        files={"pdf": (filename, content, content_type)},
    )
