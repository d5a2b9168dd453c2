"""Tests for document upload."""
import io
import os

import pytest
from httpx import AsyncClient

from insurance_portal.core.config import settings
from insurance_portal.services import upload_service


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


@pytest.mark.asyncio
async def test_upload_stores_file_and_returns_url(client: AsyncClient, client_auth, upload_dir):
    response = await client.post(
        "/api/upload",
        headers=client_auth.headers,
        files={"file": ("Passport Scan.PDF", b"%PDF-1.4 test", "application/pdf")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Passport Scan.PDF"
    assert data["fileUrl"].startswith("/uploads/")
    assert data["fileUrl"].endswith(".pdf")

    stored_name = data["fileUrl"].rsplit("/", 1)[1]
    assert (upload_dir / stored_name).read_bytes() == b"%PDF-1.4 test"


@pytest.mark.asyncio
async def test_upload_names_do_not_collide(client: AsyncClient, client_auth, upload_dir):
    urls = set()
    for _ in range(2):
        response = await client.post(
            "/api/upload",
            headers=client_auth.headers,
            files={"file": ("same.png", b"png", "image/png")},
        )
        urls.add(response.json()["fileUrl"])
    assert len(urls) == 2


@pytest.mark.asyncio
async def test_upload_without_file_is_400(client: AsyncClient, client_auth, upload_dir):
    response = await client.post("/api/upload", headers=client_auth.headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded"


@pytest.mark.asyncio
async def test_upload_requires_session(client: AsyncClient, upload_dir):
    response = await client.post(
        "/api/upload", files={"file": ("a.txt", b"a", "text/plain")}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_upload_too_large_is_413(client: AsyncClient, client_auth, upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    response = await client.post(
        "/api/upload",
        headers=client_auth.headers,
        files={"file": ("big.bin", b"x" * 11, "application/octet-stream")},
    )
    assert response.status_code == 413
    assert os.listdir(upload_dir) == []


@pytest.mark.asyncio
async def test_upload_storage_failure_is_500(client: AsyncClient, client_auth, upload_dir, monkeypatch):
    def broken_store(name, file):
        raise OSError("disk full")

    monkeypatch.setattr(upload_service, "store_upload", broken_store)
    response = await client.post(
        "/api/upload",
        headers=client_auth.headers,
        files={"file": ("a.txt", b"a", "text/plain")},
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to store file. Please try again."


def test_storage_key_keeps_only_a_safe_extension():
    assert upload_service.generate_storage_key("report.JPEG").endswith(".jpeg")
    assert "." not in upload_service.generate_storage_key("no-extension")
    key = upload_service.generate_storage_key("../../etc/passwd.s h")
    assert "/" not in key and "." not in key


def test_store_upload_counts_bytes(upload_dir):
    stored = upload_service.store_upload("notes.txt", io.BytesIO(b"hello"))
    assert stored.size == 5
    assert stored.file_url == f"/uploads/{stored.storage_key}"
    assert (upload_dir / stored.storage_key).exists()
