# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides an in-memory Supabase stand-in (rows + blobs) with failure
#   injection, patched in at the SupabaseClient / StorageService seams
# =============================================================================

import os
from collections import defaultdict
from typing import Any
from uuid import uuid4

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from unittest.mock import patch

import pytest

from core.models.client import UploadedFile
from core.services.storage_service import StorageService, StorageUploadError
from lib.supabase_client import SupabaseClient, SupabaseClientError

PUBLIC_URL_PREFIX = "https://test-project.supabase.co/storage/v1/object/public/client-files/"


# =============================================================================
# In-memory backend
# =============================================================================

class FakeBackend:
    """
    Rows and blobs held in dicts, mirroring the gateway methods the intake
    service calls.

    Failure injection:
        fail_insert:   tables whose inserts raise
        fail_delete:   tables whose deletes raise
        fail_upload_at: 1-based upload call number that raises
        timeout_after_store_at: 1-based upload call number that stores the
                        object and then raises TimeoutError
        fail_remove:   blob removal raises
    """

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.blobs: dict[str, bytes] = {}
        self.fail_insert: set[str] = set()
        self.fail_delete: set[str] = set()
        self.fail_upload_at: int | None = None
        self.timeout_after_store_at: int | None = None
        self.fail_remove = False
        self.upload_calls = 0
        self.insert_calls: list[str] = []

    # Rows --------------------------------------------------------------------

    def insert_rows(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.insert_calls.append(table)
        if table in self.fail_insert:
            raise SupabaseClientError(f"Failed to insert into {table}: boom", code="INSERT_FAILED")
        inserted = []
        for row in rows:
            stored = {"id": str(uuid4()), **row}
            self.tables[table].append(stored)
            inserted.append(stored)
        return inserted

    def insert_row(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        return self.insert_rows(table, [data])[0]

    def delete_rows(self, table: str, ids: list[str]) -> int:
        if table in self.fail_delete:
            raise SupabaseClientError(f"Failed to delete from {table}: boom", code="DELETE_FAILED")
        before = len(self.tables[table])
        self.tables[table] = [row for row in self.tables[table] if row["id"] not in ids]
        return before - len(self.tables[table])

    def rows(self, table: str) -> list[dict[str, Any]]:
        return list(self.tables[table])

    # Blobs -------------------------------------------------------------------

    def upload_file(self, path: str, file_content: bytes, content_type: str) -> str:
        self.upload_calls += 1
        if self.fail_upload_at == self.upload_calls:
            raise StorageUploadError("storage unavailable")
        if path in self.blobs:
            raise StorageUploadError("The resource already exists")
        self.blobs[path] = file_content
        if self.timeout_after_store_at == self.upload_calls:
            raise TimeoutError("The read operation timed out")
        return path

    def get_public_url(self, storage_path: str) -> str:
        return PUBLIC_URL_PREFIX + storage_path

    def delete_files(self, storage_paths: list[str]) -> None:
        if self.fail_remove:
            raise StorageUploadError("remove failed")
        for path in storage_paths:
            self.blobs.pop(path, None)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def backend():
    """FakeBackend patched into SupabaseClient and StorageService."""
    fake = FakeBackend()
    with patch.object(SupabaseClient, "insert_row", side_effect=fake.insert_row), \
            patch.object(SupabaseClient, "insert_rows", side_effect=fake.insert_rows), \
            patch.object(SupabaseClient, "delete_rows", side_effect=fake.delete_rows), \
            patch.object(StorageService, "upload_file", side_effect=fake.upload_file), \
            patch.object(StorageService, "get_public_url", side_effect=fake.get_public_url), \
            patch.object(StorageService, "delete_files", side_effect=fake.delete_files):
        yield fake


@pytest.fixture
def intake_fields():
    """Valid intake form fields (the worked example)."""
    return {
        "full_name": "Ahmed Ali",
        "whatsapp_number": "01012345678",
        "phone_number": "01098765432",
        "email": "a@example.com",
        "address": "Cairo",
        "requested_services": ["svc-1"],
        "total_amount": "0",
    }


@pytest.fixture
def make_file():
    """Factory for UploadedFile instances."""
    def _make(name: str = "cv.pdf", size: int = 1024, content_type: str = "application/pdf") -> UploadedFile:
        return UploadedFile(filename=name, content_type=content_type, content=b"x" * size)
    return _make
