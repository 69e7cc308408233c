# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Blob writes for client intake. Object keys are built here so documents and
# payment screenshots always land in the same layout:
#
#   {client_id}/{timestamp}-{filename}            client documents
#   payments/{client_id}/{timestamp}-{filename}   payment screenshots
# =============================================================================

import logging

from lib.supabase_client import SupabaseClient
from lib.utils import safe_filename, timestamp_ms
from app.config import settings

logger = logging.getLogger(__name__)


class StorageUploadError(Exception):
    """A blob upload or public URL lookup failed."""


def _bucket():
    return SupabaseClient.get_client().storage.from_(settings.STORAGE_BUCKET)


class StorageService:
    """Upload, address and remove objects in STORAGE_BUCKET."""

    @staticmethod
    def client_file_key(client_id: str, filename: str) -> str:
        return f"{client_id}/{timestamp_ms()}-{safe_filename(filename)}"

    @staticmethod
    def payment_screenshot_key(client_id: str, filename: str) -> str:
        return f"payments/{client_id}/{timestamp_ms()}-{safe_filename(filename)}"

    @staticmethod
    def upload_file(path: str, file_content: bytes, content_type: str) -> str:
        """
        Store `file_content` at `path` and return the path.

        Never overwrites: an existing key makes the upload fail.

        Raises:
            StorageUploadError: If Storage rejects the upload
        """
        try:
            _bucket().upload(
                path=path,
                file=file_content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"Upload of {path} failed: {e}")
            raise StorageUploadError(str(e)) from e

        logger.info(f"Stored {path} ({len(file_content)} bytes, {content_type})")
        return path

    @staticmethod
    def get_public_url(storage_path: str) -> str:
        """Public URL of an uploaded object."""
        try:
            return _bucket().get_public_url(storage_path)
        except Exception as e:
            raise StorageUploadError(f"No public URL for {storage_path}: {e}") from e

    @staticmethod
    def delete_files(storage_paths: list[str]) -> None:
        """
        Remove objects by key.

        Errors propagate so the caller knows which keys are still stored.
        """
        if not storage_paths:
            return
        _bucket().remove(storage_paths)
        logger.info(f"Removed {len(storage_paths)} object(s): {', '.join(storage_paths)}")

    @staticmethod
    def list_buckets() -> list:
        """Bucket listing; the readiness check uses it as a Storage ping."""
        return SupabaseClient.get_client().storage.list_buckets()
