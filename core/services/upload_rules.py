# =============================================================================
# core/services/upload_rules.py - Upload Limits
# =============================================================================
# Count, size and type checks for intake attachments. These run before any
# row is written or blob uploaded, so a rejected request leaves no trace.
# =============================================================================

import logging

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, TooManyFilesError
from core.models.client import UploadedFile
from lib.utils import file_extension

logger = logging.getLogger(__name__)


def check_file_count(count: int) -> None:
    """TooManyFilesError when more than MAX_FILES_PER_CLIENT documents arrive."""
    if count > settings.MAX_FILES_PER_CLIENT:
        raise TooManyFilesError(count, settings.MAX_FILES_PER_CLIENT)


def check_file_size(filename: str, size: int) -> None:
    """FileTooLargeError above the per-file ceiling; the ceiling itself is allowed."""
    if size > settings.max_upload_size_bytes:
        raise FileTooLargeError(filename, size / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)


def _check_file(file: UploadedFile, allowed: list[str]) -> None:
    if file_extension(file.filename) not in allowed:
        raise InvalidFileTypeError(file.filename, allowed)
    check_file_size(file.filename, file.size)


def validate_uploads(
    files: list[UploadedFile],
    payment_screenshot: UploadedFile | None = None,
) -> None:
    """
    Enforce attachment limits for one intake request.

    Args:
        files: Client documents, in request order
        payment_screenshot: Optional payment proof

    Raises:
        TooManyFilesError: More than MAX_FILES_PER_CLIENT documents
        InvalidFileTypeError: Extension not in the allowed list
        FileTooLargeError: Any file above MAX_UPLOAD_SIZE_MB
    """
    check_file_count(len(files))

    for file in files:
        _check_file(file, settings.allowed_extensions_list)

    if payment_screenshot is not None:
        _check_file(payment_screenshot, settings.allowed_screenshot_extensions_list)

    total = sum(f.size for f in files) + (payment_screenshot.size if payment_screenshot else 0)
    logger.debug(f"Upload limits passed: {len(files)} file(s), {total} bytes")
