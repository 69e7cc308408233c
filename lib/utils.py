# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import time
from pathlib import PurePosixPath
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        client_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        client_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Filename / Key Utilities
# =============================================================================

def safe_filename(filename: str | None, default: str = "file") -> str:
    """
    Reduce a user-supplied filename to its final path component.

    Browsers on Windows may send backslash paths; both separators are
    treated as directory breaks so a name can never climb out of its prefix.

    Example:
        safe_filename("C:\\Users\\me\\cv.pdf")  # "cv.pdf"
        safe_filename("../../etc/passwd")       # "passwd"
    """
    if not filename:
        return default
    name = PurePosixPath(filename.replace("\\", "/")).name.strip()
    if name in ("", ".", ".."):
        return default
    return name


def file_extension(filename: str) -> str:
    """Lowercased extension including the dot, or "" when there is none."""
    return "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def timestamp_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return time.time_ns() // 1_000_000
