# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database row operations
# - utils.py: Shared utilities (UUID normalization, filename handling)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import file_extension, normalize_uuid, safe_filename, timestamp_ms

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "file_extension",
    "normalize_uuid",
    "safe_filename",
    "timestamp_ms",
]
