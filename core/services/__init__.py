# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .client_service import ClientIntakeService
from .storage_service import StorageService, StorageUploadError
from .transaction import (
    CompensatingTransaction,
    RollbackReport,
    TransactionState,
    run_compensating,
)
from .upload_rules import check_file_count, check_file_size, validate_uploads

__all__ = [
    "ClientIntakeService",
    "StorageService",
    "StorageUploadError",
    "CompensatingTransaction",
    "RollbackReport",
    "TransactionState",
    "run_compensating",
    "check_file_count",
    "check_file_size",
    "validate_uploads",
]
