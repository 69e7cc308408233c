# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - client.py: Client intake form and upload schemas
# - catalog.py: Services and receiver accounts shown on the form
# - user.py: Dashboard roles and landing-route resolution
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Client Models - Intake form
# -----------------------------------------------------------------------------
from .client import (
    MOBILE_NUMBER_PATTERN,
    ClientCreate,
    ClientCreateResponse,
    UploadedFile,
)

# -----------------------------------------------------------------------------
# Catalog Models - Read-only reference data
# -----------------------------------------------------------------------------
from .catalog import (
    AccountList,
    AccountResponse,
    ServiceList,
    ServiceResponse,
)

# -----------------------------------------------------------------------------
# User Models - Roles and routing
# -----------------------------------------------------------------------------
from .user import (
    INTAKE_ROLES,
    UserProfile,
    UserRole,
    parse_role,
    resolve_landing_route,
)

__all__ = [
    # Client
    "MOBILE_NUMBER_PATTERN",
    "ClientCreate",
    "ClientCreateResponse",
    "UploadedFile",
    # Catalog
    "AccountList",
    "AccountResponse",
    "ServiceList",
    "ServiceResponse",
    # User
    "INTAKE_ROLES",
    "UserProfile",
    "UserRole",
    "parse_role",
    "resolve_landing_route",
]
