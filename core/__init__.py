# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the intake business logic:
# - models/: Pydantic schemas for data validation
# - services/: Client intake sequencing, compensating transactions,
#   Supabase Storage access and upload limits
#
# Routes stay in app/; nothing here depends on a request object.
# =============================================================================
