# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Client Intake API:
# - test_models.py: Intake schema validation and landing routes
# - test_transaction.py: Compensating transaction undo list
# - test_client_service.py: Intake sequencing and unwind against a fake backend
# - test_supabase_client.py: Row gateway against a mocked supabase client
# - test_auth.py: JWT verification and role gates
# - test_api.py: HTTP endpoints through TestClient
#
# Run tests with: pytest
# =============================================================================
