# =============================================================================
# app/routers/catalog.py - Catalog Endpoints
# =============================================================================
# Read-only lists the intake form is built from: the active services a
# client can order and the accounts a payment can be received on.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user, require_roles
from core.models.catalog import AccountList, AccountResponse, ServiceList, ServiceResponse
from core.models.user import INTAKE_ROLES
from lib.supabase_client import SupabaseClient

router = APIRouter()


@router.get("/services", response_model=ServiceList)
def list_services(
    user: AuthUser = Depends(get_current_user),
):
    """
    List active services, ordered by name.

    Available to any signed-in user.
    """
    rows = SupabaseClient.fetch_active_services()
    return ServiceList(services=[ServiceResponse(**row) for row in rows])


@router.get("/accounts", response_model=AccountList)
def list_accounts(
    user: AuthUser = Depends(require_roles(*INTAKE_ROLES)),
):
    """
    List active receiver accounts.

    Only moderators and admins record payments, so only they see these.
    """
    rows = SupabaseClient.fetch_active_accounts()
    return AccountList(accounts=[AccountResponse(**row) for row in rows])
