# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up and sign-in happen in the browser through Supabase Auth.
# These routes tell the dashboard who the user is and where to send them.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user, get_current_user_with_role
from app.auth.models import AuthUser
from core.models.user import UserProfile, parse_role, resolve_landing_route
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserProfile)
def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserProfile:
    """
    Get the current authenticated user's profile.

    Returns:
        UserProfile: id, email, full_name, role and landing_route

    Raises:
        401: If not authenticated
    """
    profile = SupabaseClient.fetch_user_profile(user.id)

    if not profile:
        # User exists in auth but not yet in public.users
        # (might happen if the signup trigger hasn't run yet)
        logger.info(f"No profile row for user {user.id}; using defaults")
        return UserProfile(
            id=user.id,
            email=user.email,
            landing_route=resolve_landing_route(None),
        )

    role = parse_role(profile.get("role"))
    return UserProfile(
        id=user.id,
        email=profile.get("email") or user.email,
        full_name=profile.get("full_name"),
        role=role,
        landing_route=resolve_landing_route(role),
        created_at=profile.get("created_at"),
        updated_at=profile.get("updated_at"),
    )


@router.get("/landing")
def get_landing_route(
    user: AuthUser = Depends(get_current_user_with_role)
) -> dict:
    """Where the dashboard should redirect after sign-in."""
    return {
        "role": user.role.value if user.role else None,
        "route": resolve_landing_route(user.role),
    }


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
