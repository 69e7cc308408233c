# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth, plus role gates
# backed by the public.users table.
#
# Usage:
#   from app.auth import require_roles, AuthUser
#
#   @router.get("/accounts")
#   def accounts(user: AuthUser = Depends(require_roles(UserRole.ADMIN))):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import (
    decode_access_token,
    get_current_user,
    get_current_user_with_role,
    require_roles,
)
from app.auth.models import AuthUser

__all__ = [
    "decode_access_token",
    "get_current_user",
    "get_current_user_with_role",
    "require_roles",
    "AuthUser",
]
