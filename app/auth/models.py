# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from core.models.user import UserRole


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    `role` is filled from the public.users table by the role dependencies;
    the token alone only carries id and email.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    role: Optional[UserRole] = None

