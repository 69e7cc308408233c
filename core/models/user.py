# =============================================================================
# core/models/user.py - User Roles and Landing Routes
# =============================================================================
# Roles come from the public.users table. Each role lands on its own page
# in the dashboard; resolve_landing_route is the single place that mapping
# lives so the login flow and the root redirect can never disagree.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """
    Dashboard roles.

    - admin: manages overall operations
    - moderator: creates and manages client intake
    - designer: fulfils assigned CV/LinkedIn tasks
    """
    ADMIN = "admin"
    MODERATOR = "moderator"
    DESIGNER = "designer"


# Roles allowed to create client records
INTAKE_ROLES: tuple[UserRole, ...] = (UserRole.MODERATOR, UserRole.ADMIN)

LANDING_ROUTES: dict[UserRole, str] = {
    UserRole.MODERATOR: "/clients/new",
    UserRole.DESIGNER: "/tasks",
    UserRole.ADMIN: "/admin",
}

DEFAULT_LANDING_ROUTE = "/tasks"


def parse_role(value: str | UserRole | None) -> UserRole | None:
    """Return the matching UserRole, or None for missing/unknown values."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def resolve_landing_route(role: str | UserRole | None) -> str:
    """
    Resolve the page a user should land on after signing in.

    A missing profile is treated as a designer, and unknown roles fall back
    to the task list.

    Example:
        resolve_landing_route(UserRole.MODERATOR)  # "/clients/new"
        resolve_landing_route(None)                # "/tasks"
    """
    parsed = parse_role(role)
    if parsed is None:
        return DEFAULT_LANDING_ROUTE
    return LANDING_ROUTES[parsed]


class UserProfile(BaseModel):
    """
    Row from public.users as returned to the dashboard.

    Includes the resolved landing route so the frontend does not carry its
    own copy of the role mapping.
    """
    id: UUID
    email: str | None = None
    full_name: str | None = None
    role: UserRole | None = Field(
        default=None,
        description="Dashboard role; null when the profile row is missing"
    )
    landing_route: str = Field(
        default=DEFAULT_LANDING_ROUTE,
        description="Page to redirect to after sign-in"
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None
