# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Bearer-token verification and role gates for the dashboard API.
#
# Access tokens are checked against SUPABASE_JWT_SECRET when signed with
# HS256; asymmetric tokens (ES256/RS256) are checked against the project's
# published JWKS.
#
#   @router.post("")
#   def create(user: AuthUser = Depends(require_roles(*INTAKE_ROLES))):
#       ...
# =============================================================================

import logging
import time
from typing import Callable, Optional
from uuid import UUID

import httpx
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser
from app.exceptions import AuthenticationError, AuthorizationError
from core.models.user import UserRole, parse_role
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# A missing header must produce our own 401 body, not FastAPI's 403
security = HTTPBearer(auto_error=False)

TOKEN_AUDIENCE = "authenticated"


class _JWKSCache:
    """Project signing keys, refetched at most once an hour."""

    ttl_seconds = 3600

    def __init__(self):
        self._keys: list[dict] = []
        self._fetched_at = 0.0

    @property
    def url(self) -> str:
        return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"

    def find(self, kid: str) -> dict | None:
        return next((key for key in self._load() if key.get("kid") == kid), None)

    def _load(self) -> list[dict]:
        if self._keys and time.time() - self._fetched_at < self.ttl_seconds:
            return self._keys
        try:
            response = httpx.get(self.url, timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS)
            response.raise_for_status()
            self._keys = response.json().get("keys", [])
            self._fetched_at = time.time()
            logger.debug(f"Loaded {len(self._keys)} signing key(s) from JWKS")
        except httpx.HTTPError as e:
            # Stale keys still verify tokens signed before a rotation
            logger.warning(f"JWKS refresh failed, using {len(self._keys)} cached key(s): {e}")
        return self._keys


_jwks = _JWKSCache()


def _shared_secret() -> tuple[str, str]:
    """HS256 verification key; an unset secret rejects the token outright."""
    if not settings.SUPABASE_JWT_SECRET:
        logger.warning("Rejected HS256 token: SUPABASE_JWT_SECRET is not configured")
        raise AuthenticationError("Invalid token")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def _verification_key(token: str) -> tuple[str | dict, str]:
    """(key, algorithm) that `token` should verify against."""
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return _shared_secret()

    alg = header.get("alg", "HS256")
    kid = header.get("kid")
    if alg != "HS256" and kid:
        key = _jwks.find(kid)
        if key is not None:
            return key, alg
        logger.warning(f"No JWKS key for kid={kid}, trying the shared secret")
    return _shared_secret()


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and return the user it names.

    Raises:
        AuthenticationError: the token does not verify or its subject is
            not a user UUID
    """
    try:
        key, algorithm = _verification_key(token)
        claims = jwt.decode(token, key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)
    except ExpiredSignatureError:
        logger.info("Rejected expired access token")
        raise AuthenticationError("Token has expired")
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise AuthenticationError("Invalid token")

    subject = claims.get("sub")
    if not subject:
        raise AuthenticationError("Invalid token: missing user ID")
    try:
        user_id = UUID(subject)
    except ValueError:
        logger.warning(f"Token subject is not a UUID: {subject!r}")
        raise AuthenticationError("Invalid token: malformed user ID")

    return AuthUser(id=user_id, email=claims.get("email"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthUser:
    """The signed-in user, without a role. 401 when there is no valid token."""
    if credentials is None:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials)


def get_current_user_with_role(
    user: AuthUser = Depends(get_current_user),
) -> AuthUser:
    """Attach the role stored in public.users; no row means no role."""
    profile = SupabaseClient.fetch_user_profile(user.id)
    role = parse_role(profile.get("role")) if profile else None
    return user.model_copy(update={"role": role})


def require_roles(*roles: UserRole) -> Callable[..., AuthUser]:
    """
    Dependency factory admitting only users whose role is in `roles`.

    The returned dependency raises AuthorizationError (403) for any other
    role, including no role at all.
    """
    allowed = [role.value for role in roles]

    def dependency(user: AuthUser = Depends(get_current_user_with_role)) -> AuthUser:
        if user.role not in roles:
            logger.warning(f"Denied user {user.id} with role {user.role}; needs one of {allowed}")
            raise AuthorizationError(user.role.value if user.role else None, allowed)
        return user

    return dependency
