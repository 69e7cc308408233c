# =============================================================================
# lib/supabase_client.py - Supabase Row Gateway
# =============================================================================
# One shared supabase-py client plus the handful of PostgREST calls the API
# makes: role lookup, catalog reads, and the bulk insert / delete-by-id pair
# that client intake and its unwind are built from.
#
#   from lib.supabase_client import SupabaseClient
#   row = SupabaseClient.insert_row("clients", {...})
# =============================================================================

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID

from supabase import Client, create_client
from supabase.client import ClientOptions

from app.config import settings
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

# PostgREST answers .single() with this code when no row matched
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """A PostgREST call failed; `code` says which kind of call."""

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        return f"{text} Suggestion: {self.suggestion}" if self.suggestion else text


@contextmanager
def _wrapped(code: str, action: str, suggestion: str | None = None, **details: Any) -> Iterator[None]:
    """Re-raise anything from the block as SupabaseClientError(code)."""
    try:
        yield
    except SupabaseClientError:
        raise
    except Exception as e:
        raise SupabaseClientError(
            message=f"Failed to {action}: {e}",
            code=code,
            suggestion=suggestion,
            details=details or None,
        ) from e


class SupabaseClient:
    """
    Class-level access to a single service-role Supabase client.

    The service key bypasses RLS, so callers are responsible for checking
    the user's role before writing.
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Return the shared client, creating it on first call.

        Session persistence is off because the API never signs in as a user.
        PostgREST and Storage both get REMOTE_CALL_TIMEOUT_SECONDS.
        """
        if cls._instance is None:
            options = ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
                postgrest_client_timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS,
                storage_client_timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS,
            )
            with _wrapped(
                "CLIENT_INIT_FAILED",
                "create Supabase client",
                suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY",
            ):
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY,
                    options=options,
                )
            logger.info(f"Supabase client ready for {settings.SUPABASE_URL}")
        return cls._instance

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        The public.users row for an auth user, or None when there is none.

        A signed-in user without a row has no dashboard role.
        """
        user_key = normalize_uuid(user_id)
        query = (
            cls.get_client()
            .table("users")
            .select("id, email, role, full_name, created_at, updated_at")
            .eq("id", user_key)
            .single()
        )
        try:
            return query.execute().data
        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch user profile: {e}",
                code="FETCH_USER_FAILED",
                details={"user_id": user_key},
            ) from e

    @classmethod
    def fetch_active_services(cls) -> list[dict[str, Any]]:
        """Active services for the intake form, alphabetical."""
        with _wrapped("FETCH_SERVICES_FAILED", "fetch services"):
            response = (
                cls.get_client()
                .table("services")
                .select("id, name, base_price")
                .eq("is_active", True)
                .order("name")
                .execute()
            )
        return response.data or []

    @classmethod
    def fetch_active_accounts(cls) -> list[dict[str, Any]]:
        """Receiver accounts a client can pay into."""
        with _wrapped("FETCH_ACCOUNTS_FAILED", "fetch accounts"):
            response = (
                cls.get_client()
                .table("accounts")
                .select("id, provider, account_number")
                .eq("is_active", True)
                .order("provider")
                .execute()
            )
        return response.data or []

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert one row; the returned dict includes generated columns."""
        return cls.insert_rows(table, [data])[0]

    @classmethod
    def insert_rows(cls, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Insert `rows` in one statement and return them as stored.

        Raises:
            SupabaseClientError: INSERT_FAILED if PostgREST rejects the
                statement, INSERT_NO_DATA if it returns no representation.
        """
        with _wrapped("INSERT_FAILED", f"insert into {table}", table=table, row_count=len(rows)):
            inserted = cls.get_client().table(table).insert(rows).execute().data

        if not inserted:
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_NO_DATA",
            )
        logger.debug(f"{table}: inserted {len(inserted)} row(s)")
        return inserted

    @classmethod
    def delete_rows(cls, table: str, ids: list[str | UUID]) -> int:
        """
        Delete rows by primary key; returns how many the backend removed.

        An empty id list is a no-op and makes no request.
        """
        if not ids:
            return 0

        keys = [normalize_uuid(row_id) for row_id in ids]
        with _wrapped(
            "DELETE_FAILED",
            f"delete from {table}",
            suggestion="Remove the rows manually to restore consistency",
            table=table,
            ids=keys,
        ):
            removed = cls.get_client().table(table).delete().in_("id", keys).execute().data

        count = len(removed or [])
        logger.info(f"{table}: deleted {count} row(s)")
        return count
