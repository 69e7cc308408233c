# =============================================================================
# core/models/client.py - Client Intake Schemas
# =============================================================================
# These models define the API contract for client intake:
# - ClientCreate: validated form fields submitted by a moderator
# - UploadedFile: one file part (client document or payment screenshot)
# - ClientCreateResponse: returned after the client and its records exist
#
# Form submissions arrive as strings, so blank optional fields are turned
# into None before validation runs.
# =============================================================================

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Egyptian mobile number: local 01XXXXXXXXX or international (+)201XXXXXXXXX
MOBILE_NUMBER_PATTERN = r"^(?:\+?20|0)1\d{9}$"

OPTIONAL_TEXT_FIELDS = (
    "job_title",
    "education",
    "work_experience",
    "soft_skills",
    "important_notes",
    "ad_whatsapp_channel",
)


class ClientCreate(BaseModel):
    """
    Schema for creating a client from the intake form.

    Example:
        {
            "full_name": "Ahmed Ali",
            "whatsapp_number": "01012345678",
            "phone_number": "01098765432",
            "email": "a@example.com",
            "address": "Cairo",
            "requested_services": ["svc-1"],
            "total_amount": 150
        }
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    # -------------------------------------------------------------------------
    # Identity & Contact
    # -------------------------------------------------------------------------

    full_name: str = Field(
        ...,
        min_length=1,
        max_length=150,
        description="Client's full name"
    )

    birth_date: date | None = Field(
        default=None,
        description="Date of birth (YYYY-MM-DD)"
    )

    whatsapp_number: str = Field(
        ...,
        pattern=MOBILE_NUMBER_PATTERN,
        description="WhatsApp mobile number"
    )

    phone_number: str = Field(
        ...,
        pattern=MOBILE_NUMBER_PATTERN,
        description="Primary phone number"
    )

    email: EmailStr

    address: str = Field(
        ...,
        min_length=1,
        description="Postal address or city"
    )

    # -------------------------------------------------------------------------
    # Profile (free text, all optional)
    # -------------------------------------------------------------------------

    job_title: str | None = None
    education: str | None = None
    work_experience: str | None = None
    soft_skills: str | None = None
    important_notes: str | None = None
    ad_whatsapp_channel: str | None = Field(
        default=None,
        description="WhatsApp channel the client came from"
    )

    # -------------------------------------------------------------------------
    # Services & Payment
    # -------------------------------------------------------------------------

    requested_services: list[str] = Field(
        ...,
        min_length=1,
        description="Service ids the client ordered"
    )

    receiver_account: str | None = Field(
        default=None,
        description="Account the payment was sent to"
    )

    total_amount: float | None = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
        description="Total price agreed with the client"
    )

    deposit_amount: float | None = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
        description="Amount already paid"
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator(
        "birth_date",
        "receiver_account",
        "total_amount",
        "deposit_amount",
        *OPTIONAL_TEXT_FIELDS,
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Empty form inputs mean "not provided"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("requested_services", mode="before")
    @classmethod
    def clean_service_ids(cls, v: Any) -> Any:
        """Drop blank ids and duplicates, keeping submission order."""
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            return v
        seen: list[str] = []
        for item in v:
            item = item.strip() if isinstance(item, str) else item
            if item and item not in seen:
                seen.append(item)
        return seen

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    @property
    def has_payment(self) -> bool:
        """A payment is recorded only for a positive total."""
        return self.total_amount is not None and self.total_amount > 0

    def to_client_row(self, inserted_by: str) -> dict[str, Any]:
        """Column values for the clients table."""
        row: dict[str, Any] = {
            "full_name": self.full_name,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "whatsapp_number": self.whatsapp_number,
            "phone_number": self.phone_number,
            "email": str(self.email),
            "address": self.address,
            "inserted_by": inserted_by,
        }
        for field_name in OPTIONAL_TEXT_FIELDS:
            row[field_name] = getattr(self, field_name)
        return row

    def to_payment_row(self, client_id: str, screenshot_url: str | None) -> dict[str, Any]:
        """Column values for the payments table."""
        return {
            "client_id": client_id,
            "receiver_account": self.receiver_account or "",
            "total_amount": self.total_amount,
            "deposit_amount": self.deposit_amount or 0,
            "payment_screenshot": screenshot_url,
        }


class UploadedFile(BaseModel):
    """
    A file part read from the multipart request.

    Content is held in memory; the per-file ceiling keeps this bounded.
    """
    filename: str
    content_type: str = "application/octet-stream"
    content: bytes = b""

    @property
    def size(self) -> int:
        return len(self.content)


class ClientCreateResponse(BaseModel):
    """Returned by POST /clients with status 201."""
    id: str = Field(..., examples=["550e8400-e29b-41d4-a716-446655440000"])
