# =============================================================================
# core/models/catalog.py - Catalog Schemas
# =============================================================================
# Read-only reference data shown on the intake form:
# - ServiceResponse: a purchasable service with its base price
# - AccountResponse: a receiver account payments can be sent to
# =============================================================================

from pydantic import BaseModel, Field


class ServiceResponse(BaseModel):
    """Active service from the catalog."""
    id: str
    name: str
    base_price: float = Field(
        default=0,
        ge=0,
        description="List price before any discount"
    )


class ServiceList(BaseModel):
    """Returned by GET /services."""
    services: list[ServiceResponse] = Field(default_factory=list)


class AccountResponse(BaseModel):
    """Active receiver account (e.g. a wallet or bank account)."""
    id: str
    provider: str
    account_number: str


class AccountList(BaseModel):
    """Returned by GET /accounts."""
    accounts: list[AccountResponse] = Field(default_factory=list)
