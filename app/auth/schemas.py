from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Authenticated caller context, built from the identity provider's token claims.

    tenant_id is the only legitimate source of the tenant for every ledger operation.
    """

    id: UUID
    tenant_id: Optional[UUID] = None
    role: str
    name: Optional[str] = None


class TokenClaims(BaseModel):
    sub: str
    role: str
    tenant_id: Optional[str] = None
    name: Optional[str] = None
