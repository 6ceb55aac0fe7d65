from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError as PydanticValidationError

from app.auth.schemas import CurrentUser, TokenClaims
from app.auth.security import decode_access_token
from app.core.exceptions import SecurityViolationError
from app.core.tenancy import reject_foreign_tenant_field


# Tokens are issued by the platform identity provider; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Resolve the caller context {id, role, tenant_id, name} from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception

    try:
        claims = TokenClaims(**decode_access_token(token))
        user_id = UUID(claims.sub)
        tenant_id = UUID(claims.tenant_id) if claims.tenant_id else None
    except (JWTError, PydanticValidationError, ValueError):
        raise credentials_exception

    return CurrentUser(id=user_id, tenant_id=tenant_id, role=claims.role, name=claims.name)


async def reject_tenant_injection(request: Request) -> None:
    """Dependency: refuse any JSON body that carries a tenant id field.

    Runs before body validation, so an injected tenant id is reported as a security
    violation even when the rest of the payload is malformed.
    """
    body = await request.body()
    if not body:
        return
    try:
        payload = await request.json()
    except ValueError:
        return
    try:
        reject_foreign_tenant_field(payload)
    except SecurityViolationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


def get_origin(request: Request) -> Optional[str]:
    """Client address forwarded to the audit trail."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
