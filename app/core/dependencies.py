"""
Authentication dependencies for FastAPI

The gate is purely cryptographic: it verifies the bearer token, reads the
identity/role claims and never touches the database.
"""

from fastapi import Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlmodel import Session
from typing import Optional
import structlog

from app.core.auth import decode_access_token
from app.core.database import get_session
from app.core.errors import AccessDenied, ErrorCode
from app.schemas.token import Principal, TokenPayload
from app.services.access_rules import AccessRuleStore

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Verify the bearer token and attach the decoded principal to the request"""
    if credentials is None or not credentials.credentials:
        raise AccessDenied(
            status.HTTP_401_UNAUTHORIZED,
            "Access Denied: No Token Provided",
            ErrorCode.AUTH_REQUIRED,
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AccessDenied(status.HTTP_400_BAD_REQUEST, "Invalid Token", ErrorCode.TOKEN_INVALID)

    try:
        principal = Principal.from_payload(TokenPayload(**payload))
    except ValidationError:
        raise AccessDenied(status.HTTP_400_BAD_REQUEST, "Invalid Token", ErrorCode.TOKEN_INVALID)

    request.state.principal = principal
    logger.debug(f"Principal authenticated: {principal.id} ({principal.role})")
    return principal


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to a role list (case-insensitive)"""
    allowed = {role.lower() for role in roles}

    async def check_roles(principal: Principal = Depends(get_current_principal)) -> Principal:
        if allowed and (principal.role or "").lower() not in allowed:
            logger.warning(
                "role_not_allowed",
                principal_id=principal.id,
                role=principal.role,
                allowed_roles=sorted(roles),
            )
            raise AccessDenied(
                status.HTTP_403_FORBIDDEN,
                "Access Denied: Insufficient Permissions",
                ErrorCode.ROLE_NOT_ALLOWED,
            )
        return principal

    return check_roles


def get_access_rule_store(session: Session = Depends(get_session)) -> AccessRuleStore:
    return AccessRuleStore(session)
