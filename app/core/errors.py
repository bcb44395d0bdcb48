"""
Authorization error types and their JSON rendering
"""

from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse


class ErrorCode:
    """Machine-readable codes returned with authorization failures"""
    AUTH_REQUIRED = "AUTH_REQUIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    ROLE_NOT_ALLOWED = "ROLE_NOT_ALLOWED"
    ROLE_INVALID = "ROLE_INVALID"
    PERM_DENIED = "PERM_DENIED"
    RULE_MISSING = "RULE_MISSING"
    ROLE_UNMAPPED = "ROLE_UNMAPPED"
    FEATURE_DENIED = "FEATURE_DENIED"
    INTERNAL_SECURITY_ERROR = "INTERNAL_SECURITY_ERROR"


INTERNAL_SECURITY_MESSAGE = "Internal Security Error"


class AccessDenied(HTTPException):
    """Terminal authorization failure rendered as {"error", "code"}"""

    def __init__(self, status_code: int, error: str, code: Optional[str] = None):
        super().__init__(status_code=status_code, detail=error)
        self.error = error
        self.code = code

    @classmethod
    def internal(cls) -> "AccessDenied":
        return cls(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            INTERNAL_SECURITY_MESSAGE,
            ErrorCode.INTERNAL_SECURITY_ERROR,
        )


def access_denied_body(error: str, code: Optional[str]) -> dict:
    return {"error": error, "code": code}


async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=access_denied_body(exc.error, exc.code),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render AccessDenied as structured JSON instead of FastAPI's {"detail"}"""
    app.add_exception_handler(AccessDenied, access_denied_handler)
