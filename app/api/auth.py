"""
User authentication API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from datetime import timedelta
import structlog

from app.core.auth import create_access_token, verify_password
from app.core.clock import as_utc, utc_now
from app.core.config import get_settings
from app.core.database import get_session
from app.core.dependencies import get_current_principal
from app.models.user import User
from app.schemas.token import Principal, TokenResponse
from app.schemas.user import UserLogin

logger = structlog.get_logger(__name__)
router = APIRouter()
settings = get_settings()


@router.post("/login", response_model=TokenResponse)
async def login_user(
    login_data: UserLogin,
    session: Session = Depends(get_session)
):
    """Login user and issue a bearer token"""
    user = session.exec(
        select(User).where(User.email == login_data.email)
    ).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if user.is_locked():
        minutes_left = max(1, int((as_utc(user.lock_until) - utc_now()).total_seconds() // 60) + 1)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is locked due to multiple failed attempts. Try again in {minutes_left} minutes."
        )

    if not verify_password(login_data.password, user.password_hash):
        user.failed_login_attempts += 1
        if user.failed_login_attempts >= settings.LOGIN_MAX_FAILED_ATTEMPTS:
            user.lock_until = utc_now() + timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
            user.failed_login_attempts = 0
            logger.warning(f"Account locked after repeated failures: {user.id}")
        session.add(user)
        session.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    user.failed_login_attempts = 0
    user.lock_until = None
    user.last_login_at = utc_now()
    session.add(user)
    session.commit()

    logger.info(f"User logged in: {user.id}")

    access_token = create_access_token(
        user_id=user.id,
        role=user.role,
        email=user.email,
        name=user.name,
    )
    return TokenResponse(
        access_token=access_token,
        user_id=str(user.id),
        role=user.role,
        must_change_password=user.must_change_password,
    )


@router.get("/me", response_model=Principal)
async def get_current_user_info(principal: Principal = Depends(get_current_principal)):
    """Get the principal carried by the bearer token"""
    return principal
