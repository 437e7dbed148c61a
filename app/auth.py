import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import CRON_SECRET, ENVIRONMENT, SESSION_COOKIE_NAME, SESSION_TTL_HOURS
from .database import get_db
from .models import User
from .security_utils import constant_time_compare, create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

# auto_error=False so the session cookie can be used instead of a bearer header
security = HTTPBearer(auto_error=False)

STAFF_ROLES = {"admin", "staff"}


def create_session_token(user: User) -> str:
    """Issue a signed session token for a logged-in user"""
    return create_jwt_token(
        {"sub": str(user.id), "role": user.role, "email": user.email},
        expires_delta=timedelta(hours=SESSION_TTL_HOURS),
    )


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the user from a bearer token or the session cookie"""
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please log in or provide a valid Bearer token.",
        )

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        logger.warning(f"⚠️ Session presented for missing or inactive user {user_id}")
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Admin dashboard access (admin or staff role)"""
    if user.role not in STAFF_ROLES:
        logger.warning(f"⚠️ User {user.email} ({user.role}) attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def require_driver(user: User = Depends(get_current_user)) -> User:
    """Driver portal access"""
    if user.role != "driver":
        raise HTTPException(status_code=403, detail="Driver access required")
    return user


async def verify_cron_secret(request: Request) -> None:
    """
    Authenticate scheduler calls.

    With CRON_SECRET configured the request must carry "Authorization: Bearer <CRON_SECRET>".
    Without it, cron routes are only open in the development environment.
    """
    if not CRON_SECRET:
        if ENVIRONMENT == "development":
            return
        logger.error("❌ CRON_SECRET not configured - rejecting cron request")
        raise HTTPException(status_code=401, detail="Unauthorized")

    auth_header = request.headers.get("authorization", "")
    expected = f"Bearer {CRON_SECRET}"
    if not constant_time_compare(auth_header, expected):
        logger.warning(f"⚠️ Unauthorized cron request to {request.url.path}")
        raise HTTPException(status_code=401, detail="Unauthorized")
