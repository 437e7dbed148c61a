import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import STAFF_ROLES, create_session_token, get_current_user
from ..config import ENVIRONMENT, SESSION_COOKIE_NAME, SESSION_TTL_HOURS
from ..database import get_db
from ..models import User
from ..rate_limiter import login_rate_limit
from ..security_utils import mask_sensitive_data, verify_password_bcrypt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


class LoginRequest(BaseModel):
    email: str
    password: str


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
    }


def _authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not user.is_active or not verify_password_bcrypt(password, user.password_hash):
        logger.warning(f"⚠️ Failed login attempt for {mask_sensitive_data(email)}")
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
    return user


def _start_session(db: Session, user: User, response: Response) -> dict:
    token = create_session_token(user)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=ENVIRONMENT != "development",
        samesite="lax",
        max_age=SESSION_TTL_HOURS * 3600,
        path="/",
    )
    user.last_login_at = datetime.utcnow()
    db.commit()
    logger.info(f"✅ {user.role} {user.id} logged in")
    return {"token": token, "user": serialize_user(user)}


@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    _: None = Depends(login_rate_limit),
    db: Session = Depends(get_db),
):
    """Staff and admin login. Sets the session cookie."""
    user = _authenticate(db, data.email, data.password)
    if user.role not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Please use the driver portal to sign in")
    return _start_session(db, user, response)


@router.post("/driver/login")
async def driver_login(
    data: LoginRequest,
    response: Response,
    _: None = Depends(login_rate_limit),
    db: Session = Depends(get_db),
):
    user = _authenticate(db, data.email, data.password)
    if user.role != "driver":
        raise HTTPException(status_code=403, detail="This login is for drivers only")
    return _start_session(db, user, response)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return serialize_user(user)
