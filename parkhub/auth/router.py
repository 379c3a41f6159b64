from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import User
from ..schemas.users import LoginRequest, TokenResponse, UserResponse
from .security import verify_password, create_access_token, get_current_user
from ..logging import structlog


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    ident = req.identifier.strip()
    user = db.query(User).filter(
        or_(User.username == ident, func.lower(User.email) == func.lower(ident))
    ).first()
    if not user or not user.is_active or not verify_password(req.password, user.password_hash):
        structlog.get_logger().info("login_failed", identifier=ident)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(access_token=create_access_token(user.id, user.role))


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user
