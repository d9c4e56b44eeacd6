import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.security import hash_password, is_strong_password, verify_password
from taskflow.core.tokens import issue_token
from taskflow.models import User
from taskflow.schemas import LoginRequest, RegisterRequest, UserSummary, dump

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
@failure_message("Registration failed")
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if not is_strong_password(payload.password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password must be at least 8 characters with uppercase, lowercase, and number",
        )

    email = payload.email.lower().strip()
    if db.query(User.id).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role="admin",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id, extra={"user_id": user.id})

    return {"message": "User registered successfully", "token": issue_token(user), "user": dump(UserSummary, user)}


@router.post("/login")
@failure_message("Login failed")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower().strip()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")
    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(user)

    return {"message": "Login successful", "token": issue_token(user), "user": dump(UserSummary, user)}
