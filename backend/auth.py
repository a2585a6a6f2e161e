import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from starlette import status

from database import get_db
from models.users import User, UserRole, UserStatus
from schemas.users import LoginRequest, Principal, RegisterRequest, Token
from utils.auth_utils import create_access_token, get_current_user, hash_password, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("auth")

db_dependency = Annotated[Session, Depends(get_db)]


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register_user(user: RegisterRequest, db: db_dependency):
    existing_user = db.query(User).filter(User.mobile == user.mobile).first()
    if existing_user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Mobile number already registered")

    if user.role == UserRole.ADMIN:
        # Self-registration can only bootstrap the very first admin
        has_admin = db.query(User).filter(User.role == UserRole.ADMIN).first()
        if has_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="An admin already exists")

    new_user = User(
        name=user.name,
        mobile=user.mobile,
        hashed_password=hash_password(user.password),
        role=user.role,
        status=UserStatus.ACTIVE,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info(f"User {new_user.id} registered with role {new_user.role.value}")
    return Token(access_token=create_access_token(new_user), token_type="bearer")


@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: db_dependency):
    user = db.query(User).filter(User.mobile == credentials.mobile).first()
    if user is None or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Failed login for mobile {credentials.mobile}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid mobile or password")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account inactive")
    return Token(access_token=create_access_token(user), token_type="bearer")


@router.get("/me", response_model=Principal)
def read_me(user: dict = Depends(get_current_user)):
    return user
