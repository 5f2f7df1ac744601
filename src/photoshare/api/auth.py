from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from photoshare.auth_utils import authsettings, get_current_user
from photoshare.logger import logger
from photoshare.models.db import get_db
from photoshare.models.user import User, UserRole
from photoshare.repositories.user_repository import UserRepository
from photoshare.schemas.auth import AuthResponse, LoginRequest, ProfileResponse, ProfileUpdateRequest, RegisterRequest, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with a random salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against its bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def create_access_token(user_id: str) -> str:
    payload = {"sub": user_id, "exp": datetime.now(UTC) + timedelta(minutes=authsettings.access_token_expire_minutes), "type": "access"}
    return jwt.encode(payload, authsettings.jwt_secret_key, algorithm=authsettings.jwt_algorithm)


def parse_role(raw: str | None) -> UserRole:
    try:
        return UserRole((raw or "").strip().lower())
    except ValueError:
        return UserRole.CONSUMER


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(request: RegisterRequest, repo: UserRepository = Depends(get_user_repository)):
    if repo.get_user_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    try:
        user = repo.create_user(
            name=request.name,
            email=request.email,
            password_hash=hash_password(request.password),
            role=parse_role(request.role),
        )
    except IntegrityError as err:
        raise HTTPException(status_code=400, detail="Email already registered") from err

    logger.log_event("user_registered", user_id=user.id, role=user.role)
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(str(user.id)),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
def login_user(request: LoginRequest, repo: UserRepository = Depends(get_user_repository)):
    user = repo.get_user_by_email(request.email)
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return AuthResponse(
        message="Login successful",
        token=create_access_token(str(user.id)),
        user=UserResponse.model_validate(user),
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return ProfileResponse(user=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    request: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repository),
):
    name = request.name.strip() if request.name is not None else None
    if name == "":
        raise HTTPException(status_code=400, detail="Name cannot be empty")
    user = repo.update_profile(current_user, name=name, bio=request.bio, avatar=request.avatar)
    return ProfileResponse(user=UserResponse.model_validate(user))
