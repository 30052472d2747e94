"""
Marketplace API — Auth routes (registration, login, own profile)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_caller, get_db
from marketplace.core.access import Caller, Role
from marketplace.core.config import get_settings
from marketplace.core.errors import Conflict, InvalidInput, NotFound
from marketplace.core.security import check_password, hash_password, issue_access_token
from marketplace.models.user import User
from marketplace.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(prefix="/auth", tags=["auth"])


async def _current_user(db: AsyncSession, caller: Caller) -> User:
    user = await db.get(User, caller.user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a customer or cook account."""
    existing = await db.execute(select(User.id).where(User.email == payload.email))
    if existing.scalar_one_or_none() is not None:
        raise Conflict("Email already registered.")

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        role=Role(payload.role),
    )
    db.add(user)
    await db.commit()
    return user


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Validate credentials and issue an access token."""
    result = await db.execute(select(User).where(User.email == payload.email))
    user: User | None = result.scalar_one_or_none()

    matches, new_hash = check_password(payload.password, user.password_hash) if user else (False, None)
    if not matches:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled.")

    if new_hash:
        user.password_hash = new_hash
        await db.commit()

    token = issue_access_token(user.id, user.role, user.display_name)
    return TokenResponse(access_token=token, expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/me", response_model=UserResponse)
async def me(caller: Caller = Depends(get_caller), db: AsyncSession = Depends(get_db)):
    return await _current_user(db, caller)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Update name and phone. Email and role are not editable here."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise InvalidInput("No fields to update.")

    user = await _current_user(db, caller)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    return user


@router.post("/change-password")
async def change_password(
    payload: PasswordChangeRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    user = await _current_user(db, caller)
    matches, _ = check_password(payload.current_password, user.password_hash)
    if not matches:
        raise InvalidInput("Current password is incorrect.")

    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("Password changed for user %s", user.id)
    return {"message": "Password changed successfully."}
