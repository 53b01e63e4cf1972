"""Authentication router.

Endpoints for registration, login, token refresh, logout, profile and
password management.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.config import settings
from cuidoteca.core.dependencies import get_current_user
from cuidoteca.core.errors import AlreadyExists, InvalidState
from cuidoteca.core.rate_limit import limiter
from cuidoteca.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    get_password_hash,
    verify_password,
)
from cuidoteca.database import get_db
from cuidoteca.models.user import PasswordResetToken, RefreshToken, User, UserRole
from cuidoteca.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from cuidoteca.schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _hash_token(token: str) -> str:
    """Return the SHA-256 hex digest of a raw token string."""
    return hashlib.sha256(token.encode()).hexdigest()


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


async def _create_tokens_for_user(
    db: AsyncSession, user: User
) -> TokenResponse:
    """Create an access + refresh token pair and persist the refresh token."""
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    raw_refresh = create_refresh_token(data={"sub": str(user.id)})

    refresh_record = RefreshToken(
        user_id=user.id,
        token_hash=_hash_token(raw_refresh),
        expires_at=datetime.now(timezone.utc)
        + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )
    db.add(refresh_record)
    await db.flush()

    return TokenResponse(
        access_token=access_token,
        refresh_token=raw_refresh,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Register a parent, cuidador or institution account."""
    email = body.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise AlreadyExists("E-mail já cadastrado")

    user = User(
        email=email,
        password_hash=get_password_hash(body.password),
        name=body.name,
        role=body.role,
        phone=body.phone,
        university_id=body.university_id,
        course=body.course,
        semester=body.semester,
        address=body.address,
        institution_name=body.institution_name if body.role is UserRole.INSTITUTION else None,
    )
    db.add(user)
    await db.flush()
    logger.info("User %s registered as %s", user.id, user.role.value)

    return await _create_tokens_for_user(db, user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Authenticate a user with email + password and return tokens."""
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="E-mail ou senha inválidos",
        )

    return await _create_tokens_for_user(db, user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Exchange a valid refresh token for a new token pair (rotation)."""
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token de atualização inválido",
    )
    try:
        payload = decode_token(body.refresh_token)
        user_id = payload.get("sub")
        if user_id is None or payload.get("type") != "refresh":
            raise invalid
        user_uuid = uuid.UUID(user_id)
    except (JWTError, ValueError):
        raise invalid

    result = await db.execute(
        select(RefreshToken).where(
            RefreshToken.token_hash == _hash_token(body.refresh_token),
            RefreshToken.revoked == False,  # noqa: E712
        )
    )
    stored_token = result.scalar_one_or_none()
    if stored_token is None or _as_aware(stored_token.expires_at) < datetime.now(timezone.utc):
        raise invalid

    # Revoke the old token (rotation)
    stored_token.revoked = True
    await db.flush()

    user = await db.get(User, user_uuid)
    if user is None:
        raise invalid

    return await _create_tokens_for_user(db, user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    body: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Revoke the provided refresh token."""
    result = await db.execute(
        select(RefreshToken).where(
            RefreshToken.token_hash == _hash_token(body.refresh_token),
            RefreshToken.revoked == False,  # noqa: E712
        )
    )
    stored_token = result.scalar_one_or_none()

    if stored_token is not None:
        stored_token.revoked = True
        await db.flush()

    # Always return 204 regardless of whether the token was found
    return None


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Return the full profile of the authenticated user."""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Update profile fields. E-mail and role cannot be changed."""
    update_data = body.model_dump(exclude_unset=True)
    if current_user.role is not UserRole.INSTITUTION:
        update_data.pop("institution_name", None)
    for field in ("name", "institution_name"):
        if field in update_data and update_data[field] is None:
            del update_data[field]
    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.flush()
    await db.refresh(current_user)
    return current_user


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: PasswordChangeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    if body.new_password != body.new_password_confirm:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="As senhas não coincidem",
        )
    if not verify_password(body.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Senha atual incorreta",
        )

    current_user.password_hash = get_password_hash(body.new_password)
    await db.flush()
    return None


@router.post("/forgot-password", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a single-use reset token.

    Answers 204 whether or not the e-mail exists.  Delivery is out of scope,
    the token is only logged.
    """
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    token = PasswordResetToken(
        user_id=user.id,
        token=generate_reset_token(),
        expires_at=datetime.now(timezone.utc)
        + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
    )
    db.add(token)
    await db.flush()
    logger.info("Password reset token issued for user %s", user.id)
    logger.debug("Password reset token for user %s: %s", user.id, token.token)
    return None


@router.post("/reset-password", status_code=status.HTTP_204_NO_CONTENT)
async def reset_password(
    body: ResetPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Set a new password using an unused, unexpired reset token."""
    result = await db.execute(
        select(PasswordResetToken).where(PasswordResetToken.token == body.token)
    )
    token = result.scalar_one_or_none()
    if (
        token is None
        or token.used
        or _as_aware(token.expires_at) < datetime.now(timezone.utc)
    ):
        raise InvalidState("Link de redefinição inválido ou expirado")

    user = await db.get(User, token.user_id)
    if user is None:
        raise InvalidState("Link de redefinição inválido ou expirado")

    user.password_hash = get_password_hash(body.new_password)
    token.used = True
    await db.flush()
    logger.info("Password reset for user %s", user.id)
    return None
