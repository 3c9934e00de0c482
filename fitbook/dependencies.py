"""
FastAPI dependencies for FitBook.

Token extraction and validation, the user-scoped Supabase client, role
resolution and the service objects built on top of them.
"""

from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from supabase import Client
from supabase_auth.errors import AuthError as SupabaseAuthError

from .auth_service import resolve_role
from .booking_service import BookingService
from .config import settings
from .exceptions import PermissionDeniedError
from .logging_config import bind_log_context, get_logger
from .models import CurrentUser, UserRole
from .profile_service import ProfileService
from .resilience import call_backend
from .session_service import SessionService
from .supabase_client import get_supabase_client, get_user_client

logger = get_logger(__name__)

SUPABASE_AUDIENCE = "authenticated"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract the bearer token from an Authorization header.

    Raises:
        HTTPException: If the header is missing or malformed
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid authorization header format. Use: Bearer <token>")

    return parts[1]


def decode_supabase_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """
    Verify a Supabase access token signed with the project's JWT secret.

    Returns:
        Decoded claims, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=SUPABASE_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Access token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid access token: {e}")
        return None


async def _fetch_token_user(token: str) -> Optional[CurrentUser]:
    client = get_supabase_client()
    try:
        response = await call_backend(lambda: client.auth.get_user(token), "auth.get_user")
    except SupabaseAuthError as e:
        logger.warning(f"Token rejected by auth backend: {e.message}")
        return None

    if not response or not response.user:
        return None

    user = response.user
    return CurrentUser(
        id=user.id,
        email=user.email,
        user_metadata=user.user_metadata or {},
        created_at=user.created_at,
        access_token=token,
    )


async def get_current_user(authorization: Optional[str] = Header(None)) -> CurrentUser:
    """
    Dependency returning the signed-in user.

    Tokens are verified locally when SUPABASE_JWT_SECRET is set, otherwise
    they are checked against the auth backend.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    token = get_token_from_header(authorization)

    if settings.SUPABASE_JWT_SECRET:
        claims = decode_supabase_token(token, settings.SUPABASE_JWT_SECRET)
        if not claims or not claims.get("sub"):
            raise _unauthorized("Invalid or expired token")
        user = CurrentUser(
            id=claims["sub"],
            email=claims.get("email"),
            user_metadata=claims.get("user_metadata") or {},
            access_token=token,
        )
    else:
        user = await _fetch_token_user(token)
        if user is None:
            raise _unauthorized("Invalid or expired token")

    # the rest of the request logs on behalf of this user
    bind_log_context(user_id=user.id)
    return user


async def get_optional_user(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentUser]:
    """Like get_current_user, but anonymous requests yield None."""
    if not authorization:
        return None
    return await get_current_user(authorization)


def get_db(current_user: CurrentUser = Depends(get_current_user)) -> Client:
    """Supabase client acting as the signed-in user."""
    return get_user_client(current_user.access_token)


async def get_current_role(
    current_user: CurrentUser = Depends(get_current_user),
    db: Client = Depends(get_db),
) -> UserRole:
    role = await resolve_role(current_user.id, db)
    bind_log_context(role=role.value)
    return role


async def require_trainer(role: UserRole = Depends(get_current_role)) -> UserRole:
    if role != UserRole.TRAINER:
        raise PermissionDeniedError("This action is only available to trainers")
    return role


async def require_client(role: UserRole = Depends(get_current_role)) -> UserRole:
    if role != UserRole.CLIENT:
        raise PermissionDeniedError("Only clients can book sessions")
    return role


def get_session_service(db: Client = Depends(get_db)) -> SessionService:
    return SessionService(db)


def get_booking_service(db: Client = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_profile_service(db: Client = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


async def get_optional_role(
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
) -> Optional[UserRole]:
    """Role of the visitor, or None for anonymous requests."""
    if current_user is None:
        return None
    role = await resolve_role(current_user.id, get_user_client(current_user.access_token))
    bind_log_context(role=role.value)
    return role


__all__ = [
    "get_booking_service",
    "get_current_role",
    "get_current_user",
    "get_db",
    "get_optional_role",
    "get_optional_user",
    "get_profile_service",
    "get_session_service",
    "get_token_from_header",
    "require_client",
    "require_trainer",
]
