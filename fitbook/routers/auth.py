"""
Authentication endpoints.

Client and trainer registration, sign-in, sign-out, session refresh and
the current user's identity.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..auth_service import auth_service
from ..dependencies import get_current_role, get_current_user, get_token_from_header
from ..exceptions import AuthError
from ..logging_config import get_logger
from ..models import (
    AuthResponse,
    AuthUser,
    ClientSignUp,
    CurrentUser,
    MessageResponse,
    RefreshToken,
    SessionTokens,
    TrainerSignUp,
    UserRole,
    UserSignIn,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _registration_error(e: AuthError) -> HTTPException:
    if e.code == "email_exists":
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a client account",
)
async def sign_up(user_data: ClientSignUp) -> AuthResponse:
    """
    Register a client with email, password and full name.

    The session is only returned when the backend does not require email
    confirmation.
    """
    try:
        result = await auth_service.sign_up(
            email=user_data.email,
            password=user_data.password,
            full_name=user_data.full_name,
        )
    except AuthError as e:
        logger.error(f"Sign up failed: {e.message}")
        raise _registration_error(e)

    return AuthResponse(**result)


@router.post(
    "/trainer-signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a trainer account",
)
async def trainer_sign_up(trainer_data: TrainerSignUp) -> AuthResponse:
    """Register a trainer together with their trainer profile."""
    try:
        result = await auth_service.register_trainer(
            email=trainer_data.email,
            password=trainer_data.password,
            full_name=trainer_data.full_name,
            specialties=trainer_data.specialties,
            hourly_rate=trainer_data.hourly_rate,
            phone=trainer_data.phone,
            bio=trainer_data.bio,
        )
    except AuthError as e:
        logger.error(f"Trainer sign up failed: {e.message}")
        raise _registration_error(e)

    return AuthResponse(**result)


@router.post("/signin", response_model=AuthResponse, summary="Sign in")
async def sign_in(credentials: UserSignIn) -> AuthResponse:
    """
    Sign in with email and password.

    Raises:
        HTTPException: 401 for bad credentials, 403 for unconfirmed email
    """
    try:
        result = await auth_service.sign_in(
            email=credentials.email,
            password=credentials.password,
        )
    except AuthError as e:
        logger.error(f"Sign in failed: {e.message}")
        if e.code == "email_not_confirmed":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Please confirm your email before signing in",
            )
        if e.code == "invalid_credentials":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid login credentials",
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
        )

    return AuthResponse(**result)


@router.post("/signout", response_model=MessageResponse, summary="Sign out")
async def sign_out(authorization: Optional[str] = Header(None)) -> MessageResponse:
    """Revoke the session behind the bearer token."""
    token = get_token_from_header(authorization)
    result = await auth_service.sign_out(token)
    return MessageResponse(message=result["message"])


@router.post("/refresh", response_model=SessionTokens, summary="Refresh session")
async def refresh_session(token_data: RefreshToken) -> SessionTokens:
    try:
        result = await auth_service.refresh_session(token_data.refresh_token)
    except AuthError as e:
        logger.error(f"Session refresh failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    return SessionTokens(**result)


@router.get("/me", response_model=AuthUser, summary="Current user")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    role: UserRole = Depends(get_current_role),
) -> AuthUser:
    return AuthUser(
        id=current_user.id,
        email=current_user.email,
        full_name=current_user.user_metadata.get("full_name"),
        role=role,
        created_at=current_user.created_at,
    )
