"""
Account service for FitBook.

Registration of clients and trainers, sign-in, sign-out, token refresh and
role resolution on top of Supabase Auth.
"""

from typing import Any, Dict, List, Optional

from supabase import Client
from supabase_auth.errors import AuthError as SupabaseAuthError, AuthWeakPasswordError

from .exceptions import AuthError, FitBookException
from .logging_config import get_logger
from .metrics import track_registration, track_signin
from .models import UserRole
from .provisioning import UserProvisioner
from .resilience import call_backend
from .supabase_client import (
    config as supabase_config,
    get_supabase_admin_client,
    get_supabase_client,
    get_user_client,
)

logger = get_logger(__name__)

CLIENT_SIGNUP_MESSAGE = (
    "Registration successful! Please check your email to confirm your account."
)
TRAINER_SIGNUP_MESSAGE = (
    "Trainer registration successful! Check your email to confirm your account."
)


def _session_dict(session: Any) -> Optional[Dict[str, Any]]:
    if session is None:
        return None
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_in": session.expires_in,
        "expires_at": session.expires_at,
        "token_type": session.token_type or "bearer",
    }


def _user_dict(user: Any, role: UserRole, full_name: Optional[str] = None) -> Dict[str, Any]:
    metadata = user.user_metadata or {}
    return {
        "id": user.id,
        "email": user.email,
        "full_name": full_name or metadata.get("full_name"),
        "role": role,
        "email_confirmed_at": user.email_confirmed_at,
        "created_at": user.created_at,
    }


async def resolve_role(user_id: str, supabase: Client) -> UserRole:
    """
    Work out whether a user is a trainer or a client.

    A user is a trainer exactly when a ``trainers`` row references them.
    """
    result = await call_backend(
        lambda: supabase.table("trainers").select("id").eq("user_id", user_id).limit(1).execute(),
        "trainers.lookup",
    )
    return UserRole.TRAINER if result.data else UserRole.CLIENT


class FitBookAuthService:
    """
    Service class for account operations.

    Every method creates the Supabase clients it needs, so a single instance
    is shared by all requests.
    """

    def _provisioning_client(self, session: Any) -> Optional[Client]:
        """
        Client used to write the new user's rows.

        The service role is preferred; without it the new session is used,
        which only exists when email confirmation is disabled.
        """
        if supabase_config.has_service_role:
            return get_supabase_admin_client()
        if session is not None:
            return get_user_client(session.access_token)
        return None

    async def _create_auth_user(self, email: str, password: str, full_name: str) -> Any:
        client = get_supabase_client()
        try:
            response = await call_backend(
                lambda: client.auth.sign_up(
                    {
                        "email": email.lower(),
                        "password": password,
                        "options": {"data": {"full_name": full_name}},
                    }
                ),
                "auth.sign_up",
                retries=0,
            )
        except AuthWeakPasswordError as e:
            logger.warning(f"Password rejected by auth backend: {e.message}")
            raise AuthError(f"Signup failed: {e.message}", "weak_password")
        except SupabaseAuthError as e:
            logger.error(f"Supabase auth error during sign up: {e.message}")
            message = e.message.lower()
            if "already registered" in message or "already exists" in message:
                raise AuthError("Signup failed: Email already registered", "email_exists")
            raise AuthError(f"Signup failed: {e.message}", "supabase_error")

        if not response.user or not response.user.id:
            raise AuthError(
                "Signup failed: No user returned from the auth backend.",
                "registration_failed",
            )
        return response

    async def sign_up(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        """
        Register a client account.

        Args:
            email: Account email
            password: Account password
            full_name: Name stored in the user metadata

        Returns:
            Dictionary with ``user``, ``session`` (None until the email is
            confirmed) and ``message``

        Raises:
            AuthError: If the auth backend rejects the registration
        """
        logger.info(f"Registering client account: {email}")
        try:
            response = await self._create_auth_user(email, password, full_name)
        except FitBookException:
            track_registration(UserRole.CLIENT.value, success=False)
            raise

        user = response.user
        provisioner_client = self._provisioning_client(response.session)
        if provisioner_client is None:
            logger.info(f"Users row for {user.id} left to the database trigger")
        else:
            try:
                await UserProvisioner(provisioner_client).ensure_user_row(
                    user.id, email, full_name, UserRole.CLIENT.value
                )
            except FitBookException as e:
                # the account exists; the trigger may still create the row
                logger.error(f"Failed to provision users row for {user.id}: {e.message}")

        track_registration(UserRole.CLIENT.value, success=True)
        logger.info(f"Client registered: {email} (id: {user.id})")
        return {
            "user": _user_dict(user, UserRole.CLIENT, full_name),
            "session": _session_dict(response.session),
            "message": CLIENT_SIGNUP_MESSAGE,
        }

    async def register_trainer(
        self,
        email: str,
        password: str,
        full_name: str,
        specialties: List[str],
        hourly_rate: float,
        phone: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a trainer account and its trainer profile.

        The ``trainers`` row uses the auth user id as its primary key so that
        sessions can reference trainers by user id.

        Raises:
            AuthError: If sign-up or the trainer profile insert fails
        """
        logger.info(f"Registering trainer account: {email}")
        try:
            response = await self._create_auth_user(email, password, full_name)
        except FitBookException:
            track_registration(UserRole.TRAINER.value, success=False)
            raise

        user = response.user
        writer = self._provisioning_client(response.session)
        if writer is None:
            track_registration(UserRole.TRAINER.value, success=False)
            raise AuthError(
                "Trainer profile creation failed: confirm your email and sign in, "
                "or configure the service role key",
                "profile_failed",
            )

        try:
            await UserProvisioner(writer).ensure_user_row(
                user.id, email, full_name, UserRole.TRAINER.value
            )
        except FitBookException as e:
            logger.error(f"Failed to provision users row for {user.id}: {e.message}")

        trainer_row = {
            "id": user.id,
            "user_id": user.id,
            "name": full_name,
            "email": email.lower(),
            "phone": phone,
            "specialties": specialties,
            "bio": bio,
            "hourly_rate": float(hourly_rate),
        }
        try:
            await call_backend(
                lambda: writer.table("trainers").insert(trainer_row).execute(),
                "trainers.insert",
            )
        except FitBookException as e:
            logger.error(f"Trainer profile creation error for {user.id}: {e.message}")
            track_registration(UserRole.TRAINER.value, success=False)
            raise AuthError(f"Trainer profile creation failed: {e.message}", "profile_failed")

        track_registration(UserRole.TRAINER.value, success=True)
        logger.info(f"Trainer registered: {email} (id: {user.id})")
        return {
            "user": _user_dict(user, UserRole.TRAINER, full_name),
            "session": _session_dict(response.session),
            "message": TRAINER_SIGNUP_MESSAGE,
        }

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate with email and password.

        Returns:
            Dictionary with ``user`` (including the resolved role),
            ``session`` and ``message``

        Raises:
            AuthError: If the credentials are rejected
        """
        logger.info(f"Attempting sign in: {email}")
        client = get_supabase_client()
        try:
            response = await call_backend(
                lambda: client.auth.sign_in_with_password(
                    {"email": email.lower(), "password": password}
                ),
                "auth.sign_in",
            )
        except SupabaseAuthError as e:
            track_signin(success=False)
            logger.warning(f"Supabase auth error during sign in: {e.message}")
            message = e.message.lower()
            if "not confirmed" in message:
                raise AuthError("Email not confirmed", "email_not_confirmed")
            if "invalid" in message or "credentials" in message:
                raise AuthError("Invalid login credentials", "invalid_credentials")
            raise AuthError(f"Sign in failed: {e.message}", "supabase_error")

        if not response.user or not response.session:
            track_signin(success=False)
            raise AuthError("Invalid login credentials", "invalid_credentials")

        user = response.user
        role = await resolve_role(user.id, get_user_client(response.session.access_token))

        track_signin(success=True)
        logger.info(f"User signed in: {email} (id: {user.id}, role: {role.value})")
        return {
            "user": _user_dict(user, role),
            "session": _session_dict(response.session),
            "message": "Login successful!",
        }

    async def sign_out(self, access_token: str) -> Dict[str, Any]:
        """
        Revoke the user's refresh tokens.

        Revocation failures are logged only: the caller drops its tokens
        either way, so sign-out always succeeds.
        """
        if not supabase_config.has_service_role:
            logger.info("Service role not configured, sign out is client-side only")
            return {"message": "Signed out successfully"}

        admin = get_supabase_admin_client()
        try:
            await call_backend(
                lambda: admin.auth.admin.sign_out(access_token),
                "auth.sign_out",
            )
            logger.info("Session revoked")
        except (SupabaseAuthError, FitBookException) as e:
            logger.warning(f"Error signing out: {e.message}")

        return {"message": "Signed out successfully"}

    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new session.

        Raises:
            AuthError: If the refresh token is invalid or expired
        """
        client = get_supabase_client()
        try:
            response = await call_backend(
                lambda: client.auth.refresh_session(refresh_token),
                "auth.refresh",
            )
        except SupabaseAuthError as e:
            logger.error(f"Supabase auth error during token refresh: {e.message}")
            raise AuthError("Invalid or expired refresh token", "invalid_refresh_token")

        if not response.session:
            raise AuthError("Invalid or expired refresh token", "invalid_refresh_token")

        return _session_dict(response.session)


auth_service = FitBookAuthService()
