"""
Profile and home page data for the signed-in user.
"""

from typing import Optional

from supabase import Client

from .formatting import display_name, format_short_date
from .logging_config import get_logger
from .models import CurrentUser, ProfileResponse, TrainerProfile, UserRole
from .resilience import call_backend

logger = get_logger(__name__)


class ProfileService:
    """Reads the ``users`` and ``trainers`` rows of the signed-in user."""

    def __init__(self, supabase: Client) -> None:
        self.supabase = supabase

    async def get_trainer_profile(self, user_id: str) -> Optional[TrainerProfile]:
        result = await call_backend(
            lambda: self.supabase.table("trainers")
            .select("name, phone, specialties, bio, hourly_rate")
            .eq("user_id", user_id)
            .limit(1)
            .execute(),
            "trainers.profile",
        )
        return TrainerProfile(**result.data[0]) if result.data else None

    async def get_profile(self, user: CurrentUser, role: UserRole) -> ProfileResponse:
        """
        Build the profile view.

        The ``users`` row is preferred; token data fills the gaps when the
        row has not been provisioned yet.
        """
        result = await call_backend(
            lambda: self.supabase.table("users")
            .select("id, email, full_name, created_at")
            .eq("id", user.id)
            .limit(1)
            .execute(),
            "users.profile",
        )
        row = result.data[0] if result.data else {}
        if not row:
            logger.warning(f"Users row not found for {user.id}, using token data")

        name = row.get("full_name") or display_name(user.user_metadata, fallback="Not set")
        created_at = row.get("created_at") or user.created_at

        trainer = None
        if role == UserRole.TRAINER:
            trainer = await self.get_trainer_profile(user.id)

        return ProfileResponse(
            id=user.id,
            name=name,
            email=row.get("email") or user.email,
            member_since=format_short_date(created_at),
            role=role,
            trainer=trainer,
        )
