"""
Provisioning of ``users`` rows after auth sign-up.

A database trigger normally copies every new auth user into ``users``.
The trigger runs asynchronously from the caller's point of view, so the
row is polled for a short while; if it never shows up it is inserted
here instead.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from supabase import Client

from .config import settings
from .logging_config import get_logger
from .metrics import track_provisioning_fallback
from .resilience import call_backend, wait_for_row

logger = get_logger(__name__)


class UserProvisioner:
    """
    Makes sure a ``users`` row exists for a freshly registered account.

    Attributes:
        supabase: Client allowed to read and write the user's row
        max_attempts: Number of polls before falling back to an insert (0 inserts straight away)
        poll_interval: Seconds between polls
    """

    def __init__(
        self,
        supabase: Client,
        max_attempts: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self.supabase = supabase
        self.max_attempts = (
            settings.PROVISION_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        self.poll_interval = (
            settings.PROVISION_POLL_INTERVAL if poll_interval is None else poll_interval
        )

    async def fetch_user_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = await call_backend(
            lambda: self.supabase.table("users")
            .select("id, email, full_name, role, created_at")
            .eq("id", user_id)
            .limit(1)
            .execute(),
            "users.fetch",
        )
        return result.data[0] if result.data else None

    async def ensure_user_row(
        self,
        user_id: str,
        email: str,
        full_name: Optional[str],
        role: str,
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Wait for the trigger-created row, inserting it manually if needed.

        Args:
            user_id: Auth user id
            email: Account email
            full_name: Name entered at registration
            role: ``client`` or ``trainer``

        Returns:
            Tuple of (users row, created_manually)
        """
        row = None
        if self.max_attempts > 0:
            row = await wait_for_row(
                lambda: self.fetch_user_row(user_id),
                attempts=self.max_attempts,
                interval=self.poll_interval,
            )

        if row:
            logger.debug(
                "Users row created by trigger",
                extra={"extra_fields": {"user_id": user_id}},
            )
            if row.get("role") != role:
                # the trigger only knows the default role
                await call_backend(
                    lambda: self.supabase.table("users")
                    .update({"role": role})
                    .eq("id", user_id)
                    .execute(),
                    "users.set_role",
                )
                row = {**row, "role": role}
            return row, False

        logger.warning(
            "Users row not created by trigger, inserting manually",
            extra={
                "extra_fields": {
                    "user_id": user_id,
                    "attempts": self.max_attempts,
                }
            },
        )
        track_provisioning_fallback()

        payload = {
            "id": user_id,
            "email": email.lower(),
            "full_name": full_name,
            "role": role,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        result = await call_backend(
            lambda: self.supabase.table("users")
            .upsert(payload, on_conflict="id")
            .execute(),
            "users.insert",
        )
        return (result.data[0] if result.data else payload), True
