"""
Training session operations.

Trainers publish and manage sessions; clients browse the available ones.
"""

from typing import Any, Dict, List

from supabase import Client

from .exceptions import NotFoundError
from .formatting import (
    format_price,
    format_session_date,
    format_session_type,
    format_short_date,
    format_time_range,
)
from .logging_config import get_logger
from .metrics import track_session_created
from .models import (
    SessionBooking,
    SessionCard,
    SessionCreate,
    SessionStatus,
    TrainerSessionView,
    TrainingSession,
)
from .resilience import call_backend

logger = get_logger(__name__)

AVAILABLE_SESSIONS_SELECT = "*, trainers:trainer_id (name, specialties, hourly_rate)"

TRAINER_DASHBOARD_SELECT = (
    "*, bookings (id, session_id, client_id, status, booking_date, "
    "users:client_id (full_name, email))"
)


def build_session_card(row: Dict[str, Any]) -> SessionCard:
    """Turn a session row with its embedded trainer into a display card."""
    return SessionCard(
        **{key: value for key, value in row.items() if key != "trainers"},
        trainer=row.get("trainers"),
        date_label=format_session_date(row.get("session_date")),
        time_label=format_time_range(row.get("start_time"), row.get("end_time")),
        type_label=format_session_type(row.get("session_type")),
        price_label=format_price(row.get("price")),
    )


def build_session_booking(row: Dict[str, Any]) -> SessionBooking:
    client = row.get("users")
    return SessionBooking(
        **{key: value for key, value in row.items() if key != "users"},
        client=client,
        client_name=(client or {}).get("full_name") or "Unknown",
        booked_label=format_short_date(row.get("booking_date")),
    )


def build_trainer_session(row: Dict[str, Any]) -> TrainerSessionView:
    return TrainerSessionView(
        **{key: value for key, value in row.items() if key != "bookings"},
        bookings=[build_session_booking(booking) for booking in row.get("bookings") or []],
        date_label=format_short_date(row.get("session_date")),
        time_label=format_time_range(row.get("start_time"), row.get("end_time")),
    )


class SessionService:
    """
    Session queries executed as the signed-in user.

    Attributes:
        supabase: User-scoped Supabase client
    """

    def __init__(self, supabase: Client) -> None:
        self.supabase = supabase

    async def create_session(self, trainer_id: str, data: SessionCreate) -> TrainingSession:
        """
        Publish a new bookable session.

        Args:
            trainer_id: Id of the trainer (equal to their auth user id)
            data: Validated session form

        Returns:
            The created session row
        """
        payload = {
            "trainer_id": trainer_id,
            "session_date": data.session_date.isoformat(),
            "start_time": data.start_time.isoformat(),
            "end_time": data.end_time.isoformat(),
            "session_type": data.session_type.value,
            "price": data.price,
            "notes": data.notes,
            "status": SessionStatus.AVAILABLE.value,
        }

        result = await call_backend(
            lambda: self.supabase.table("training_sessions").insert(payload).execute(),
            "sessions.create",
        )

        track_session_created(data.session_type.value)
        logger.info(
            "Session created",
            extra={
                "extra_fields": {
                    "trainer_id": trainer_id,
                    "session_date": payload["session_date"],
                    "session_type": payload["session_type"],
                }
            },
        )
        return TrainingSession(**(result.data[0] if result.data else payload))

    async def list_available_sessions(self) -> List[SessionCard]:
        """Available sessions, soonest first, with their trainer."""
        result = await call_backend(
            lambda: self.supabase.table("training_sessions")
            .select(AVAILABLE_SESSIONS_SELECT)
            .eq("status", SessionStatus.AVAILABLE.value)
            .order("session_date")
            .execute(),
            "sessions.list_available",
        )
        rows = result.data or []
        logger.debug(f"Fetched {len(rows)} available sessions")
        return [build_session_card(row) for row in rows]

    async def list_trainer_sessions(self, trainer_id: str) -> List[TrainerSessionView]:
        """All sessions of a trainer with the bookings made against them."""
        result = await call_backend(
            lambda: self.supabase.table("training_sessions")
            .select(TRAINER_DASHBOARD_SELECT)
            .eq("trainer_id", trainer_id)
            .order("session_date")
            .execute(),
            "sessions.list_trainer",
        )
        return [build_trainer_session(row) for row in result.data or []]

    async def get_session(self, session_id: Any) -> Dict[str, Any]:
        """
        Fetch a single session row.

        Raises:
            NotFoundError: If no visible session has this id
        """
        result = await call_backend(
            lambda: self.supabase.table("training_sessions")
            .select("*")
            .eq("id", session_id)
            .limit(1)
            .execute(),
            "sessions.get",
        )
        if not result.data:
            raise NotFoundError("Session", session_id)
        return result.data[0]

    async def update_session_status(
        self,
        trainer_id: str,
        session_id: Any,
        new_status: SessionStatus,
    ) -> TrainingSession:
        """
        Change the status of one of the trainer's sessions.

        Raises:
            NotFoundError: If the trainer has no session with this id
        """
        result = await call_backend(
            lambda: self.supabase.table("training_sessions")
            .update({"status": new_status.value})
            .eq("id", session_id)
            .eq("trainer_id", trainer_id)
            .execute(),
            "sessions.update_status",
        )
        if not result.data:
            raise NotFoundError("Session", session_id)

        logger.info(
            "Session status updated",
            extra={
                "extra_fields": {
                    "session_id": session_id,
                    "status": new_status.value,
                }
            },
        )
        return TrainingSession(**result.data[0])

    async def cancel_session(self, trainer_id: str, session_id: Any) -> TrainingSession:
        return await self.update_session_status(trainer_id, session_id, SessionStatus.CANCELLED)
