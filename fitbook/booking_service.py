"""
Booking operations.

Clients book available sessions; the trainer running a session confirms
its bookings; either side may cancel. A session stays available after it
has been booked, and overlapping bookings are not prevented.
"""

from typing import Any, Dict, List

from supabase import Client

from .exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationException,
)
from .logging_config import get_logger
from .metrics import track_booking_operation
from .models import Booking, BookingStatus, ClientBooking, SessionStatus
from .resilience import call_backend
from .session_service import AVAILABLE_SESSIONS_SELECT, build_session_card

logger = get_logger(__name__)

CLIENT_BOOKINGS_SELECT = f"*, training_sessions:session_id ({AVAILABLE_SESSIONS_SELECT})"

BOOKING_OWNERSHIP_SELECT = (
    "id, session_id, client_id, status, booking_date, "
    "training_sessions:session_id (trainer_id)"
)


class BookingService:
    """
    Booking queries executed as the signed-in user.

    Attributes:
        supabase: User-scoped Supabase client
    """

    def __init__(self, supabase: Client) -> None:
        self.supabase = supabase

    async def book_session(self, client_id: str, session_id: Any) -> Booking:
        """
        Create a pending booking for a session.

        Raises:
            NotFoundError: If the session does not exist
            ValidationException: If no session id was given
            ConflictError: If the session is no longer available
        """
        if session_id is None or str(session_id).strip() == "":
            raise ValidationException("session_id", session_id, "Choose a session to book")

        result = await call_backend(
            lambda: self.supabase.table("training_sessions")
            .select("id, status")
            .eq("id", session_id)
            .limit(1)
            .execute(),
            "sessions.get",
        )
        if not result.data:
            track_booking_operation("book", success=False)
            raise NotFoundError("Session", session_id)

        session_status = result.data[0].get("status")
        if session_status != SessionStatus.AVAILABLE.value:
            track_booking_operation("book", success=False)
            raise ConflictError(f"This session is no longer available (status: {session_status})")

        payload = {
            "session_id": session_id,
            "client_id": client_id,
            "status": BookingStatus.PENDING.value,
        }
        inserted = await call_backend(
            lambda: self.supabase.table("bookings").insert(payload).execute(),
            "bookings.create",
        )

        track_booking_operation("book", success=True)
        logger.info(
            "Session booked",
            extra={"extra_fields": {"session_id": session_id, "client_id": client_id}},
        )
        return Booking(**(inserted.data[0] if inserted.data else payload))

    async def list_client_bookings(self, client_id: str) -> List[ClientBooking]:
        """The client's bookings, newest first, with session and trainer."""
        result = await call_backend(
            lambda: self.supabase.table("bookings")
            .select(CLIENT_BOOKINGS_SELECT)
            .eq("client_id", client_id)
            .order("booking_date", desc=True)
            .execute(),
            "bookings.list_client",
        )

        bookings = []
        for row in result.data or []:
            session_row = row.get("training_sessions")
            bookings.append(
                ClientBooking(
                    **{key: value for key, value in row.items() if key != "training_sessions"},
                    session=build_session_card(session_row) if session_row else None,
                )
            )
        return bookings

    async def _get_booking(self, booking_id: Any) -> Dict[str, Any]:
        result = await call_backend(
            lambda: self.supabase.table("bookings")
            .select(BOOKING_OWNERSHIP_SELECT)
            .eq("id", booking_id)
            .limit(1)
            .execute(),
            "bookings.get",
        )
        if not result.data:
            raise NotFoundError("Booking", booking_id)
        return result.data[0]

    async def _set_status(self, booking_id: Any, new_status: BookingStatus) -> Booking:
        result = await call_backend(
            lambda: self.supabase.table("bookings")
            .update({"status": new_status.value})
            .eq("id", booking_id)
            .execute(),
            f"bookings.{new_status.value}",
        )
        if not result.data:
            raise NotFoundError("Booking", booking_id)
        return Booking(**result.data[0])

    async def confirm_booking(self, trainer_id: str, booking_id: Any) -> Booking:
        """
        Confirm a pending booking on one of the trainer's sessions.

        Raises:
            NotFoundError: If the booking does not exist
            PermissionDeniedError: If the session belongs to another trainer
            ConflictError: If the booking is not pending
        """
        booking = await self._get_booking(booking_id)
        session = booking.get("training_sessions") or {}

        if session.get("trainer_id") != trainer_id:
            track_booking_operation("confirm", success=False)
            raise PermissionDeniedError("Only the session's trainer can confirm this booking")

        if booking.get("status") != BookingStatus.PENDING.value:
            track_booking_operation("confirm", success=False)
            raise ConflictError(
                f"Only pending bookings can be confirmed (status: {booking.get('status')})"
            )

        confirmed = await self._set_status(booking_id, BookingStatus.CONFIRMED)
        track_booking_operation("confirm", success=True)
        logger.info(f"Booking {booking_id} confirmed by trainer {trainer_id}")
        return confirmed

    async def cancel_booking(self, user_id: str, booking_id: Any) -> Booking:
        """
        Cancel a booking as its client or as the session's trainer.

        Raises:
            NotFoundError: If the booking does not exist
            PermissionDeniedError: If the user is neither client nor trainer
            ConflictError: If the booking is already cancelled
        """
        booking = await self._get_booking(booking_id)
        session = booking.get("training_sessions") or {}

        if user_id not in (booking.get("client_id"), session.get("trainer_id")):
            track_booking_operation("cancel", success=False)
            raise PermissionDeniedError("You cannot cancel this booking")

        if booking.get("status") == BookingStatus.CANCELLED.value:
            track_booking_operation("cancel", success=False)
            raise ConflictError("Booking is already cancelled")

        cancelled = await self._set_status(booking_id, BookingStatus.CANCELLED)
        track_booking_operation("cancel", success=True)
        logger.info(f"Booking {booking_id} cancelled by user {user_id}")
        return cancelled
