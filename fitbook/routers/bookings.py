"""
Booking endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from ..booking_service import BookingService
from ..dependencies import get_booking_service, get_current_user, require_client, require_trainer
from ..models import Booking, BookingCreate, ClientBooking, CurrentUser

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post(
    "",
    response_model=Booking,
    status_code=status.HTTP_201_CREATED,
    summary="Book a session",
    dependencies=[Depends(require_client)],
)
async def book_session(
    booking_data: BookingCreate,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Booking:
    """Create a pending booking against an available session."""
    return await bookings.book_session(current_user.id, booking_data.session_id)


@router.get("/mine", response_model=List[ClientBooking], summary="My bookings")
async def list_my_bookings(
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> List[ClientBooking]:
    return await bookings.list_client_bookings(current_user.id)


@router.post(
    "/{booking_id}/confirm",
    response_model=Booking,
    summary="Confirm a booking",
    dependencies=[Depends(require_trainer)],
)
async def confirm_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Booking:
    return await bookings.confirm_booking(current_user.id, booking_id)


@router.post("/{booking_id}/cancel", response_model=Booking, summary="Cancel a booking")
async def cancel_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Booking:
    """Cancel a booking as its client or as the trainer running the session."""
    return await bookings.cancel_booking(current_user.id, booking_id)
