"""API routers for FitBook."""

from .auth import router as auth_router
from .bookings import router as bookings_router
from .profile import router as profile_router
from .sessions import router as sessions_router

__all__ = ["auth_router", "bookings_router", "profile_router", "sessions_router"]
