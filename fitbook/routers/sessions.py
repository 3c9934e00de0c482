"""
Training session endpoints.

Clients browse available sessions; trainers create sessions, see them on
their dashboard and change their status.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from ..dependencies import get_current_user, get_session_service, require_trainer
from ..models import (
    CurrentUser,
    SessionCard,
    SessionCreate,
    SessionStatusUpdate,
    TrainerSessionView,
    TrainingSession,
)
from ..session_service import SessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", response_model=List[SessionCard], summary="List available sessions")
async def list_available_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
) -> List[SessionCard]:
    """Sessions open for booking, soonest first."""
    return await sessions.list_available_sessions()


@router.post(
    "",
    response_model=TrainingSession,
    status_code=status.HTTP_201_CREATED,
    summary="Create a session",
    dependencies=[Depends(require_trainer)],
)
async def create_session(
    session_data: SessionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
) -> TrainingSession:
    return await sessions.create_session(current_user.id, session_data)


@router.get(
    "/mine",
    response_model=List[TrainerSessionView],
    summary="Trainer dashboard",
    dependencies=[Depends(require_trainer)],
)
async def list_my_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
) -> List[TrainerSessionView]:
    """The trainer's sessions with their bookings and client names."""
    return await sessions.list_trainer_sessions(current_user.id)


@router.patch(
    "/{session_id}/status",
    response_model=TrainingSession,
    summary="Change session status",
    dependencies=[Depends(require_trainer)],
)
async def update_session_status(
    session_id: str,
    status_update: SessionStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
) -> TrainingSession:
    return await sessions.update_session_status(
        current_user.id, session_id, status_update.status
    )


@router.post(
    "/{session_id}/cancel",
    response_model=TrainingSession,
    summary="Cancel a session",
    dependencies=[Depends(require_trainer)],
)
async def cancel_session(
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
) -> TrainingSession:
    return await sessions.cancel_session(current_user.id, session_id)
