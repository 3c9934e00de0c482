"""
Profile, home and navigation endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    get_current_role,
    get_current_user,
    get_optional_role,
    get_optional_user,
    get_profile_service,
)
from ..models import CurrentUser, HomeResponse, NavigationResponse, ProfileResponse, UserRole
from ..profile_service import ProfileService
from ..views import build_home, build_navigation

router = APIRouter(tags=["Profile"])


@router.get("/profile", response_model=ProfileResponse, summary="Your profile")
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    role: UserRole = Depends(get_current_role),
    profiles: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return await profiles.get_profile(current_user, role)


@router.get("/home", response_model=HomeResponse, summary="Home view")
async def get_home(
    current_user: CurrentUser = Depends(get_current_user),
    role: UserRole = Depends(get_current_role),
) -> HomeResponse:
    return build_home(current_user, role)


@router.get("/navigation", response_model=NavigationResponse, summary="Navigation bar")
async def get_navigation(
    view: Optional[str] = Query(None, description="View the visitor asked for"),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    role: Optional[UserRole] = Depends(get_optional_role),
) -> NavigationResponse:
    """
    Resolve the requested view and list the views the visitor may open.

    Anonymous visitors get the login and registration views; signed-in
    users get the views of their role.
    """
    return build_navigation(view, signed_in=current_user is not None, role=role)
