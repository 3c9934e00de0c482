"""
View routing.

Decides which views a visitor may open and what the navigation bar shows,
depending on whether they are signed in and on their role.
"""

from typing import Dict, List, Optional

from .formatting import display_name
from .models import (
    CurrentUser,
    HomeResponse,
    NavigationItem,
    NavigationResponse,
    UserRole,
    WelcomeCard,
)

VIEW_LABELS: Dict[str, str] = {
    "login": "Login",
    "register": "Register",
    "trainer-register": "Become a Trainer",
    "home": "Home",
    "book": "Book Session",
    "my-bookings": "My Bookings",
    "trainer-dashboard": "My Sessions",
    "create-session": "Create Session",
    "profile": "Profile",
}

ANONYMOUS_VIEWS = ["login", "register", "trainer-register"]
CLIENT_VIEWS = ["home", "book", "my-bookings", "profile"]
TRAINER_VIEWS = ["home", "trainer-dashboard", "create-session", "profile"]

WELCOME_CARDS = [
    WelcomeCard(
        title="Book a Session",
        description="Find and book training sessions with certified trainers",
    ),
    WelcomeCard(
        title="Meet Our Trainers",
        description="Professional trainers ready to help you reach your goals",
    ),
    WelcomeCard(
        title="Track Progress",
        description="Monitor your fitness journey and achievements",
    ),
]


def available_views(signed_in: bool, role: Optional[UserRole] = None) -> List[str]:
    if not signed_in:
        return list(ANONYMOUS_VIEWS)
    if role == UserRole.TRAINER:
        return list(TRAINER_VIEWS)
    return list(CLIENT_VIEWS)


def resolve_view(requested: Optional[str], signed_in: bool, role: Optional[UserRole] = None) -> str:
    """
    Map a requested view to one the visitor may see.

    Unknown or forbidden views fall back to ``home`` for signed-in users
    and to ``register`` for anonymous visitors.
    """
    views = available_views(signed_in, role)
    if requested in views:
        return requested
    return "home" if signed_in else "register"


def build_navigation(
    requested: Optional[str],
    signed_in: bool,
    role: Optional[UserRole] = None,
) -> NavigationResponse:
    current = resolve_view(requested, signed_in, role)
    items = [
        NavigationItem(view=view, label=VIEW_LABELS[view], active=view == current)
        for view in available_views(signed_in, role)
    ]
    return NavigationResponse(
        current_view=current,
        signed_in=signed_in,
        role=role if signed_in else None,
        items=items,
    )


def build_home(user: CurrentUser, role: UserRole) -> HomeResponse:
    return HomeResponse(
        greeting=f"Welcome, {display_name(user.user_metadata)}!",
        role=role,
        cards=list(WELCOME_CARDS),
    )
