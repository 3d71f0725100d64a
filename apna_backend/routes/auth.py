"""Authentication routes."""

from fastapi import APIRouter

from ..auth import CurrentUser
from ..models import UserProfile

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/user", response_model=UserProfile)
async def current_user(user: CurrentUser):
    """Profile of the authenticated caller."""
    return user.profile
