"""Profile endpoint for the API."""

from fastapi import APIRouter, Depends

from components.user.models import User
from components.user import schemas
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/api/profile",
    tags=["profile"],
)


@router.get("", response_model=schemas.ProfileResponse)
async def read_profile(current_user: User = Depends(get_current_user)):
    """Get the current user's profile, including balance."""
    return schemas.ProfileResponse(profile=schemas.Profile.model_validate(current_user))
