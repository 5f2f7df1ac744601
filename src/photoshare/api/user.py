from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from photoshare.api.auth import get_user_repository
from photoshare.repositories.user_repository import UserRepository
from photoshare.schemas.auth import PublicProfileResponse, PublicUserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=PublicProfileResponse)
def get_public_profile(user_id: UUID, repo: UserRepository = Depends(get_user_repository)):
    user = repo.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return PublicProfileResponse(user=PublicUserResponse.model_validate(user))
