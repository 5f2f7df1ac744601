from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from photoshare.api.photo import get_photo_repository, load_visible_photo
from photoshare.auth_utils import get_current_user, get_optional_user
from photoshare.logger import logger
from photoshare.models.db import get_db
from photoshare.models.user import User
from photoshare.repositories.interaction_repository import InteractionRepository
from photoshare.repositories.photo_repository import PhotoRepository
from photoshare.schemas.common import MessageResponse
from photoshare.schemas.interaction import (
    CommentCreateRequest,
    CommentCreateResponse,
    CommentListResponse,
    CommentResponse,
    LikeResponse,
    RateRequest,
    RateResponse,
    RatingSummary,
)

router = APIRouter(prefix="/photos", tags=["interactions"])


def get_interaction_repository(db: Session = Depends(get_db)) -> InteractionRepository:
    return InteractionRepository(db)


@router.post("/{photo_id}/like", response_model=LikeResponse)
def like_photo(
    photo_id: UUID,
    current_user: User = Depends(get_current_user),
    photo_repo: PhotoRepository = Depends(get_photo_repository),
    repo: InteractionRepository = Depends(get_interaction_repository),
):
    photo = load_visible_photo(photo_repo, photo_id, current_user)
    if not repo.like_photo(photo, current_user.id):
        raise HTTPException(status_code=400, detail="Already liked")
    logger.log_event("photo_liked", photo_id=photo.id, user_id=current_user.id, likes=photo.likes)
    return LikeResponse(likes=photo.likes)


@router.delete("/{photo_id}/like", response_model=LikeResponse)
def unlike_photo(
    photo_id: UUID,
    current_user: User = Depends(get_current_user),
    photo_repo: PhotoRepository = Depends(get_photo_repository),
    repo: InteractionRepository = Depends(get_interaction_repository),
):
    photo = load_visible_photo(photo_repo, photo_id, current_user)
    if not repo.unlike_photo(photo, current_user.id):
        raise HTTPException(status_code=400, detail="Not liked yet")
    logger.log_event("photo_unliked", photo_id=photo.id, user_id=current_user.id, likes=photo.likes)
    return LikeResponse(likes=photo.likes)


@router.post("/{photo_id}/rate", response_model=RateResponse)
def rate_photo(
    photo_id: UUID,
    request: RateRequest,
    current_user: User = Depends(get_current_user),
    photo_repo: PhotoRepository = Depends(get_photo_repository),
    repo: InteractionRepository = Depends(get_interaction_repository),
):
    if not 1 <= request.rating <= 5:
        raise HTTPException(status_code=400, detail="Rating must be between 1 and 5")
    photo = load_visible_photo(photo_repo, photo_id, current_user)
    rating = repo.rate_photo(photo, current_user.id, request.rating)
    logger.log_event("photo_rated", photo_id=photo.id, user_id=current_user.id, rating=rating.value, average=photo.rating)
    return RateResponse(data=RatingSummary(rating=photo.rating, rating_count=photo.rating_count, user_rating=rating.value))


@router.get("/{photo_id}/comments", response_model=CommentListResponse)
def list_comments(
    photo_id: UUID,
    caller: User | None = Depends(get_optional_user),
    photo_repo: PhotoRepository = Depends(get_photo_repository),
    repo: InteractionRepository = Depends(get_interaction_repository),
):
    photo = load_visible_photo(photo_repo, photo_id, caller)
    comments = repo.list_comments(photo.id)
    return CommentListResponse(data=[CommentResponse.model_validate(c) for c in comments], count=len(comments))


@router.post("/{photo_id}/comments", response_model=CommentCreateResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    photo_id: UUID,
    request: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    photo_repo: PhotoRepository = Depends(get_photo_repository),
    repo: InteractionRepository = Depends(get_interaction_repository),
):
    if not request.text:
        raise HTTPException(status_code=400, detail="Comment text is required")
    photo = load_visible_photo(photo_repo, photo_id, current_user)
    comment = repo.add_comment(photo, current_user, request.text)
    logger.log_event("comment_added", photo_id=photo.id, comment_id=comment.id, user_id=current_user.id)
    return CommentCreateResponse(data=CommentResponse.model_validate(comment))


@router.delete("/{photo_id}/comments/{comment_id}", response_model=MessageResponse)
def delete_comment(
    photo_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: InteractionRepository = Depends(get_interaction_repository),
):
    comment = repo.get_comment(comment_id, photo_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to delete this comment")
    repo.delete_comment(comment)
    logger.log_event("comment_deleted", photo_id=photo_id, comment_id=comment_id, user_id=current_user.id)
    return MessageResponse(message="Comment deleted")
