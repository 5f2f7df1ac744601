from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from photoshare.schemas.common import CamelModel


class LikeResponse(CamelModel):
    success: bool = True
    likes: int


class RateRequest(CamelModel):
    rating: int


class RatingSummary(CamelModel):
    rating: float
    rating_count: int
    user_rating: int


class RateResponse(CamelModel):
    success: bool = True
    data: RatingSummary


class CommentCreateRequest(CamelModel):
    text: str = Field("", max_length=2000)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class CommentResponse(CamelModel):
    id: UUID
    photo_id: UUID
    user_id: UUID
    user_name: str
    user_avatar: str
    text: str
    created_at: datetime


class CommentListResponse(CamelModel):
    success: bool = True
    data: list[CommentResponse]
    count: int


class CommentCreateResponse(CamelModel):
    success: bool = True
    data: CommentResponse
