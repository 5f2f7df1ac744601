from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from photoshare.models.photo import normalize_tags
from photoshare.schemas.common import CamelModel, PaginationInfo


class PhotoResponse(CamelModel):
    id: UUID
    creator_id: UUID
    creator_name: str
    creator_avatar: str
    title: str
    caption: str
    location: str
    people: list[str]
    tags: list[str]
    category: str
    image_url: str
    content_type: str
    file_size: int
    width: int | None = None
    height: int | None = None
    status: str
    likes: int
    rating: float
    rating_count: int
    comments_count: int
    views: int
    created_at: datetime
    updated_at: datetime
    user_liked: bool = False
    user_rating: int = 0

    @classmethod
    def from_db_photo(cls, photo, image_url: str | None = None, user_liked: bool = False, user_rating: int = 0) -> "PhotoResponse":
        """Build the response from a Photo model plus its per-request fields."""
        return cls(
            id=photo.id,
            creator_id=photo.creator_id,
            creator_name=photo.creator_name,
            creator_avatar=photo.creator_avatar,
            title=photo.title,
            caption=photo.caption,
            location=photo.location,
            people=list(photo.people or []),
            tags=photo.tags,
            category=photo.category,
            image_url=image_url or photo.image_url,
            content_type=photo.content_type,
            file_size=photo.file_size,
            width=photo.width,
            height=photo.height,
            status=photo.status,
            likes=photo.likes,
            rating=photo.rating,
            rating_count=photo.rating_count,
            comments_count=photo.comments_count,
            views=photo.views,
            created_at=photo.created_at,
            updated_at=photo.updated_at,
            user_liked=user_liked,
            user_rating=user_rating,
        )


class PhotoListResponse(CamelModel):
    success: bool = True
    data: list[PhotoResponse]
    pagination: PaginationInfo


class PhotoDetailResponse(CamelModel):
    success: bool = True
    data: PhotoResponse


class PhotoUpdateRequest(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    caption: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=200)
    people: list[str] | None = None
    tags: list[str] | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be blank")
        return value

    @field_validator("people")
    @classmethod
    def clean_people(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [person.strip() for person in value if person.strip()]

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else normalize_tags(value)


class SearchResponse(CamelModel):
    success: bool = True
    data: list[PhotoResponse]
    count: int


class PlatformStats(CamelModel):
    photos: int
    creators: int
    views: int


class StatsResponse(CamelModel):
    success: bool = True
    data: PlatformStats
