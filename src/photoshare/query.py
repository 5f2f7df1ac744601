"""
Photo listing queries

Listing requests are translated into a backend-neutral ``PhotoQuery``: a list
of predicates, one sort order and a page window. ``PhotoRepository`` compiles
it into SQL; nothing in here knows about the database.
"""

import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from photoshare.models.photo import PhotoStatus

ALL_CATEGORIES = "all"


class ListingSettings(BaseSettings):
    default_limit: int = Field(12, ge=1)
    max_limit: int = Field(100, ge=1)

    model_config = SettingsConfigDict(env_prefix="LISTING_", env_file=".env", extra="ignore")


class PhotoSort(StrEnum):
    NEWEST = "newest"
    OLDEST = "oldest"
    POPULAR = "popular"
    RATING = "rating"

    @classmethod
    def parse(cls, value: str | None) -> "PhotoSort":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.NEWEST


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 12

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return -(-total // self.limit)

    def has_more(self, total: int) -> bool:
        return self.page * self.limit < total


@dataclass(frozen=True)
class StatusIn:
    statuses: tuple[PhotoStatus, ...]


@dataclass(frozen=True)
class CategoryIs:
    category: str


@dataclass(frozen=True)
class CreatorIs:
    creator_id: uuid.UUID


@dataclass(frozen=True)
class TextSearch:
    """Title or caption substring, or exact tag, all case-insensitive."""

    term: str
    include_location: bool = False


Predicate = StatusIn | CategoryIs | CreatorIs | TextSearch


@dataclass(frozen=True)
class PhotoQuery:
    predicates: tuple[Predicate, ...] = ()
    sort: PhotoSort = PhotoSort.NEWEST
    pagination: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class ListingParams:
    page: int = 1
    limit: int = 12
    category: str = ALL_CATEGORIES
    sort: PhotoSort = PhotoSort.NEWEST
    search: str = ""
    creator_id: uuid.UUID | None = None


def _positive_int(value: str | int | None, default: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_listing_params(
    page: str | None = None,
    limit: str | None = None,
    category: str | None = None,
    sort: str | None = None,
    search: str | None = None,
    creator_id: str | None = None,
    settings: ListingSettings | None = None,
) -> ListingParams:
    """Normalize raw query-string values. Malformed values fall back to defaults."""
    settings = settings or ListingSettings()

    creator_uuid = None
    if creator_id:
        try:
            creator_uuid = uuid.UUID(creator_id)
        except ValueError:
            creator_uuid = None

    return ListingParams(
        page=_positive_int(page, 1),
        limit=min(_positive_int(limit, settings.default_limit), settings.max_limit),
        category=(category or "").strip().lower() or ALL_CATEGORIES,
        sort=PhotoSort.parse(sort),
        search=(search or "").strip().lower(),
        creator_id=creator_uuid,
    )


def visible_statuses(creator_id: uuid.UUID | None, caller_id: uuid.UUID | None) -> tuple[PhotoStatus, ...]:
    # Creators browsing their own photos also see what is still under review
    if creator_id is not None and creator_id == caller_id:
        return (PhotoStatus.APPROVED, PhotoStatus.PENDING_REVIEW)
    return (PhotoStatus.APPROVED,)


def build_photo_query(params: ListingParams, caller_id: uuid.UUID | None = None) -> PhotoQuery:
    predicates: list[Predicate] = [StatusIn(visible_statuses(params.creator_id, caller_id))]

    if params.category != ALL_CATEGORIES:
        predicates.append(CategoryIs(params.category))

    if params.creator_id is not None:
        predicates.append(CreatorIs(params.creator_id))

    if params.search:
        predicates.append(TextSearch(params.search))

    return PhotoQuery(
        predicates=tuple(predicates),
        sort=params.sort,
        pagination=Pagination(page=params.page, limit=params.limit),
    )


def build_search_query(term: str, limit: int) -> PhotoQuery:
    """Free-text search over approved photos, newest first, including location."""
    return PhotoQuery(
        predicates=(StatusIn((PhotoStatus.APPROVED,)), TextSearch(term.strip().lower(), include_location=True)),
        sort=PhotoSort.NEWEST,
        pagination=Pagination(page=1, limit=limit),
    )
