import uuid
from datetime import UTC, datetime

from sqlalchemy import Select, func, or_, select, text, update
from sqlalchemy.orm import selectinload

from photoshare.models.interaction import Like, Rating
from photoshare.models.photo import Photo, PhotoStatus, PhotoTag
from photoshare.models.user import User, UserRole
from photoshare.query import CategoryIs, CreatorIs, PhotoQuery, PhotoSort, Predicate, StatusIn, TextSearch
from photoshare.repositories.base_repository import BaseRepository, floored_decrement


_SORT_COLUMNS = {
    PhotoSort.NEWEST: (Photo.created_at.desc(),),
    PhotoSort.OLDEST: (Photo.created_at.asc(),),
    PhotoSort.POPULAR: (Photo.likes.desc(), Photo.created_at.desc()),
    PhotoSort.RATING: (Photo.rating.desc(), Photo.created_at.desc()),
}


def _compile_predicate(predicate: Predicate):
    match predicate:
        case StatusIn(statuses=statuses):
            return Photo.status.in_([status.value for status in statuses])
        case CategoryIs(category=category):
            return Photo.category == category
        case CreatorIs(creator_id=creator_id):
            return Photo.creator_id == creator_id
        case TextSearch(term=term, include_location=include_location):
            clauses = [
                func.lower(Photo.title).contains(term, autoescape=True),
                func.lower(Photo.caption).contains(term, autoescape=True),
                Photo.tag_links.any(PhotoTag.tag == term),
            ]
            if include_location:
                clauses.append(func.lower(Photo.location).contains(term, autoescape=True))
            return or_(*clauses)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


class PhotoRepository(BaseRepository):
    def _filtered(self, stmt: Select, query: PhotoQuery) -> Select:
        return stmt.where(*[_compile_predicate(p) for p in query.predicates])

    def compile_query(self, query: PhotoQuery) -> Select:
        """Translate a PhotoQuery into the page SELECT."""
        stmt = self._filtered(select(Photo), query)
        stmt = stmt.order_by(*_SORT_COLUMNS[query.sort], Photo.id)
        return stmt.offset(query.pagination.offset).limit(query.pagination.limit)

    def compile_count(self, query: PhotoQuery) -> Select:
        return self._filtered(select(func.count()).select_from(Photo), query)

    def find_photos(self, query: PhotoQuery) -> tuple[list[Photo], int]:
        stmt = self.compile_query(query).options(selectinload(Photo.tag_links))
        photos = list(self.db.execute(stmt).scalars().all())
        total = self.db.execute(self.compile_count(query)).scalar_one()
        return photos, total

    def get_photo_by_id(self, photo_id: uuid.UUID) -> Photo | None:
        stmt = select(Photo).where(Photo.id == photo_id).options(selectinload(Photo.tag_links))
        return self.db.execute(stmt).scalar_one_or_none()

    def create_photo(
        self,
        creator: User,
        *,
        photo_id: uuid.UUID,
        title: str,
        blob_name: str,
        image_url: str,
        caption: str = "",
        location: str = "",
        people: list[str] | None = None,
        tags: list[str] | None = None,
        content_type: str = "image/jpeg",
        file_size: int = 0,
        width: int | None = None,
        height: int | None = None,
        status: PhotoStatus = PhotoStatus.APPROVED,
    ) -> Photo:
        photo = Photo(
            id=photo_id,
            creator_id=creator.id,
            creator_name=creator.name,
            creator_avatar=creator.avatar,
            title=title,
            caption=caption,
            location=location,
            people=list(people or []),
            blob_name=blob_name,
            image_url=image_url,
            content_type=content_type,
            file_size=file_size,
            width=width,
            height=height,
            status=status.value,
        )
        photo.set_tags(tags or [])
        self.db.add(photo)
        self.db.execute(update(User).where(User.id == creator.id).values(photos_count=User.photos_count + 1))
        self.db.commit()
        self.db.refresh(photo)
        return photo

    def update_photo(self, photo: Photo, changes: dict) -> Photo:
        """Apply an edit. ``changes`` holds only the fields the caller sent."""
        for field_name in ("title", "caption", "location", "people"):
            if field_name in changes:
                setattr(photo, field_name, changes[field_name])
        if "tags" in changes:
            photo.set_tags(changes["tags"])
        photo.updated_at = datetime.now(UTC)
        self.db.commit()
        self.db.refresh(photo)
        return photo

    def delete_photo(self, photo: Photo) -> None:
        """Delete the record with its tags, likes, ratings and comments."""
        self.db.execute(
            update(User)
            .where(User.id == photo.creator_id)
            .values(
                photos_count=floored_decrement(User.photos_count),
                likes_received=floored_decrement(User.likes_received, photo.likes),
            )
        )
        self.db.delete(photo)
        self.db.commit()

    def increment_views(self, photo_id: uuid.UUID) -> None:
        stmt = update(Photo).where(Photo.id == photo_id).values(views=Photo.views + 1)
        self.db.execute(stmt)
        self.db.commit()

    def get_liked_photo_ids(self, user_id: uuid.UUID, photo_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        if not photo_ids:
            return set()
        stmt = select(Like.photo_id).where(Like.user_id == user_id, Like.photo_id.in_(photo_ids))
        return set(self.db.execute(stmt).scalars().all())

    def get_user_ratings(self, user_id: uuid.UUID, photo_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
        if not photo_ids:
            return {}
        stmt = select(Rating.photo_id, Rating.value).where(Rating.user_id == user_id, Rating.photo_id.in_(photo_ids))
        return {photo_id: value for photo_id, value in self.db.execute(stmt).all()}

    def get_stats(self) -> dict[str, int]:
        photos = self.db.execute(select(func.count()).select_from(Photo).where(Photo.status == PhotoStatus.APPROVED.value)).scalar_one()
        creators = self.db.execute(select(func.count()).select_from(User).where(User.role == UserRole.CREATOR.value)).scalar_one()
        views = self.db.execute(select(func.coalesce(func.sum(Photo.views), 0)).where(Photo.status == PhotoStatus.APPROVED.value)).scalar_one()
        return {"photos": photos, "creators": creators, "views": int(views)}

    def ping(self) -> None:
        self.db.execute(text("SELECT 1"))
