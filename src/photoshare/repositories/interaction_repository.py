import uuid
from datetime import UTC, datetime

from sqlalchemy import Float, cast, delete, select, update
from sqlalchemy.exc import IntegrityError

from photoshare.models.interaction import Comment, Like, Rating
from photoshare.models.photo import Photo
from photoshare.models.user import User
from photoshare.repositories.base_repository import BaseRepository, floored_decrement


class InteractionRepository(BaseRepository):
    """Likes, ratings and comments.

    Every change to a photo's aggregate counters is a single atomic UPDATE
    (``col = col + n``), so concurrent requests on the same photo cannot
    overwrite each other's increments.
    """

    def has_liked(self, photo_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        stmt = select(Like.id).where(Like.photo_id == photo_id, Like.user_id == user_id)
        return self.db.execute(stmt).first() is not None

    def like_photo(self, photo: Photo, user_id: uuid.UUID) -> bool:
        """Record a like. Returns False if the user already liked the photo."""
        if self.has_liked(photo.id, user_id):
            return False

        self.db.add(Like(photo_id=photo.id, user_id=user_id))
        try:
            self.db.flush()
        except IntegrityError:
            # Lost the race against a concurrent like from the same user
            self.db.rollback()
            return False

        self.db.execute(update(Photo).where(Photo.id == photo.id).values(likes=Photo.likes + 1, updated_at=datetime.now(UTC)))
        self.db.execute(update(User).where(User.id == photo.creator_id).values(likes_received=User.likes_received + 1))
        self.db.commit()
        self.db.refresh(photo)
        return True

    def unlike_photo(self, photo: Photo, user_id: uuid.UUID) -> bool:
        """Remove a like. Returns False if there was nothing to remove."""
        result = self.db.execute(delete(Like).where(Like.photo_id == photo.id, Like.user_id == user_id))
        if result.rowcount == 0:
            self.db.rollback()
            return False

        self.db.execute(update(Photo).where(Photo.id == photo.id).values(likes=floored_decrement(Photo.likes), updated_at=datetime.now(UTC)))
        self.db.execute(update(User).where(User.id == photo.creator_id).values(likes_received=floored_decrement(User.likes_received)))
        self.db.commit()
        self.db.refresh(photo)
        return True

    def get_rating(self, photo_id: uuid.UUID, user_id: uuid.UUID) -> Rating | None:
        stmt = select(Rating).where(Rating.photo_id == photo_id, Rating.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def rate_photo(self, photo: Photo, user_id: uuid.UUID, value: int) -> Rating:
        """Create or replace the user's rating and update the photo average.

        Replacing a rating shifts ``rating_sum`` by the difference and leaves
        ``rating_count`` alone.
        """
        now = datetime.now(UTC)
        rating = self.get_rating(photo.id, user_id)
        if rating is None:
            rating = Rating(photo_id=photo.id, user_id=user_id, value=value)
            self.db.add(rating)
            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                rating = self.get_rating(photo.id, user_id)
                if rating is None:
                    raise
                return self._replace_rating(photo, rating, value, now)
            self._apply_rating_delta(photo.id, value, 1, now)
            self.db.commit()
            self.db.refresh(photo)
            self.db.refresh(rating)
            return rating

        return self._replace_rating(photo, rating, value, now)

    def _replace_rating(self, photo: Photo, rating: Rating, value: int, now: datetime) -> Rating:
        delta = value - rating.value
        rating.value = value
        rating.updated_at = now
        self._apply_rating_delta(photo.id, delta, 0, now)
        self.db.commit()
        self.db.refresh(photo)
        self.db.refresh(rating)
        return rating

    def _apply_rating_delta(self, photo_id: uuid.UUID, delta: int, added: int, now: datetime) -> None:
        # Right-hand side columns read the pre-update row, so the average is
        # computed from the new sum and count in the same statement.
        new_sum = Photo.rating_sum + delta
        new_count = Photo.rating_count + added
        stmt = (
            update(Photo)
            .where(Photo.id == photo_id)
            .values(
                rating_sum=new_sum,
                rating_count=new_count,
                rating=cast(new_sum, Float) / new_count,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)

    def list_comments(self, photo_id: uuid.UUID) -> list[Comment]:
        stmt = select(Comment).where(Comment.photo_id == photo_id).order_by(Comment.created_at.desc(), Comment.id)
        return list(self.db.execute(stmt).scalars().all())

    def get_comment(self, comment_id: uuid.UUID, photo_id: uuid.UUID) -> Comment | None:
        stmt = select(Comment).where(Comment.id == comment_id, Comment.photo_id == photo_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_comment(self, photo: Photo, author: User, text: str) -> Comment:
        comment = Comment(
            photo_id=photo.id,
            user_id=author.id,
            user_name=author.name,
            user_avatar=author.avatar,
            text=text,
        )
        self.db.add(comment)
        self.db.execute(update(Photo).where(Photo.id == photo.id).values(comments_count=Photo.comments_count + 1, updated_at=datetime.now(UTC)))
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def delete_comment(self, comment: Comment) -> None:
        photo_id = comment.photo_id
        self.db.delete(comment)
        self.db.execute(
            update(Photo)
            .where(Photo.id == photo_id)
            .values(comments_count=floored_decrement(Photo.comments_count))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
