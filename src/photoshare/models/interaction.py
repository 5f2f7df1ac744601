import uuid
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import mapped_column, relationship

from photoshare.models.db import Base


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("photo_id", "user_id", name="uq_likes_photo_user"),)

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    photo_id = mapped_column(Uuid, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    photo = relationship("Photo", back_populates="like_links")


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("photo_id", "user_id", name="uq_ratings_photo_user"),
        CheckConstraint("value BETWEEN 1 AND 5", name="ck_ratings_value_range"),
    )

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    photo_id = mapped_column(Uuid, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    value = mapped_column(Integer, nullable=False)
    created_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    photo = relationship("Photo", back_populates="ratings")


class Comment(Base):
    __tablename__ = "comments"

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    photo_id = mapped_column(Uuid, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Author snapshot at posting time, refreshed on profile edits
    user_name = mapped_column(String(100), nullable=False, default="")
    user_avatar = mapped_column(String(500), nullable=False, default="")
    text = mapped_column(Text, nullable=False)
    created_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False, index=True)

    photo = relationship("Photo", back_populates="comments")

    def __str__(self) -> str:
        return self.text[:50]
