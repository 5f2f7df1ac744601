import uuid
from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import mapped_column, relationship

from photoshare.models.db import Base

DEFAULT_CATEGORY = "general"


class PhotoStatus(StrEnum):
    APPROVED = "approved"
    PENDING_REVIEW = "pending_review"
    REJECTED = "rejected"


def normalize_tags(raw_tags) -> list[str]:
    """Lowercase, strip and deduplicate tags, keeping first-seen order."""
    tags: list[str] = []
    for raw in raw_tags or []:
        tag = str(raw).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def category_for(tags: list[str]) -> str:
    return tags[0] if tags else DEFAULT_CATEGORY


class Photo(Base):
    __tablename__ = "photos"

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Cached projection of the creator, refreshed only when the creator edits their profile
    creator_name = mapped_column(String(100), nullable=False, default="")
    creator_avatar = mapped_column(String(500), nullable=False, default="")

    title = mapped_column(String(200), nullable=False)
    caption = mapped_column(Text, nullable=False, default="")
    location = mapped_column(String(200), nullable=False, default="")
    people = mapped_column(JSON, nullable=False, default=list)
    category = mapped_column(String(100), nullable=False, default=DEFAULT_CATEGORY, index=True)

    # Object key in the bucket; callers only ever see presigned URLs built from it
    blob_name = mapped_column(String(255), nullable=False)
    image_url = mapped_column(String(1024), nullable=False)
    content_type = mapped_column(String(100), nullable=False, default="image/jpeg")
    file_size = mapped_column(Integer, nullable=False, default=0)
    width = mapped_column(Integer, nullable=True)
    height = mapped_column(Integer, nullable=True)

    status = mapped_column(String(20), nullable=False, default=PhotoStatus.APPROVED.value, index=True)

    likes = mapped_column(Integer, nullable=False, default=0)
    rating = mapped_column(Float, nullable=False, default=0.0)
    rating_sum = mapped_column(Integer, nullable=False, default=0)
    rating_count = mapped_column(Integer, nullable=False, default=0)
    comments_count = mapped_column(Integer, nullable=False, default=0)
    views = mapped_column(Integer, nullable=False, default=0)

    created_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False, index=True)
    updated_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    creator = relationship("User", back_populates="photos")
    tag_links = relationship("PhotoTag", back_populates="photo", order_by="PhotoTag.position", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="photo", cascade="all, delete-orphan", passive_deletes=True)
    like_links = relationship("Like", back_populates="photo", cascade="all, delete-orphan", passive_deletes=True)
    ratings = relationship("Rating", back_populates="photo", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]

    def set_tags(self, raw_tags) -> None:
        """Replace the tag list and re-derive the category from the first tag."""
        tags = normalize_tags(raw_tags)
        # Reuse surviving rows so the flush never inserts a duplicate (photo_id, tag)
        existing = {link.tag: link for link in self.tag_links}
        links = []
        for position, tag in enumerate(tags):
            link = existing.get(tag) or PhotoTag(tag=tag)
            link.position = position
            links.append(link)
        self.tag_links = links
        self.category = category_for(tags)

    def __str__(self) -> str:
        return self.title


class PhotoTag(Base):
    __tablename__ = "photo_tags"
    __table_args__ = (UniqueConstraint("photo_id", "tag", name="uq_photo_tags_photo_tag"),)

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    photo_id = mapped_column(Uuid, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = mapped_column(String(100), nullable=False, index=True)
    position = mapped_column(Integer, nullable=False, default=0)

    photo = relationship(Photo, back_populates="tag_links")
