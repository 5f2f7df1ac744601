import uuid
from datetime import UTC, datetime
from enum import StrEnum
from urllib.parse import quote

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import mapped_column, relationship

from photoshare.models.db import Base


class UserRole(StrEnum):
    CREATOR = "creator"
    CONSUMER = "consumer"


def default_avatar(name: str) -> str:
    """Generated initials avatar, used until the user uploads their own."""
    return f"https://ui-avatars.com/api/?name={quote(name)}&background=6366f1&color=fff"


class User(Base):
    __tablename__ = "users"

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name = mapped_column(String(100), nullable=False)
    # Always stored lowercased, which makes the unique index case-insensitive
    email = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash = mapped_column(String(255), nullable=False)
    role = mapped_column(String(20), nullable=False, default=UserRole.CONSUMER.value)
    avatar = mapped_column(String(500), nullable=False, default="")
    bio = mapped_column(Text, nullable=False, default="")
    photos_count = mapped_column(Integer, nullable=False, default=0)
    likes_received = mapped_column(Integer, nullable=False, default=0)
    is_admin = mapped_column(Boolean, nullable=False, default=False)
    created_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    photos = relationship("Photo", back_populates="creator", passive_deletes=True)

    @property
    def is_creator(self) -> bool:
        return self.role == UserRole.CREATOR

    def __str__(self) -> str:
        return self.email
