import io
import uuid
from datetime import datetime, timedelta
from typing import cast

from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.orm import Session

from photoshare.models.photo import Photo, PhotoStatus
from photoshare.models.user import User, UserRole, default_avatar

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


def register_and_login(client: TestClient, name: str, email: str, password: str, role: str = "consumer") -> str:
    """Register a user and return their access token."""
    reg_response = client.post("/auth/register", json={"name": name, "email": email, "password": password, "role": role})
    assert reg_response.status_code == 201

    login_response = client.post("/auth/login", json={"email": email, "password": password})
    assert login_response.status_code == 200
    return cast(str, login_response.json()["token"])


def make_image_bytes(fmt: str = "JPEG", size: tuple[int, int] = (64, 48), color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_user(db: Session, name: str = "Creator", email: str | None = None, role: UserRole = UserRole.CREATOR) -> User:
    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email or f"{uuid.uuid4().hex[:8]}@example.com",
        password_hash="not-a-real-hash",
        role=role.value,
        avatar=default_avatar(name),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_photo(
    db: Session,
    creator: User,
    title: str = "Untitled",
    *,
    caption: str = "",
    location: str = "",
    tags: list[str] | None = None,
    likes: int = 0,
    rating: float = 0.0,
    status: PhotoStatus = PhotoStatus.APPROVED,
    minutes: int = 0,
    image_url: str | None = None,
) -> Photo:
    """Insert a photo directly; ``minutes`` shifts created_at so tests control ordering."""
    photo_id = uuid.uuid4()
    photo = Photo(
        id=photo_id,
        creator_id=creator.id,
        creator_name=creator.name,
        creator_avatar=creator.avatar,
        title=title,
        caption=caption,
        location=location,
        people=[],
        blob_name=f"{photo_id}.jpg",
        image_url=image_url or f"http://localhost:9000/photoshare-test/{photo_id}.jpg",
        status=status.value,
        likes=likes,
        rating=rating,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        updated_at=BASE_TIME + timedelta(minutes=minutes),
    )
    photo.set_tags(tags or [])
    db.add(photo)
    db.commit()
    db.refresh(photo)
    return photo
