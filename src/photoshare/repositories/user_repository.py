import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from photoshare.models.interaction import Comment
from photoshare.models.photo import Photo
from photoshare.models.user import User, UserRole, default_avatar
from photoshare.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository):
    def create_user(self, *, name: str, email: str, password_hash: str, role: UserRole = UserRole.CONSUMER) -> User:
        user = User(
            id=uuid.uuid4(),
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role.value,
            avatar=default_avatar(name),
        )
        self.db.add(user)
        try:
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError:
            self.db.rollback()
            raise
        return user

    def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return self.db.execute(stmt).scalar_one_or_none()

    def get_user_by_id(self, user_id: uuid.UUID) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def update_profile(self, user: User, *, name: str | None = None, bio: str | None = None, avatar: str | None = None) -> User:
        """Update profile fields and refresh the author snapshots on photos and comments."""
        snapshot_changed = False
        if name is not None and name != user.name:
            user.name = name
            snapshot_changed = True
        if avatar is not None and avatar != user.avatar:
            user.avatar = avatar
            snapshot_changed = True
        if bio is not None:
            user.bio = bio
        user.updated_at = datetime.now(UTC)

        if snapshot_changed:
            self.db.execute(
                update(Photo)
                .where(Photo.creator_id == user.id)
                .values(creator_name=user.name, creator_avatar=user.avatar)
                .execution_options(synchronize_session="fetch")
            )
            self.db.execute(
                update(Comment)
                .where(Comment.user_id == user.id)
                .values(user_name=user.name, user_avatar=user.avatar)
                .execution_options(synchronize_session="fetch")
            )

        try:
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError:
            self.db.rollback()
            raise
        return user
