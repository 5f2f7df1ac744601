"""Admin views for moderation."""

import asyncio
import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from sqladmin import ModelView, action
from sqlalchemy import select, update
from starlette.requests import Request
from starlette.responses import RedirectResponse

from photoshare.logger import logger as event_logger
from photoshare.models.interaction import Comment
from photoshare.models.photo import Photo, PhotoStatus
from photoshare.models.user import User
from photoshare.repositories.interaction_repository import InteractionRepository
from photoshare.repositories.photo_repository import PhotoRepository
from photoshare.s3_service import AsyncS3Client

logger = logging.getLogger(__name__)

# Status a moderation action may move a photo out of
ALLOWED_SOURCES = {
    PhotoStatus.APPROVED: (PhotoStatus.PENDING_REVIEW,),
    PhotoStatus.REJECTED: (PhotoStatus.PENDING_REVIEW, PhotoStatus.APPROVED),
}


def _parse_pks(raw: str) -> list[uuid.UUID]:
    ids = []
    for pk in raw.split(","):
        try:
            ids.append(uuid.UUID(pk.strip()))
        except ValueError:
            continue
    return ids


def get_storage(request: Request) -> AsyncS3Client:
    """S3 client of the API app. The panel is a mounted sub-application with its own state."""
    return request.app.state.get_s3_client()


async def delete_blobs(request: Request, blob_names: list[str]) -> None:
    s3_client = get_storage(request)
    for blob_name in blob_names:
        try:
            await s3_client.delete_file(blob_name)
        except Exception:
            logger.error("Failed to delete blob %s", blob_name, exc_info=True)


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"

    column_list = [User.id, User.email, User.name, User.role, User.photos_count, User.is_admin, User.created_at]
    column_searchable_list = [User.email, User.name]
    column_sortable_list = [User.email, User.created_at, User.photos_count]
    column_default_sort = [(User.created_at, True)]

    # Name and avatar are copied onto photos and comments, so only the API edits them
    form_columns = [User.role, User.bio, User.is_admin]

    can_create = False
    can_edit = True
    # Removing an account would orphan the counters on other users' photos
    can_delete = False
    can_view_details = True


class PhotoAdmin(ModelView, model=Photo):
    """Moderation queue: photos waiting in pending_review are approved or rejected here."""

    name = "Photo"
    name_plural = "Photos"
    icon = "fa-solid fa-image"

    column_list = [Photo.id, Photo.title, Photo.creator_name, Photo.category, Photo.status, Photo.likes, Photo.views, Photo.created_at]
    column_searchable_list = [Photo.title, Photo.creator_name]
    column_sortable_list = [Photo.created_at, Photo.likes, Photo.views, Photo.status]
    column_default_sort = [(Photo.created_at, True)]

    column_details_list = [
        Photo.id,
        Photo.title,
        Photo.caption,
        Photo.location,
        Photo.category,
        Photo.creator_name,
        Photo.blob_name,
        Photo.status,
        Photo.likes,
        Photo.rating,
        Photo.rating_count,
        Photo.comments_count,
        Photo.views,
        Photo.created_at,
    ]

    can_create = False
    can_edit = False
    can_delete = True
    can_view_details = True

    def set_status(self, pks: list[uuid.UUID], new_status: PhotoStatus) -> list[str]:
        """Move the photos that may make this transition. Returns their blob names."""
        if not pks:
            return []
        sources = [status.value for status in ALLOWED_SOURCES[new_status]]
        with self.session_maker() as db:
            rows = db.execute(select(Photo.id, Photo.blob_name).where(Photo.id.in_(pks), Photo.status.in_(sources))).all()
            if not rows:
                return []
            db.execute(
                update(Photo)
                .where(Photo.id.in_([row.id for row in rows]), Photo.status.in_(sources))
                .values(status=new_status.value, updated_at=datetime.now(UTC))
            )
            db.commit()
        for row in rows:
            event_logger.log_event("photo_moderated", photo_id=row.id, status=new_status.value)
        return [row.blob_name for row in rows]

    def remove_photo(self, photo_id: uuid.UUID) -> str | None:
        with self.session_maker() as db:
            repo = PhotoRepository(db)
            photo = repo.get_photo_by_id(photo_id)
            if photo is None:
                return None
            blob_name = photo.blob_name
            repo.delete_photo(photo)
        event_logger.log_event("photo_deleted", photo_id=photo_id, by="admin")
        return blob_name

    @action(name="approve", label="Approve", confirmation_message="Approve the selected photos?", add_in_detail=True, add_in_list=True)
    async def approve(self, request: Request) -> RedirectResponse:
        await asyncio.to_thread(self.set_status, _parse_pks(request.query_params.get("pks", "")), PhotoStatus.APPROVED)
        return RedirectResponse(request.url_for("admin:list", identity=self.identity), status_code=302)

    @action(name="reject", label="Reject", confirmation_message="Reject the selected photos?", add_in_detail=True, add_in_list=True)
    async def reject(self, request: Request) -> RedirectResponse:
        # A rejected photo is never served again, so its image goes too
        blob_names = await asyncio.to_thread(self.set_status, _parse_pks(request.query_params.get("pks", "")), PhotoStatus.REJECTED)
        await delete_blobs(request, blob_names)
        return RedirectResponse(request.url_for("admin:list", identity=self.identity), status_code=302)

    async def delete_model(self, request: Request, pk: Any) -> None:
        blob_name = await asyncio.to_thread(self.remove_photo, uuid.UUID(str(pk)))
        if blob_name:
            await delete_blobs(request, [blob_name])


class CommentAdmin(ModelView, model=Comment):
    name = "Comment"
    name_plural = "Comments"
    icon = "fa-solid fa-comment"

    column_list = [Comment.id, Comment.photo_id, Comment.user_name, Comment.text, Comment.created_at]
    column_searchable_list = [Comment.text, Comment.user_name]
    column_sortable_list = [Comment.created_at]
    column_default_sort = [(Comment.created_at, True)]

    can_create = False
    can_edit = False
    can_delete = True
    can_view_details = True

    def remove_comment(self, comment_id: uuid.UUID) -> None:
        with self.session_maker() as db:
            comment = db.get(Comment, comment_id)
            if comment is None:
                return
            photo_id = comment.photo_id
            InteractionRepository(db).delete_comment(comment)
        event_logger.log_event("comment_deleted", photo_id=photo_id, comment_id=comment_id, by="admin")

    async def delete_model(self, request: Request, pk: Any) -> None:
        await asyncio.to_thread(self.remove_comment, uuid.UUID(str(pk)))
