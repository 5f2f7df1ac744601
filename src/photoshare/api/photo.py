import logging
import uuid
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from photoshare.auth_utils import get_current_user, get_optional_user, require_creator
from photoshare.dependencies import get_s3_client
from photoshare.enrichment import PhotoEnricher
from photoshare.logger import logger as event_logger
from photoshare.minio_utils import InvalidImageError, UploadSettings, generate_blob_name, inspect_image
from photoshare.models.db import get_db
from photoshare.models.photo import Photo, PhotoStatus
from photoshare.models.user import User
from photoshare.query import ListingSettings, build_photo_query, parse_listing_params
from photoshare.repositories.photo_repository import PhotoRepository
from photoshare.s3_service import AsyncS3Client
from photoshare.schemas.common import MessageResponse, PaginationInfo
from photoshare.schemas.photo import PhotoDetailResponse, PhotoListResponse, PhotoUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/photos", tags=["photos"])


def get_photo_repository(db: Session = Depends(get_db)) -> PhotoRepository:
    return PhotoRepository(db)


def get_photo_enricher(
    repo: PhotoRepository = Depends(get_photo_repository),
    s3_client: AsyncS3Client = Depends(get_s3_client),
) -> PhotoEnricher:
    return PhotoEnricher(s3_client, repo)


def get_listing_settings() -> ListingSettings:
    return ListingSettings()


def get_upload_settings() -> UploadSettings:
    return UploadSettings()


def is_visible_to(photo: Photo, caller: User | None) -> bool:
    """Approved photos are public, pending ones are visible to their creator, rejected ones to nobody."""
    if photo.status == PhotoStatus.APPROVED:
        return True
    if photo.status != PhotoStatus.PENDING_REVIEW:
        return False
    return caller is not None and caller.id == photo.creator_id


def load_visible_photo(repo: PhotoRepository, photo_id: UUID, caller: User | None) -> Photo:
    photo = repo.get_photo_by_id(photo_id)
    if not photo or not is_visible_to(photo, caller):
        raise HTTPException(status_code=404, detail="Photo not found")
    return photo


def load_owned_photo(repo: PhotoRepository, photo_id: UUID, caller: User) -> Photo:
    photo = repo.get_photo_by_id(photo_id)
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found")
    if photo.creator_id != caller.id:
        raise HTTPException(status_code=403, detail="Not authorized to modify this photo")
    return photo


def split_list(raw: str | None) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


@router.get("", response_model=PhotoListResponse)
async def list_photos(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    category: str | None = Query(None, alias="filter"),
    sort: str | None = Query(None),
    search: str | None = Query(None),
    creator_id: str | None = Query(None, alias="creatorId"),
    caller: User | None = Depends(get_optional_user),
    repo: PhotoRepository = Depends(get_photo_repository),
    enricher: PhotoEnricher = Depends(get_photo_enricher),
    settings: ListingSettings = Depends(get_listing_settings),
):
    params = parse_listing_params(page=page, limit=limit, category=category, sort=sort, search=search, creator_id=creator_id, settings=settings)
    query = build_photo_query(params, caller.id if caller else None)

    photos, total = repo.find_photos(query)
    data = await enricher.enrich(photos, caller.id if caller else None)

    return PhotoListResponse(
        data=data,
        pagination=PaginationInfo(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=query.pagination.total_pages(total),
            has_more=query.pagination.has_more(total),
        ),
    )


@router.get("/{photo_id}", response_model=PhotoDetailResponse)
async def get_photo(
    photo_id: UUID,
    caller: User | None = Depends(get_optional_user),
    repo: PhotoRepository = Depends(get_photo_repository),
    enricher: PhotoEnricher = Depends(get_photo_enricher),
):
    photo = load_visible_photo(repo, photo_id, caller)

    # View counting never blocks the read
    try:
        repo.increment_views(photo.id)
    except SQLAlchemyError as e:
        repo.db.rollback()
        logger.warning("Failed to record view for photo %s: %s", photo.id, e)
    else:
        event_logger.log_event("photo_viewed", photo_id=photo.id, user_id=caller.id if caller else None)

    data = await enricher.enrich_one(photo, caller.id if caller else None)
    return PhotoDetailResponse(data=data)


@router.post("", response_model=PhotoDetailResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    photo: UploadFile = File(...),
    title: str = Form(""),
    caption: str = Form(""),
    location: str = Form(""),
    people: str = Form(""),
    tags: str = Form(""),
    creator: User = Depends(require_creator),
    repo: PhotoRepository = Depends(get_photo_repository),
    s3_client: AsyncS3Client = Depends(get_s3_client),
    enricher: PhotoEnricher = Depends(get_photo_enricher),
    settings: UploadSettings = Depends(get_upload_settings),
):
    title = title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")

    if photo.content_type not in settings.allowed_content_types:
        raise HTTPException(status_code=400, detail="Invalid file type. Allowed types: " + ", ".join(settings.allowed_content_types))

    contents = await photo.read()
    if not contents:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if len(contents) > settings.max_file_size:
        raise HTTPException(status_code=400, detail=f"File too large (max {settings.max_file_size // (1024 * 1024)}MB)")

    try:
        content_type, width, height = await run_in_threadpool(inspect_image, contents)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if content_type not in settings.allowed_content_types:
        raise HTTPException(status_code=400, detail="Invalid file type. Allowed types: " + ", ".join(settings.allowed_content_types))

    photo_id = uuid.uuid4()
    blob_name = generate_blob_name(photo_id, content_type)
    image_url = await s3_client.upload_fileobj(contents, blob_name, content_type=content_type)

    try:
        record = repo.create_photo(
            creator,
            photo_id=photo_id,
            title=title,
            blob_name=blob_name,
            image_url=image_url,
            caption=caption.strip(),
            location=location.strip(),
            people=split_list(people),
            tags=split_list(tags),
            content_type=content_type,
            file_size=len(contents),
            width=width,
            height=height,
        )
    except SQLAlchemyError:
        # Do not leave an orphaned blob behind a failed insert
        try:
            await s3_client.delete_file(blob_name)
        except Exception:
            logger.error("Failed to remove orphaned blob %s", blob_name)
        raise

    event_logger.log_event("photo_uploaded", photo_id=record.id, creator_id=creator.id, file_size=record.file_size, tags=record.tags)
    data = await enricher.enrich_one(record, creator.id)
    return PhotoDetailResponse(data=data)


@router.put("/{photo_id}", response_model=PhotoDetailResponse)
async def update_photo(
    photo_id: UUID,
    request: PhotoUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: PhotoRepository = Depends(get_photo_repository),
    enricher: PhotoEnricher = Depends(get_photo_enricher),
):
    photo = load_owned_photo(repo, photo_id, current_user)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    photo = repo.update_photo(photo, changes)
    data = await enricher.enrich_one(photo, current_user.id)
    return PhotoDetailResponse(data=data)


@router.delete("/{photo_id}", response_model=MessageResponse)
async def delete_photo(
    photo_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: PhotoRepository = Depends(get_photo_repository),
    s3_client: AsyncS3Client = Depends(get_s3_client),
):
    photo = load_owned_photo(repo, photo_id, current_user)
    blob_name = photo.blob_name
    repo.delete_photo(photo)

    if blob_name:
        try:
            await s3_client.delete_file(blob_name)
        except Exception:
            logger.error("Photo %s deleted but its blob %s could not be removed", photo_id, blob_name, exc_info=True)

    event_logger.log_event("photo_deleted", photo_id=photo_id, creator_id=current_user.id)
    return MessageResponse(message="Photo deleted successfully")
