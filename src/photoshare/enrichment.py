"""
Photo result enrichment

Adds the per-request fields to photos fetched from the store: a short-lived
read URL for the image and, when the caller is known, whether they liked the
photo and how they rated it. Enrichment never fails a response; a field that
cannot be computed keeps its default.
"""

import logging
import uuid

from photoshare.models.photo import Photo
from photoshare.repositories.photo_repository import PhotoRepository
from photoshare.s3_service import AsyncS3Client, has_access_token
from photoshare.schemas.photo import PhotoResponse

logger = logging.getLogger(__name__)


class PhotoEnricher:
    def __init__(self, s3_client: AsyncS3Client, repo: PhotoRepository):
        self.s3_client = s3_client
        self.repo = repo

    async def _signed_urls(self, photos: list[Photo]) -> dict[str, str]:
        keys = [photo.blob_name for photo in photos if photo.blob_name and not has_access_token(photo.image_url)]
        if not keys:
            return {}
        try:
            return await self.s3_client.generate_presigned_urls_batch(keys)
        except Exception:
            logger.warning("Presigning failed for %d photos, serving stored URLs", len(keys), exc_info=True)
            return {}

    def _caller_state(self, photo_ids: list[uuid.UUID], caller_id: uuid.UUID | None) -> tuple[set[uuid.UUID], dict[uuid.UUID, int]]:
        if caller_id is None or not photo_ids:
            return set(), {}

        liked: set[uuid.UUID] = set()
        try:
            liked = self.repo.get_liked_photo_ids(caller_id, photo_ids)
        except Exception:
            logger.warning("Could not load likes for user %s", caller_id, exc_info=True)
            self.repo.db.rollback()

        ratings: dict[uuid.UUID, int] = {}
        try:
            ratings = self.repo.get_user_ratings(caller_id, photo_ids)
        except Exception:
            logger.warning("Could not load ratings for user %s", caller_id, exc_info=True)
            self.repo.db.rollback()

        return liked, ratings

    async def enrich(self, photos: list[Photo], caller_id: uuid.UUID | None = None) -> list[PhotoResponse]:
        if not photos:
            return []

        urls = await self._signed_urls(photos)
        # Built before the lookups: a rollback there expires every loaded Photo
        responses = [PhotoResponse.from_db_photo(photo, image_url=urls.get(photo.blob_name)) for photo in photos]
        liked, ratings = self._caller_state([response.id for response in responses], caller_id)

        return [
            response.model_copy(update={"user_liked": response.id in liked, "user_rating": ratings.get(response.id, 0)})
            for response in responses
        ]

    async def enrich_one(self, photo: Photo, caller_id: uuid.UUID | None = None) -> PhotoResponse:
        enriched = await self.enrich([photo], caller_id)
        return enriched[0]
