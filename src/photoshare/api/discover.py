from fastapi import APIRouter, Depends, HTTPException, Query

from photoshare.api.photo import get_listing_settings, get_photo_enricher, get_photo_repository
from photoshare.auth_utils import get_optional_user
from photoshare.enrichment import PhotoEnricher
from photoshare.models.user import User
from photoshare.query import ListingSettings, build_search_query
from photoshare.repositories.photo_repository import PhotoRepository
from photoshare.schemas.photo import PlatformStats, SearchResponse, StatsResponse

router = APIRouter(tags=["discover"])


@router.get("/search", response_model=SearchResponse)
async def search_photos(
    q: str = Query(""),
    limit: int = Query(20, ge=1),
    caller: User | None = Depends(get_optional_user),
    repo: PhotoRepository = Depends(get_photo_repository),
    enricher: PhotoEnricher = Depends(get_photo_enricher),
    settings: ListingSettings = Depends(get_listing_settings),
):
    term = q.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search query is required")

    photos, _ = repo.find_photos(build_search_query(term, min(limit, settings.max_limit)))
    data = await enricher.enrich(photos, caller.id if caller else None)
    return SearchResponse(data=data, count=len(data))


@router.get("/stats", response_model=StatsResponse)
def platform_stats(repo: PhotoRepository = Depends(get_photo_repository)):
    return StatsResponse(data=PlatformStats(**repo.get_stats()))
