from enum import Enum
from typing import List

from fastapi import APIRouter, Depends, Query

from mediadash.api.security import current_user
from mediadash.db import session_scope
from mediadash.models.schemas import Platform, SearchResponse
from mediadash.services import search as search_module
from mediadash.services.runtime_config import load_runtime_config

router = APIRouter(tags=["search"], dependencies=[Depends(current_user)])


class SearchScope(str, Enum):
    all = "all"
    youtube = "youtube"
    spotify = "spotify"


def searchable_platforms(scope: SearchScope) -> List[Platform]:
    """Platforms a search in `scope` should hit, minus those disabled at runtime."""
    if scope is SearchScope.all:
        requested = [Platform.youtube, Platform.spotify]
    else:
        requested = [Platform(scope.value)]
    with session_scope() as session:
        runtime = load_runtime_config(session)
    return [platform for platform in requested if runtime.platform_enabled(platform)]


async def run_search(query: str, scope: SearchScope) -> SearchResponse:
    platforms = searchable_platforms(scope)
    results = await search_module.search_service.search(query, platforms) if platforms else []
    return SearchResponse(query=query, results=results)


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query(..., min_length=1, description="Free-text query."),
    platform: SearchScope = Query(SearchScope.all),
) -> SearchResponse:
    return await run_search(q, platform)
