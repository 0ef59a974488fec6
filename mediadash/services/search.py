"""Search clients for the YouTube Data API and the Spotify Web API."""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from mediadash.config import settings
from mediadash.models.schemas import Platform, SearchResult

logger = logging.getLogger(__name__)

# Music category on YouTube.
YOUTUBE_MUSIC_CATEGORY = "10"


def format_duration(duration_ms: Optional[int]) -> Optional[str]:
    if duration_ms is None:
        return None
    minutes, remainder = divmod(int(duration_ms), 60000)
    return f"{minutes}:{remainder // 1000:02d}"


class PlatformSearchService:
    """Query platform search APIs and normalise their results.

    Every failure (missing credentials, transport errors, non-2xx responses,
    unexpected payloads) is logged and yields an empty list for that platform
    so that one broken integration never fails the whole search.
    """

    def __init__(
        self,
        *,
        youtube_api_key: Optional[str] = None,
        spotify_client_id: Optional[str] = None,
        spotify_client_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        max_results: Optional[int] = None,
    ) -> None:
        self.youtube_api_key = settings.youtube_api_key if youtube_api_key is None else youtube_api_key
        self.spotify_client_id = settings.spotify_client_id if spotify_client_id is None else spotify_client_id
        self.spotify_client_secret = (
            settings.spotify_client_secret if spotify_client_secret is None else spotify_client_secret
        )
        self.transport = transport
        self.timeout = settings.search_timeout_seconds if timeout is None else timeout
        self.max_results = settings.max_results_per_platform if max_results is None else max_results
        self._spotify_token: Optional[str] = None
        self._spotify_token_expire_at: float = 0.0

    async def search(self, query: str, platforms: Iterable[Platform]) -> List[SearchResult]:
        results: List[SearchResult] = []
        wanted = set(platforms)
        async with self._client() as client:
            if Platform.youtube in wanted:
                results.extend(await self.search_youtube(query, client=client))
            if Platform.spotify in wanted:
                results.extend(await self.search_spotify(query, client=client))
        return results[: self.max_results]

    async def search_youtube(self, query: str, *, client: Optional[httpx.AsyncClient] = None) -> List[SearchResult]:
        if not self.youtube_api_key:
            return []

        params = {
            "part": "snippet",
            "type": "video",
            "videoCategoryId": YOUTUBE_MUSIC_CATEGORY,
            "maxResults": 10,
            "q": query,
            "key": self.youtube_api_key,
        }
        try:
            payload = await self._get_json(client, f"{settings.youtube_api_url}/search", params=params)
            return [self._youtube_result(item) for item in payload.get("items", [])]
        except (httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.error("YouTube search failed: %s", exc)
            return []

    async def search_spotify(self, query: str, *, client: Optional[httpx.AsyncClient] = None) -> List[SearchResult]:
        if not self.spotify_client_id or not self.spotify_client_secret:
            return []

        try:
            token = await self._spotify_access_token(client)
            payload = await self._get_json(
                client,
                f"{settings.spotify_api_url}/search",
                params={"q": query, "type": "track", "limit": 10},
                headers={"Authorization": f"Bearer {token}"},
            )
            return [self._spotify_result(track) for track in payload["tracks"]["items"]]
        except (httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.error("Spotify search failed: %s", exc)
            return []

    # ---------------------------------------------------------------------
    # HTTP helpers
    # ---------------------------------------------------------------------
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def _get_json(
        self,
        client: Optional[httpx.AsyncClient],
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if client is None:
            async with self._client() as own_client:
                return await self._get_json(own_client, url, params=params, headers=headers)
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()

    async def _spotify_access_token(self, client: Optional[httpx.AsyncClient]) -> str:
        now = time.time()
        if self._spotify_token and now < self._spotify_token_expire_at:
            return self._spotify_token

        if client is None:
            async with self._client() as own_client:
                return await self._spotify_access_token(own_client)

        auth_payload = f"{self.spotify_client_id}:{self.spotify_client_secret}".encode("utf-8")
        auth_header = base64.b64encode(auth_payload).decode("ascii")
        response = await client.post(
            settings.spotify_token_url,
            data={"grant_type": "client_credentials"},
            headers={"Authorization": f"Basic {auth_header}"},
        )
        response.raise_for_status()
        payload = response.json()
        token = payload.get("access_token")
        if not token:
            raise ValueError("Spotify token response missing access_token")

        expires_in = int(payload.get("expires_in") or 0)
        self._spotify_token = token
        self._spotify_token_expire_at = now + max(0, expires_in - 30)
        return token

    # ---------------------------------------------------------------------
    # Mapping helpers
    # ---------------------------------------------------------------------
    @staticmethod
    def _youtube_result(item: Dict[str, Any]) -> SearchResult:
        video_id = item["id"]["videoId"]
        snippet = item["snippet"]
        thumbnail = (snippet.get("thumbnails") or {}).get("default") or {}
        return SearchResult(
            id=video_id,
            title=snippet["title"],
            artist=snippet.get("channelTitle"),
            thumbnail=thumbnail.get("url"),
            url=f"https://www.youtube.com/watch?v={video_id}",
            platform=Platform.youtube,
        )

    @staticmethod
    def _spotify_result(track: Dict[str, Any]) -> SearchResult:
        images = (track.get("album") or {}).get("images") or []
        return SearchResult(
            id=track["id"],
            title=track["name"],
            artist=", ".join(artist["name"] for artist in track.get("artists", [])),
            duration=format_duration(track.get("duration_ms")),
            thumbnail=images[2]["url"] if len(images) > 2 else None,
            url=track["external_urls"]["spotify"],
            platform=Platform.spotify,
        )


search_service = PlatformSearchService()
