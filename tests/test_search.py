import asyncio
from typing import List

import httpx
import pytest

from mediadash.models.schemas import Platform, SearchResult
from mediadash.services import search as search_module
from mediadash.services.search import PlatformSearchService, format_duration

YOUTUBE_PAYLOAD = {
    "items": [
        {
            "id": {"videoId": "abc123"},
            "snippet": {
                "title": "Live at the Hall",
                "channelTitle": "The Band",
                "thumbnails": {"default": {"url": "https://i.ytimg.com/vi/abc123/default.jpg"}},
            },
        }
    ]
}

SPOTIFY_PAYLOAD = {
    "tracks": {
        "items": [
            {
                "id": "trk1",
                "name": "Song One",
                "artists": [{"name": "Alpha"}, {"name": "Beta"}],
                "duration_ms": 185_000,
                "album": {"images": [{"url": "l"}, {"url": "m"}, {"url": "s"}]},
                "external_urls": {"spotify": "https://open.spotify.com/track/trk1"},
            },
            {
                "id": "trk2",
                "name": "Song Two",
                "artists": [],
                "album": {"images": []},
                "external_urls": {"spotify": "https://open.spotify.com/track/trk2"},
            },
        ]
    }
}


class FakePlatforms:
    """httpx handler answering like the YouTube and Spotify APIs."""

    def __init__(self, *, youtube_status: int = 200) -> None:
        self.youtube_status = youtube_status
        self.token_calls = 0
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "accounts.spotify.com":
            self.token_calls += 1
            return httpx.Response(200, json={"access_token": "token-1", "expires_in": 3600})
        if host == "api.spotify.com":
            assert request.headers["Authorization"] == "Bearer token-1"
            return httpx.Response(200, json=SPOTIFY_PAYLOAD)
        if host == "www.googleapis.com":
            if self.youtube_status != 200:
                return httpx.Response(self.youtube_status, json={"error": "boom"})
            return httpx.Response(200, json=YOUTUBE_PAYLOAD)
        return httpx.Response(404)


def _service(handler, **overrides) -> PlatformSearchService:
    options = dict(
        youtube_api_key="yt-key",
        spotify_client_id="client",
        spotify_client_secret="secret",
        transport=httpx.MockTransport(handler),
        max_results=20,
    )
    options.update(overrides)
    return PlatformSearchService(**options)


def test_search_normalises_both_platforms() -> None:
    handler = FakePlatforms()
    service = _service(handler)

    results = asyncio.run(service.search("song", [Platform.youtube, Platform.spotify]))

    assert [result.platform for result in results] == [Platform.youtube, Platform.spotify, Platform.spotify]
    youtube, first, second = results
    assert youtube.url == "https://www.youtube.com/watch?v=abc123"
    assert youtube.artist == "The Band"
    assert youtube.thumbnail.endswith("default.jpg")
    assert first.artist == "Alpha, Beta"
    assert first.duration == "3:05"
    assert first.thumbnail == "s"
    assert second.duration is None
    assert second.thumbnail is None


def test_youtube_request_targets_music_videos() -> None:
    handler = FakePlatforms()

    asyncio.run(_service(handler).search_youtube("song"))

    params = handler.requests[0].url.params
    assert params["videoCategoryId"] == "10"
    assert params["type"] == "video"
    assert params["q"] == "song"
    assert params["key"] == "yt-key"


def test_spotify_token_is_reused_until_expiry() -> None:
    handler = FakePlatforms()
    service = _service(handler)

    asyncio.run(service.search("one", [Platform.spotify]))
    asyncio.run(service.search("two", [Platform.spotify]))

    assert handler.token_calls == 1


def test_failed_platform_does_not_fail_search() -> None:
    handler = FakePlatforms(youtube_status=500)

    results = asyncio.run(_service(handler).search("song", [Platform.youtube, Platform.spotify]))

    assert {result.platform for result in results} == {Platform.spotify}
    assert len(results) == 2


def test_missing_credentials_return_no_results() -> None:
    handler = FakePlatforms()
    service = _service(handler, youtube_api_key="", spotify_client_id="", spotify_client_secret="")

    results = asyncio.run(service.search("song", [Platform.youtube, Platform.spotify]))

    assert results == []
    assert handler.requests == []


def test_results_are_truncated() -> None:
    service = _service(FakePlatforms(), max_results=2)

    results = asyncio.run(service.search("song", [Platform.youtube, Platform.spotify]))

    assert len(results) == 2


@pytest.mark.parametrize("duration_ms, expected", [(0, "0:00"), (59_999, "0:59"), (61_000, "1:01"), (None, None)])
def test_format_duration(duration_ms, expected) -> None:
    assert format_duration(duration_ms) == expected


class RecordingSearch:
    def __init__(self) -> None:
        self.calls = []

    async def search(self, query, platforms):
        platforms = list(platforms)
        self.calls.append((query, platforms))
        return [
            SearchResult(id=f"{platform.value}-1", title=query, url="https://example.com", platform=platform)
            for platform in platforms
        ]


@pytest.fixture
def recording_search(monkeypatch) -> RecordingSearch:
    recorder = RecordingSearch()
    monkeypatch.setattr(search_module, "search_service", recorder)
    return recorder


def test_search_endpoint_requires_session(make_client, recording_search) -> None:
    anonymous = make_client(login=False)

    assert anonymous.get("/api/search", params={"q": "song"}).status_code == 401
    assert recording_search.calls == []


def test_search_endpoint_skips_disabled_platforms(client, recording_search) -> None:
    client.post("/api/settings", json={"key": "youtube_enabled", "value": "false"})

    body = client.get("/api/search", params={"q": "song"}).json()

    assert recording_search.calls == [("song", [Platform.spotify])]
    assert body["query"] == "song"
    assert [result["platform"] for result in body["results"]] == ["spotify"]


def test_search_endpoint_with_only_disabled_platform_returns_empty(client, recording_search) -> None:
    client.post("/api/settings", json={"key": "spotify_enabled", "value": "off"})

    body = client.get("/api/search", params={"q": "song", "platform": "spotify"}).json()

    assert body == {"query": "song", "results": []}
    assert recording_search.calls == []


def test_search_endpoint_rejects_empty_query(client) -> None:
    response = client.get("/api/search", params={"q": ""})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "query.q"


def test_public_search_uses_api_key(make_client, api_key, recording_search) -> None:
    anonymous = make_client(login=False)

    denied = anonymous.get("/api/v1/search", params={"q": "song"})
    allowed = anonymous.get(
        "/api/v1/search",
        params={"q": "song", "platform": "youtube"},
        headers={"Authorization": f"Bearer {api_key['key']}"},
    )

    assert denied.status_code == 401
    assert allowed.status_code == 200
    assert recording_search.calls == [("song", [Platform.youtube])]


def test_non_object_payload_yields_no_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["unexpected"])

    service = _service(handler, spotify_client_id="", spotify_client_secret="")

    assert asyncio.run(service.search("song", [Platform.youtube])) == []
