"""
Unit tests for catalog and intent extraction clients.
HTTP clients run against httpx.MockTransport.
"""
import json

import httpx
import pytest

from media_discovery.clients.llm import ChatCompletionIntentExtractor, extract_json_object
from media_discovery.clients.memory import InMemoryCatalogClient
from media_discovery.clients.tmdb import (
    TmdbCatalogClient,
    discover_params,
    parse_item,
    parse_multi_search,
)
from media_discovery.core.exceptions import CatalogError, IntentExtractionError
from media_discovery.core.rate_limiter import RateLimiter
from media_discovery.models.schemas import DiscoverQuery, DiscoverSort, MediaType

TMDB_URL = "https://api.themoviedb.org/3"
LLM_URL = "https://api.groq.com/openai/v1"

INCEPTION = {
    "id": 27205,
    "title": "Inception",
    "overview": "A thief who steals corporate secrets through dream-sharing technology.",
    "release_date": "2010-07-15",
    "vote_average": 8.4,
    "vote_count": 35000,
    "genre_ids": [28, 878, 12],
    "original_language": "en",
    "poster_path": "/inception.jpg",
    "popularity": 90.5,
}


def _tmdb(handler, limiter=None) -> TmdbCatalogClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=TMDB_URL)
    return TmdbCatalogClient(api_key="test-key", rate_limiter=limiter, client=client)


def _llm(handler) -> ChatCompletionIntentExtractor:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=LLM_URL)
    return ChatCompletionIntentExtractor(api_key="test-key", model="test-model", client=client)


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


class TestTmdbParsing:
    def test_parse_movie(self):
        item = parse_item(INCEPTION, MediaType.MOVIE)
        assert item.name == "Inception"
        assert item.release_year == 2010
        assert item.genre_ids == (28, 878, 12)
        assert item.runtime_minutes is None

    def test_parse_show_with_missing_fields(self):
        item = parse_item(
            {"id": 1396, "name": "Breaking Bad", "first_air_date": "", "vote_average": None,
             "episode_run_time": [47]},
            MediaType.SHOW,
        )
        assert item.name == "Breaking Bad"
        assert item.release_year is None
        assert item.vote_average == 0.0
        assert item.runtime_minutes == 47

    def test_parse_detail_genres(self):
        item = parse_item({"id": 13, "title": "Forrest Gump", "genres": [{"id": 35, "name": "Comedy"}]},
                          MediaType.MOVIE)
        assert item.genre_ids == (35,)

    def test_multi_search_splits_kinds(self):
        page = parse_multi_search({
            "results": [
                {**INCEPTION, "media_type": "movie"},
                {"id": 1396, "name": "Breaking Bad", "media_type": "tv"},
                {"id": 525, "name": "Christopher Nolan", "media_type": "person", "popularity": 30},
                {"id": 1, "name": "Some Collection", "media_type": "collection"},
            ]
        })
        assert [(i.media_type, i.id) for i in page.items] == [(MediaType.MOVIE, 27205), (MediaType.SHOW, 1396)]
        assert [p.id for p in page.people] == [525]

    def test_discover_params_movie(self):
        params = discover_params(DiscoverQuery(
            media_type=MediaType.MOVIE,
            genre_ids=(35, 10751),
            genre_match_any=True,
            year_from=1990,
            year_to=1999,
            runtime_max_minutes=120,
            min_vote_count=50,
            original_language="fr",
            sort_by=DiscoverSort.RATING,
        ))
        assert params["with_genres"] == "35|10751"
        assert params["primary_release_date.gte"] == "1990-01-01"
        assert params["primary_release_date.lte"] == "1999-12-31"
        assert params["with_runtime.lte"] == 120
        assert params["with_original_language"] == "fr"
        assert params["sort_by"] == "vote_average.desc"
        assert params["vote_count.gte"] == 50

    def test_discover_params_show(self):
        params = discover_params(DiscoverQuery(
            media_type=MediaType.SHOW,
            genre_ids=(35, 18),
            genre_match_any=False,
            year_from=2010,
            runtime_max_minutes=30,
        ))
        assert params["with_genres"] == "35,18"
        assert params["first_air_date.gte"] == "2010-01-01"
        assert "with_runtime.lte" not in params


class TestTmdbCatalogClient:
    @pytest.mark.asyncio
    async def test_multi_search_sends_key_and_query(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"results": [{**INCEPTION, "media_type": "movie"}]})

        client = _tmdb(handler)
        page = await client.multi_search("Inception")
        await client.aclose()

        assert page.items[0].id == 27205
        assert seen[0].url.path == "/3/search/multi"
        assert seen[0].url.params["api_key"] == "test-key"
        assert seen[0].url.params["query"] == "Inception"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_catalog_error(self):
        client = _tmdb(lambda request: httpx.Response(500, json={"status_message": "boom"}))

        with pytest.raises(CatalogError) as exc_info:
            await client.similar(MediaType.MOVIE, 13)
        assert exc_info.value.details == {"operation": "similar", "reason": "HTTP 500"}

    @pytest.mark.asyncio
    async def test_transport_error_raises_catalog_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = _tmdb(handler)
        with pytest.raises(CatalogError):
            await client.genre_map(MediaType.MOVIE)

    @pytest.mark.asyncio
    async def test_invalid_json_raises_catalog_error(self):
        client = _tmdb(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(CatalogError):
            await client.recommendations(MediaType.MOVIE, 13)

    @pytest.mark.asyncio
    async def test_genre_map_lowercases_names(self):
        client = _tmdb(lambda request: httpx.Response(
            200, json={"genres": [{"id": 878, "name": "Science Fiction"}, {"id": 35, "name": "Comedy"}]}
        ))
        assert await client.genre_map(MediaType.MOVIE) == {"science fiction": 878, "comedy": 35}

    @pytest.mark.asyncio
    async def test_discover_path_per_media_type(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"results": [{"id": 2316, "name": "The Office"}]})

        client = _tmdb(handler)
        items = await client.discover(DiscoverQuery(media_type=MediaType.SHOW, genre_ids=(35,)))

        assert paths == ["/3/discover/tv"]
        assert items[0].media_type == MediaType.SHOW

    @pytest.mark.asyncio
    async def test_find_exact_title_filters_names(self):
        def handler(request):
            if request.url.path.endswith("/search/movie"):
                assert request.url.params["year"] == "2010"
                return httpx.Response(200, json={"results": [
                    INCEPTION,
                    {**INCEPTION, "id": 64956, "title": "Inception: The Cobol Job"},
                ]})
            assert request.url.params["first_air_date_year"] == "2010"
            return httpx.Response(200, json={"results": []})

        client = _tmdb(handler)
        items = await client.find_exact_title("inception", year=2010)

        assert [item.id for item in items] == [27205]

    @pytest.mark.asyncio
    async def test_every_request_takes_a_rate_limit_slot(self):
        limiter = RateLimiter(max_requests=10, window_sec=60)
        client = _tmdb(lambda request: httpx.Response(200, json={"results": []}), limiter=limiter)

        await client.find_exact_title("Inception")
        await client.similar(MediaType.MOVIE, 27205)

        assert limiter.recent_requests == 3


class TestChatCompletionIntentExtractor:
    @pytest.mark.asyncio
    async def test_extracts_intent(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return _completion(json.dumps({
                "titles": ["Forrest Gump"],
                "moods": ["feel good"],
                "yearFrom": 1990,
                "yearTo": 1999,
                "mediaTypes": ["movie"],
                "isRequestingSuggestions": True,
            }))

        extractor = _llm(handler)
        intent = await extractor.extract("feel-good movies like Forrest Gump from the 90s")

        assert intent.titles == ("Forrest Gump",)
        assert intent.moods == ("feel-good",)
        assert (intent.year_from, intent.year_to) == (1990, 1999)
        assert intent.media_types == (MediaType.MOVIE,)
        assert captured["auth"] == "Bearer test-key"
        assert captured["body"]["model"] == "test-model"
        assert captured["body"]["messages"][1]["content"].startswith("feel-good movies")

    @pytest.mark.asyncio
    async def test_fenced_output(self):
        extractor = _llm(lambda request: _completion('```json\n{"genres": ["Comedy"]}\n```'))
        intent = await extractor.extract("comedies")
        assert intent.genres == ("comedy",)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(429, json={"error": "rate limited"}),
            httpx.Response(200, json={"choices": []}),
            _completion(""),
            _completion("I think you want comedies."),
            _completion('{"yearFrom": "nineteen ninety"}'),
        ],
    )
    async def test_failures_raise_extraction_error(self, response):
        extractor = _llm(lambda request: response)
        with pytest.raises(IntentExtractionError):
            await extractor.extract("comedies")

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            ChatCompletionIntentExtractor(api_key="k", model="m", provider="nowhere")

    def test_extract_json_object_with_prose(self):
        assert extract_json_object('Sure! {"titles": ["Heat"]} Hope that helps') == {"titles": ["Heat"]}

    def test_extract_json_object_rejects_garbage(self):
        with pytest.raises(IntentExtractionError):
            extract_json_object("{not json}")


class TestInMemoryCatalogClient:
    @pytest.mark.asyncio
    async def test_failing_operation_raises(self):
        catalog = InMemoryCatalogClient(failing_operations={"discover"})
        with pytest.raises(CatalogError):
            await catalog.discover(DiscoverQuery(media_type=MediaType.MOVIE))
        assert catalog.calls == ["discover"]

    @pytest.mark.asyncio
    async def test_discover_all_genres_must_match(self, catalog):
        items = await catalog.discover(DiscoverQuery(
            media_type=MediaType.MOVIE, genre_ids=(35, 10749), genre_match_any=False,
        ))
        assert {item.id for item in items} == {13, 137, 509, 858, 194}

    @pytest.mark.asyncio
    async def test_multi_search_people(self, catalog):
        page = await catalog.multi_search("nolan")
        assert [p.name for p in page.people] == ["Christopher Nolan"]
        assert page.items == []
