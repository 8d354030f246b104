"""
TMDb catalog client.
Thin async wrapper over the v3 REST API using httpx.
Every HTTP request passes through the shared rate limiter.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from media_discovery.core.exceptions import CatalogError
from media_discovery.core.rate_limiter import RateLimiter
from media_discovery.models.schemas import (
    CatalogItem,
    CatalogPage,
    DiscoverQuery,
    MediaType,
    PersonRef,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Response Parsing
# =============================================================================


def _parse_year(value: Optional[str]) -> Optional[int]:
    """'2010-07-15' -> 2010; empty or malformed dates -> None."""
    if not value or len(value) < 4 or not value[:4].isdigit():
        return None
    return int(value[:4])


def parse_item(raw: Dict[str, Any], media_type: MediaType) -> CatalogItem:
    """Build a CatalogItem from a movie or tv result object."""
    if media_type == MediaType.MOVIE:
        name = raw.get("title") or raw.get("original_title") or ""
        date = raw.get("release_date")
    else:
        name = raw.get("name") or raw.get("original_name") or ""
        date = raw.get("first_air_date")

    runtime = raw.get("runtime")
    if runtime is None and raw.get("episode_run_time"):
        runtime = raw["episode_run_time"][0]

    return CatalogItem(
        id=raw["id"],
        media_type=media_type,
        name=name,
        overview=raw.get("overview") or "",
        vote_average=min(max(float(raw.get("vote_average") or 0.0), 0.0), 10.0),
        vote_count=max(int(raw.get("vote_count") or 0), 0),
        release_year=_parse_year(date),
        poster_path=raw.get("poster_path"),
        genre_ids=tuple(raw.get("genre_ids") or [g["id"] for g in raw.get("genres", [])]),
        original_language=raw.get("original_language"),
        popularity=float(raw.get("popularity") or 0.0),
        runtime_minutes=runtime or None,
    )


def parse_person(raw: Dict[str, Any]) -> PersonRef:
    return PersonRef(
        id=raw["id"],
        name=raw.get("name") or "",
        known_for_department=raw.get("known_for_department"),
        popularity=float(raw.get("popularity") or 0.0),
    )


def parse_multi_search(payload: Dict[str, Any]) -> CatalogPage:
    """Split multi-search results into items and people; other kinds are skipped."""
    page = CatalogPage()
    for raw in payload.get("results", []):
        kind = raw.get("media_type")
        if kind == "person":
            page.people.append(parse_person(raw))
        elif kind in (MediaType.MOVIE.value, MediaType.SHOW.value):
            page.items.append(parse_item(raw, MediaType(kind)))
    return page


def discover_params(query: DiscoverQuery) -> Dict[str, Any]:
    """Translate a DiscoverQuery into discover endpoint parameters."""
    params: Dict[str, Any] = {
        "sort_by": query.sort_by.value,
        "include_adult": "false",
        "vote_count.gte": query.min_vote_count,
    }
    if query.genre_ids:
        separator = "|" if query.genre_match_any else ","
        params["with_genres"] = separator.join(str(g) for g in query.genre_ids)
    if query.person_ids:
        params["with_people"] = ",".join(str(p) for p in query.person_ids)
    if query.original_language:
        params["with_original_language"] = query.original_language

    date_field = (
        "primary_release_date" if query.media_type == MediaType.MOVIE else "first_air_date"
    )
    if query.year_from is not None:
        params[f"{date_field}.gte"] = f"{query.year_from}-01-01"
    if query.year_to is not None:
        params[f"{date_field}.lte"] = f"{query.year_to}-12-31"

    # TV discover has no runtime filter
    if query.runtime_max_minutes is not None and query.media_type == MediaType.MOVIE:
        params["with_runtime.lte"] = query.runtime_max_minutes
    return params


# =============================================================================
# Client
# =============================================================================


class TmdbCatalogClient:
    """
    CatalogClient implementation backed by the TMDb v3 API.

    Non-2xx responses, transport errors and undecodable bodies raise
    CatalogError. No retries happen here.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        language: str = "en-US",
        timeout_sec: float = 10.0,
        rate_limiter: Optional[RateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._language = language
        self._limiter = rate_limiter or RateLimiter()
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_sec)

    async def _get(
        self,
        operation: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"api_key": self._api_key, "language": self._language}
        query.update(params or {})

        async with self._limiter:
            try:
                response = await self._client.get(path, params=query)
            except httpx.TimeoutException as e:
                raise CatalogError(operation, "timeout") from e
            except httpx.HTTPError as e:
                raise CatalogError(operation, str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise CatalogError(operation, f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise CatalogError(operation, "invalid JSON body") from e

    async def multi_search(self, query: str) -> CatalogPage:
        payload = await self._get(
            "multi_search",
            "/search/multi",
            {"query": query, "include_adult": "false"},
        )
        return parse_multi_search(payload)

    async def discover(self, query: DiscoverQuery) -> List[CatalogItem]:
        payload = await self._get(
            "discover",
            f"/discover/{query.media_type.value}",
            discover_params(query),
        )
        return [parse_item(raw, query.media_type) for raw in payload.get("results", [])]

    async def find_exact_title(
        self,
        title: str,
        year: Optional[int] = None,
        media_types: Optional[Sequence[MediaType]] = None,
    ) -> List[CatalogItem]:
        """Type-specific search; keeps hits whose name equals the title ignoring case."""
        wanted = title.strip().casefold()
        types = list(media_types or (MediaType.MOVIE, MediaType.SHOW))

        async def search_type(media_type: MediaType) -> List[CatalogItem]:
            params: Dict[str, Any] = {"query": title, "include_adult": "false"}
            if year is not None:
                year_param = "year" if media_type == MediaType.MOVIE else "first_air_date_year"
                params[year_param] = year
            payload = await self._get(
                "find_exact_title",
                f"/search/{media_type.value}",
                params,
            )
            return [parse_item(raw, media_type) for raw in payload.get("results", [])]

        pages = await asyncio.gather(*(search_type(t) for t in types))
        return [
            item
            for page in pages
            for item in page
            if item.name.strip().casefold() == wanted
        ]

    async def recommendations(self, media_type: MediaType, catalog_id: int) -> List[CatalogItem]:
        payload = await self._get(
            "recommendations",
            f"/{media_type.value}/{catalog_id}/recommendations",
        )
        return [parse_item(raw, media_type) for raw in payload.get("results", [])]

    async def similar(self, media_type: MediaType, catalog_id: int) -> List[CatalogItem]:
        payload = await self._get(
            "similar",
            f"/{media_type.value}/{catalog_id}/similar",
        )
        return [parse_item(raw, media_type) for raw in payload.get("results", [])]

    async def genre_map(self, media_type: MediaType) -> Dict[str, int]:
        payload = await self._get("genre_map", f"/genre/{media_type.value}/list")
        return {
            genre["name"].strip().lower(): genre["id"]
            for genre in payload.get("genres", [])
            if genre.get("name")
        }

    async def aclose(self) -> None:
        await self._client.aclose()
        logger.debug("TMDb client closed")
