"""Client for the catalog endpoints of The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import IMAGE_SIZES, Settings
from ..models import DiscoverFilters, Genre, MovieDetail, MoviePage, MovieSummary, Video

logger = logging.getLogger(__name__)

YOUTUBE_EMBED_URL = "https://www.youtube.com/embed/"


class CatalogError(RuntimeError):
    """Raised when the catalog cannot be reached or returns unusable data."""


class TMDBClient:
    """Client for the TMDB movie listing and detail endpoints.

    Every method raises :class:`CatalogError` on transport failures, error
    responses and payloads that do not match the expected shape.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def get_popular(self, page: int = 1) -> MoviePage:
        data = await self._get("/movie/popular", {"page": page})
        return self._parse_page(data)

    async def search(self, query: str, page: int = 1) -> MoviePage:
        normalized = (query or "").strip()
        if not normalized:
            return MoviePage(page=page, total_pages=0)
        data = await self._get("/search/movie", {"query": normalized, "page": page})
        return self._parse_page(data)

    async def discover(self, filters: DiscoverFilters | None = None, page: int = 1) -> MoviePage:
        params: dict[str, Any] = {"page": page}
        params.update((filters or DiscoverFilters()).to_params())
        data = await self._get("/discover/movie", params)
        return self._parse_page(data)

    async def get_movie_details(self, movie_id: int) -> MovieDetail:
        data = await self._get(
            f"/movie/{movie_id}", {"append_to_response": "credits,videos"}
        )
        try:
            return MovieDetail.from_tmdb_payload(data)
        except ValidationError as exc:
            raise CatalogError(f"Unexpected TMDB payload for movie {movie_id}") from exc

    async def get_recommendations(self, movie_id: int, limit: int | None = None) -> list[MovieSummary]:
        data = await self._get(f"/movie/{movie_id}/recommendations", {})
        results = self._parse_page(data).results
        if limit is not None:
            return results[:limit]
        return results

    async def get_genres(self) -> list[Genre]:
        data = await self._get("/genre/movie/list", {})
        try:
            return [Genre.model_validate(entry) for entry in data.get("genres") or []]
        except ValidationError as exc:
            raise CatalogError("Unexpected TMDB genre payload") from exc

    def image_url(self, path: str | None, size: str = "poster") -> str | None:
        """Return an absolute image URL for a TMDB path fragment."""

        if not path:
            return None
        if path.startswith("http"):
            return path
        image_size = IMAGE_SIZES.get(size, IMAGE_SIZES["poster"])
        base_url = str(self._settings.tmdb_image_base_url).rstrip("/")
        return f"{base_url}/{image_size}{path}"

    @staticmethod
    def trailer_url(videos: list[Video]) -> str | None:
        """Prefer a YouTube trailer, otherwise embed the first video."""

        if not videos:
            return None
        trailer = next(
            (video for video in videos if video.type == "Trailer" and video.site == "YouTube"),
            videos[0],
        )
        return f"{YOUTUBE_EMBED_URL}{trailer.key}"

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        query = {"api_key": self._settings.tmdb_api_key, **params}
        try:
            response = await self._client.get(endpoint, params=query)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", endpoint, exc)
            raise CatalogError(f"Could not reach TMDB ({exc.__class__.__name__})") from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s failed with %s: %s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise CatalogError(f"HTTP error! status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError(f"TMDB returned invalid JSON for {endpoint}") from exc
        if not isinstance(payload, dict):
            raise CatalogError(f"TMDB returned an unexpected payload for {endpoint}")
        return payload

    @staticmethod
    def _parse_page(data: dict[str, Any]) -> MoviePage:
        try:
            return MoviePage.model_validate(data)
        except ValidationError as exc:
            raise CatalogError("Unexpected TMDB listing payload") from exc
