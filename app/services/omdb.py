"""Ratings lookups against the OMDb API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..models import Ratings

logger = logging.getLogger(__name__)


class OMDbClient:
    """Fetches IMDb, Rotten Tomatoes and Metascore ratings by title.

    Ratings are optional decoration, so every failure is logged and reported
    as ``None`` rather than raised.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def get_ratings(self, title: str, year: int | None = None) -> Ratings | None:
        if not self._settings.omdb_api_key:
            logger.debug("OMDb API key missing, skipping ratings for %s", title)
            return None
        normalized = (title or "").strip()
        if not normalized:
            return None

        params: dict[str, Any] = {"apikey": self._settings.omdb_api_key, "t": normalized}
        if year:
            params["y"] = year

        try:
            response = await self._client.get("/", params=params)
        except httpx.HTTPError as exc:
            logger.warning("OMDb lookup for %s failed: %s", normalized, exc)
            return None
        if response.status_code >= 400:
            logger.warning(
                "OMDb lookup for %s failed with %s", normalized, response.status_code
            )
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning("OMDb returned invalid JSON for %s", normalized)
            return None

        if not isinstance(data, dict) or data.get("Response") == "False":
            return None

        return Ratings(
            imdb=self._clean(data.get("imdbRating")),
            rotten_tomatoes=self._extract_rotten_tomatoes(data.get("Ratings")),
            metascore=self._clean(data.get("Metascore")),
        )

    @staticmethod
    def _clean(value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text or text == "N/A":
            return None
        return text

    @classmethod
    def _extract_rotten_tomatoes(cls, ratings: object) -> str | None:
        if not isinstance(ratings, list):
            return None
        for entry in ratings:
            if isinstance(entry, dict) and entry.get("Source") == "Rotten Tomatoes":
                return cls._clean(entry.get("Value"))
        return None
