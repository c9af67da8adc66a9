"""Facade combining the TMDB catalog with OMDb ratings."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field

from ..config import Settings
from ..models import (
    DiscoverFilters,
    Genre,
    MovieDetail,
    MoviePage,
    MovieSummary,
    Ratings,
)
from ..utils import parse_release_date
from .omdb import OMDbClient
from .tmdb import CatalogError, TMDBClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MovieDetailPage:
    """Everything the detail page shows besides collection membership."""

    movie: MovieDetail
    ratings: Ratings | None = None
    recommendations: list[MovieSummary] = field(default_factory=list)
    trailer_url: str | None = None


class CatalogAPI:
    """The read-only catalog used by the pages; never touches collections."""

    def __init__(
        self,
        settings: Settings,
        tmdb: TMDBClient,
        omdb: OMDbClient,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._tmdb = tmdb
        self._omdb = omdb
        self._rng = rng or random.Random()

    @property
    def tmdb(self) -> TMDBClient:
        return self._tmdb

    async def get_popular(self, page: int = 1) -> MoviePage:
        return await self._tmdb.get_popular(page)

    async def search(self, query: str, page: int = 1) -> MoviePage:
        return await self._tmdb.search(query, page)

    async def discover(self, filters: DiscoverFilters | None = None, page: int = 1) -> MoviePage:
        return await self._tmdb.discover(filters, page)

    async def get_genres(self) -> list[Genre]:
        return await self._tmdb.get_genres()

    async def get_movie_details(self, movie_id: int) -> MovieDetail:
        return await self._tmdb.get_movie_details(movie_id)

    async def get_ratings(self, title: str, year: int | None = None) -> Ratings | None:
        return await self._omdb.get_ratings(title, year)

    async def get_movie_page(self, movie_id: int) -> MovieDetailPage:
        """Load a movie with its ratings and recommendations.

        Only the detail lookup is required; ratings and recommendations are
        dropped when their providers fail.
        """

        movie = await self._tmdb.get_movie_details(movie_id)
        released = parse_release_date(movie.release_date)
        year = released.year if released else None

        ratings_result, recommendations_result = await asyncio.gather(
            self._omdb.get_ratings(movie.title, year),
            self._tmdb.get_recommendations(
                movie_id, limit=self._settings.recommendation_count
            ),
            return_exceptions=True,
        )

        ratings = ratings_result if isinstance(ratings_result, Ratings) else None
        if isinstance(recommendations_result, CatalogError):
            logger.warning(
                "Error loading recommendations for %s: %s", movie_id, recommendations_result
            )
            recommendations: list[MovieSummary] = []
        elif isinstance(recommendations_result, BaseException):
            raise recommendations_result
        else:
            recommendations = recommendations_result

        top_cast = movie.cast[: self._settings.top_cast_count]
        return MovieDetailPage(
            movie=movie.model_copy(update={"cast": top_cast}),
            ratings=ratings,
            recommendations=recommendations,
            trailer_url=TMDBClient.trailer_url(movie.videos),
        )

    async def pick_random_movie(
        self, *, genre: int | None = None, min_rating: float | None = None
    ) -> MovieSummary | None:
        """Pick a random popular movie, optionally within a genre and rating floor."""

        filters = DiscoverFilters(
            genre=genre, min_rating=min_rating, sort="popularity.desc"
        )
        page = self._rng.randint(1, self._settings.random_page_span)
        listing = await self._tmdb.discover(filters, page)
        if not listing.results:
            return None
        return self._rng.choice(listing.results)
