"""Pydantic models describing catalog payloads and collection entries."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .utils import parse_release_date

CollectionName = Literal["favorites", "watchlist"]
COLLECTION_NAMES: tuple[CollectionName, ...] = ("favorites", "watchlist")


class MovieSummary(BaseModel):
    """A movie as returned by list endpoints (popular, search, discover)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    title: str = Field(
        default="",
        validation_alias=AliasChoices("title", "name", "original_title"),
    )
    poster_path: str | None = None
    backdrop_path: str | None = None
    release_date: str | None = None
    vote_average: float | None = None
    overview: str | None = None

    @field_validator("release_date", mode="before")
    @classmethod
    def _blank_date_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Genre(BaseModel):
    id: int
    name: str


class CastMember(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    character: str | None = None
    profile_path: str | None = None


class Video(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str
    site: str | None = None
    type: str | None = None


class CollectionInfo(BaseModel):
    """The TMDb franchise collection a movie belongs to."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str


class MovieDetail(MovieSummary):
    """Full movie record, a superset of :class:`MovieSummary`."""

    original_title: str | None = None
    original_language: str | None = None
    tagline: str | None = None
    status: str | None = None
    homepage: str | None = None
    runtime: int | None = None
    vote_count: int | None = None
    budget: int = 0
    revenue: int = 0
    genres: list[Genre] = Field(default_factory=list)
    cast: list[CastMember] = Field(default_factory=list)
    videos: list[Video] = Field(default_factory=list)
    belongs_to_collection: CollectionInfo | None = None

    @classmethod
    def from_tmdb_payload(cls, data: dict[str, object]) -> "MovieDetail":
        """Flatten TMDb's appended ``credits`` and ``videos`` blocks."""

        payload = dict(data)
        credits = payload.pop("credits", None)
        videos = payload.pop("videos", None)
        if isinstance(credits, dict):
            payload["cast"] = credits.get("cast") or []
        if isinstance(videos, dict):
            payload["videos"] = videos.get("results") or []
        return cls.model_validate(payload)


class MoviePage(BaseModel):
    """One page of a paginated TMDb listing."""

    model_config = ConfigDict(extra="ignore")

    page: int = 1
    total_pages: int = 1
    total_results: int = 0
    results: list[MovieSummary] = Field(default_factory=list)


class Ratings(BaseModel):
    """Third-party ratings fetched from OMDb."""

    imdb: str | None = None
    rotten_tomatoes: str | None = None
    metascore: str | None = None

    def is_empty(self) -> bool:
        return not (self.imdb or self.rotten_tomatoes or self.metascore)


class DiscoverFilters(BaseModel):
    """Filters accepted by the discover endpoint."""

    genre: int | None = None
    year: int | None = None
    sort: str = "popularity.desc"
    min_rating: float | None = Field(default=None, ge=0, le=10)

    def to_params(self) -> dict[str, str]:
        params = {"sort_by": self.sort or "popularity.desc"}
        if self.genre:
            params["with_genres"] = str(self.genre)
        if self.year:
            params["year"] = str(self.year)
        if self.min_rating:
            params["vote_average.gte"] = f"{self.min_rating:g}"
        return params


class MovieRef(BaseModel):
    """Snapshot of a catalog movie stored in a collection.

    Snapshots are frozen: refreshing the catalog never rewrites what the user
    saved. Both the catalog's snake_case keys and the camelCase names are
    accepted on input; storage always uses snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: int
    title: str = ""
    poster_path: str | None = Field(
        default=None, validation_alias=AliasChoices("poster_path", "posterPath")
    )
    release_date: str | None = Field(
        default=None, validation_alias=AliasChoices("release_date", "releaseDate")
    )
    vote_average: float | None = Field(
        default=None, validation_alias=AliasChoices("vote_average", "voteAverage")
    )

    @classmethod
    def from_summary(cls, movie: MovieSummary) -> "MovieRef":
        return cls(
            id=movie.id,
            title=movie.title,
            poster_path=movie.poster_path,
            release_date=movie.release_date,
            vote_average=movie.vote_average,
        )

    @property
    def year(self) -> int | None:
        parsed = parse_release_date(self.release_date)
        return parsed.year if parsed else None


class CollectionCounts(BaseModel):
    """Sizes of both collections, pushed to every count surface."""

    favorites: int = 0
    watchlist: int = 0

    def for_collection(self, name: CollectionName) -> int:
        return self.favorites if name == "favorites" else self.watchlist
