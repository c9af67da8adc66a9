"""Entry point for the FastAPI-powered Cinemate service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from .binding import CardStateBinder, ToggleOutcome
from .collection_store import CollectionStore, SortOrder
from .config import settings
from .database import Database
from .models import COLLECTION_NAMES, CollectionName, DiscoverFilters, MovieRef, MovieSummary
from .services.catalog import CatalogAPI
from .services.omdb import OMDbClient
from .services.tmdb import CatalogError, TMDBClient
from .storage import DatabaseMedium, PersistentStore
from .views import (
    PAGE_KINDS,
    ControlStyle,
    PageKind,
    PageView,
    build_collection_page,
    build_detail_page,
    build_grid_page,
)
from .utils import format_runtime

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CATALOG_FAILURE_MESSAGE = "Failed to load movies. Please try again."

app: FastAPI


class ToggleRequest(BaseModel):
    """A click on one toggle control of a page."""

    collection: CollectionName
    movie: MovieRef
    style: ControlStyle = "card"


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    omdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.omdb_api_url),
            timeout=httpx.Timeout(10.0, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    database.create_all()

    fastapi_app.state.database = database
    fastapi_app.state.collection_store = CollectionStore(
        PersistentStore(DatabaseMedium(database)), settings.storage_keys
    )
    if settings.tmdb_api_key:
        fastapi_app.state.catalog = CatalogAPI(
            settings,
            TMDBClient(settings, tmdb_http_client),
            OMDbClient(settings, omdb_http_client),
        )
    else:
        logger.warning("TMDB_API_KEY is not set; catalog routes will return 503")

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Movie discovery with persistent favorites and watchlist",
        version=__version__,
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_collection_store(app: FastAPI) -> CollectionStore:
    store = getattr(app.state, "collection_store", None)
    if not isinstance(store, CollectionStore):
        raise RuntimeError("Collection store not initialised")
    return store


def get_catalog(app: FastAPI) -> CatalogAPI:
    catalog = getattr(app.state, "catalog", None)
    if not isinstance(catalog, CatalogAPI):
        raise HTTPException(status_code=503, detail="Movie catalog is not configured")
    return catalog


def _collection_name(name: str) -> CollectionName:
    if name not in COLLECTION_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {name}")
    return name  # type: ignore[return-value]


def _page_kind(kind: str) -> PageKind:
    if kind not in PAGE_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown page: {kind}")
    return kind  # type: ignore[return-value]


def _outcome_payload(outcome: ToggleOutcome) -> dict[str, Any]:
    return {
        "movieId": outcome.movie_id,
        "collection": outcome.collection,
        "added": outcome.added,
        "persisted": outcome.persisted,
        "counts": outcome.counts.model_dump(),
        "removedFromView": outcome.removed_from_view,
    }


def register_routes(fastapi_app: FastAPI) -> None:
    def _render_page(page: PageView) -> dict[str, Any]:
        """Bind the page to live membership, snapshot it, then drop the bindings."""

        binder = CardStateBinder.for_page(get_collection_store(fastapi_app), page)
        binder.bind_page(page)
        payload = page.to_payload()
        binder.dispose_all()
        return payload

    def _membership(movie_id: int) -> dict[str, bool]:
        store = get_collection_store(fastapi_app)
        return {name: store.contains(name, movie_id) for name in COLLECTION_NAMES}

    def _grid_from_summaries(kind: PageKind, movies: list[MovieSummary]) -> PageView:
        return build_grid_page(kind, [MovieRef.from_summary(movie) for movie in movies])

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/movies/popular")
    async def popular_movies(page: int = Query(default=1, ge=1, le=500)) -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        try:
            listing = await catalog.get_popular(page)
        except CatalogError as exc:
            raise HTTPException(status_code=502, detail=CATALOG_FAILURE_MESSAGE) from exc
        return listing.model_dump(mode="json")

    @fastapi_app.get("/api/movies/search")
    async def search_movies(
        query: str = Query(default=""),
        page: int = Query(default=1, ge=1, le=500),
    ) -> dict[str, Any]:
        if not query.strip():
            raise HTTPException(status_code=400, detail="Please enter a movie title")
        catalog = get_catalog(fastapi_app)
        try:
            listing = await catalog.search(query, page)
        except CatalogError as exc:
            raise HTTPException(
                status_code=502, detail="Failed to search movies. Please try again."
            ) from exc
        return listing.model_dump(mode="json")

    @fastapi_app.get("/api/movies/discover")
    async def discover_movies(
        genre: int | None = None,
        year: int | None = Query(default=None, ge=1900, le=2100),
        sort: str = "popularity.desc",
        min_rating: float | None = Query(default=None, ge=0, le=10),
        page: int = Query(default=1, ge=1, le=500),
    ) -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        filters = DiscoverFilters(genre=genre, year=year, sort=sort, min_rating=min_rating)
        try:
            listing = await catalog.discover(filters, page)
        except CatalogError as exc:
            raise HTTPException(status_code=502, detail=CATALOG_FAILURE_MESSAGE) from exc
        return listing.model_dump(mode="json")

    @fastapi_app.get("/api/movies/random")
    async def random_movie(
        genre: int | None = None,
        min_rating: float | None = Query(default=None, ge=0, le=10),
    ) -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        try:
            movie = await catalog.pick_random_movie(genre=genre, min_rating=min_rating)
        except CatalogError as exc:
            raise HTTPException(
                status_code=502, detail="Failed to get random movie. Try again."
            ) from exc
        if movie is None:
            raise HTTPException(
                status_code=404, detail="No movies found. Try different filters."
            )
        return movie.model_dump(mode="json")

    @fastapi_app.get("/api/genres")
    async def genres() -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        try:
            entries = await catalog.get_genres()
        except CatalogError as exc:
            raise HTTPException(status_code=502, detail=CATALOG_FAILURE_MESSAGE) from exc
        return {"genres": [entry.model_dump() for entry in entries]}

    @fastapi_app.get("/api/movies/{movie_id}")
    async def movie_details(movie_id: int) -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        try:
            detail_page = await catalog.get_movie_page(movie_id)
        except CatalogError as exc:
            raise HTTPException(
                status_code=502, detail="Failed to load movie details."
            ) from exc
        movie = detail_page.movie
        # Collection reads hit the database, keep them off the event loop.
        membership = await run_in_threadpool(_membership, movie_id)
        return {
            "movie": movie.model_dump(mode="json"),
            "runtimeText": format_runtime(movie.runtime),
            "posterUrl": catalog.tmdb.image_url(movie.poster_path, "poster"),
            "backdropUrl": catalog.tmdb.image_url(movie.backdrop_path, "backdrop"),
            "ratings": detail_page.ratings.model_dump() if detail_page.ratings else None,
            "recommendations": [
                entry.model_dump(mode="json") for entry in detail_page.recommendations
            ],
            "trailerUrl": detail_page.trailer_url,
            "membership": membership,
        }

    @fastapi_app.get("/api/collections/counts")
    def collection_counts() -> dict[str, int]:
        return get_collection_store(fastapi_app).counts().model_dump()

    @fastapi_app.get("/api/collections/{name}")
    def list_collection(name: str, sort: SortOrder = "added") -> dict[str, Any]:
        collection = _collection_name(name)
        movies = get_collection_store(fastapi_app).sorted_list(collection, sort)
        return {
            "name": collection,
            "items": [movie.model_dump(mode="json") for movie in movies],
        }

    @fastapi_app.get("/api/collections/{name}/{movie_id}")
    def collection_membership(name: str, movie_id: int) -> dict[str, Any]:
        collection = _collection_name(name)
        store = get_collection_store(fastapi_app)
        return {"movieId": movie_id, "present": store.contains(collection, movie_id)}

    @fastapi_app.post("/api/collections/{name}")
    def add_to_collection(name: str, movie: MovieRef) -> dict[str, Any]:
        collection = _collection_name(name)
        store = get_collection_store(fastapi_app)
        added = store.add(collection, movie)
        return {"added": added, "counts": store.counts().model_dump()}

    @fastapi_app.delete("/api/collections/{name}/{movie_id}")
    def remove_from_collection(name: str, movie_id: int) -> dict[str, Any]:
        collection = _collection_name(name)
        store = get_collection_store(fastapi_app)
        persisted = store.remove(collection, movie_id)
        return {"persisted": persisted, "counts": store.counts().model_dump()}

    @fastapi_app.post("/api/collections/{name}/toggle")
    def toggle_collection(name: str, movie: MovieRef) -> dict[str, Any]:
        collection = _collection_name(name)
        store = get_collection_store(fastapi_app)
        result = store.toggle(collection, movie)
        return {
            "added": result.added,
            "persisted": result.persisted,
            "counts": store.counts().model_dump(),
        }

    @fastapi_app.get("/pages/home")
    async def home_page(page: int = Query(default=1, ge=1, le=500)) -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        try:
            listing = await catalog.get_popular(page)
        except CatalogError:
            logger.warning("Popular movies unavailable for page %s", page)
            view = build_grid_page("home", [])
            view.error = CATALOG_FAILURE_MESSAGE
            return await run_in_threadpool(_render_page, view)
        payload = await run_in_threadpool(
            _render_page, _grid_from_summaries("home", listing.results)
        )
        payload["pagination"] = {"page": listing.page, "totalPages": listing.total_pages}
        return payload

    @fastapi_app.get("/pages/details/{movie_id}")
    async def details_page(movie_id: int) -> dict[str, Any]:
        catalog = get_catalog(fastapi_app)
        try:
            movie = await catalog.get_movie_details(movie_id)
        except CatalogError as exc:
            raise HTTPException(
                status_code=502, detail="Failed to load movie details."
            ) from exc
        return await run_in_threadpool(
            _render_page, build_detail_page(MovieRef.from_summary(movie))
        )

    @fastapi_app.get("/pages/{kind}")
    def collection_page(kind: str) -> dict[str, Any]:
        page_kind = _page_kind(kind)
        if page_kind not in COLLECTION_NAMES:
            raise HTTPException(status_code=404, detail=f"Unknown page: {kind}")
        store = get_collection_store(fastapi_app)
        return _render_page(build_collection_page(store, page_kind))  # type: ignore[arg-type]

    @fastapi_app.post("/pages/{kind}/toggle")
    def toggle_on_page(kind: str, request: ToggleRequest) -> dict[str, Any]:
        """Replay a control click on ``kind`` and return the resulting view."""

        page_kind = _page_kind(kind)
        store = get_collection_store(fastapi_app)
        movie = request.movie
        if page_kind in COLLECTION_NAMES:
            view = build_collection_page(store, page_kind)  # type: ignore[arg-type]
        elif page_kind == "details":
            view = build_detail_page(movie)
        else:
            view = build_grid_page("home", [movie])

        binder = CardStateBinder.for_page(store, view)
        binder.bind_page(view)
        try:
            control = view.find_control(movie.id, request.collection, request.style)
            if control is None:
                raise HTTPException(
                    status_code=404, detail="Movie is not displayed on this page"
                )
            outcome = control.click()
            return {"outcome": _outcome_payload(outcome), "page": view.to_payload()}
        finally:
            binder.dispose_all()


app = create_app()
