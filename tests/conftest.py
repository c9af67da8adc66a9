"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the application package is importable when running tests without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.collection_store import CollectionStore  # noqa: E402
from app.config import StorageKeys  # noqa: E402
from app.models import MovieRef  # noqa: E402
from app.storage import MemoryMedium, PersistentStore  # noqa: E402


TEST_KEYS = StorageKeys(
    favorites="test_favorites",
    watchlist="test_watchlist",
    preferences="test_preferences",
)


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def medium() -> MemoryMedium:
    return MemoryMedium()


@pytest.fixture
def store(medium: MemoryMedium) -> CollectionStore:
    return CollectionStore(PersistentStore(medium), TEST_KEYS)


def build_movie(movie_id: int, release_date: str | None = None, **extra: object) -> MovieRef:
    """Build a snapshot with sensible defaults."""

    return MovieRef(
        id=movie_id,
        title=str(extra.pop("title", f"Movie {movie_id}")),
        release_date=release_date,
        **extra,
    )


@pytest.fixture
def make_movie():
    return build_movie

