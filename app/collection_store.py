"""The favorites and watchlist collections and their mutation API."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Literal

from pydantic import ValidationError

from .config import StorageKeys
from .models import COLLECTION_NAMES, CollectionCounts, CollectionName, MovieRef
from .storage import PersistentStore
from .utils import parse_release_date

logger = logging.getLogger(__name__)

SortOrder = Literal["added", "newest"]


class UnknownCollectionError(ValueError):
    """Raised when an operation names a collection that does not exist."""


@dataclass(frozen=True, slots=True)
class ToggleResult:
    """Outcome of :meth:`CollectionStore.toggle`."""

    added: bool
    persisted: bool


def sort_newest_first(movies: Iterable[MovieRef]) -> list[MovieRef]:
    """Order snapshots by release date, newest first.

    Undated entries go last; equal dates keep insertion order.
    """

    indexed = list(enumerate(movies))

    def _key(entry: tuple[int, MovieRef]) -> tuple[int, int, int]:
        index, movie = entry
        released = parse_release_date(movie.release_date)
        if released is None:
            return (1, 0, index)
        return (0, -released.toordinal(), index)

    return [movie for _, movie in sorted(indexed, key=_key)]


class CollectionStore:
    """Sole writer of the persisted collections.

    Nothing is cached: every operation re-reads the record, so the durable
    medium is always the source of truth. Each collection's
    read-modify-write runs under its own lock.
    """

    def __init__(self, store: PersistentStore, keys: StorageKeys) -> None:
        self._store = store
        self._keys: dict[str, str] = {
            "favorites": keys.favorites,
            "watchlist": keys.watchlist,
        }
        self._locks: dict[str, threading.RLock] = {
            name: threading.RLock() for name in COLLECTION_NAMES
        }

    def _key(self, name: str) -> str:
        try:
            return self._keys[name]
        except KeyError:
            raise UnknownCollectionError(f"Unknown collection: {name!r}") from None

    def list(self, name: CollectionName) -> list[MovieRef]:
        """Return the collection in insertion order; empty when unreadable."""

        key = self._key(name)
        raw = self._store.read(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed %s record (expected a list)", name)
            return []

        movies: list[MovieRef] = []
        seen: set[int] = set()
        for entry in raw:
            try:
                movie = MovieRef.model_validate(entry)
            except ValidationError:
                logger.warning("Skipping malformed %s entry: %r", name, entry)
                continue
            if movie.id in seen:
                continue
            seen.add(movie.id)
            movies.append(movie)
        return movies

    def sorted_list(self, name: CollectionName, order: SortOrder = "newest") -> list[MovieRef]:
        movies = self.list(name)
        if order == "newest":
            return sort_newest_first(movies)
        return movies

    def contains(self, name: CollectionName, movie_id: int) -> bool:
        return any(movie.id == movie_id for movie in self.list(name))

    def add(self, name: CollectionName, movie: MovieRef) -> bool:
        """Append ``movie``; returns ``False`` untouched when already present."""

        key = self._key(name)
        with self._locks[name]:
            movies = self.list(name)
            if any(existing.id == movie.id for existing in movies):
                return False
            movies.append(movie)
            return self._persist(key, movies)

    def remove(self, name: CollectionName, movie_id: int) -> bool:
        """Drop every entry for ``movie_id`` and rewrite the record."""

        key = self._key(name)
        with self._locks[name]:
            movies = [movie for movie in self.list(name) if movie.id != movie_id]
            return self._persist(key, movies)

    def toggle(self, name: CollectionName, movie: MovieRef) -> ToggleResult:
        self._key(name)
        with self._locks[name]:
            if self.contains(name, movie.id):
                return ToggleResult(added=False, persisted=self.remove(name, movie.id))
            return ToggleResult(added=True, persisted=self.add(name, movie))

    def clear(self, name: CollectionName) -> bool:
        key = self._key(name)
        with self._locks[name]:
            return self._persist(key, [])

    def counts(self) -> CollectionCounts:
        return CollectionCounts(
            favorites=len(self.list("favorites")),
            watchlist=len(self.list("watchlist")),
        )

    def _persist(self, key: str, movies: list[MovieRef]) -> bool:
        payload = [movie.model_dump(mode="json") for movie in movies]
        persisted = self._store.write(key, payload)
        if not persisted:
            logger.warning("Collection record %s was not persisted", key)
        return persisted

