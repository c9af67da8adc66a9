"""Membership invariants of the favorites and watchlist collections."""

from __future__ import annotations

import json
import random

import pytest

from app.collection_store import CollectionStore, UnknownCollectionError, sort_newest_first
from app.models import MovieRef
from app.storage import MemoryMedium, PersistentStore
from app.views import build_collection_page

from conftest import TEST_KEYS


def test_add_inception_scenario(store: CollectionStore) -> None:
    inception = MovieRef(
        id=27205, title="Inception", release_date="2010-07-15", vote_average=8.4
    )

    assert store.add("favorites", inception) is True

    assert store.list("favorites") == [inception]
    assert store.contains("favorites", 27205) is True
    assert store.contains("watchlist", 27205) is False


def test_duplicate_add_is_idempotent(store: CollectionStore, make_movie) -> None:
    movie = make_movie(1)
    store.add("favorites", movie)
    before = store.list("favorites")

    assert store.add("favorites", movie) is False
    assert store.list("favorites") == before


def test_duplicate_add_keeps_original_snapshot(store: CollectionStore) -> None:
    store.add("watchlist", MovieRef(id=7, title="Original", vote_average=6.0))

    store.add("watchlist", MovieRef(id=7, title="Refreshed", vote_average=9.0))

    [saved] = store.list("watchlist")
    assert saved.title == "Original"
    assert saved.vote_average == 6.0


def test_toggle_is_symmetric(store: CollectionStore, make_movie) -> None:
    store.add("favorites", make_movie(1))
    before = store.list("favorites")
    movie = make_movie(2)

    first = store.toggle("favorites", movie)
    assert first.added is True
    assert first.persisted is True
    assert store.contains("favorites", 2) is True

    second = store.toggle("favorites", movie)
    assert second.added is False
    assert store.contains("favorites", 2) is False
    assert store.list("favorites") == before


def test_collections_are_independent(store: CollectionStore, make_movie) -> None:
    store.add("watchlist", make_movie(10))

    store.add("favorites", make_movie(11))
    store.toggle("favorites", make_movie(10))

    assert [movie.id for movie in store.list("watchlist")] == [10]
    assert [movie.id for movie in store.list("favorites")] == [11, 10]


def test_remove_absent_rewrites_unchanged_collection(
    store: CollectionStore, medium: MemoryMedium, make_movie
) -> None:
    store.add("favorites", make_movie(1))

    assert store.remove("favorites", 99) is True
    assert [movie.id for movie in store.list("favorites")] == [1]
    assert json.loads(medium.get_item(TEST_KEYS.favorites))[0]["id"] == 1


def test_remove_on_empty_storage_writes_empty_record(
    store: CollectionStore, medium: MemoryMedium
) -> None:
    assert store.remove("watchlist", 5) is True
    assert medium.get_item(TEST_KEYS.watchlist) == "[]"


@pytest.mark.parametrize(
    "raw",
    ["{not json", '{"id": 1}', '"favorites"', "42", "null"],
)
def test_corrupt_record_reads_as_empty(raw: str, medium: MemoryMedium) -> None:
    medium.set_item(TEST_KEYS.favorites, raw)
    store = CollectionStore(PersistentStore(medium), TEST_KEYS)

    assert store.list("favorites") == []
    assert store.contains("favorites", 1) is False


def test_corrupt_record_is_replaced_on_next_add(medium: MemoryMedium, make_movie) -> None:
    medium.set_item(TEST_KEYS.watchlist, "<<garbage>>")
    store = CollectionStore(PersistentStore(medium), TEST_KEYS)

    assert store.add("watchlist", make_movie(3)) is True
    assert [movie.id for movie in store.list("watchlist")] == [3]


def test_malformed_entries_and_duplicates_are_skipped(medium: MemoryMedium) -> None:
    medium.set_item(
        TEST_KEYS.favorites,
        json.dumps(
            [
                {"id": 1, "title": "First"},
                {"title": "No id"},
                "not-a-movie",
                {"id": 1, "title": "Duplicate"},
                {"id": 2, "title": "Second"},
            ]
        ),
    )
    store = CollectionStore(PersistentStore(medium), TEST_KEYS)

    assert [(movie.id, movie.title) for movie in store.list("favorites")] == [
        (1, "First"),
        (2, "Second"),
    ]


def test_failed_write_reports_false_and_leaves_storage_unchanged(make_movie) -> None:
    medium = MemoryMedium(quota_bytes=120)
    store = CollectionStore(PersistentStore(medium), TEST_KEYS)
    assert store.add("favorites", make_movie(1)) is True

    result = store.toggle("favorites", make_movie(2, title="A" * 200))

    assert result.added is True
    assert result.persisted is False
    assert [movie.id for movie in store.list("favorites")] == [1]


def test_random_operations_never_duplicate_ids(store: CollectionStore, make_movie) -> None:
    rng = random.Random(1234)
    for _ in range(300):
        name = rng.choice(["favorites", "watchlist"])
        movie = make_movie(rng.randint(1, 12))
        operation = rng.choice(["add", "remove", "toggle"])
        if operation == "add":
            store.add(name, movie)
        elif operation == "remove":
            store.remove(name, movie.id)
        else:
            store.toggle(name, movie)

        ids = [entry.id for entry in store.list(name)]
        assert len(ids) == len(set(ids))
        for movie_id in range(1, 13):
            assert store.contains(name, movie_id) == (movie_id in ids)


def test_counts_reflect_both_collections(store: CollectionStore, make_movie) -> None:
    store.add("favorites", make_movie(1))
    store.add("favorites", make_movie(2))
    store.add("watchlist", make_movie(2))

    counts = store.counts()

    assert counts.favorites == 2
    assert counts.watchlist == 1


def test_clear_empties_a_collection(store: CollectionStore, make_movie) -> None:
    store.add("watchlist", make_movie(1))

    assert store.clear("watchlist") is True
    assert store.list("watchlist") == []


def test_unknown_collection_raises(store: CollectionStore, make_movie) -> None:
    with pytest.raises(UnknownCollectionError):
        store.list("seen")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        store.toggle("seen", make_movie(1))  # type: ignore[arg-type]


def test_sort_newest_first(make_movie) -> None:
    first = make_movie(1, "2020-01-01")
    second = make_movie(2, "2021-06-01")

    assert sort_newest_first([first, second]) == [second, first]


def test_sort_newest_first_puts_undated_last_and_keeps_ties_stable(make_movie) -> None:
    undated = make_movie(1)
    old = make_movie(2, "1999-03-31")
    tie_a = make_movie(3, "2010-07-15")
    tie_b = make_movie(4, "2010-07-15")
    bare_year = make_movie(5, "2015")

    assert [movie.id for movie in sort_newest_first([undated, old, tie_a, tie_b, bare_year])] == [
        5,
        3,
        4,
        2,
        1,
    ]


def test_sorted_list_modes(store: CollectionStore, make_movie) -> None:
    store.add("favorites", make_movie(1, "2020-01-01"))
    store.add("favorites", make_movie(2, "2021-06-01"))

    assert [movie.id for movie in store.sorted_list("favorites")] == [2, 1]
    assert [movie.id for movie in store.sorted_list("favorites", "added")] == [1, 2]


def test_out_of_range_release_year_sorts_as_undated(store: CollectionStore, make_movie) -> None:
    store.add("favorites", make_movie(1, "0000-01-01"))
    store.add("favorites", make_movie(2, "2021-06-01"))

    assert [movie.id for movie in store.sorted_list("favorites")] == [2, 1]

    page = build_collection_page(store, "favorites")
    cards = page.to_payload()["grid"]["cards"]
    assert [card["id"] for card in cards] == [2, 1]
    assert cards[1]["year"] is None
