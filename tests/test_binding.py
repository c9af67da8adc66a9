"""Toggle handling through bound controls."""

from __future__ import annotations

import pytest

from app.binding import BindingError, CardStateBinder
from app.collection_store import CollectionStore
from app.storage import MemoryMedium, PersistentStore
from app.sync import ViewSyncBroadcaster
from app.views import (
    CountBadge,
    MovieCard,
    ToggleControl,
    build_collection_page,
    build_detail_page,
    build_grid_page,
)

from conftest import TEST_KEYS


def test_bind_reflects_current_membership(store: CollectionStore, make_movie) -> None:
    movie = make_movie(1)
    store.add("watchlist", movie)
    card = MovieCard.for_movie(movie)
    binder = CardStateBinder(store, ViewSyncBroadcaster([]))

    binder.bind(card.favorite, movie)
    binder.bind(card.watchlist, movie)

    assert card.favorite.active is False
    assert card.watchlist.active is True
    assert card.watchlist.label == "✓ List"


def test_click_adds_then_removes(store: CollectionStore, make_movie) -> None:
    movie = make_movie(27205, "2010-07-15", title="Inception")
    page = build_grid_page("home", [movie])
    binder = CardStateBinder.for_page(store, page)
    binder.bind_page(page)
    control = page.grid.cards[0].favorite  # type: ignore[union-attr]

    outcome = control.click()

    assert outcome.added is True
    assert outcome.persisted is True
    assert control.active is True
    assert control.label == "❤️ Fav"
    assert store.contains("favorites", 27205)
    assert page.favorites_badge is not None
    assert (page.favorites_badge.text, page.favorites_badge.visible) == ("1", True)
    assert page.footer is not None
    assert page.footer.lines == ["1 Favorite", "0 in Watchlist"]

    outcome = control.click()

    assert outcome.added is False
    assert outcome.removed_from_view is False
    assert control.active is False
    assert not store.contains("favorites", 27205)
    assert page.favorites_badge.visible is False
    # the home grid is not scoped, so the card stays
    assert len(page.grid.cards) == 1  # type: ignore[union-attr]


def test_watchlist_page_removes_last_card_and_shows_empty_state(
    store: CollectionStore, make_movie
) -> None:
    store.add("watchlist", make_movie(5))
    page = build_collection_page(store, "watchlist")
    binder = CardStateBinder.for_page(store, page)
    binder.bind_page(page)
    assert page.watchlist_badge is not None
    assert page.watchlist_badge.text == "1"

    outcome = page.grid.cards[0].watchlist.click()  # type: ignore[union-attr]

    assert outcome.added is False
    assert outcome.removed_from_view is True
    assert store.list("watchlist") == []
    assert page.grid.cards == []  # type: ignore[union-attr]
    assert page.grid.empty_state_visible is True  # type: ignore[union-attr]
    assert page.watchlist_badge.visible is False


def test_removed_card_controls_are_unbound(store: CollectionStore, make_movie) -> None:
    store.add("favorites", make_movie(1))
    store.add("favorites", make_movie(2))
    page = build_collection_page(store, "favorites")
    binder = CardStateBinder.for_page(store, page)
    binder.bind_page(page)
    card = page.grid.find(1)  # type: ignore[union-attr]
    assert card is not None

    card.favorite.click()

    assert card.favorite.bound is False
    assert card.watchlist.bound is False
    assert binder.bindings_for(1, "watchlist") == []
    assert [c.movie.id for c in page.grid.cards] == [2]  # type: ignore[union-attr]
    assert page.grid.empty_state_visible is False  # type: ignore[union-attr]


def test_watchlist_toggle_on_favorites_page_keeps_card(
    store: CollectionStore, make_movie
) -> None:
    movie = make_movie(3)
    store.add("favorites", movie)
    store.add("watchlist", movie)
    page = build_collection_page(store, "favorites")
    CardStateBinder.for_page(store, page).bind_page(page)
    card = page.grid.cards[0]  # type: ignore[union-attr]

    outcome = card.watchlist.click()

    assert outcome.added is False
    assert outcome.removed_from_view is False
    assert page.grid.cards == [card]  # type: ignore[union-attr]
    assert card.watchlist.label == "+ List"
    assert store.contains("favorites", 3)


def test_detail_buttons_update_labels_and_badges(store: CollectionStore, make_movie) -> None:
    page = build_detail_page(make_movie(8))
    CardStateBinder.for_page(store, page).bind_page(page)
    assert page.details is not None

    page.details.watchlist.click()

    assert page.details.watchlist.label == "✓ In Watchlist"
    assert page.details.favorite.label == "🤍 Add to Favorites"
    assert page.watchlist_badge is not None
    assert page.watchlist_badge.text == "1"


def test_binding_twice_requires_dispose(store: CollectionStore, make_movie) -> None:
    movie = make_movie(1)
    control = ToggleControl(1, "favorites")
    binder = CardStateBinder(store, ViewSyncBroadcaster([]))
    binding = binder.bind(control, movie)

    with pytest.raises(BindingError):
        binder.bind(control, movie)

    binding.dispose()
    binding.dispose()
    assert control.bound is False

    rebound = binder.bind(control, movie)
    control.click()
    assert rebound.active is True
    assert store.list("favorites") == [movie]


def test_bind_rejects_mismatched_movie(store: CollectionStore, make_movie) -> None:
    binder = CardStateBinder(store, ViewSyncBroadcaster([]))

    with pytest.raises(ValueError):
        binder.bind(ToggleControl(1, "favorites"), make_movie(2))


def test_controls_for_same_membership_update_together(
    store: CollectionStore, make_movie
) -> None:
    movie = make_movie(4)
    card_control = ToggleControl(4, "favorites")
    detail_control = ToggleControl(4, "favorites", style="detail")
    binder = CardStateBinder(store, ViewSyncBroadcaster([]))
    binder.bind(card_control, movie)
    binder.bind(detail_control, movie)

    card_control.click()

    assert detail_control.active is True
    assert detail_control.label == "❤️ Favorited"


def test_failed_write_keeps_optimistic_state(make_movie) -> None:
    medium = MemoryMedium(quota_bytes=10)
    store = CollectionStore(PersistentStore(medium), TEST_KEYS)
    badge = CountBadge("favorites")
    control = ToggleControl(1, "favorites")
    binder = CardStateBinder(store, ViewSyncBroadcaster([badge]))
    binder.bind(control, make_movie(1))

    outcome = control.click()

    assert outcome.added is True
    assert outcome.persisted is False
    assert control.active is True
    # counts come from storage, which never took the write
    assert badge.text == "0"
    assert store.list("favorites") == []


def test_dispose_all_unbinds_every_control(store: CollectionStore, make_movie) -> None:
    page = build_grid_page("home", [make_movie(1), make_movie(2)])
    binder = CardStateBinder.for_page(store, page)
    bindings = binder.bind_page(page)

    binder.dispose_all()

    assert len(bindings) == 4
    assert all(not control.bound for control in page.controls())
    assert all(not binding.active for binding in bindings)
