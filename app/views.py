"""Headless view models for the pages that display collection membership.

A page is a plain object graph (grid, cards, toggle controls, badges, footer)
that the web layer serializes with ``to_payload``. Nothing here reads or
writes collection state; :mod:`app.binding` attaches that behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Literal, Protocol

from .models import CollectionCounts, CollectionName, MovieRef
from .utils import format_rating, pluralize

if TYPE_CHECKING:
    from .binding import ToggleOutcome
    from .collection_store import CollectionStore

PageKind = Literal["home", "favorites", "watchlist", "details"]
ControlStyle = Literal["card", "detail"]

PAGE_KINDS: tuple[PageKind, ...] = ("home", "favorites", "watchlist", "details")

_CONTROL_LABELS: dict[tuple[ControlStyle, CollectionName], dict[bool, tuple[str, str]]] = {
    ("card", "favorites"): {True: ("❤️", "Fav"), False: ("🤍", "Fav")},
    ("card", "watchlist"): {True: ("✓", "List"), False: ("+", "List")},
    ("detail", "favorites"): {
        True: ("❤️", "Favorited"),
        False: ("🤍", "Add to Favorites"),
    },
    ("detail", "watchlist"): {
        True: ("✓", "In Watchlist"),
        False: ("+", "Add to Watchlist"),
    },
}

_EMPTY_MESSAGES: dict[CollectionName, str] = {
    "favorites": "No favorites yet. Tap 🤍 on any movie to save it here.",
    "watchlist": "Your watchlist is empty. Tap + on any movie to add it.",
}


class CountSurface(Protocol):
    """Anything that displays collection counts."""

    def render(self, counts: CollectionCounts) -> None: ...


class NullSurface:
    """Stands in for a surface the current page does not have."""

    def render(self, counts: CollectionCounts) -> None:
        return None


NULL_SURFACE = NullSurface()


@dataclass(slots=True)
class CountBadge:
    """Navigation badge next to the Favorites or Watchlist link."""

    collection: CollectionName
    text: str = ""
    visible: bool = False

    def render(self, counts: CollectionCounts) -> None:
        count = counts.for_collection(self.collection)
        self.text = str(count)
        self.visible = count > 0

    def to_payload(self) -> dict[str, Any]:
        return {"collection": self.collection, "text": self.text, "visible": self.visible}


@dataclass(slots=True)
class FooterSummary:
    """Statistics block in the page footer."""

    lines: list[str] = field(default_factory=lambda: ["Loading statistics..."])

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def render(self, counts: CollectionCounts) -> None:
        self.lines = [
            pluralize(counts.favorites, "Favorite"),
            f"{counts.watchlist} in Watchlist",
        ]

    def to_payload(self) -> dict[str, Any]:
        return {"lines": list(self.lines), "text": self.text}


@dataclass(eq=False, slots=True)
class ToggleControl:
    """A favorite/watchlist button for one movie.

    A control holds at most one click handler; see
    :class:`app.binding.CardStateBinder`.
    """

    movie_id: int
    collection: CollectionName
    style: ControlStyle = "card"
    active: bool = False
    handler: Callable[[], "ToggleOutcome"] | None = None

    @property
    def icon(self) -> str:
        return _CONTROL_LABELS[(self.style, self.collection)][self.active][0]

    @property
    def text(self) -> str:
        return _CONTROL_LABELS[(self.style, self.collection)][self.active][1]

    @property
    def label(self) -> str:
        return f"{self.icon} {self.text}"

    @property
    def bound(self) -> bool:
        return self.handler is not None

    def click(self) -> "ToggleOutcome":
        if self.handler is None:
            raise RuntimeError(
                f"{self.collection} control for movie {self.movie_id} is not bound"
            )
        return self.handler()

    def to_payload(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "active": self.active,
            "icon": self.icon,
            "text": self.text,
            "label": self.label,
        }


@dataclass(eq=False, slots=True)
class MovieCard:
    movie: MovieRef
    favorite: ToggleControl
    watchlist: ToggleControl

    @classmethod
    def for_movie(cls, movie: MovieRef) -> "MovieCard":
        return cls(
            movie=movie,
            favorite=ToggleControl(movie.id, "favorites"),
            watchlist=ToggleControl(movie.id, "watchlist"),
        )

    def controls(self) -> tuple[ToggleControl, ToggleControl]:
        return (self.favorite, self.watchlist)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.movie.id,
            "title": self.movie.title,
            "poster_path": self.movie.poster_path,
            "year": self.movie.year,
            "rating": format_rating(self.movie.vote_average),
            "favorite": self.favorite.to_payload(),
            "watchlist": self.watchlist.to_payload(),
        }


@dataclass(eq=False, slots=True)
class MovieGrid:
    """A grid of cards, optionally scoped to one collection.

    A scoped grid lists exactly the members of its collection, so removing a
    member removes its card.
    """

    scope: CollectionName | None = None
    cards: list[MovieCard] = field(default_factory=list)
    hidden: bool = False
    empty_state_visible: bool = False
    empty_message: str = "No movies found."

    def find(self, movie_id: int) -> MovieCard | None:
        for card in self.cards:
            if card.movie.id == movie_id:
                return card
        return None

    def remove_card(self, movie_id: int) -> MovieCard | None:
        card = self.find(movie_id)
        if card is not None:
            self.cards.remove(card)
        return card

    def is_empty(self) -> bool:
        return not self.cards

    def show_empty_state(self) -> None:
        self.hidden = True
        self.empty_state_visible = True

    def controls(self) -> list[ToggleControl]:
        return [control for card in self.cards for control in card.controls()]

    def to_payload(self) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "hidden": self.hidden,
            "empty_state": {
                "visible": self.empty_state_visible,
                "message": self.empty_message,
            },
            "cards": [card.to_payload() for card in self.cards],
        }


@dataclass(eq=False, slots=True)
class DetailActions:
    """The favorite/watchlist buttons on a movie's detail page."""

    movie: MovieRef
    favorite: ToggleControl
    watchlist: ToggleControl

    @classmethod
    def for_movie(cls, movie: MovieRef) -> "DetailActions":
        return cls(
            movie=movie,
            favorite=ToggleControl(movie.id, "favorites", style="detail"),
            watchlist=ToggleControl(movie.id, "watchlist", style="detail"),
        )

    def controls(self) -> tuple[ToggleControl, ToggleControl]:
        return (self.favorite, self.watchlist)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.movie.id,
            "favorite": self.favorite.to_payload(),
            "watchlist": self.watchlist.to_payload(),
        }


@dataclass(eq=False, slots=True)
class PageView:
    kind: PageKind
    grid: MovieGrid | None = None
    details: DetailActions | None = None
    favorites_badge: CountBadge | None = field(
        default_factory=lambda: CountBadge("favorites")
    )
    watchlist_badge: CountBadge | None = field(
        default_factory=lambda: CountBadge("watchlist")
    )
    footer: FooterSummary | None = field(default_factory=FooterSummary)
    error: str | None = None

    @property
    def scope(self) -> CollectionName | None:
        return self.grid.scope if self.grid is not None else None

    def count_surfaces(self) -> list[CountSurface]:
        """Return every count surface, substituting :data:`NULL_SURFACE`."""

        return [
            self.favorites_badge or NULL_SURFACE,
            self.watchlist_badge or NULL_SURFACE,
            self.footer or NULL_SURFACE,
        ]

    def controls(self) -> list[ToggleControl]:
        controls: list[ToggleControl] = []
        if self.grid is not None:
            controls.extend(self.grid.controls())
        if self.details is not None:
            controls.extend(self.details.controls())
        return controls

    def find_control(
        self, movie_id: int, collection: CollectionName, style: ControlStyle | None = None
    ) -> ToggleControl | None:
        for control in self.controls():
            if control.movie_id != movie_id or control.collection != collection:
                continue
            if style is None or control.style == style:
                return control
        return None

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "badges": {
                "favorites": self.favorites_badge.to_payload()
                if self.favorites_badge
                else None,
                "watchlist": self.watchlist_badge.to_payload()
                if self.watchlist_badge
                else None,
            },
            "footer": self.footer.to_payload() if self.footer else None,
            "grid": self.grid.to_payload() if self.grid else None,
            "details": self.details.to_payload() if self.details else None,
            "error": self.error,
        }


def build_grid_page(
    kind: PageKind,
    movies: Iterable[MovieRef],
    *,
    scope: CollectionName | None = None,
) -> PageView:
    """Lay out ``movies`` as cards; an empty grid shows its empty message."""

    grid = MovieGrid(scope=scope, cards=[MovieCard.for_movie(movie) for movie in movies])
    if scope is not None:
        grid.empty_message = _EMPTY_MESSAGES[scope]
    if grid.is_empty():
        grid.show_empty_state()
    return PageView(kind=kind, grid=grid)


def build_collection_page(store: "CollectionStore", name: CollectionName) -> PageView:
    """The favorites or watchlist page, newest releases first."""

    return build_grid_page(name, store.sorted_list(name, "newest"), scope=name)


def build_detail_page(movie: MovieRef) -> PageView:
    return PageView(kind="details", details=DetailActions.for_movie(movie))
